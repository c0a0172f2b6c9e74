import argparse
import logging

import config
from database import create_standalone_connection
from services.user_change_feed import SubscriberStore, listen_user_changes


def _parse_args():
    parser = argparse.ArgumentParser(description="Follow change notifications on the users table.")
    parser.add_argument(
        "--max-polls",
        type=int,
        default=None,
        help="Stop after this many poll intervals (default: run forever).",
    )
    return parser.parse_args()


def _print_change(store, event):
    print({"op": event.get("op"), "xid": event.get("xid"), "stats": store.stats()})


def main():
    logging.basicConfig(level=logging.INFO)
    args = _parse_args()

    conn = create_standalone_connection()
    try:
        listen_user_changes(
            conn,
            SubscriberStore(),
            channel=config.USER_CHANGES_CHANNEL,
            poll_seconds=config.USER_CHANGES_POLL_SECONDS,
            on_change=_print_change,
            max_polls=args.max_polls,
        )
    except KeyboardInterrupt:
        pass
    finally:
        conn.close()


if __name__ == "__main__":
    main()
