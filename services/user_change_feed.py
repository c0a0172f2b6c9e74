import json
import logging
import select
from dataclasses import dataclass

from psycopg2 import sql

from database import managed_cursor, transaction
from services.subscriber_service import derive_subscriber, fetch_subscribers, subscriber_stats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TxnSnapshot:
    """A `pg_current_snapshot()` value: `xmin:xmax:xip_list`."""

    xmin: int
    xmax: int
    in_progress: frozenset = frozenset()

    @classmethod
    def parse(cls, text) -> "TxnSnapshot":
        xmin, xmax, xip = str(text).strip().split(":")
        return cls(int(xmin), int(xmax), frozenset(int(xid) for xid in xip.split(",") if xid))

    def saw(self, xid) -> bool:
        """True when transaction `xid` had committed before the snapshot was taken."""
        if xid < self.xmin:
            return True
        if xid >= self.xmax:
            return False
        return xid not in self.in_progress


def _event_xid(event):
    try:
        return int(event.get("xid"))
    except (TypeError, ValueError):
        return None


class SubscriberStore:
    """In-memory subscriber list kept current from `users` change notifications.

    Each notification carries the id of the writing transaction. The snapshot
    remembers the transaction snapshot its rows were read under, and an event is
    skipped only when that snapshot already saw its transaction. Everything else
    is applied in arrival order, which is commit order.
    """

    def __init__(self):
        self.subscribers = []
        self.snapshot = None

    def load_snapshot(self, rows, snapshot):
        self.subscribers = list(rows)
        self.snapshot = snapshot

    def _index_of(self, subscriber_id):
        for index, subscriber in enumerate(self.subscribers):
            if subscriber.get("id") == subscriber_id:
                return index
        return None

    def apply_change(self, event):
        xid = _event_xid(event)
        if self.snapshot is not None and xid is not None and self.snapshot.saw(xid):
            logger.debug("users change already in snapshot op=%s xid=%s", event.get("op"), xid)
            return False

        op = (event.get("op") or "").upper()
        if op in ("INSERT", "UPDATE"):
            new_row = event.get("new")
            if not new_row:
                return False
            subscriber = derive_subscriber(new_row)
            index = self._index_of(subscriber.get("id"))
            if index is not None:
                self.subscribers[index] = subscriber
            elif op == "INSERT":
                self.subscribers.insert(0, subscriber)
            else:
                self.subscribers.append(subscriber)
        elif op == "DELETE":
            old_row = event.get("old") or {}
            self.subscribers = [s for s in self.subscribers if s.get("id") != old_row.get("id")]
        else:
            logger.warning("unknown users change op=%s", event.get("op"))
            return False
        return True

    def stats(self):
        return subscriber_stats(self.subscribers)


def parse_notification(payload):
    try:
        event = json.loads(payload)
    except (TypeError, json.JSONDecodeError):
        logger.warning("unparseable users change payload: %r", payload)
        return None
    return event if isinstance(event, dict) else None


def load_store_snapshot(conn, store):
    """Fill `store` from one repeatable-read transaction and return its snapshot.

    The connection must not have a transaction open.
    """
    autocommit = conn.autocommit
    if autocommit:
        conn.autocommit = False
    try:
        with transaction(conn) as cursor:
            cursor.execute("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ;")
            cursor.execute("SELECT pg_current_snapshot()::text AS snapshot;")
            snapshot = TxnSnapshot.parse(cursor.fetchone()["snapshot"])
            rows = fetch_subscribers(conn)
    finally:
        if autocommit:
            conn.autocommit = True
    store.load_snapshot(rows, snapshot)
    return snapshot


def _apply_pending(conn, store, on_change):
    while conn.notifies:
        notification = conn.notifies.pop(0)
        event = parse_notification(notification.payload)
        if event is None:
            continue
        if store.apply_change(event) and on_change is not None:
            on_change(store, event)


def listen_user_changes(
    conn,
    store,
    *,
    channel,
    poll_seconds,
    on_change=None,
    max_polls=None,
):
    conn.autocommit = True
    with managed_cursor(conn) as cursor:
        cursor.execute(sql.SQL("LISTEN {};").format(sql.Identifier(channel)))

    # LISTEN first so nothing committed after the snapshot slips through.
    load_store_snapshot(conn, store)
    logger.info(
        "users change feed ready xmax=%s subscribers=%s", store.snapshot.xmax, len(store.subscribers)
    )

    # Notifications that arrived during the snapshot transaction are already buffered.
    _apply_pending(conn, store, on_change)

    polls = 0
    while max_polls is None or polls < max_polls:
        polls += 1
        if select.select([conn], [], [], poll_seconds) == ([], [], []):
            continue
        conn.poll()
        _apply_pending(conn, store, on_change)
    return store
