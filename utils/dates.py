from datetime import date, datetime, timedelta, timezone
from decimal import Decimal


def parse_timestamp(value):
    """Return an aware UTC datetime for a datetime, date or ISO string; None otherwise.

    Naive values are taken to be UTC, which is how the store hands back `timestamp` columns.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_date(value):
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def shift_to_offset(moment, offset_minutes):
    """Wall-clock time at a fixed UTC offset, returned naive."""
    return (moment.astimezone(timezone.utc) + timedelta(minutes=offset_minutes)).replace(tzinfo=None)


def local_date(value, offset_minutes):
    moment = parse_timestamp(value)
    if moment is None:
        return None
    return shift_to_offset(moment, offset_minutes).date()


def isoformat_all(value):
    """Recursively replace dates and decimals so the value can go through jsonify."""
    if isinstance(value, dict):
        return {key: isoformat_all(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [isoformat_all(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value
