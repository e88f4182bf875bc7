from datetime import datetime, date, time, timezone


def utcnow():
    return datetime.now(timezone.utc)


def as_utc(value):
    """
    Normalises a date/datetime to an aware UTC datetime.
    SQLite hands back naive datetimes, those are taken to be UTC already.
    Plain dates become midnight UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    return None


def parse_datetime(value):
    """ Accepts 'YYYY-MM-DD' or an ISO-8601 timestamp, returns an aware datetime or None. """
    if value is None or value == '':
        return None
    if isinstance(value, (datetime, date)):
        return as_utc(value)
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return None
    return as_utc(parsed)
