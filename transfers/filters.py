from datetime import date, datetime

from django.utils.dateparse import parse_date

SEARCH_FIELDS = ("flight_code", "guest_name", "notes")


def _matches_query(record, query):
    for name in SEARCH_FIELDS:
        value = getattr(record, name, None)
        if value and query in value.lower():
            return True
    return False


def _target_day(target_date):
    """Return the ``YYYY-MM-DD`` prefix to match, or None if it can't parse."""
    if isinstance(target_date, datetime):
        target_date = target_date.date()
    if isinstance(target_date, date):
        return target_date.isoformat()
    try:
        parsed = parse_date(str(target_date).strip())
    except ValueError:
        return None
    return parsed.isoformat() if parsed else None


def filter_transfers(records, query="", target_date=None):
    """Return the records matching both the text query and the day.

    An empty query and a missing date each let every record through. A date
    that can't be parsed lets nothing through.
    """
    filtered = list(records)

    if query:
        needle = query.lower()
        filtered = [record for record in filtered if _matches_query(record, needle)]

    if target_date not in (None, ""):
        day = _target_day(target_date)
        if day is None:
            return []
        filtered = [
            record
            for record in filtered
            if str(record.transfer_date or "").startswith(day)
        ]

    return filtered
