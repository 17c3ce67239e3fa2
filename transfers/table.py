from dataclasses import dataclass

from django.utils.dateparse import parse_date, parse_datetime

EMPTY_CELL = "-"
EMPTY_TABLE_MESSAGE = "No flights found."


@dataclass(frozen=True)
class TransferRow:
    id: int
    flight_code: str
    transfer_date: str
    transfer_time: str
    guest_name: str
    guest_count: int
    notes: str


def format_transfer_date(value):
    """Format as ``01 May 2024``; unparseable values are shown as they are."""
    if not value:
        return EMPTY_CELL
    try:
        moment = parse_datetime(value)
        parsed = moment.date() if moment else parse_date(value)
    except (TypeError, ValueError):
        parsed = None
    if parsed is None:
        return value
    return parsed.strftime("%d %b %Y")


def build_rows(records):
    return [
        TransferRow(
            id=record.id,
            flight_code=record.flight_code,
            transfer_date=format_transfer_date(record.transfer_date),
            transfer_time=record.transfer_time or EMPTY_CELL,
            guest_name=record.guest_name,
            guest_count=record.guest_count,
            notes=record.notes or EMPTY_CELL,
        )
        for record in records
    ]
