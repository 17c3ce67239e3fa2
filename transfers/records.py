"""Plain record types shared by the stores, the filter and the dashboard.

A ``TransferDraft`` has no id and has never been stored. A ``TransferRecord``
carries the id the store assigned to it. Dates and times travel as the
strings the store hands back (``YYYY-MM-DD`` and ``HH:MM``).
"""

from dataclasses import asdict, dataclass, fields

DEFAULT_GUEST_COUNT = 1


def _coerce_guest_count(value):
    if value in (None, ""):
        return DEFAULT_GUEST_COUNT
    try:
        return int(value)
    except (TypeError, ValueError):
        return DEFAULT_GUEST_COUNT


@dataclass(frozen=True)
class TransferDraft:
    flight_code: str = ""
    transfer_date: str = ""
    transfer_time: str = ""
    destination_pickup: str = ""
    destination_dropoff: str = ""
    guest_name: str = ""
    guest_count: int = DEFAULT_GUEST_COUNT
    notes: str = ""

    @classmethod
    def from_mapping(cls, data):
        """Build a draft from form data or a store row, ignoring unknown keys."""
        values = {}
        for field in fields(cls):
            if field.name not in data:
                continue
            value = data[field.name]
            if field.name == "guest_count":
                values[field.name] = _coerce_guest_count(value)
            else:
                values[field.name] = "" if value is None else str(value)
        return cls(**values)

    def as_payload(self):
        return asdict(self)


@dataclass(frozen=True)
class TransferRecord:
    id: int
    flight_code: str
    transfer_date: str
    transfer_time: str
    destination_pickup: str
    destination_dropoff: str
    guest_name: str
    guest_count: int = DEFAULT_GUEST_COUNT
    notes: str = ""

    @classmethod
    def from_row(cls, row):
        draft = TransferDraft.from_mapping(row)
        return cls(id=int(row["id"]), **draft.as_payload())

    @classmethod
    def from_model(cls, transfer):
        return cls(
            id=transfer.pk,
            flight_code=transfer.flight_code,
            transfer_date=transfer.transfer_date.isoformat(),
            transfer_time=transfer.transfer_time.strftime("%H:%M"),
            destination_pickup=transfer.destination_pickup,
            destination_dropoff=transfer.destination_dropoff,
            guest_name=transfer.guest_name,
            guest_count=transfer.guest_count,
            notes=transfer.notes or "",
        )

    def to_draft(self):
        values = asdict(self)
        values.pop("id")
        return TransferDraft(**values)

    def as_dict(self):
        return asdict(self)
