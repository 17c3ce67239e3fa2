from django import forms

from .records import DEFAULT_GUEST_COUNT

REQUIRED_FIELD_MESSAGES = {
    "flight_code": "Flight code is required",
    "transfer_date": "Transfer date is required",
    "transfer_time": "Transfer time is required",
    "guest_name": "Guest name is required",
    "destination_pickup": "Pickup location is required",
    "destination_dropoff": "Dropoff location is required",
}


def _is_blank(value):
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def validate_transfer(draft):
    """Return ``{field: message}`` for every required field left empty.

    ``draft`` is any mapping of field names to values. An empty result means
    the draft is valid.
    """
    return {
        name: message
        for name, message in REQUIRED_FIELD_MESSAGES.items()
        if _is_blank(draft.get(name))
    }


class TransferForm(forms.Form):
    flight_code = forms.CharField(
        required=False,
        max_length=20,
        widget=forms.TextInput(attrs={"placeholder": "BA12"}),
    )
    transfer_date = forms.DateField(
        required=False,
        input_formats=["%Y-%m-%d"],
        widget=forms.DateInput(attrs={"type": "date"}, format="%Y-%m-%d"),
        error_messages={"invalid": "Enter a valid transfer date"},
    )
    transfer_time = forms.TimeField(
        required=False,
        input_formats=["%H:%M", "%H:%M:%S"],
        widget=forms.TimeInput(attrs={"type": "time"}, format="%H:%M"),
        error_messages={"invalid": "Enter a valid transfer time"},
    )
    guest_name = forms.CharField(required=False, max_length=120)
    guest_count = forms.IntegerField(
        required=False,
        min_value=1,
        widget=forms.NumberInput(attrs={"min": 1}),
        error_messages={"min_value": "Guest count must be at least 1"},
    )
    destination_pickup = forms.CharField(required=False, max_length=200, label="Pickup location")
    destination_dropoff = forms.CharField(required=False, max_length=200, label="Dropoff location")
    notes = forms.CharField(
        required=False,
        widget=forms.Textarea(attrs={"rows": 3}),
    )

    # Dates and times leave the form as the strings the stores exchange.
    def clean_transfer_date(self):
        transfer_date = self.cleaned_data.get("transfer_date")
        return transfer_date.isoformat() if transfer_date else ""

    def clean_transfer_time(self):
        transfer_time = self.cleaned_data.get("transfer_time")
        return transfer_time.strftime("%H:%M") if transfer_time else ""

    def clean_guest_count(self):
        guest_count = self.cleaned_data.get("guest_count")
        if guest_count is None:
            return DEFAULT_GUEST_COUNT
        return guest_count

    def clean(self):
        cleaned_data = super().clean()
        for name, message in validate_transfer(cleaned_data).items():
            if name not in self.errors:
                self.add_error(name, message)
        return cleaned_data
