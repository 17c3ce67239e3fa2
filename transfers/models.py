from django.core.validators import MinValueValidator
from django.db import models


class Transfer(models.Model):
    # Example: BA12 landing 2024-05-01 10:00, airport -> hotel
    flight_code = models.CharField(max_length=20)
    transfer_date = models.DateField()
    transfer_time = models.TimeField()
    destination_pickup = models.CharField(max_length=200)
    destination_dropoff = models.CharField(max_length=200)
    guest_name = models.CharField(max_length=120)
    guest_count = models.PositiveSmallIntegerField(
        default=1, validators=[MinValueValidator(1)]
    )
    notes = models.TextField(blank=True)

    class Meta:
        db_table = "transfers"
        ordering = ("-transfer_date", "-id")

    def __str__(self):
        return f"{self.flight_code} | {self.transfer_date} {self.transfer_time:%H:%M}"
