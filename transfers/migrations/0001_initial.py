import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Transfer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("flight_code", models.CharField(max_length=20)),
                ("transfer_date", models.DateField()),
                ("transfer_time", models.TimeField()),
                ("destination_pickup", models.CharField(max_length=200)),
                ("destination_dropoff", models.CharField(max_length=200)),
                ("guest_name", models.CharField(max_length=120)),
                (
                    "guest_count",
                    models.PositiveSmallIntegerField(
                        default=1,
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                ("notes", models.TextField(blank=True)),
            ],
            options={
                "db_table": "transfers",
                "ordering": ("-transfer_date", "-id"),
            },
        ),
    ]
