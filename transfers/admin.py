from django.contrib import admin

from .models import Transfer

admin.site.site_header = "Flight Transfers Admin"
admin.site.site_title = "Transfers Admin"
admin.site.index_title = "Transfer Control Panel"


@admin.register(Transfer)
class TransferAdmin(admin.ModelAdmin):
    list_display = (
        "flight_code",
        "transfer_date",
        "transfer_time",
        "guest_name",
        "guest_count",
        "destination_pickup",
        "destination_dropoff",
    )
    list_filter = ("transfer_date",)
    search_fields = ("flight_code", "guest_name", "notes")
    date_hierarchy = "transfer_date"
    list_per_page = 25
    ordering = ("-transfer_date", "-id")
