from django.contrib import admin
from django.urls import path
from transfers.views import (
    dashboard,
    transfer_create,
    transfer_delete,
    transfer_edit,
    transfers_api,
)

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", dashboard),
    path("transfers/new/", transfer_create),
    path("transfers/<int:transfer_id>/edit/", transfer_edit),
    path("transfers/<int:transfer_id>/delete/", transfer_delete),
    path("api/transfers/", transfers_api),
]
