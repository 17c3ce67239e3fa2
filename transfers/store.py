"""Record store clients for the ``transfers`` table.

Two backends share one interface: the local database through the Django ORM,
and a hosted PostgREST-style table API reached over HTTP. Both raise
``StoreError`` for every backend or transport failure.
"""

from http.client import HTTPException
import json
import logging
from urllib import parse as urlparse, request as urlrequest

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured, ValidationError
from django.db import DatabaseError

from .models import Transfer
from .records import TransferRecord

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """The store could not complete an operation."""


class TransferStore:
    def list_all(self):
        """Return every record, newest ``transfer_date`` first."""
        raise NotImplementedError

    def insert(self, draft):
        """Persist ``draft`` and return the stored record with its new id."""
        raise NotImplementedError

    def update(self, record_id, draft):
        """Overwrite record ``record_id`` with ``draft``; unknown ids fail."""
        raise NotImplementedError

    def delete(self, record_id):
        """Remove record ``record_id``; unknown ids fail."""
        raise NotImplementedError


class DatabaseTransferStore(TransferStore):
    def list_all(self):
        try:
            return [
                TransferRecord.from_model(transfer)
                for transfer in Transfer.objects.order_by("-transfer_date", "-id")
            ]
        except DatabaseError as exc:
            raise StoreError(f"Could not load transfers: {exc}") from exc

    def insert(self, draft):
        transfer = Transfer(**draft.as_payload())
        self._save(transfer)
        return TransferRecord.from_model(transfer)

    def update(self, record_id, draft):
        try:
            transfer = Transfer.objects.get(pk=record_id)
        except Transfer.DoesNotExist as exc:
            raise StoreError(f"Transfer {record_id} does not exist.") from exc
        except DatabaseError as exc:
            raise StoreError(f"Could not load transfer {record_id}: {exc}") from exc

        for name, value in draft.as_payload().items():
            setattr(transfer, name, value)
        self._save(transfer)

    def delete(self, record_id):
        try:
            deleted, _details = Transfer.objects.filter(pk=record_id).delete()
        except DatabaseError as exc:
            raise StoreError(f"Could not delete transfer {record_id}: {exc}") from exc
        if not deleted:
            raise StoreError(f"Transfer {record_id} does not exist.")

    def _save(self, transfer):
        # full_clean converts the string date/time into date/time objects.
        try:
            transfer.full_clean()
            transfer.save()
        except ValidationError as exc:
            raise StoreError(f"Transfer rejected: {exc.message_dict}") from exc
        except DatabaseError as exc:
            raise StoreError(f"Could not save transfer: {exc}") from exc


class RestTransferStore(TransferStore):
    """Client for a PostgREST-compatible ``/rest/v1/<table>`` endpoint."""

    def __init__(self, base_url, api_key="", table="transfers", timeout=8):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.table = table
        self.timeout = timeout

    def list_all(self):
        rows = self._request("GET", {"select": "*", "order": "transfer_date.desc"})
        return self._records(rows)

    def insert(self, draft):
        rows = self._request("POST", payload=draft.as_payload())
        if not rows:
            raise StoreError("Store returned no row for the inserted transfer.")
        return self._records(rows[:1])[0]

    def update(self, record_id, draft):
        rows = self._request("PATCH", {"id": f"eq.{record_id}"}, draft.as_payload())
        if not rows:
            raise StoreError(f"Transfer {record_id} does not exist.")

    def delete(self, record_id):
        rows = self._request("DELETE", {"id": f"eq.{record_id}"})
        if not rows:
            raise StoreError(f"Transfer {record_id} does not exist.")

    def _records(self, rows):
        records = []
        for row in rows:
            if not isinstance(row, dict) or "id" not in row:
                raise StoreError(f"{self.table} returned a row without an id: {row!r}")
            try:
                records.append(TransferRecord.from_row(row))
            except (KeyError, TypeError, ValueError) as exc:
                raise StoreError(f"{self.table} returned a malformed row: {exc}") from exc
        return records

    def _url(self, params=None):
        url = f"{self.base_url}/rest/v1/{self.table}"
        if params:
            url = f"{url}?{urlparse.urlencode(params)}"
        return url

    def _request(self, method, params=None, payload=None):
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if method != "GET":
            headers["Prefer"] = "return=representation"
        data = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")

        url = self._url(params)
        logger.debug("%s %s", method, url)
        req = urlrequest.Request(
            url,
            data=data,
            headers=headers,
            method=method,
        )
        # read() can fail mid-body as well as urlopen().
        try:
            with urlrequest.urlopen(req, timeout=self.timeout) as resp:
                body = resp.read().decode("utf-8")
        except (OSError, HTTPException, UnicodeDecodeError) as exc:
            raise StoreError(f"{method} {self.table} failed: {exc}") from exc

        if not body:
            return []
        try:
            rows = json.loads(body)
        except ValueError as exc:
            raise StoreError(f"{method} {self.table} returned invalid JSON.") from exc
        if not isinstance(rows, list):
            raise StoreError(f"{method} {self.table} returned {type(rows).__name__}, not a list of rows.")
        return rows


def get_store():
    """Build the store configured by ``TRANSFER_STORE_BACKEND``."""
    backend = getattr(settings, "TRANSFER_STORE_BACKEND", "database")
    if backend == "database":
        return DatabaseTransferStore()
    if backend == "rest":
        if not settings.TRANSFER_STORE_URL:
            raise ImproperlyConfigured("TRANSFER_STORE_URL is required for the rest backend.")
        return RestTransferStore(
            settings.TRANSFER_STORE_URL,
            api_key=settings.TRANSFER_STORE_KEY,
            table=settings.TRANSFER_STORE_TABLE,
            timeout=settings.TRANSFER_STORE_TIMEOUT,
        )
    raise ImproperlyConfigured(f"Unknown TRANSFER_STORE_BACKEND {backend!r}.")
