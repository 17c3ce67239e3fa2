from datetime import date, datetime, time
from http.client import IncompleteRead
import json
from unittest.mock import patch
from urllib import error

from django.core.exceptions import ImproperlyConfigured
from django.test import SimpleTestCase, TestCase, override_settings

from .dashboard import (
    DELETE_FAILED_MESSAGE,
    LOAD_FAILED_MESSAGE,
    SAVE_FAILED_MESSAGE,
    CreatingTransfer,
    DashboardController,
    EditingTransfer,
    FormClosed,
)
from .filters import filter_transfers
from .forms import TransferForm, validate_transfer
from .models import Transfer
from .records import TransferDraft, TransferRecord
from .store import (
    DatabaseTransferStore,
    RestTransferStore,
    StoreError,
    TransferStore,
    get_store,
)
from .table import build_rows, format_transfer_date

VALID_DRAFT = {
    "flight_code": "BA12",
    "transfer_date": "2024-05-01",
    "transfer_time": "10:00",
    "guest_name": "Jo",
    "destination_pickup": "A",
    "destination_dropoff": "B",
}


def make_record(record_id, **overrides):
    values = dict(VALID_DRAFT, guest_count=1, notes="")
    values.update(overrides)
    return TransferRecord(id=record_id, **values)


class FakeStore(TransferStore):
    """In-memory store that records every call and can be told to fail."""

    def __init__(self, records=(), fail_on=()):
        self.records = list(records)
        self.fail_on = set(fail_on)
        self.calls = []
        self.next_id = max((record.id for record in self.records), default=0) + 1

    def _check(self, operation):
        if operation in self.fail_on:
            raise StoreError(f"{operation} failed")

    def list_all(self):
        self.calls.append(("list_all",))
        self._check("list_all")
        return sorted(self.records, key=lambda record: record.transfer_date, reverse=True)

    def insert(self, draft):
        self.calls.append(("insert", draft))
        self._check("insert")
        record = TransferRecord(id=self.next_id, **draft.as_payload())
        self.next_id += 1
        self.records.append(record)
        return record

    def update(self, record_id, draft):
        self.calls.append(("update", record_id, draft))
        self._check("update")
        for index, record in enumerate(self.records):
            if record.id == record_id:
                self.records[index] = TransferRecord(id=record_id, **draft.as_payload())
                return
        raise StoreError(f"Transfer {record_id} does not exist.")

    def delete(self, record_id):
        self.calls.append(("delete", record_id))
        self._check("delete")
        before = len(self.records)
        self.records = [record for record in self.records if record.id != record_id]
        if len(self.records) == before:
            raise StoreError(f"Transfer {record_id} does not exist.")

    def count(self, operation):
        return sum(1 for call in self.calls if call[0] == operation)


class FilterTransfersTests(SimpleTestCase):
    def setUp(self):
        self.records = [
            make_record(1, flight_code="BA12", guest_name="Jo Smith", transfer_date="2024-05-02"),
            make_record(2, flight_code="LH400", guest_name="Ana", notes="Needs a BABY seat", transfer_date="2024-05-01"),
            make_record(3, flight_code="AF7", guest_name="Tom", notes="", transfer_date="2024-05-01"),
        ]

    def test_empty_query_and_no_date_returns_everything_in_order(self):
        self.assertEqual(filter_transfers(self.records), self.records)
        self.assertEqual(filter_transfers(self.records, "", None), self.records)

    def test_query_is_case_insensitive_over_code_name_and_notes(self):
        matched = filter_transfers(self.records, "BA")
        self.assertEqual([record.id for record in matched], [1, 2])

        self.assertEqual([r.id for r in filter_transfers(self.records, "smith")], [1])
        self.assertEqual([r.id for r in filter_transfers(self.records, "baby")], [2])

    def test_query_does_not_search_other_fields(self):
        self.assertEqual(filter_transfers(self.records, "2024"), [])

    def test_date_filter_accepts_date_and_string(self):
        by_date = filter_transfers(self.records, target_date=date(2024, 5, 1))
        by_string = filter_transfers(self.records, target_date="2024-05-01")
        by_datetime = filter_transfers(self.records, target_date=datetime(2024, 5, 1, 18, 30))
        self.assertEqual([r.id for r in by_date], [2, 3])
        self.assertEqual(by_string, by_date)
        self.assertEqual(by_datetime, by_date)

    def test_date_filter_matches_timestamps_on_the_same_day(self):
        records = [make_record(9, transfer_date="2024-05-01T08:15:00")]
        self.assertEqual(filter_transfers(records, target_date="2024-05-01"), records)

    def test_query_and_date_combine_with_and(self):
        matched = filter_transfers(self.records, "ba", "2024-05-01")
        self.assertEqual([r.id for r in matched], [2])

    def test_malformed_date_matches_nothing(self):
        self.assertEqual(filter_transfers(self.records, target_date="not-a-date"), [])
        self.assertEqual(filter_transfers(self.records, target_date="2024-13-45"), [])

    def test_filtering_is_idempotent(self):
        once = filter_transfers(self.records, "a", "2024-05-01")
        self.assertEqual(filter_transfers(once, "a", "2024-05-01"), once)

    def test_does_not_mutate_input(self):
        records = list(self.records)
        filter_transfers(records, "ba", "2024-05-01")
        self.assertEqual(records, self.records)


class ValidateTransferTests(SimpleTestCase):
    def test_complete_draft_is_valid(self):
        self.assertEqual(validate_transfer(VALID_DRAFT), {})

    def test_empty_flight_code_reports_only_that_field(self):
        draft = dict(VALID_DRAFT, flight_code="")
        self.assertEqual(validate_transfer(draft), {"flight_code": "Flight code is required"})

    def test_missing_fields_all_reported(self):
        self.assertEqual(
            validate_transfer({}),
            {
                "flight_code": "Flight code is required",
                "transfer_date": "Transfer date is required",
                "transfer_time": "Transfer time is required",
                "guest_name": "Guest name is required",
                "destination_pickup": "Pickup location is required",
                "destination_dropoff": "Dropoff location is required",
            },
        )

    def test_guest_count_and_notes_are_optional(self):
        draft = dict(VALID_DRAFT, guest_count=None, notes="")
        self.assertEqual(validate_transfer(draft), {})

    def test_blank_strings_count_as_empty(self):
        draft = dict(VALID_DRAFT, guest_name="   ")
        self.assertEqual(validate_transfer(draft), {"guest_name": "Guest name is required"})


class TransferFormTests(SimpleTestCase):
    def test_guest_count_defaults_to_one(self):
        form = TransferForm(data=VALID_DRAFT)
        self.assertTrue(form.is_valid())
        self.assertEqual(form.cleaned_data["guest_count"], 1)

    def test_guest_count_below_one_is_rejected(self):
        form = TransferForm(data=dict(VALID_DRAFT, guest_count="0"))
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors["guest_count"], ["Guest count must be at least 1"])

    def test_required_messages_come_from_validator(self):
        form = TransferForm(data=dict(VALID_DRAFT, destination_dropoff=""))
        self.assertFalse(form.is_valid())
        self.assertEqual(
            dict(form.errors),
            {"destination_dropoff": ["Dropoff location is required"]},
        )

    def test_malformed_date_and_time_are_field_errors(self):
        form = TransferForm(data=dict(VALID_DRAFT, transfer_date="2024-13-45", transfer_time="25:99"))
        self.assertFalse(form.is_valid())
        self.assertEqual(
            dict(form.errors),
            {
                "transfer_date": ["Enter a valid transfer date"],
                "transfer_time": ["Enter a valid transfer time"],
            },
        )

    def test_date_and_time_clean_to_strings(self):
        form = TransferForm(data=dict(VALID_DRAFT, transfer_time="10:00:30"))
        self.assertTrue(form.is_valid())
        self.assertEqual(form.cleaned_data["transfer_date"], "2024-05-01")
        self.assertEqual(form.cleaned_data["transfer_time"], "10:00")


class RecordTests(SimpleTestCase):
    def test_draft_from_mapping_defaults_guest_count(self):
        draft = TransferDraft.from_mapping(dict(VALID_DRAFT, notes=None, extra="ignored"))
        self.assertEqual(draft.guest_count, 1)
        self.assertEqual(draft.notes, "")

    def test_record_to_draft_drops_id(self):
        record = make_record(5, notes="VIP")
        draft = record.to_draft()
        self.assertNotIn("id", draft.as_payload())
        self.assertEqual(draft.notes, "VIP")

    def test_record_from_row(self):
        record = TransferRecord.from_row(dict(VALID_DRAFT, id="7", guest_count=3, notes=None))
        self.assertEqual(record.id, 7)
        self.assertEqual(record.guest_count, 3)
        self.assertEqual(record.notes, "")


class TableTests(SimpleTestCase):
    def test_format_transfer_date(self):
        self.assertEqual(format_transfer_date("2024-05-01"), "01 May 2024")
        self.assertEqual(format_transfer_date("2024-05-01T10:00:00"), "01 May 2024")

    def test_format_transfer_date_falls_back_to_raw_value(self):
        self.assertEqual(format_transfer_date("next tuesday"), "next tuesday")
        self.assertEqual(format_transfer_date("2024-13-45"), "2024-13-45")
        self.assertEqual(format_transfer_date(""), "-")

    def test_build_rows_fills_empty_cells(self):
        rows = build_rows([make_record(1, notes="", transfer_time="")])
        self.assertEqual(rows[0].notes, "-")
        self.assertEqual(rows[0].transfer_time, "-")
        self.assertEqual(rows[0].transfer_date, "01 May 2024")

    def test_build_rows_empty(self):
        self.assertEqual(build_rows([]), [])


class DashboardControllerTests(SimpleTestCase):
    def setUp(self):
        self.record = make_record(1, notes="Window seat")
        self.store = FakeStore([self.record, make_record(2, flight_code="LH400", transfer_date="2024-04-01")])
        self.controller = DashboardController(self.store)

    def test_refresh_loads_records(self):
        self.controller.refresh()
        self.assertEqual([r.id for r in self.controller.state.records], [1, 2])
        self.assertFalse(self.controller.state.loading)
        self.assertEqual(self.controller.state.error, "")

    def test_refresh_failure_keeps_previous_records(self):
        self.controller.refresh()
        previous = self.controller.state.records
        self.store.fail_on.add("list_all")

        with self.assertLogs("transfers.dashboard", level="ERROR"):
            self.controller.refresh()

        self.assertIs(self.controller.state.records, previous)
        self.assertFalse(self.controller.state.loading)
        self.assertEqual(self.controller.state.error, LOAD_FAILED_MESSAGE)

    def test_filter_changes_do_not_refetch(self):
        self.controller.refresh()
        self.controller.set_query("lh")
        self.assertEqual([r.id for r in self.controller.filtered], [2])
        self.controller.set_date("2024-05-01")
        self.assertEqual(self.controller.filtered, [])
        self.controller.set_query("")
        self.assertEqual([r.id for r in self.controller.filtered], [1])
        self.controller.clear_date()
        self.assertEqual(len(self.controller.filtered), 2)
        self.assertEqual(self.store.count("list_all"), 1)

    def test_create_defaults_guest_count_and_refetches(self):
        self.controller.open_create()
        self.assertIsInstance(self.controller.state.mode, CreatingTransfer)

        saved = self.controller.submit(VALID_DRAFT)

        self.assertTrue(saved)
        _op, draft = self.store.calls[0]
        self.assertEqual(draft.guest_count, 1)
        self.assertEqual(draft.flight_code, "BA12")
        self.assertEqual(self.controller.state.mode, FormClosed())
        self.assertEqual(self.store.count("list_all"), 1)
        self.assertEqual(len(self.controller.state.records), 3)

    def test_invalid_submit_keeps_form_open(self):
        self.controller.open_create()
        saved = self.controller.submit(dict(VALID_DRAFT, flight_code=""))

        self.assertFalse(saved)
        self.assertEqual(self.controller.state.errors, {"flight_code": "Flight code is required"})
        self.assertTrue(self.controller.state.mode.is_open)
        self.assertEqual(self.store.calls, [])
        self.assertIn("flight_code", self.controller.bound_form().errors)

    def test_edit_notes_only_updates_same_id(self):
        self.controller.refresh()
        self.controller.open_edit(self.record)
        self.assertIsInstance(self.controller.state.mode, EditingTransfer)

        self.assertTrue(self.controller.submit({"notes": "Child seat"}))

        updates = [call for call in self.store.calls if call[0] == "update"]
        self.assertEqual(len(updates), 1)
        _op, record_id, draft = updates[0]
        self.assertEqual(record_id, self.record.id)
        self.assertEqual(draft, TransferDraft(**dict(self.record.to_draft().as_payload(), notes="Child seat")))

    def test_save_failure_keeps_form_open(self):
        self.store.fail_on.add("insert")
        self.controller.open_create()

        with self.assertLogs("transfers.dashboard", level="ERROR"):
            saved = self.controller.submit(VALID_DRAFT)

        self.assertFalse(saved)
        self.assertTrue(self.controller.state.mode.is_open)
        self.assertFalse(self.controller.state.submitting)
        self.assertEqual(self.controller.state.error, SAVE_FAILED_MESSAGE)
        self.assertEqual(self.store.count("list_all"), 0)

    def test_submit_ignored_while_submitting_or_closed(self):
        self.assertFalse(self.controller.submit(VALID_DRAFT))
        self.controller.open_create()
        self.controller.state.submitting = True
        self.assertFalse(self.controller.submit(VALID_DRAFT))
        self.assertEqual(self.store.calls, [])

    def test_close_form_discards_draft_and_errors(self):
        self.controller.open_create()
        self.controller.submit({"flight_code": ""})
        self.controller.close_form()
        self.assertEqual(self.controller.state.mode, FormClosed())
        self.assertEqual(self.controller.state.draft, {})
        self.assertEqual(self.controller.state.errors, {})

    def test_form_modes_are_hashable_values(self):
        self.assertEqual(FormClosed(), FormClosed())
        self.assertEqual(len({FormClosed(), FormClosed(), CreatingTransfer()}), 2)
        self.assertFalse(FormClosed().is_open)

    def test_delete_requires_confirmation(self):
        self.controller.request_delete(1)
        self.controller.cancel_delete()
        self.assertFalse(self.controller.confirm_delete())
        self.assertEqual(self.store.count("delete"), 0)

        self.controller.request_delete(1)
        self.assertTrue(self.controller.confirm_delete())
        self.assertEqual([c for c in self.store.calls if c[0] == "delete"], [("delete", 1)])
        self.assertIsNone(self.controller.state.pending_delete)

    def test_delete_refetches_and_keeps_filters(self):
        self.controller.set_query("lh")
        self.controller.refresh()
        self.controller.request_delete(1)
        self.controller.confirm_delete()

        self.assertEqual(self.controller.state.query, "lh")
        self.assertEqual([r.id for r in self.controller.state.records], [2])
        self.assertEqual([r.id for r in self.controller.filtered], [2])

    def test_delete_failure_dismisses_confirmation(self):
        self.controller.refresh()
        self.store.fail_on.add("delete")
        self.controller.request_delete(1)

        with self.assertLogs("transfers.dashboard", level="ERROR"):
            self.assertFalse(self.controller.confirm_delete())

        self.assertIsNone(self.controller.state.pending_delete)
        self.assertFalse(self.controller.state.deleting)
        self.assertEqual(self.controller.state.error, DELETE_FAILED_MESSAGE)
        self.assertEqual(len(self.controller.state.records), 2)


class DatabaseTransferStoreTests(TestCase):
    def setUp(self):
        self.store = DatabaseTransferStore()

    def test_insert_returns_string_typed_record(self):
        record = self.store.insert(TransferDraft.from_mapping(VALID_DRAFT))
        self.assertIsNotNone(record.id)
        self.assertEqual(record.transfer_date, "2024-05-01")
        self.assertEqual(record.transfer_time, "10:00")
        self.assertEqual(record.guest_count, 1)
        self.assertEqual(Transfer.objects.count(), 1)

    def test_list_all_newest_first(self):
        self.store.insert(TransferDraft.from_mapping(dict(VALID_DRAFT, transfer_date="2024-01-01")))
        self.store.insert(TransferDraft.from_mapping(dict(VALID_DRAFT, transfer_date="2024-06-01")))
        dates = [record.transfer_date for record in self.store.list_all()]
        self.assertEqual(dates, ["2024-06-01", "2024-01-01"])

    def test_update_changes_fields(self):
        record = self.store.insert(TransferDraft.from_mapping(VALID_DRAFT))
        self.store.update(record.id, TransferDraft.from_mapping(dict(VALID_DRAFT, notes="Late")))
        self.assertEqual(Transfer.objects.get(pk=record.id).notes, "Late")

    def test_unknown_ids_raise_store_error(self):
        with self.assertRaises(StoreError):
            self.store.update(999, TransferDraft.from_mapping(VALID_DRAFT))
        with self.assertRaises(StoreError):
            self.store.delete(999)

    def test_invalid_values_raise_store_error(self):
        with self.assertRaises(StoreError):
            self.store.insert(TransferDraft.from_mapping(dict(VALID_DRAFT, transfer_date="soon")))
        with self.assertRaises(StoreError):
            self.store.insert(TransferDraft.from_mapping(dict(VALID_DRAFT, guest_count=0)))
        self.assertEqual(Transfer.objects.count(), 0)

    def test_delete_removes_row(self):
        record = self.store.insert(TransferDraft.from_mapping(VALID_DRAFT))
        self.store.delete(record.id)
        self.assertFalse(Transfer.objects.exists())


@patch("transfers.store.urlrequest.urlopen")
class RestTransferStoreTests(SimpleTestCase):
    def setUp(self):
        self.store = RestTransferStore(
            "https://example.supabase.co/", api_key="anon-key", timeout=5
        )

    def _respond(self, urlopen, payload):
        body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
        urlopen.return_value.__enter__.return_value.read.return_value = body

    def _sent_request(self, urlopen):
        return urlopen.call_args[0][0]

    def test_list_all_requests_ordered_rows(self, urlopen):
        self._respond(urlopen, [dict(VALID_DRAFT, id=4, guest_count=2, notes=None)])

        records = self.store.list_all()

        self.assertEqual(records, [make_record(4, guest_count=2)])
        req = self._sent_request(urlopen)
        self.assertEqual(req.get_method(), "GET")
        self.assertTrue(req.full_url.startswith("https://example.supabase.co/rest/v1/transfers?"))
        self.assertIn("order=transfer_date.desc", req.full_url)
        self.assertEqual(req.get_header("Apikey"), "anon-key")
        self.assertEqual(req.get_header("Authorization"), "Bearer anon-key")
        self.assertEqual(urlopen.call_args[1]["timeout"], 5)

    def test_insert_posts_json_and_returns_row(self, urlopen):
        self._respond(urlopen, [dict(VALID_DRAFT, id=11, guest_count=1, notes="")])

        record = self.store.insert(TransferDraft.from_mapping(VALID_DRAFT))

        self.assertEqual(record.id, 11)
        req = self._sent_request(urlopen)
        self.assertEqual(req.get_method(), "POST")
        self.assertEqual(req.get_header("Prefer"), "return=representation")
        self.assertEqual(json.loads(req.data)["flight_code"], "BA12")
        self.assertEqual(json.loads(req.data)["guest_count"], 1)

    def test_update_and_delete_target_id(self, urlopen):
        self._respond(urlopen, [dict(VALID_DRAFT, id=3)])

        self.store.update(3, TransferDraft.from_mapping(VALID_DRAFT))
        req = self._sent_request(urlopen)
        self.assertEqual(req.get_method(), "PATCH")
        self.assertTrue(req.full_url.endswith("/rest/v1/transfers?id=eq.3"))

        self.store.delete(3)
        req = self._sent_request(urlopen)
        self.assertEqual(req.get_method(), "DELETE")
        self.assertTrue(req.full_url.endswith("?id=eq.3"))

    def test_empty_result_for_unknown_id(self, urlopen):
        self._respond(urlopen, [])
        with self.assertRaises(StoreError):
            self.store.update(42, TransferDraft.from_mapping(VALID_DRAFT))
        with self.assertRaises(StoreError):
            self.store.delete(42)

    def test_transport_failure_raises_store_error(self, urlopen):
        urlopen.side_effect = error.URLError("connection refused")
        with self.assertRaises(StoreError):
            self.store.list_all()

    def test_invalid_json_raises_store_error(self, urlopen):
        self._respond(urlopen, b"<html>bad gateway</html>")
        with self.assertRaises(StoreError):
            self.store.list_all()

    def test_connection_dropped_while_reading_raises_store_error(self, urlopen):
        urlopen.return_value.__enter__.return_value.read.side_effect = ConnectionResetError("reset")
        with self.assertRaises(StoreError):
            self.store.list_all()

        urlopen.return_value.__enter__.return_value.read.side_effect = IncompleteRead(b"[")
        with self.assertRaises(StoreError):
            self.store.list_all()

    def test_body_that_is_not_a_row_list_raises_store_error(self, urlopen):
        self._respond(urlopen, {"message": "oops"})
        with self.assertRaises(StoreError):
            self.store.list_all()

        self._respond(urlopen, ["oops"])
        with self.assertRaises(StoreError):
            self.store.list_all()

        self._respond(urlopen, [{"flight_code": "BA12"}])
        with self.assertRaises(StoreError):
            self.store.insert(TransferDraft.from_mapping(VALID_DRAFT))

        self._respond(urlopen, [{"id": "not-a-number"}])
        with self.assertRaises(StoreError):
            self.store.list_all()

    def test_refresh_survives_broken_responses(self, urlopen):
        controller = DashboardController(self.store)
        controller.state.records = [make_record(1)]

        urlopen.return_value.__enter__.return_value.read.side_effect = ConnectionResetError("reset")
        with self.assertLogs("transfers.dashboard", level="ERROR"):
            controller.refresh()
        self.assertEqual(controller.state.records, [make_record(1)])
        self.assertEqual(controller.state.error, LOAD_FAILED_MESSAGE)

        urlopen.return_value.__enter__.return_value.read.side_effect = None
        self._respond(urlopen, {"message": "oops"})
        with self.assertLogs("transfers.dashboard", level="ERROR"):
            controller.refresh()
        self.assertEqual(controller.state.records, [make_record(1)])
        self.assertFalse(controller.state.loading)


class GetStoreTests(SimpleTestCase):
    def test_default_backend_is_database(self):
        self.assertIsInstance(get_store(), DatabaseTransferStore)

    @override_settings(
        TRANSFER_STORE_BACKEND="rest",
        TRANSFER_STORE_URL="https://example.supabase.co",
        TRANSFER_STORE_KEY="key",
    )
    def test_rest_backend(self):
        store = get_store()
        self.assertIsInstance(store, RestTransferStore)
        self.assertEqual(store.table, "transfers")

    @override_settings(TRANSFER_STORE_BACKEND="rest", TRANSFER_STORE_URL="")
    def test_rest_backend_requires_url(self):
        with self.assertRaises(ImproperlyConfigured):
            get_store()

    @override_settings(TRANSFER_STORE_BACKEND="spreadsheet")
    def test_unknown_backend(self):
        with self.assertRaises(ImproperlyConfigured):
            get_store()


class TransferViewsTests(TestCase):
    def _create_transfer(self, flight_code="BA12", day=date(2024, 5, 1), **extra):
        values = {
            "flight_code": flight_code,
            "transfer_date": day,
            "transfer_time": time(10, 0),
            "destination_pickup": "Airport",
            "destination_dropoff": "Hotel",
            "guest_name": "Jo",
        }
        values.update(extra)
        return Transfer.objects.create(**values)

    def test_dashboard_shows_placeholder_when_empty(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "No flights found.")

    def test_dashboard_lists_and_formats_transfers(self):
        self._create_transfer(notes="Meet at arrivals")
        response = self.client.get("/")
        self.assertContains(response, "BA12")
        self.assertContains(response, "01 May 2024")
        self.assertContains(response, "Meet at arrivals")
        self.assertNotContains(response, "No flights found.")

    def test_dashboard_search_and_date_filter(self):
        self._create_transfer("BA12", date(2024, 5, 1))
        self._create_transfer("LH400", date(2024, 5, 2))

        response = self.client.get("/?q=lh")
        self.assertContains(response, "LH400")
        self.assertNotContains(response, "BA12")

        response = self.client.get("/?date=2024-05-01")
        self.assertContains(response, "BA12")
        self.assertNotContains(response, "LH400")

    def test_create_flow_saves_and_redirects_with_filters(self):
        response = self.client.post("/transfers/new/?q=ba", data=VALID_DRAFT)
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.url, "/?q=ba")

        transfer = Transfer.objects.get()
        self.assertEqual(transfer.flight_code, "BA12")
        self.assertEqual(transfer.guest_count, 1)

    def test_create_form_renders_modal(self):
        response = self.client.get("/transfers/new/")
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Add New Flight")

    def test_create_rejects_missing_fields(self):
        response = self.client.post("/transfers/new/", data=dict(VALID_DRAFT, flight_code=""))
        self.assertEqual(response.status_code, 400)
        self.assertContains(response, "Flight code is required", status_code=400)
        self.assertEqual(Transfer.objects.count(), 0)

    def test_create_rejects_malformed_date_inline(self):
        response = self.client.post("/transfers/new/", data=dict(VALID_DRAFT, transfer_date="2024-13-45"))
        self.assertEqual(response.status_code, 400)
        self.assertContains(response, "Enter a valid transfer date", status_code=400)
        self.assertNotContains(response, SAVE_FAILED_MESSAGE, status_code=400)
        self.assertEqual(Transfer.objects.count(), 0)

    def test_edit_updates_only_changed_fields(self):
        transfer = self._create_transfer(guest_count=3)
        response = self.client.get(f"/transfers/{transfer.id}/edit/")
        self.assertContains(response, "Edit Flight")

        data = dict(VALID_DRAFT, guest_count=3, destination_pickup="Airport",
                    destination_dropoff="Hotel", notes="Child seat")
        response = self.client.post(f"/transfers/{transfer.id}/edit/", data=data)
        self.assertEqual(response.status_code, 302)

        transfer.refresh_from_db()
        self.assertEqual(transfer.notes, "Child seat")
        self.assertEqual(transfer.guest_count, 3)
        self.assertEqual(transfer.flight_code, "BA12")
        self.assertEqual(Transfer.objects.count(), 1)

    def test_edit_unknown_transfer_returns_404(self):
        response = self.client.get("/transfers/999/edit/")
        self.assertEqual(response.status_code, 404)

    def test_delete_needs_confirmation_post(self):
        transfer = self._create_transfer()

        response = self.client.get(f"/transfers/{transfer.id}/delete/?q=ba")
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Are you absolutely sure?")
        self.assertEqual(Transfer.objects.count(), 1)

        response = self.client.post(f"/transfers/{transfer.id}/delete/?q=ba")
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.url, "/?q=ba")
        self.assertEqual(Transfer.objects.count(), 0)

    def test_api_returns_filtered_records(self):
        self._create_transfer("BA12", date(2024, 5, 1))
        self._create_transfer("LH400", date(2024, 5, 2))

        response = self.client.get("/api/transfers/?date=2024-05-02")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["count"], 1)
        self.assertEqual(data["date"], "2024-05-02")
        self.assertEqual(data["transfers"][0]["flight_code"], "LH400")
        self.assertEqual(data["transfers"][0]["transfer_time"], "10:00")

    def test_store_failure_is_surfaced(self):
        failing = FakeStore(fail_on={"list_all"})
        with patch("transfers.views.get_store", return_value=failing), \
                self.assertLogs("transfers.dashboard", level="ERROR"):
            response = self.client.get("/")
        self.assertEqual(response.status_code, 503)
        self.assertContains(response, LOAD_FAILED_MESSAGE, status_code=503)

        with patch("transfers.views.get_store", return_value=failing), \
                self.assertLogs("transfers.dashboard", level="ERROR"):
            response = self.client.get("/api/transfers/")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["code"], "store_unavailable")

    def test_save_failure_keeps_form_open(self):
        failing = FakeStore(fail_on={"insert"})
        with patch("transfers.views.get_store", return_value=failing), \
                self.assertLogs("transfers.dashboard", level="ERROR"):
            response = self.client.post("/transfers/new/", data=VALID_DRAFT)
        self.assertEqual(response.status_code, 503)
        self.assertContains(response, SAVE_FAILED_MESSAGE, status_code=503)
        self.assertContains(response, "Add New Flight", status_code=503)
