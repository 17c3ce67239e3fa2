"""State and transitions behind the transfers dashboard.

The controller owns one ``DashboardState`` and is the only thing that changes
it. Views build a controller per request, drive it through the transition
methods and render whatever state it ends up in.
"""

import logging
from dataclasses import dataclass, field

from .filters import filter_transfers
from .forms import TransferForm
from .records import TransferDraft, TransferRecord
from .store import StoreError

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Could not load transfers. Please try again."
SAVE_FAILED_MESSAGE = "Could not save the transfer. Please try again."
DELETE_FAILED_MESSAGE = "Could not delete the transfer. Please try again."


@dataclass(frozen=True)
class FormClosed:
    is_open = False


@dataclass(frozen=True)
class CreatingTransfer:
    is_open = True
    title = "Add New Flight"


@dataclass(frozen=True)
class EditingTransfer:
    record: TransferRecord
    is_open = True
    title = "Edit Flight"


@dataclass
class DashboardState:
    records: list = field(default_factory=list)
    query: str = ""
    selected_date: object = None
    mode: object = field(default_factory=FormClosed)
    draft: dict = field(default_factory=dict)
    errors: dict = field(default_factory=dict)
    loading: bool = False
    submitting: bool = False
    deleting: bool = False
    pending_delete: object = None
    error: str = ""


class DashboardController:
    def __init__(self, store, query="", selected_date=None):
        self.store = store
        self.state = DashboardState(query=query, selected_date=selected_date)

    @property
    def filtered(self):
        return filter_transfers(
            self.state.records, self.state.query, self.state.selected_date
        )

    def find(self, record_id):
        for record in self.state.records:
            if record.id == record_id:
                return record
        return None

    def refresh(self):
        """Replace ``records`` with a fresh fetch; keep them if the fetch fails."""
        self.state.loading = True
        try:
            self.state.records = list(self.store.list_all())
        except StoreError:
            logger.exception("Error fetching transfers")
            self.state.error = LOAD_FAILED_MESSAGE
        finally:
            self.state.loading = False

    def set_query(self, query):
        self.state.query = query or ""

    def set_date(self, selected_date):
        self.state.selected_date = selected_date

    def clear_date(self):
        self.state.selected_date = None

    # Form

    def open_create(self):
        self._open(CreatingTransfer(), TransferDraft())

    def open_edit(self, record):
        self._open(EditingTransfer(record), record.to_draft())

    def _open(self, mode, draft):
        self.state.mode = mode
        self.state.draft = draft.as_payload()
        self.state.errors = {}

    def close_form(self):
        self.state.mode = FormClosed()
        self.state.draft = {}
        self.state.errors = {}

    def bound_form(self):
        if self.state.errors:
            form = TransferForm(data=self.state.draft)
            form.is_valid()
            return form
        return TransferForm(initial=self.state.draft)

    def submit(self, data=None):
        """Validate the draft and send it to the store.

        ``data`` overlays the current draft. Returns True once the store has
        accepted the write and the form has closed.
        """
        mode = self.state.mode
        if not mode.is_open or self.state.submitting:
            return False

        if data is not None:
            self.state.draft.update(
                {name: data[name] for name in TransferForm.base_fields if name in data}
            )

        form = TransferForm(data=self.state.draft)
        if not form.is_valid():
            self.state.errors = {name: errors[0] for name, errors in form.errors.items()}
            return False
        self.state.errors = {}
        draft = TransferDraft.from_mapping(form.cleaned_data)

        self.state.submitting = True
        try:
            if isinstance(mode, EditingTransfer):
                self.store.update(mode.record.id, draft)
                logger.info("Updated transfer %s (%s)", mode.record.id, draft.flight_code)
            else:
                record = self.store.insert(draft)
                logger.info("Created transfer %s (%s)", record.id, record.flight_code)
        except StoreError:
            logger.exception("Error saving transfer")
            self.state.error = SAVE_FAILED_MESSAGE
            return False
        finally:
            self.state.submitting = False

        self.refresh()
        self.close_form()
        return True

    # Delete

    def request_delete(self, record_id):
        self.state.pending_delete = record_id

    def cancel_delete(self):
        self.state.pending_delete = None

    def confirm_delete(self):
        record_id = self.state.pending_delete
        if record_id is None or self.state.deleting:
            return False

        self.state.deleting = True
        try:
            self.store.delete(record_id)
        except StoreError:
            logger.exception("Error deleting transfer %s", record_id)
            self.state.error = DELETE_FAILED_MESSAGE
            return False
        finally:
            self.state.deleting = False
            self.state.pending_delete = None

        logger.info("Deleted transfer %s", record_id)
        self.refresh()
        return True
