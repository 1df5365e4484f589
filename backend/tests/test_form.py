"""Tests for the intake form state machine."""
from datetime import date

import pytest

from constants import AREA_IN_HOUSE, AREA_INTERAGENCY, AREA_ON_SITE, PRINTER_ISOLATION
from form import MESSAGE_TIMEOUT, REQUIRED_FIELDS, WorkSlipForm
from local_store import DraftStore, LocalStorage
from store import SlipConflictError, SlipStoreError


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeClient:
    def __init__(self, error=None):
        self.error = error
        self.saved = []
        self.updated = []

    def save_slip(self, entry):
        if self.error is not None:
            raise self.error
        self.saved.append(entry)
        return entry.model_copy(update={"id": "slip-new", "created_at": "2025-04-15T00:00:00Z"})

    def update_slip(self, entry):
        if self.error is not None:
            raise self.error
        self.updated.append(entry)
        return entry


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def form(clock):
    return WorkSlipForm(today=date(2025, 4, 15), clock=clock)


@pytest.fixture
def drafts(tmp_path):
    return DraftStore(LocalStorage(tmp_path / "local.json"))


def fill_valid(form):
    form.so_number = "25-000001"
    form.select_area(AREA_ON_SITE)
    form.toggle_office("CEO – Motorpool")
    form.time_started = "08:00"
    form.time_ended = "09:30"
    form.update_report_row("1", "request", "Hardware installation and checking")
    form.update_report_row("1", "action_done", "  Replaced RAM  ")
    form.technician_name = "Joyce Israel"


def test_initial_state(form):
    assert form.date == "2025-04-15"
    assert form.quarter == 2
    assert form.area is None
    assert form.available_offices == []
    assert len(form.report_rows) == 1
    assert form.errors == {}
    assert form.can_submit is False
    assert form.status() is None


def test_area_change_prunes_offices(form):
    form.select_area(AREA_IN_HOUSE)
    form.toggle_office("CTO")
    form.toggle_office("CBO")
    assert form.selected_offices == ["CTO", "CBO"]

    form.select_area(AREA_IN_HOUSE)
    assert form.selected_offices == ["CTO", "CBO"]

    form.select_area(AREA_INTERAGENCY)
    assert form.selected_offices == []
    assert "Apokon" in form.available_offices
    assert "PNP" in form.available_offices

    form.toggle_office("Apokon")
    form.select_area(None)
    assert form.selected_offices == []


def test_toggle_office(form):
    form.select_area(AREA_IN_HOUSE)
    form.toggle_office("CTO")
    form.toggle_office("CTO")
    assert form.selected_offices == []

    with pytest.raises(ValueError):
        form.toggle_office("CEO – Motorpool")
    with pytest.raises(ValueError):
        form.select_area("Somewhere")


def test_quarter_follows_date_until_overridden(form):
    form.set_date("2025-08-01")
    assert form.quarter == 3

    form.set_quarter(1)
    assert form.quarter == 1
    assert form.to_entry().quarter == 1

    form.set_date("2025-11-30")
    assert form.quarter == 4

    with pytest.raises(ValueError):
        form.set_quarter(5)


def test_report_rows_keep_at_least_one(form):
    form.remove_report_row("1")
    assert len(form.report_rows) == 1

    row = form.add_report_row()
    assert row.id == "2"
    form.remove_report_row("1")
    assert [r.id for r in form.report_rows] == ["2"]

    with pytest.raises(ValueError):
        form.update_report_row("2", "request", "Not a request type")
    with pytest.raises(ValueError):
        form.update_report_row("2", "technician", "x")


def test_printer_fields_follow_first_request(form):
    form.set_printer(brand="Epson")
    assert form.printer_brand == ""

    form.update_report_row("1", "request", PRINTER_ISOLATION)
    assert form.printer_fields_visible
    form.set_printer(brand="Epson", model="L3110")
    entry = form.to_entry()
    assert entry.printer_brand == "Epson"
    assert entry.printer_model == "L3110"

    form.update_report_row("1", "request", "Password recovery")
    assert not form.printer_fields_visible
    assert form.printer_brand == ""
    assert form.printer_model == ""
    assert form.to_entry().printer_brand is None


def test_printer_fields_cleared_when_first_row_removed(form):
    form.update_report_row("1", "request", PRINTER_ISOLATION)
    form.set_printer(brand="Canon", model="G2010")
    form.add_report_row()
    form.update_report_row("2", "request", "Computer isolation")

    form.remove_report_row("1")
    assert form.first_request == "Computer isolation"
    assert form.printer_brand == ""


def test_errors_only_for_touched_fields(form):
    form.touch("soNumber")
    assert form.errors == {"soNumber": "Required"}

    form.touch("technician")
    form.technician_name = "   "
    assert set(form.errors) == {"soNumber", "technician"}

    form.so_number = "25-000001"
    assert set(form.errors) == {"technician"}


def test_can_submit_requires_all_fields(form):
    fill_valid(form)
    assert form.can_submit

    form.technician_name = " "
    assert not form.can_submit
    form.technician_name = "Joyce Israel"

    form.update_report_row("1", "request", "")
    assert not form.can_submit


def test_submit_invalid_touches_everything(form):
    client = FakeClient()
    assert form.submit(client) is None
    assert form.touched >= set(REQUIRED_FIELDS)
    assert set(form.errors) == set(REQUIRED_FIELDS) - {"date"}
    assert client.saved == []


def test_submit_success(form, clock):
    fill_valid(form)
    client = FakeClient()

    saved = form.submit(client)
    assert saved.id == "slip-new"
    sent = client.saved[0]
    assert sent.area_on_site and not sent.area_in_house
    assert sent.action_done == "Hardware installation and checking"
    assert sent.technical_reports[0].action_done == "Replaced RAM"
    assert sent.quarter == 2

    assert form.status() == ("success", None)
    assert form.submitting is False
    # Values stay on the form after a successful submit
    assert form.so_number == "25-000001"

    clock.advance(MESSAGE_TIMEOUT - 0.5)
    assert form.status() == ("success", None)
    clock.advance(1)
    assert form.status() is None


def test_submit_error_keeps_values(form, clock):
    fill_valid(form)
    client = FakeClient(error=SlipConflictError("SO number already exists"))

    assert form.submit(client) is None
    assert form.status() == ("error", "SO number already exists")
    assert form.submitting is False
    assert form.selected_offices == ["CEO – Motorpool"]

    clock.advance(MESSAGE_TIMEOUT)
    assert form.status() is None


def test_submit_ignored_while_in_flight(form):
    fill_valid(form)
    form.submitting = True
    client = FakeClient()
    assert form.submit(client) is None
    assert client.saved == []


def test_save_draft_generates_so_number(form, drafts, clock):
    form.select_area(AREA_IN_HOUSE)
    form.toggle_office("CTO")

    draft = form.save_draft(drafts, today=date(2025, 4, 15))
    assert draft.so_number == "25-000001"
    assert draft.id.startswith("draft-")
    assert form.so_number == ""
    assert form.status() == ("draft", None)

    second = form.save_draft(drafts, today=date(2025, 4, 15))
    assert second.so_number == "25-000002"
    assert [d.id for d in drafts.list_drafts()] == [second.id, draft.id]


def test_save_draft_keeps_typed_so_number(form, drafts):
    form.so_number = "25-000777"
    assert form.save_draft(drafts).so_number == "25-000777"


def test_resumed_draft_is_promoted_on_submit(form, drafts, clock):
    fill_valid(form)
    draft = form.save_draft(drafts)

    resumed = WorkSlipForm(today=date(2025, 4, 15), clock=clock)
    resumed.load_draft(drafts.get(draft.id))
    assert resumed.area == AREA_ON_SITE
    assert resumed.selected_offices == ["CEO – Motorpool"]
    assert resumed.draft_id == draft.id

    client = FakeClient()
    assert resumed.submit(client, drafts=drafts) is not None
    assert drafts.list_drafts() == []
    assert resumed.draft_id is None


def test_failed_promotion_keeps_draft(form, drafts):
    fill_valid(form)
    draft = form.save_draft(drafts)
    form.load_draft(drafts.get(draft.id))

    assert form.submit(FakeClient(error=SlipStoreError("Failed to save slip")), drafts=drafts) is None
    assert form.status() == ("error", "Failed to save slip")
    assert [d.id for d in drafts.list_drafts()] == [draft.id]


def test_loaded_record_submits_as_update(form):
    fill_valid(form)
    entry = form.to_entry().model_copy(update={"id": "slip-existing"})

    editor = WorkSlipForm(today=date(2025, 4, 15))
    editor.load_record(entry)
    editor.technician_name = "Adrian Monton"

    client = FakeClient()
    editor.submit(client)
    assert client.saved == []
    assert client.updated[0].id == "slip-existing"
    assert client.updated[0].technician_name == "Adrian Monton"


def test_submit_after_draft_was_discarded(form, drafts):
    fill_valid(form)
    draft = form.save_draft(drafts)
    form.load_draft(drafts.get(draft.id))
    drafts.delete(draft.id)

    client = FakeClient()
    saved = form.submit(client, drafts=drafts)
    assert saved is not None
    assert client.saved[0].so_number == "25-000001"
    assert form.status() == ("success", None)
    assert form.draft_id is None
