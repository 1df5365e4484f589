"""Tests for the SO number counter and locally saved drafts."""
import json
from datetime import date

import pytest

from local_store import DRAFTS_KEY, SO_COUNTER_KEY, DraftStore, LocalStorage, generate_so_number
from schemas import WorkSlipEntry
from store import SlipConflictError


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "local.json")


@pytest.fixture
def drafts(storage):
    return DraftStore(storage)


class FakeClient:
    """Stands in for SlipClient.save_slip."""

    def __init__(self, error=None):
        self.error = error
        self.saved = []

    def save_slip(self, entry):
        if self.error is not None:
            raise self.error
        self.saved.append(entry)
        return entry.model_copy(update={"id": f"slip-{len(self.saved)}", "created_at": "2025-04-15T00:00:00Z"})


def test_storage_round_trip(storage):
    assert storage.get("missing") is None
    storage.set("key", "value")
    assert storage.get("key") == "value"
    assert LocalStorage(storage.path).get("key") == "value"


def test_storage_tolerates_corrupt_file(storage):
    storage.path.write_text("{not json", encoding="utf-8")
    assert storage.get("key") is None
    storage.set("key", "value")
    assert storage.get("key") == "value"


def test_so_number_increments(storage):
    today = date(2025, 4, 15)
    assert generate_so_number(storage, today) == "25-000001"
    assert generate_so_number(storage, today) == "25-000002"
    assert generate_so_number(storage, today) == "25-000003"
    assert storage.get(SO_COUNTER_KEY) == "25-000003"


def test_so_number_resets_on_new_year(storage):
    storage.set(SO_COUNTER_KEY, "24-000117")
    assert generate_so_number(storage, date(2024, 12, 31)) == "24-000118"
    assert generate_so_number(storage, date(2025, 1, 1)) == "25-000001"


def test_so_number_ignores_garbage_counter(storage):
    storage.set(SO_COUNTER_KEY, "garbage")
    assert generate_so_number(storage, date(2025, 4, 15)) == "25-000001"


def test_so_number_pads_year(storage):
    assert generate_so_number(storage, date(2105, 6, 1)) == "05-000001"


def test_drafts_newest_first(drafts):
    first = drafts.save(WorkSlipEntry(so_number="25-000001"))
    second = drafts.save(WorkSlipEntry(so_number="25-000002"))

    listed = drafts.list_drafts()
    assert [d.id for d in listed] == [second.id, first.id]
    assert first.id.startswith("draft-")
    assert first.created_at.endswith("Z")


def test_draft_save_keeps_contents(drafts):
    entry = WorkSlipEntry(so_number="25-000001", offices=["CTO"], area_in_house=True, time_started="08:00")
    saved = drafts.save(entry)

    loaded = drafts.get(saved.id)
    assert loaded == saved
    assert loaded.offices == ["CTO"]
    assert loaded.time_started == "08:00"


def test_drafts_ignore_corrupt_value(storage, drafts):
    storage.set(DRAFTS_KEY, "[{broken")
    assert drafts.list_drafts() == []

    storage.set(DRAFTS_KEY, json.dumps({"not": "a list"}))
    assert drafts.list_drafts() == []


def test_drafts_upgrade_legacy_shape(storage, drafts):
    storage.set(DRAFTS_KEY, json.dumps([{"id": "draft-old", "soNumber": "24-000001", "office": "CTO",
                                         "actionDone": "Password recovery", "date": "2024-05-01"}]))
    draft = drafts.get("draft-old")
    assert draft.offices == ["CTO"]
    assert draft.quarter == 2
    assert draft.technical_reports[0].request == "Password recovery"


def test_delete_draft(drafts):
    kept = drafts.save(WorkSlipEntry(so_number="25-000001"))
    gone = drafts.save(WorkSlipEntry(so_number="25-000002"))

    drafts.delete(gone.id)
    assert [d.id for d in drafts.list_drafts()] == [kept.id]

    drafts.delete("draft-unknown")
    assert len(drafts.list_drafts()) == 1


def test_promote_submits_and_removes(drafts):
    draft = drafts.save(WorkSlipEntry(so_number="25-000001"))
    client = FakeClient()

    created = drafts.promote(draft.id, client)
    assert created.id == "slip-1"
    assert client.saved[0].so_number == "25-000001"
    assert drafts.list_drafts() == []


def test_promote_uses_edited_entry(drafts):
    draft = drafts.save(WorkSlipEntry(so_number="25-000001"))
    client = FakeClient()

    drafts.promote(draft.id, client, entry=draft.model_copy(update={"technician_name": "Nick Palaca"}))
    assert client.saved[0].technician_name == "Nick Palaca"


def test_promote_failure_keeps_draft(drafts):
    draft = drafts.save(WorkSlipEntry(so_number="25-000001"))
    client = FakeClient(error=SlipConflictError("SO number already exists"))

    with pytest.raises(SlipConflictError):
        drafts.promote(draft.id, client)
    assert [d.id for d in drafts.list_drafts()] == [draft.id]


def test_promote_unknown_draft(drafts):
    with pytest.raises(KeyError):
        drafts.promote("draft-missing", FakeClient())


def test_promote_discarded_draft_still_submits(drafts):
    draft = drafts.save(WorkSlipEntry(so_number="25-000001"))
    kept = drafts.save(WorkSlipEntry(so_number="25-000002"))
    drafts.delete(draft.id)
    client = FakeClient()

    created = drafts.promote(draft.id, client, entry=draft)
    assert created.id == "slip-1"
    assert client.saved[0].so_number == "25-000001"
    assert [d.id for d in drafts.list_drafts()] == [kept.id]
