"""Client-local state: the SO number counter and saved drafts.

Both live in a small JSON key/value file per installation (the counterpart of
browser local storage). Nothing here is coordinated across installations;
duplicate SO numbers are caught by the record service when a draft is
submitted.
"""
import json
import logging
import os
from datetime import date
from pathlib import Path

from normalize import make_id, normalize_entry, now_iso
from schemas import WorkSlipEntry

logger = logging.getLogger(__name__)

DRAFTS_KEY = "tech-work-slip-drafts"
SO_COUNTER_KEY = "tech-work-slip-so-counter"


class LocalStorage:
    """String key/value store persisted as one JSON object on disk."""

    def __init__(self, path: str | os.PathLike | None = None):
        self.path = Path(path or os.getenv("WORKSLIP_LOCAL_STORE", "./.workslip-local.json"))

    def _load(self) -> dict:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except ValueError:
            logger.warning(f"Local store {self.path} is unreadable, starting empty")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")


def generate_so_number(storage: LocalStorage, today: date | None = None) -> str:
    """Next SO number for this installation, formatted YY-NNNNNN.

    The count restarts at 1 whenever the stored year prefix differs from the
    current two-digit year.
    """
    short_year = (today or date.today()).year % 100
    stored = storage.get(SO_COUNTER_KEY)

    last_year, count = None, 0
    if stored:
        year_part, _, count_part = stored.partition("-")
        try:
            last_year = int(year_part)
            count = int(count_part)
        except ValueError:
            last_year, count = None, 0
    if last_year != short_year:
        count = 0

    count += 1
    next_number = f"{short_year:02d}-{count:06d}"
    storage.set(SO_COUNTER_KEY, next_number)
    return next_number


class DraftStore:
    """Locally saved, not-yet-submitted work slips, newest first."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage

    def _write(self, drafts: list[WorkSlipEntry]) -> None:
        payload = [d.model_dump(by_alias=True) for d in drafts]
        self.storage.set(DRAFTS_KEY, json.dumps(payload))

    def list_drafts(self) -> list[WorkSlipEntry]:
        raw = self.storage.get(DRAFTS_KEY)
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.warning("Stored drafts are unreadable, ignoring them")
            return []
        if not isinstance(parsed, list):
            return []
        return [normalize_entry(d) for d in parsed if isinstance(d, dict)]

    def get(self, draft_id: str) -> WorkSlipEntry | None:
        for draft in self.list_drafts():
            if draft.id == draft_id:
                return draft
        return None

    def save(self, entry: WorkSlipEntry) -> WorkSlipEntry:
        """Store a new draft with a fresh draft id and timestamp."""
        draft = normalize_entry(entry).model_copy(
            update={"id": make_id("draft"), "created_at": now_iso()}
        )
        drafts = self.list_drafts()
        drafts.insert(0, draft)
        self._write(drafts)
        logger.info(f"Saved draft {draft.id} ({draft.so_number})")
        return draft

    def delete(self, draft_id: str) -> None:
        self._write([d for d in self.list_drafts() if d.id != draft_id])

    def promote(self, draft_id: str, client, entry: WorkSlipEntry | None = None) -> WorkSlipEntry:
        """Submit a draft to the record service and drop it locally once accepted.

        ``entry`` replaces the stored draft contents (a resumed, edited draft).
        When the draft was discarded meanwhile, ``entry`` is still submitted.
        Failures (including SO number conflicts) propagate and keep the draft.
        """
        draft = self.get(draft_id)
        if draft is None:
            if entry is None:
                raise KeyError(draft_id)
            logger.warning(f"Draft {draft_id} no longer exists, submitting without it")
            return client.save_slip(entry)
        created = client.save_slip(entry or draft)
        logger.info(f"Promoted draft {draft_id} to {created.id}")
        self.delete(draft_id)
        return created
