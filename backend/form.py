"""State machine behind the work slip intake form.

One ``WorkSlipForm`` holds everything a technician has typed so far. Derived
state (available offices, quarter, printer fields, errors, submit readiness)
is recomputed from the current selections rather than stored separately.
"""
import logging
import time
from datetime import date

from pydantic import BaseModel

from constants import AREA_IN_HOUSE, AREA_INTERAGENCY, AREA_ON_SITE, AREAS, PRINTER_ISOLATION, REQUEST_TYPES, get_office_catalog
from local_store import DraftStore, generate_so_number
from normalize import flatten_legacy_fields, get_quarter_from_date
from schemas import TechnicalReportItem, WorkSlipEntry
from store import SlipClient, SlipStoreError

logger = logging.getLogger(__name__)

# Seconds a success/error/draft-saved message stays visible
MESSAGE_TIMEOUT = 3.0

REQUIRED_FIELDS = ("soNumber", "offices", "date", "area", "timeStarted", "timeEnded", "actionDone", "technician")
ROW_FIELDS = ("request", "action_done", "recommendation")


class ReportRow(BaseModel):
    id: str
    request: str = ""
    action_done: str = ""
    recommendation: str = ""


class WorkSlipForm:
    def __init__(self, today: date | None = None, clock=time.monotonic):
        self.clock = clock
        self.so_number = ""
        self.date = (today or date.today()).isoformat()
        self.quarter = get_quarter_from_date(self.date)
        self.area: str | None = None
        self.selected_offices: list[str] = []
        self.time_started = ""
        self.time_ended = ""
        self.report_rows = [ReportRow(id="1")]
        self._next_row_id = 2
        self.requester_signature = ""
        self.technician_name = ""
        self.approved_by = ""
        self.printer_brand = ""
        self.printer_model = ""
        self.touched: set[str] = set()
        self.submitting = False
        self.draft_id: str | None = None  # set when resumed from a draft
        self.record_id: str | None = None  # set when editing a stored record
        self._status: tuple[str, str | None, float] | None = None

    # Area and offices

    @property
    def area_selected(self) -> bool:
        return self.area is not None

    @property
    def available_offices(self) -> list[str]:
        return get_office_catalog(self.area)

    def select_area(self, area: str | None) -> None:
        """Choose exactly one area (or none) and drop offices outside its catalog."""
        if area is not None and area not in AREAS:
            raise ValueError(f"Unknown area: {area}")
        self.area = area
        available = self.available_offices
        self.selected_offices = [o for o in self.selected_offices if o in available]

    def toggle_office(self, office: str) -> None:
        if office in self.selected_offices:
            self.selected_offices.remove(office)
            return
        if office not in self.available_offices:
            raise ValueError(f"{office} is not available for area {self.area}")
        self.selected_offices.append(office)

    # Date and quarter

    def set_date(self, value: str) -> None:
        self.date = value
        self.quarter = get_quarter_from_date(value)

    def set_quarter(self, quarter: int) -> None:
        """Manual override, kept until the next date change."""
        if quarter not in (1, 2, 3, 4):
            raise ValueError("Quarter must be between 1 and 4")
        self.quarter = quarter

    # Technical report rows

    def _row(self, row_id: str) -> ReportRow:
        for row in self.report_rows:
            if row.id == row_id:
                return row
        raise KeyError(row_id)

    def add_report_row(self) -> ReportRow:
        row = ReportRow(id=str(self._next_row_id))
        self._next_row_id += 1
        self.report_rows.append(row)
        return row

    def remove_report_row(self, row_id: str) -> None:
        if len(self.report_rows) > 1:
            self.report_rows = [r for r in self.report_rows if r.id != row_id]
        self._sync_printer_fields()

    def update_report_row(self, row_id: str, field: str, value: str) -> None:
        if field not in ROW_FIELDS:
            raise ValueError(f"Unknown report field: {field}")
        if field == "request" and value and value not in REQUEST_TYPES:
            raise ValueError(f"Unknown request type: {value}")
        setattr(self._row(row_id), field, value)
        self._sync_printer_fields()

    @property
    def first_request(self) -> str:
        return self.report_rows[0].request if self.report_rows else ""

    # Printer fields

    @property
    def printer_fields_visible(self) -> bool:
        return self.first_request == PRINTER_ISOLATION

    def set_printer(self, brand: str | None = None, model: str | None = None) -> None:
        if not self.printer_fields_visible:
            return
        if brand is not None:
            self.printer_brand = brand
        if model is not None:
            self.printer_model = model

    def _sync_printer_fields(self) -> None:
        if not self.printer_fields_visible:
            self.printer_brand = ""
            self.printer_model = ""

    # Validation

    def touch(self, field: str) -> None:
        self.touched.add(field)

    @property
    def errors(self) -> dict[str, str]:
        """Messages for missing required fields, limited to fields already touched."""
        t = self.touched
        e = {}
        if "soNumber" in t and not self.so_number.strip():
            e["soNumber"] = "Required"
        if "offices" in t and not self.selected_offices:
            e["offices"] = "Select at least one office"
        if "date" in t and not self.date.strip():
            e["date"] = "Required"
        if "area" in t and not self.area_selected:
            e["area"] = "Select at least one area"
        if "timeStarted" in t and not self.time_started:
            e["timeStarted"] = "Required"
        if "timeEnded" in t and not self.time_ended:
            e["timeEnded"] = "Required"
        if "actionDone" in t and not self.first_request.strip():
            e["actionDone"] = "Select request type for at least one report"
        if "technician" in t and not self.technician_name.strip():
            e["technician"] = "Required"
        return e

    @property
    def can_submit(self) -> bool:
        return (
            self.so_number.strip() != ""
            and self.technician_name.strip() != ""
            and len(self.selected_offices) > 0
            and self.date.strip() != ""
            and self.area_selected
            and self.time_started != ""
            and self.time_ended != ""
            and self.first_request.strip() != ""
        )

    # Transient status

    def _set_status(self, kind: str, message: str | None = None) -> None:
        self._status = (kind, message, self.clock() + MESSAGE_TIMEOUT)

    def status(self) -> tuple[str, str | None] | None:
        """Current ('success' | 'error' | 'draft', message), or None once it has expired."""
        if self._status is None:
            return None
        kind, message, expires_at = self._status
        if self.clock() >= expires_at:
            self._status = None
            return None
        return kind, message

    # Payloads

    def to_entry(self, trim: bool = True) -> WorkSlipEntry:
        def clean(value: str) -> str:
            return value.strip() if trim else value

        reports = [
            TechnicalReportItem(
                request=clean(r.request),
                action_done=clean(r.action_done),
                recommendation=clean(r.recommendation),
            )
            for r in self.report_rows
        ]
        entry = WorkSlipEntry(
            id=self.record_id or "",
            so_number=self.so_number.strip(),
            date=self.date,
            quarter=self.quarter or get_quarter_from_date(self.date),
            area_in_house=self.area == AREA_IN_HOUSE,
            area_on_site=self.area == AREA_ON_SITE,
            area_interagency=self.area == AREA_INTERAGENCY,
            offices=list(self.selected_offices),
            time_started=self.time_started,
            time_ended=self.time_ended,
            requester_signature=self.requester_signature,
            technician_name=self.technician_name,
            approved_by=self.approved_by,
            printer_brand=self.printer_brand or None,
            printer_model=self.printer_model or None,
            technical_reports=reports,
        )
        return flatten_legacy_fields(entry)

    # Outcomes

    def submit(self, client: SlipClient, drafts: DraftStore | None = None) -> WorkSlipEntry | None:
        """Validate and persist. Returns the stored record, or None when nothing was saved.

        The form keeps its values afterwards either way.
        """
        if self.submitting:
            return None
        self.touched.update(REQUIRED_FIELDS)
        if not self.can_submit:
            return None

        self.submitting = True
        self._status = None
        entry = self.to_entry()
        try:
            if self.record_id:
                saved = client.update_slip(entry)
            elif self.draft_id and drafts is not None:
                saved = drafts.promote(self.draft_id, client, entry=entry)
                self.draft_id = None
            else:
                saved = client.save_slip(entry)
        except SlipStoreError as e:
            logger.warning(f"Submit of {entry.so_number} failed: {e}")
            self._set_status("error", str(e) or "Failed to submit")
            return None
        finally:
            self.submitting = False

        self._set_status("success")
        return saved

    def save_draft(self, drafts: DraftStore, today: date | None = None) -> WorkSlipEntry:
        """Store the form as-is, without validation. Blank SO numbers get a generated one."""
        entry = self.to_entry(trim=False)
        if not entry.so_number:
            entry = entry.model_copy(update={"so_number": generate_so_number(drafts.storage, today)})
        draft = drafts.save(entry)
        self._set_status("draft")
        return draft

    def _load(self, entry: WorkSlipEntry) -> None:
        self.so_number = entry.so_number
        self.set_date(entry.date)
        self.quarter = entry.quarter or get_quarter_from_date(entry.date)
        if entry.area_in_house:
            area = AREA_IN_HOUSE
        elif entry.area_on_site:
            area = AREA_ON_SITE
        elif entry.area_interagency:
            area = AREA_INTERAGENCY
        else:
            area = None
        self.selected_offices = list(entry.offices)
        self.select_area(area)
        self.time_started = entry.time_started
        self.time_ended = entry.time_ended
        reports = entry.technical_reports or [TechnicalReportItem(request=entry.action_done, recommendation=entry.recommendation)]
        self.report_rows = [
            ReportRow(id=str(i + 1), request=r.request, action_done=r.action_done, recommendation=r.recommendation)
            for i, r in enumerate(reports)
        ]
        self._next_row_id = len(self.report_rows) + 1
        self.requester_signature = entry.requester_signature
        self.technician_name = entry.technician_name
        self.approved_by = entry.approved_by
        self.printer_brand = entry.printer_brand or ""
        self.printer_model = entry.printer_model or ""
        self._sync_printer_fields()

    def load_draft(self, draft: WorkSlipEntry) -> None:
        """Resume a saved draft; a successful submit promotes it."""
        self._load(draft)
        self.draft_id = draft.id
        self.record_id = None

    def load_record(self, entry: WorkSlipEntry) -> None:
        """Edit a stored record; submit replaces it in full."""
        self._load(entry)
        self.record_id = entry.id
        self.draft_id = None
