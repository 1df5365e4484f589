"""Upgrade stored or legacy work slip records to the canonical shape.

Older records may carry a single ``office`` string instead of ``offices``,
lack ``quarter`` or have no ``technicalReports`` at all (only the flattened
``actionDone``/``recommendation`` pair). Everything that reads records goes
through :func:`normalize_entry` so consumers only ever see one shape.
"""
import random
import string
import time
from collections.abc import Mapping
from datetime import UTC, datetime

from pydantic import BaseModel

from schemas import TechnicalReportItem, WorkSlipEntry


def make_id(prefix: str) -> str:
    """Opaque id in the form <prefix>-<epoch ms>-<7 random chars>."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=7))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def get_quarter_from_date(date_str: str | None) -> int:
    """Q1=Jan-Mar, Q2=Apr-Jun, Q3=Jul-Sep, Q4=Oct-Dec. Empty or bad dates give 1."""
    if not date_str:
        return 1
    try:
        month = datetime.strptime(date_str[:10], "%Y-%m-%d").month
    except ValueError:
        return 1
    return (month - 1) // 3 + 1


def _get(raw: Mapping, camel: str, snake: str | None = None):
    if camel in raw:
        return raw[camel]
    if snake is not None:
        return raw.get(snake)
    return None


def _text(value) -> str:
    return "" if value is None else str(value)


def _optional_text(value) -> str | None:
    return str(value) if value else None


def _coerce_quarter(value, date_str: str) -> int:
    if value is not None and not isinstance(value, bool):
        try:
            quarter = int(value)
        except (TypeError, ValueError):
            quarter = 0
        if 1 <= quarter <= 4:
            return quarter
    return get_quarter_from_date(date_str)


def _coerce_offices(raw: Mapping) -> list[str]:
    offices = raw.get("offices")
    if isinstance(offices, (list, tuple)):
        # Set semantics, insertion order kept
        seen = []
        for office in offices:
            if office and office not in seen:
                seen.append(str(office))
        return seen
    office = raw.get("office")
    return [str(office)] if office else []


def _coerce_reports(raw: Mapping) -> list[TechnicalReportItem]:
    rows = _get(raw, "technicalReports", "technical_reports")
    reports = []
    if isinstance(rows, (list, tuple)):
        for row in rows:
            if isinstance(row, BaseModel):
                row = row.model_dump(by_alias=True)
            if isinstance(row, Mapping):
                reports.append(
                    TechnicalReportItem(
                        request=_text(row.get("request")),
                        action_done=_text(_get(row, "actionDone", "action_done")),
                        recommendation=_text(row.get("recommendation")),
                    )
                )
            elif isinstance(row, str) and row:
                # Bare request text from hand-edited rows
                reports.append(TechnicalReportItem(request=row))
    if reports:
        return reports

    legacy_action = _text(_get(raw, "actionDone", "action_done"))
    return [
        TechnicalReportItem(
            request=legacy_action,
            action_done=legacy_action,
            recommendation=_text(raw.get("recommendation")),
        )
    ]


def flatten_legacy_fields(entry: WorkSlipEntry) -> WorkSlipEntry:
    """Mirror report row 0 onto the flattened actionDone/recommendation fields."""
    if not entry.technical_reports:
        entry = entry.model_copy(update={"technical_reports": [TechnicalReportItem()]})
    first = entry.technical_reports[0]
    return entry.model_copy(
        update={"action_done": first.request, "recommendation": first.recommendation}
    )


def normalize_entry(raw: Mapping | WorkSlipEntry) -> WorkSlipEntry:
    """Return the canonical form of any stored, legacy or partial record.

    Never fails on missing optional fields. Normalizing a canonical record
    returns an equal record.
    """
    if isinstance(raw, BaseModel):
        raw = raw.model_dump(by_alias=True)

    date = _text(raw.get("date"))
    entry = WorkSlipEntry(
        id=_text(raw.get("id")),
        so_number=_text(_get(raw, "soNumber", "so_number")),
        date=date,
        quarter=_coerce_quarter(raw.get("quarter"), date),
        area_in_house=bool(_get(raw, "areaInHouse", "area_in_house")),
        area_on_site=bool(_get(raw, "areaOnSite", "area_on_site")),
        area_interagency=bool(_get(raw, "areaInteragency", "area_interagency")),
        offices=_coerce_offices(raw),
        time_started=_text(_get(raw, "timeStarted", "time_started")),
        time_ended=_text(_get(raw, "timeEnded", "time_ended")),
        requester_signature=_text(_get(raw, "requesterSignature", "requester_signature")),
        technician_name=_text(_get(raw, "technicianName", "technician_name")),
        approved_by=_text(_get(raw, "approvedBy", "approved_by")),
        created_at=_text(_get(raw, "createdAt", "created_at")),
        printer_brand=_optional_text(_get(raw, "printerBrand", "printer_brand")),
        printer_model=_optional_text(_get(raw, "printerModel", "printer_model")),
        technical_reports=_coerce_reports(raw),
    )
    return flatten_legacy_fields(entry)
