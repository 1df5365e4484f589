"""Filtering, aggregate counts and CSV exports over work slip records."""
import csv
import io
from collections import Counter
from collections.abc import Iterable
from datetime import date, datetime

from constants import AREA_IN_HOUSE, AREA_INTERAGENCY, AREA_ON_SITE, PRINTER_ISOLATION, get_request_category
from schemas import CountRow, MonthRow, ReportSummary, WorkSlipEntry

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

RECORD_HEADERS = [
    "SO No", "Date", "Quarter", "Area", "Offices", "Time Started", "Time Ended", "Request",
    "Technician", "Requester", "Approved By", "Recommendation", "Printer Brand", "Printer Model",
]

BOM = "\ufeff"


def area_labels(slip: WorkSlipEntry) -> list[str]:
    labels = []
    if slip.area_in_house:
        labels.append(AREA_IN_HOUSE)
    if slip.area_on_site:
        labels.append(AREA_ON_SITE)
    if slip.area_interagency:
        labels.append(AREA_INTERAGENCY)
    return labels


def has_area(slip: WorkSlipEntry, area: str) -> bool:
    return area in area_labels(slip)


def filter_slips(
    slips: Iterable[WorkSlipEntry],
    search: str | None = None,
    area: str | None = None,
    office: str | None = None,
    quarter: int | None = None,
) -> list[WorkSlipEntry]:
    """Apply the record browser filters. Empty filters match everything."""
    result = list(slips)

    q = (search or "").strip().lower()
    if q:
        result = [
            s for s in result
            if q in s.so_number.lower()
            or q in s.date
            or q in "; ".join(area_labels(s)).lower()
            or any(q in o.lower() for o in s.offices)
            or q in (s.action_done or "").lower()
        ]
    if area:
        result = [s for s in result if has_area(s, area)]
    if office:
        result = [s for s in result if office in s.offices]
    if quarter:
        result = [s for s in result if s.quarter == quarter]
    return result


def count_hardware(slips: list[WorkSlipEntry]) -> int:
    return sum(1 for s in slips if get_request_category(s.action_done) == "hardware")


def count_software(slips: list[WorkSlipEntry]) -> int:
    # Printer isolation counts toward both totals
    return sum(
        1 for s in slips
        if get_request_category(s.action_done) == "software" or s.action_done == PRINTER_ISOLATION
    )


def count_by_area(slips: list[WorkSlipEntry]) -> list[CountRow]:
    return [
        CountRow(name=AREA_IN_HOUSE, count=sum(1 for s in slips if s.area_in_house)),
        CountRow(name=AREA_ON_SITE, count=sum(1 for s in slips if s.area_on_site)),
        CountRow(name=AREA_INTERAGENCY, count=sum(1 for s in slips if s.area_interagency)),
    ]


def count_by_quarter(slips: list[WorkSlipEntry]) -> list[CountRow]:
    counts = Counter(s.quarter for s in slips)
    return [CountRow(name=f"Q{q}", count=counts.get(q, 0)) for q in (1, 2, 3, 4)]


def _month_key(date_str: str) -> str | None:
    try:
        return datetime.strptime(date_str[:10], "%Y-%m-%d").strftime("%Y-%m")
    except ValueError:
        return None


def format_month_label(key: str) -> str:
    year, month = key.split("-")
    return f"{MONTH_LABELS[int(month) - 1]} {year}"


def count_by_month(slips: list[WorkSlipEntry]) -> list[MonthRow]:
    counts = Counter(key for key in (_month_key(s.date) for s in slips if s.date) if key)
    return [
        MonthRow(key=key, name=format_month_label(key), count=counts[key])
        for key in sorted(counts)
    ]


def _ranked(counts: Counter) -> list[CountRow]:
    # Counter keeps first-seen order, sorted() is stable, so ties stay in record order
    return [CountRow(name=name, count=count) for name, count in sorted(counts.items(), key=lambda x: -x[1])]


def count_by_request_type(slips: list[WorkSlipEntry]) -> list[CountRow]:
    return _ranked(Counter(s.action_done or "—" for s in slips))


def count_by_technician(slips: list[WorkSlipEntry]) -> list[CountRow]:
    return _ranked(Counter(s.technician_name or "Unassigned" for s in slips))


def build_summary(slips: list[WorkSlipEntry]) -> ReportSummary:
    """Aggregate counts feeding the reports page."""
    return ReportSummary(
        total=len(slips),
        hardware=count_hardware(slips),
        software=count_software(slips),
        by_area=count_by_area(slips),
        by_quarter=count_by_quarter(slips),
        by_month=count_by_month(slips),
        by_request_type=count_by_request_type(slips),
        by_technician=count_by_technician(slips),
    )


def _to_csv(headers: list[str], rows: list[list]) -> str:
    """Spreadsheet-friendly CSV: BOM, bare header, every data cell quoted, CRLF."""
    buffer = io.StringIO()
    buffer.write(BOM + ",".join(headers) + "\r\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\r\n")
    writer.writerows([[str(cell) for cell in row] for row in rows])
    return buffer.getvalue().removesuffix("\r\n")


def slips_to_csv(slips: list[WorkSlipEntry]) -> str:
    rows = [
        [
            s.so_number,
            s.date,
            f"Q{s.quarter}",
            "; ".join(area_labels(s)),
            "; ".join(s.offices),
            s.time_started,
            s.time_ended,
            s.action_done or "",
            s.technician_name or "",
            s.requester_signature or "",
            s.approved_by or "",
            (s.recommendation or "").replace("\r\n", " ").replace("\n", " "),
            s.printer_brand or "",
            s.printer_model or "",
        ]
        for s in slips
    ]
    return _to_csv(RECORD_HEADERS, rows)


def totals_to_csv(slips: list[WorkSlipEntry]) -> str:
    areas = {row.name: row.count for row in count_by_area(slips)}
    rows = [
        ["Total Slips", len(slips)],
        ["Hardware", count_hardware(slips)],
        ["Software", count_software(slips)],
        [AREA_IN_HOUSE, areas[AREA_IN_HOUSE]],
        [AREA_ON_SITE, areas[AREA_ON_SITE]],
        [AREA_INTERAGENCY, areas[AREA_INTERAGENCY]],
    ]
    return _to_csv(["Category", "Count"], rows)


def report_filename(kind: str, today: date | None = None) -> str:
    """SO-WorkSlip-Report-2025-04-15.csv / SO-WorkSlip-Totals-2025-04-15.csv"""
    return f"SO-WorkSlip-{kind}-{(today or date.today()).isoformat()}.csv"
