import json
import logging

from sqlalchemy import Column, Integer, String, Text
from sqlmodel import Field, SQLModel

from schemas import WorkSlipEntry

logger = logging.getLogger(__name__)


def _load_json_list(value: str | None, column: str) -> list:
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except ValueError:
        logger.warning(f"Unreadable JSON in {column}, treating as empty")
        return []
    return parsed if isinstance(parsed, list) else []


class WorkSlip(SQLModel, table=True):
    """Row of the work_slips table.

    Column names match the legacy schema (camelCase) so existing databases keep
    working. offices and technicalReports are JSON text, area flags are 0/1.
    """

    __tablename__ = "work_slips"

    id: str = Field(sa_column=Column("id", String, primary_key=True))
    so_number: str = Field(sa_column=Column("soNumber", String, unique=True))
    date: str | None = Field(default=None, sa_column=Column("date", String))
    area_in_house: int = Field(default=0, sa_column=Column("areaInHouse", Integer))
    area_on_site: int = Field(default=0, sa_column=Column("areaOnSite", Integer))
    area_interagency: int = Field(default=0, sa_column=Column("areaInteragency", Integer))
    offices: str | None = Field(default=None, sa_column=Column("offices", Text))  # JSON list
    time_started: str | None = Field(default=None, sa_column=Column("timeStarted", String))
    time_ended: str | None = Field(default=None, sa_column=Column("timeEnded", String))
    action_done: str | None = Field(default=None, sa_column=Column("actionDone", Text))
    recommendation: str | None = Field(default=None, sa_column=Column("recommendation", Text))
    requester_signature: str | None = Field(default=None, sa_column=Column("requesterSignature", String))
    technician_name: str | None = Field(default=None, sa_column=Column("technicianName", String))
    approved_by: str | None = Field(default=None, sa_column=Column("approvedBy", String))
    created_at: str | None = Field(default=None, sa_column=Column("createdAt", String))
    printer_brand: str | None = Field(default=None, sa_column=Column("printerBrand", String))
    printer_model: str | None = Field(default=None, sa_column=Column("printerModel", String))
    quarter: int | None = Field(default=None, sa_column=Column("quarter", Integer))
    technical_reports: str | None = Field(default=None, sa_column=Column("technicalReports", Text))  # JSON list

    @classmethod
    def from_entry(cls, entry: WorkSlipEntry) -> "WorkSlip":
        row = cls(id=entry.id, so_number=entry.so_number, created_at=entry.created_at)
        row.apply_entry(entry)
        return row

    def apply_entry(self, entry: WorkSlipEntry) -> None:
        """Copy every replaceable field from a canonical entry. id and createdAt are left alone."""
        self.so_number = entry.so_number
        self.date = entry.date
        self.quarter = entry.quarter
        self.area_in_house = 1 if entry.area_in_house else 0
        self.area_on_site = 1 if entry.area_on_site else 0
        self.area_interagency = 1 if entry.area_interagency else 0
        self.offices = json.dumps(entry.offices)
        self.time_started = entry.time_started
        self.time_ended = entry.time_ended
        self.action_done = entry.action_done
        self.recommendation = entry.recommendation
        self.requester_signature = entry.requester_signature
        self.technician_name = entry.technician_name
        self.approved_by = entry.approved_by
        self.printer_brand = entry.printer_brand
        self.printer_model = entry.printer_model
        self.technical_reports = json.dumps(
            [item.model_dump(by_alias=True) for item in entry.technical_reports]
        )

    def to_raw(self) -> dict:
        """Decode the row into a loose camelCase record, ready for normalize_entry."""
        return {
            "id": self.id,
            "soNumber": self.so_number,
            "date": self.date,
            "quarter": self.quarter,
            "areaInHouse": bool(self.area_in_house),
            "areaOnSite": bool(self.area_on_site),
            "areaInteragency": bool(self.area_interagency),
            "offices": _load_json_list(self.offices, "offices"),
            "timeStarted": self.time_started,
            "timeEnded": self.time_ended,
            "actionDone": self.action_done,
            "recommendation": self.recommendation,
            "requesterSignature": self.requester_signature,
            "technicianName": self.technician_name,
            "approvedBy": self.approved_by,
            "createdAt": self.created_at,
            "printerBrand": self.printer_brand,
            "printerModel": self.printer_model,
            "technicalReports": _load_json_list(self.technical_reports, "technicalReports"),
        }
