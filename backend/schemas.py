from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Wire format is camelCase; Python attributes stay snake_case
CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TechnicalReportItem(BaseModel):
    model_config = CAMEL_CONFIG

    request: str = ""  # selected request type
    action_done: str = ""  # what was actually done
    recommendation: str = ""


class WorkSlipEntry(BaseModel):
    """Canonical work slip record, as returned by the API and held by clients."""

    model_config = CAMEL_CONFIG

    id: str = ""
    so_number: str = ""
    date: str = ""  # YYYY-MM-DD format
    quarter: int = 1  # 1 = Jan-Mar ... 4 = Oct-Dec
    area_in_house: bool = False
    area_on_site: bool = False
    area_interagency: bool = False
    offices: list[str] = Field(default_factory=list)
    time_started: str = ""
    time_ended: str = ""
    action_done: str = ""  # mirrors technical_reports[0].request
    recommendation: str = ""  # mirrors technical_reports[0].recommendation
    requester_signature: str = ""
    technician_name: str = ""
    approved_by: str = ""
    created_at: str = ""
    printer_brand: str | None = None
    printer_model: str | None = None
    technical_reports: list[TechnicalReportItem] = Field(default_factory=list)


class WorkSlipPayload(BaseModel):
    """Body accepted by create/replace. Loose on purpose: normalization fills the gaps."""

    model_config = CAMEL_CONFIG

    id: str | None = None
    so_number: str
    date: str = ""
    quarter: int | None = None
    area_in_house: bool = False
    area_on_site: bool = False
    area_interagency: bool = False
    offices: list[str] | None = None
    office: str | None = None  # legacy single-office records
    time_started: str = ""
    time_ended: str = ""
    action_done: str = ""
    recommendation: str = ""
    requester_signature: str = ""
    technician_name: str = ""
    approved_by: str = ""
    printer_brand: str | None = None
    printer_model: str | None = None
    technical_reports: list[TechnicalReportItem] | None = None

    @field_validator("so_number")
    @classmethod
    def validate_so_number(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("SO number is required")
        return v

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        v = v.strip()
        if v:
            datetime.strptime(v, "%Y-%m-%d")
        return v

    @field_validator("quarter")
    @classmethod
    def validate_quarter(cls, v):
        if v is not None and v not in (1, 2, 3, 4):
            raise ValueError("Quarter must be between 1 and 4")
        return v


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    model_config = CAMEL_CONFIG

    ok: bool
    username: str
    is_super_admin: bool


class CountRow(BaseModel):
    name: str
    count: int


class MonthRow(BaseModel):
    key: str  # YYYY-MM
    name: str  # "Apr 2025"
    count: int


class ReportSummary(BaseModel):
    model_config = CAMEL_CONFIG

    total: int
    hardware: int
    software: int
    by_area: list[CountRow]
    by_quarter: list[CountRow]
    by_month: list[MonthRow]
    by_request_type: list[CountRow]
    by_technician: list[CountRow]
