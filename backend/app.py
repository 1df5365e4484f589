import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from auth import AuthProvider, Identity, get_auth_provider, require_editor
from db import create_db_and_tables, get_session
from models import WorkSlip
from normalize import make_id, normalize_entry, now_iso
from report import build_summary, filter_slips, report_filename, slips_to_csv, totals_to_csv
from schemas import LoginRequest, LoginResponse, ReportSummary, WorkSlipEntry, WorkSlipPayload

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SO_NUMBER_EXISTS = "SO number already exists"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    create_db_and_tables()

    # Bring databases created by older releases up to date
    try:
        from db import engine
        from migrations.migrate_001_add_report_columns import migrate as migrate_001
        from migrations.migrate_002_add_so_number_unique import migrate as migrate_002

        migrate_001(engine)
        migrate_002(engine)
    except ImportError as e:
        logger.debug(f"Migration modules not found: {e}")
    except Exception as e:
        # Don't raise - allow app to start, but log the error clearly
        logger.error(f"Migration check failed: {str(e)}")

    logger.info("Database initialized")
    yield


# Create FastAPI app
app = FastAPI(title="Work Slip Tracker API", version="1.0.0", lifespan=lifespan)

cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def load_slips(session: Session) -> list[WorkSlipEntry]:
    """All stored slips, newest first, in canonical shape."""
    rows = session.exec(select(WorkSlip).order_by(WorkSlip.created_at.desc())).all()
    return [normalize_entry(row.to_raw()) for row in rows]


def so_number_taken(session: Session, so_number: str, exclude_id: str | None = None) -> bool:
    stmt = select(WorkSlip).where(WorkSlip.so_number == so_number)
    if exclude_id is not None:
        stmt = stmt.where(WorkSlip.id != exclude_id)
    return session.exec(stmt).first() is not None


def payload_to_entry(payload: WorkSlipPayload) -> WorkSlipEntry:
    # exclude_none lets normalization fall back to legacy fields and derived values
    return normalize_entry(payload.model_dump(by_alias=True, exclude_none=True))


def csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/api/slips", response_model=list[WorkSlipEntry])
def list_slips(
    limit: int | None = Query(None, ge=1, description="Page size; omit for all records"),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
):
    """List slips ordered by creation time, newest first."""
    logger.info(f"List slips request - limit: {limit}, offset: {offset}")

    try:
        slips = load_slips(session)
        if limit is not None:
            return slips[offset:offset + limit]
        return slips[offset:]
    except Exception as e:
        logger.error(f"Error listing slips: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch slips") from e


@app.get("/api/slips/export.csv")
def export_slips(
    search: str | None = Query(None, description="Matches SO number, date, area, office or request"),
    area: str | None = Query(None, description="In House, On Site or Interagency"),
    office: str | None = Query(None),
    quarter: int | None = Query(None, ge=1, le=4),
    session: Session = Depends(get_session),
):
    """Download the (filtered) record table as CSV."""
    logger.info(f"Export request - search: {search}, area: {area}, office: {office}, quarter: {quarter}")

    try:
        slips = filter_slips(load_slips(session), search=search, area=area, office=office, quarter=quarter)
        return csv_response(slips_to_csv(slips), report_filename("Report"))
    except Exception as e:
        logger.error(f"Error exporting slips: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.get("/api/slips/{slip_id}", response_model=WorkSlipEntry)
def get_slip(slip_id: str, session: Session = Depends(get_session)):
    row = session.get(WorkSlip, slip_id)
    if not row:
        raise HTTPException(status_code=404, detail="Slip not found")
    return normalize_entry(row.to_raw())


@app.post("/api/slips", response_model=WorkSlipEntry, status_code=201)
def create_slip(payload: WorkSlipPayload, session: Session = Depends(get_session)):
    """Create a slip. The SO number must not be in use; createdAt is assigned here."""
    entry = payload_to_entry(payload)
    logger.info(f"Create slip request for SO number: {entry.so_number}")

    try:
        if so_number_taken(session, entry.so_number):
            logger.info(f"Rejected duplicate SO number {entry.so_number}")
            raise HTTPException(status_code=409, detail=SO_NUMBER_EXISTS)

        entry = entry.model_copy(update={"id": entry.id or make_id("slip"), "created_at": now_iso()})
        if session.get(WorkSlip, entry.id):
            raise HTTPException(status_code=409, detail="Slip id already exists")

        session.add(WorkSlip.from_entry(entry))
        session.commit()

        logger.info(f"Created slip {entry.id} ({entry.so_number})")
        return entry

    except HTTPException:
        raise
    except IntegrityError as e:
        # Lost a race with another insert of the same SO number
        session.rollback()
        raise HTTPException(status_code=409, detail=SO_NUMBER_EXISTS) from e
    except Exception as e:
        session.rollback()
        logger.error(f"Error creating slip: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create slip") from e


@app.put("/api/slips/{slip_id}", response_model=WorkSlipEntry)
def update_slip(
    slip_id: str,
    payload: WorkSlipPayload,
    session: Session = Depends(get_session),
    editor: Identity = Depends(require_editor),
):
    """Replace a slip in full. No version check: the last write wins."""
    logger.info(f"Update slip request for ID: {slip_id} by {editor.username}")

    try:
        row = session.get(WorkSlip, slip_id)
        if not row:
            raise HTTPException(status_code=404, detail="Slip not found")

        entry = payload_to_entry(payload).model_copy(update={"id": row.id, "created_at": row.created_at or ""})
        if so_number_taken(session, entry.so_number, exclude_id=slip_id):
            raise HTTPException(status_code=409, detail=SO_NUMBER_EXISTS)

        row.apply_entry(entry)
        session.add(row)
        session.commit()

        logger.info(f"Updated slip {slip_id}")
        return entry

    except HTTPException:
        raise
    except IntegrityError as e:
        session.rollback()
        raise HTTPException(status_code=409, detail=SO_NUMBER_EXISTS) from e
    except Exception as e:
        session.rollback()
        logger.error(f"Error updating slip: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update slip") from e


@app.delete("/api/slips/{slip_id}", status_code=204)
def delete_slip(slip_id: str, session: Session = Depends(get_session)):
    """Delete a slip. Deleting an unknown id also succeeds."""
    logger.info(f"Delete slip request for ID: {slip_id}")

    try:
        row = session.get(WorkSlip, slip_id)
        if row:
            session.delete(row)
            session.commit()
            logger.info(f"Successfully deleted slip {slip_id}")
        return Response(status_code=204)

    except Exception as e:
        session.rollback()
        logger.error(f"Error deleting slip: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to delete slip") from e


@app.post("/api/login", response_model=LoginResponse)
def login(request: LoginRequest, provider: AuthProvider = Depends(get_auth_provider)):
    identity = provider.validate(request.username, request.password)
    if identity is None:
        raise HTTPException(status_code=401, detail="Invalid username or password")
    logger.info(f"Login for {identity.username} (super admin: {identity.is_super_admin})")
    return LoginResponse(ok=True, username=identity.username, is_super_admin=identity.is_super_admin)


@app.get("/api/reports/summary", response_model=ReportSummary)
def reports_summary(session: Session = Depends(get_session)):
    """Aggregate counts for the reports page."""
    try:
        return build_summary(load_slips(session))
    except Exception as e:
        logger.error(f"Error building report summary: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.get("/api/reports/totals.csv")
def reports_totals_csv(session: Session = Depends(get_session)):
    try:
        return csv_response(totals_to_csv(load_slips(session)), report_filename("Totals"))
    except Exception as e:
        logger.error(f"Error exporting totals: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.get("/")
def root():
    """Root endpoint."""
    return {"message": "Work Slip Tracker API", "docs": "/docs"}
