"""
Migration: Add the columns introduced after the first work_slips release.

This migration:
1. Adds offices (JSON list), backfilled from a legacy single office column if present
2. Adds printerBrand, printerModel, quarter and technicalReports when missing
3. Backfills quarter from date and technicalReports from actionDone/recommendation
Handles both PostgreSQL and SQLite. Safe to run repeatedly.
"""
import json
import logging
from sqlalchemy import inspect, text

from normalize import get_quarter_from_date

logger = logging.getLogger(__name__)

NEW_COLUMNS = [
    ("offices", "TEXT"),
    ("printerBrand", "TEXT"),
    ("printerModel", "TEXT"),
    ("quarter", "INTEGER"),
    ("technicalReports", "TEXT"),
]


def migrate(engine):
    """Run migration."""
    with engine.connect() as conn:
        trans = conn.begin()

        try:
            columns = get_columns(conn)
            if columns is None:
                logger.info("work_slips table does not exist, skipping migration 001")
                trans.rollback()
                return

            added = add_missing_columns(conn, columns)
            backfilled = backfill(conn, had_office="office" in columns and "offices" in added)

            trans.commit()
            logger.info(f"Migration 001 completed: {len(added)} columns added, {backfilled} rows backfilled")
        except Exception as e:
            trans.rollback()
            logger.error(f"Migration 001 failed: {str(e)}")
            raise


def get_columns(conn) -> set[str] | None:
    inspector = inspect(conn)
    if not inspector.has_table("work_slips"):
        return None
    return {col["name"] for col in inspector.get_columns("work_slips")}


def add_missing_columns(conn, columns: set[str]) -> list[str]:
    added = []
    for name, sql_type in NEW_COLUMNS:
        if name in columns:
            continue
        logger.info(f"Adding {name} column...")
        conn.execute(text(f'ALTER TABLE work_slips ADD COLUMN "{name}" {sql_type}'))
        added.append(name)
    return added


def backfill(conn, had_office: bool = False) -> int:
    """Fill quarter, technicalReports (and offices from office) on rows that predate them."""
    office_select = ', "office"' if had_office else ""
    rows = conn.execute(text(f"""
        SELECT "id", "date", "actionDone", "recommendation", "quarter", "technicalReports"{office_select}
        FROM work_slips
        WHERE "quarter" IS NULL
           OR "technicalReports" IS NULL OR "technicalReports" = ''
           {'OR "offices" IS NULL' if had_office else ''}
    """)).fetchall()

    for row in rows:
        params = {"id": row[0]}
        sets = []
        if row[4] is None:
            sets.append('"quarter" = :quarter')
            params["quarter"] = get_quarter_from_date(row[1])
        if not row[5]:
            sets.append('"technicalReports" = :reports')
            params["reports"] = json.dumps([{
                "request": row[2] or "",
                "actionDone": row[2] or "",
                "recommendation": row[3] or "",
            }])
        if had_office:
            sets.append('"offices" = :offices')
            params["offices"] = json.dumps([row[6]] if row[6] else [])
        if sets:
            conn.execute(text(f'UPDATE work_slips SET {", ".join(sets)} WHERE "id" = :id'), params)

    return len(rows)


if __name__ == "__main__":
    from db import engine
    migrate(engine)
