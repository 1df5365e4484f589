"""
Migration: Enforce unique SO numbers on work_slips tables created before the constraint.

This migration:
1. Detects an existing unique index on soNumber (fresh tables already have one)
2. Reports duplicate SO numbers and leaves the table untouched if any exist
3. Otherwise creates uniq_work_slips_so_number
Handles both PostgreSQL and SQLite.
"""
import logging
from sqlalchemy import inspect, text

from db import is_postgres

logger = logging.getLogger(__name__)

INDEX_NAME = "uniq_work_slips_so_number"


def migrate(engine):
    """Run migration."""
    with engine.connect() as conn:
        trans = conn.begin()

        try:
            inspector = inspect(conn)
            if not inspector.has_table("work_slips"):
                logger.info("work_slips table does not exist, skipping migration 002")
                trans.rollback()
                return

            if has_unique_so_number(inspector):
                logger.info("SO number is already unique, skipping migration 002")
                trans.rollback()
                return

            duplicates = find_duplicates(conn)
            if duplicates:
                logger.warning(f"Found {len(duplicates)} duplicated SO numbers; not adding unique index")
                for dup in duplicates:
                    logger.warning(f"  - soNumber: {dup[0]}, count: {dup[1]}")
                trans.rollback()
                return

            logger.info(f"Creating unique index {INDEX_NAME} on soNumber...")
            conn.execute(text(f'CREATE UNIQUE INDEX IF NOT EXISTS {INDEX_NAME} ON work_slips ("soNumber")'))
            trans.commit()
            logger.info(f"Migration 002 completed ({'PostgreSQL' if is_postgres(engine) else 'SQLite'})")
        except Exception as e:
            trans.rollback()
            logger.error(f"Migration 002 failed: {str(e)}")
            raise


def has_unique_so_number(inspector) -> bool:
    for index in inspector.get_indexes("work_slips"):
        if index.get("unique") and index.get("column_names") == ["soNumber"]:
            return True
    for constraint in inspector.get_unique_constraints("work_slips"):
        if constraint.get("column_names") == ["soNumber"]:
            return True
    return False


def find_duplicates(conn):
    result = conn.execute(text("""
        SELECT "soNumber", COUNT(*) as count
        FROM work_slips
        GROUP BY "soNumber"
        HAVING COUNT(*) > 1
    """))
    return result.fetchall()


if __name__ == "__main__":
    from db import engine
    migrate(engine)
