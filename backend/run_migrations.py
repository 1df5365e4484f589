#!/usr/bin/env python3
"""
Manual script to bring an existing work_slips database up to date.
Run this from the backend directory or adjust the import path.
"""
import logging
import os
import sys

# Add backend directory to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from db import engine
from migrations.migrate_001_add_report_columns import migrate as migrate_001
from migrations.migrate_002_add_so_number_unique import migrate as migrate_002

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logger.info("Running migrations manually...")
    try:
        migrate_001(engine)
        migrate_002(engine)
        logger.info("Migrations completed successfully")
    except Exception as e:
        logger.exception(f"Migration failed: {e}")
        sys.exit(1)
