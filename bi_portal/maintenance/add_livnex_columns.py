# bi_portal/maintenance/add_livnex_columns.py
"""
Add LivNex / RentNex program columns to sales_mkt

Per program: monthly unit and THB actuals, monthly unit and THB targets,
plus the yearly totals (52 columns each). Columns are TEXT defaulting to
'0', matching the rest of sales_mkt; existing NULLs are set to '0'.
"""

import logging
import sys
from typing import List

from sqlalchemy import text
from sqlalchemy.engine import Engine

from ..db import get_db_engine
from ..sales_2025.constants import PROGRAM_PREFIXES, SALES_MKT_TABLE
from . import run_script

logger = logging.getLogger(__name__)

DB_ALIAS = 'sales'

MONTHS = ['jan', 'feb', 'mar', 'apr', 'may', 'jun', 'jul', 'aug', 'sep', 'oct', 'nov', 'dec']


def program_columns(prefixes: List[str] = None) -> List[str]:
    columns = []
    for program in prefixes or PROGRAM_PREFIXES:
        for stem in (program, f"target_{program}"):
            for unit in ('unit', 'thb'):
                columns.extend(f"{stem}_{m}_{unit}" for m in MONTHS)
                columns.append(f"{stem}_total{unit}")
    return columns


def add_columns(engine: Engine, columns: List[str], table: str = SALES_MKT_TABLE) -> int:
    """Add missing columns and zero-fill NULLs; returns the number of program columns found after."""
    with engine.begin() as conn:
        for col in columns:
            conn.execute(text(f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS {col} TEXT DEFAULT '0'"))
        logger.info(f"📦 Ensured {len(columns)} columns on {table}")

        assignments = ', '.join(f"{col} = COALESCE({col}, '0')" for col in columns)
        conn.execute(text(f"UPDATE {table} SET {assignments}"))
        logger.info("🔄 Existing rows zero-filled")

    with engine.connect() as conn:
        found = conn.execute(text("""
            SELECT COUNT(*) FROM information_schema.columns
            WHERE table_name = :table AND column_name = ANY(:columns)
        """), {'table': table.strip('"'), 'columns': columns}).scalar()
    return int(found)


def _migrate() -> int:
    columns = program_columns()
    found = add_columns(get_db_engine(DB_ALIAS), columns)
    if found != len(columns):
        logger.error(f"❌ Verification: {found} of {len(columns)} program columns present")
        return 1
    logger.info(f"✅ Verification: {found} LivNex/RentNex columns present")
    return 0


def main() -> int:
    return run_script('Add LivNex / RentNex columns to sales_mkt', _migrate)


if __name__ == '__main__':
    sys.exit(main())
