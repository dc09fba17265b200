# bi_portal/maintenance/explore_schema.py
"""
Explore the silverman schema: tables, row counts and the columns of the
tables the common fee reports read.
"""

import logging
import sys
from typing import Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from ..db import get_db_engine
from . import run_script

logger = logging.getLogger(__name__)

SCHEMA = 'silverman'
DB_ALIAS = 'silverman'

KEY_TABLES = ['invoice', 'invoice_data', 'transaction', 'contact', 'site', 'project',
              'fine', 'fine_group', 'bank_account', 'bank_account_transaction']


def list_tables(engine: Engine, schema: str = SCHEMA) -> List[str]:
    with engine.connect() as conn:
        rows = conn.execute(text("""
            SELECT table_name FROM information_schema.tables
            WHERE table_schema = :schema
            ORDER BY table_name
        """), {'schema': schema})
        return [row[0] for row in rows]


def row_counts(engine: Engine, tables: List[str], schema: str = SCHEMA) -> Dict[str, Optional[int]]:
    """COUNT(*) per table; None where the count fails."""
    counts = {}
    for table in tables:
        try:
            with engine.connect() as conn:
                counts[table] = conn.execute(text(f'SELECT COUNT(*) FROM "{schema}"."{table}"')).scalar()
        except Exception as e:
            logger.warning(f"⚠️ {table}: {e}")
            counts[table] = None
    return counts


def table_columns(engine: Engine, table: str, schema: str = SCHEMA) -> List[Dict]:
    with engine.connect() as conn:
        rows = conn.execute(text("""
            SELECT column_name, data_type, is_nullable
            FROM information_schema.columns
            WHERE table_schema = :schema AND table_name = :table
            ORDER BY ordinal_position
        """), {'schema': schema, 'table': table})
        return [{'name': r[0], 'type': r[1], 'nullable': r[2] == 'YES'} for r in rows]


def _explore() -> int:
    engine = get_db_engine(DB_ALIAS)

    tables = list_tables(engine)
    logger.info(f"📋 Tables in {SCHEMA} schema: {len(tables)}")

    for table, count in row_counts(engine, tables).items():
        shown = 'error' if count is None else f"{count:>10,} rows"
        logger.info(f"  {table:<40} {shown}")

    logger.info("📝 Key table structures:")
    for table in KEY_TABLES:
        if table not in tables:
            continue
        logger.info(f"[{table}]")
        for col in table_columns(engine, table):
            logger.info(f"  - {col['name']}: {col['type']}{'?' if col['nullable'] else ''}")
    return 0


def main() -> int:
    return run_script(f'Explore {SCHEMA} schema', _explore)


if __name__ == '__main__':
    sys.exit(main())
