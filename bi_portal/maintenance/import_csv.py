# bi_portal/maintenance/import_csv.py
"""
CSV import for the silverman schema (DROP and RECREATE)

Reads <CSV_DIR>/<table>.csv for site, contact, invoice and invoice_data:

    1. read + validate every header (nothing is touched if one is bad)
    2. ensure schema, warn about live columns the new definition drops
    3. drop tables in reverse dependency order, recreate from the header
    4. COPY ... FROM STDIN (FORMAT csv, HEADER true, NULL '')
    5. verify destination row count == CSV data records
    6. reset {table}_id_seq to MAX(id)

Any failure aborts the run with exit status 1. The script uses a
single-connection engine, so every statement runs serially.

CHANGELOG:
- v1.1.0: Header-derived columns with known types, row-count check,
          schema-drift warning
- v1.0.0: Fixed column lists per table
"""

import csv
import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from sqlalchemy import text
from sqlalchemy.engine import Engine

from ..config import config
from ..db import create_single_connection_engine
from . import run_script

logger = logging.getLogger(__name__)

SCHEMA = 'silverman'
DB_ALIAS = 'silverman'

# Import order; tables are dropped in reverse
IMPORT_ORDER = ['site', 'contact', 'invoice', 'invoice_data']

# Known non-TEXT column types; any other header column is TEXT
TABLE_TYPES: Dict[str, Dict[str, str]] = {
    'site': {
        'id': 'INTEGER',
    },
    'contact': {
        'id': 'INTEGER',
        'total_amount': 'NUMERIC',
        'size_residential': 'NUMERIC',
        'added': 'TIMESTAMPTZ',
        'updated': 'TIMESTAMPTZ',
        'residential_id': 'INTEGER',
        'site_id': 'INTEGER',
    },
    'invoice': {
        'id': 'INTEGER',
        'due_date': 'DATE',
        'issued_date': 'DATE',
        'paid_date': 'DATE',
        'total': 'NUMERIC',
        'added': 'TIMESTAMPTZ',
        'updated': 'TIMESTAMPTZ',
        'contact_id': 'INTEGER',
        'site_id': 'INTEGER',
        'contract_revenue_id': 'INTEGER',
        'history_show': 'BOOLEAN',
        'publish_status': 'BOOLEAN',
    },
    'invoice_data': {
        'id': 'INTEGER',
        'due_date': 'DATE',
        'issued_date': 'DATE',
        'total': 'NUMERIC',
        'net': 'NUMERIC',
        'sum_total': 'NUMERIC',
        'added': 'TIMESTAMPTZ',
        'updated': 'TIMESTAMPTZ',
        'contact_id': 'INTEGER',
        'invoice_id': 'INTEGER',
        'residential_id': 'INTEGER',
        'site_id': 'INTEGER',
    },
}

COLUMN_NAME_PATTERN = re.compile(r'^[a-z_][a-z0-9_]*$')
CSV_ENCODING = 'utf-8-sig'


class CsvImportError(Exception):
    """Bad CSV header or a row-count mismatch after COPY."""


# ==================== CSV FILES ====================

def read_header(path: Union[str, Path]) -> List[str]:
    """Header columns of a CSV file; must include id, no duplicates, lowercase identifiers."""
    with open(path, encoding=CSV_ENCODING, newline='') as fh:
        header = next(csv.reader(fh), None)

    if not header:
        raise CsvImportError(f"{path}: empty file")

    columns = [c.strip() for c in header]
    bad = [c for c in columns if not COLUMN_NAME_PATTERN.match(c)]
    if bad:
        raise CsvImportError(f"{path}: invalid column names {bad}")
    duplicates = sorted({c for c in columns if columns.count(c) > 1})
    if duplicates:
        raise CsvImportError(f"{path}: duplicate columns {duplicates}")
    if 'id' not in columns:
        raise CsvImportError(f"{path}: missing id column")
    return columns


def count_data_rows(path: Union[str, Path]) -> int:
    """
    CSV records after the header (quoted newlines stay inside one record).

    COPY reads a blank line as a record of its own, so blank lines are
    rejected here instead of failing the load or the row-count check.
    """
    with open(path, encoding=CSV_ENCODING, newline='') as fh:
        reader = csv.reader(fh)
        next(reader, None)
        count = 0
        for row in reader:
            if not row:
                raise CsvImportError(f"{path}: blank line at line {reader.line_num}")
            count += 1
        return count


def column_definitions(table: str, columns: List[str]) -> str:
    types = TABLE_TYPES.get(table, {})
    defs = []
    for col in columns:
        col_type = types.get(col, 'TEXT')
        if col == 'id':
            col_type += ' PRIMARY KEY'
        defs.append(f'"{col}" {col_type}')
    return ', '.join(defs)


@dataclass
class TablePlan:
    table: str
    path: Path
    columns: List[str]
    expected_rows: int


# ==================== IMPORTER ====================

class CsvImporter:
    """
    Usage:
        importer = CsvImporter(create_single_connection_engine('silverman'), csv_dir)
        totals = importer.run()
    """

    def __init__(self, engine: Engine, csv_dir: Union[str, Path], schema: str = SCHEMA,
                 tables: Optional[List[str]] = None):
        self.engine = engine
        self.csv_dir = Path(csv_dir)
        self.schema = schema
        self.tables = tables or list(IMPORT_ORDER)

    def _qualified(self, table: str) -> str:
        return f'"{self.schema}"."{table}"'

    def _execute(self, sql: str, params: Dict = None):
        with self.engine.begin() as conn:
            return conn.execute(text(sql), params or {})

    # ---- steps ----

    def plan(self) -> List[TablePlan]:
        plans = []
        for table in self.tables:
            path = self.csv_dir / f"{table}.csv"
            if not path.exists():
                logger.warning(f"⚠️ File not found: {path.name}, skipping {table}")
                continue
            plans.append(TablePlan(table, path, read_header(path), count_data_rows(path)))
        return plans

    def ensure_schema(self) -> None:
        self._execute(f'CREATE SCHEMA IF NOT EXISTS "{self.schema}"')

    def live_columns(self, table: str) -> List[str]:
        result = self._execute("""
            SELECT column_name FROM information_schema.columns
            WHERE table_schema = :schema AND table_name = :table
            ORDER BY ordinal_position
        """, {'schema': self.schema, 'table': table})
        return [row[0] for row in result]

    def warn_schema_drift(self, plan: TablePlan) -> List[str]:
        """Live columns that the recreated table will not have."""
        dropped = [c for c in self.live_columns(plan.table) if c not in plan.columns]
        if dropped:
            logger.warning(
                f"⚠️ {self.schema}.{plan.table}: recreating drops columns not in {plan.path.name}: "
                f"{', '.join(dropped)}"
            )
        return dropped

    def drop_table(self, table: str) -> None:
        self._execute(f"DROP TABLE IF EXISTS {self._qualified(table)} CASCADE")

    def create_table(self, plan: TablePlan) -> None:
        logger.info(f"  📦 Recreating {self.schema}.{plan.table}...")
        self._execute(f"CREATE TABLE {self._qualified(plan.table)} ({column_definitions(plan.table, plan.columns)})")

    def copy_table(self, plan: TablePlan) -> int:
        logger.info(f"  📥 Importing {plan.table}...")
        columns = ', '.join(f'"{c}"' for c in plan.columns)
        copy_sql = (
            f"COPY {self._qualified(plan.table)} ({columns}) "
            f"FROM STDIN WITH (FORMAT csv, HEADER true, NULL '')"
        )

        raw = self.engine.raw_connection()
        try:
            with raw.cursor() as cursor, open(plan.path, encoding=CSV_ENCODING, newline='') as fh:
                cursor.copy_expert(copy_sql, fh)
            raw.commit()
        except Exception:
            raw.rollback()
            raise
        finally:
            raw.close()

        row_count = self._execute(f"SELECT COUNT(*) FROM {self._qualified(plan.table)}").scalar()
        if row_count != plan.expected_rows:
            raise CsvImportError(
                f"{plan.table}: {row_count:,} rows in table, {plan.expected_rows:,} records in {plan.path.name}"
            )
        logger.info(f"  ✅ Imported {plan.table}: {row_count:,} rows")
        return row_count

    def reset_sequence(self, table: str) -> int:
        seq = f"{self.schema}.{table}_id_seq"
        with self.engine.begin() as conn:
            conn.execute(text(f'CREATE SEQUENCE IF NOT EXISTS "{self.schema}"."{table}_id_seq"'))
            conn.execute(text(
                f"ALTER TABLE {self._qualified(table)} ALTER COLUMN id SET DEFAULT nextval('{seq}')"
            ))
            value = conn.execute(text(
                f"SELECT setval('{seq}', COALESCE((SELECT MAX(id) FROM {self._qualified(table)}), 1))"
            )).scalar()
        logger.info(f"  ✅ Reset sequence for {table} to {value}")
        return int(value)

    # ---- run ----

    def run(self) -> Dict[str, int]:
        """Import every table with a CSV file; returns {table: rows}."""
        plans = self.plan()
        if not plans:
            logger.warning(f"⚠️ No CSV files found in {self.csv_dir}")
            return {}

        self.ensure_schema()

        logger.info("📋 Step 1: Dropping and recreating tables...")
        for plan in plans:
            self.warn_schema_drift(plan)
        for plan in reversed(plans):
            self.drop_table(plan.table)
        for plan in plans:
            self.create_table(plan)

        logger.info("📋 Step 2: Importing CSV data...")
        totals = {plan.table: self.copy_table(plan) for plan in plans}

        logger.info("📋 Step 3: Resetting sequences...")
        for plan in plans:
            self.reset_sequence(plan.table)

        logger.info(f"✅ Import completed! Total: {sum(totals.values()):,} rows")
        return totals


def _import() -> int:
    csv_dir = config.get_app_setting('CSV_DIR')
    engine = create_single_connection_engine(DB_ALIAS)
    try:
        CsvImporter(engine, csv_dir).run()
    finally:
        engine.dispose()
    return 0


def main() -> int:
    return run_script('CSV Import for Silverman Schema (DROP and RECREATE)', _import)


if __name__ == '__main__':
    sys.exit(main())
