# bi_portal/data_tools/excel_import.py
"""
Excel / CSV import wizard backend

Flow:
    1. read_upload()    - parse the file, list sheets, preview rows
    2. validate_rows()  - check mapped values against target column types
    3. ExcelImporter.execute() - insert rows one by one

CHANGELOG:
- v1.1.0: create_table() for importing into a new table
- v1.0.0: Upload, validate and insert into an existing table
"""

import io
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Engine

from ..db import get_db_engine
from .metadata import ImportMetadata, resolve_database

logger = logging.getLogger(__name__)


# ==================== CONSTANTS ====================

ALLOWED_EXTENSIONS = ('.xlsx', '.xls', '.csv')
MAX_UPLOAD_BYTES = 50 * 1024 * 1024
PREVIEW_ROWS = 10
VALIDATE_ROWS = 100
MAX_REPORTED_ERRORS = 20

TABLE_NAME_PATTERN = re.compile(r'^[a-z][a-z0-9_]*$')

# Types offered when creating a table
COLUMN_TYPES = {
    'text': 'TEXT',
    'varchar': 'VARCHAR(255)',
    'integer': 'INTEGER',
    'bigint': 'BIGINT',
    'numeric': 'NUMERIC',
    'boolean': 'BOOLEAN',
    'date': 'DATE',
    'timestamp': 'TIMESTAMP',
}

INTEGER_TYPES = ('integer', 'bigint', 'smallint')
NUMERIC_TYPES = ('numeric', 'real', 'double precision', 'decimal')


class ExcelImportError(ValueError):
    """Invalid upload, mapping or target table."""


# ==================== UPLOAD ====================

@dataclass
class UploadedSheet:
    sheets: List[str]
    sheet: str
    columns: List[str]
    preview: List[Dict]
    total_rows: int
    frame: pd.DataFrame = field(repr=False)

    def to_dict(self) -> Dict:
        return {
            'sheets': self.sheets,
            'sheet': self.sheet,
            'columns': self.columns,
            'preview': self.preview,
            'totalRows': self.total_rows,
        }


def _check_upload(filename: str, size: int) -> str:
    ext = Path(filename).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise ExcelImportError('Only Excel files (.xlsx, .xls) and CSV files are allowed')
    if size > MAX_UPLOAD_BYTES:
        raise ExcelImportError('File is larger than 50MB')
    return ext


def _json_safe(df: pd.DataFrame) -> List[Dict]:
    out = df.astype(object).where(pd.notna(df), None)
    for col in out.columns:
        out[col] = out[col].map(lambda v: v.isoformat() if hasattr(v, 'isoformat') else v)
    return out.to_dict('records')


def read_upload(filename: str, content: bytes, sheet: Optional[str] = None) -> UploadedSheet:
    """Parse an uploaded workbook or CSV. The first row is the header."""
    ext = _check_upload(filename, len(content))

    if ext == '.csv':
        sheets = ['Sheet1']
        df = pd.read_csv(io.BytesIO(content))
        sheet = sheets[0]
    else:
        workbook = pd.ExcelFile(io.BytesIO(content))
        sheets = list(workbook.sheet_names)
        if sheet is None:
            sheet = sheets[0]
        elif sheet not in sheets:
            raise ExcelImportError(f"Sheet not found: {sheet}")
        df = workbook.parse(sheet)

    df = df.dropna(how='all')
    df.columns = [str(c).strip() for c in df.columns]

    logger.info(f"📥 Read upload {filename} [{sheet}]: {len(df):,} rows, {len(df.columns)} columns")

    return UploadedSheet(
        sheets=sheets,
        sheet=sheet,
        columns=list(df.columns),
        preview=_json_safe(df.head(PREVIEW_ROWS)),
        total_rows=len(df),
        frame=df,
    )


# ==================== VALIDATION ====================

def _is_blank(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip() == ''
    return value is None or bool(pd.isna(value))


def _convert(value: Any, data_type: str) -> Any:
    """Convert a cell to the target column type; raises ValueError when it cannot."""
    if _is_blank(value):
        return None
    if data_type in INTEGER_TYPES:
        number = float(value)
        if not number.is_integer():
            raise ValueError(f"not an integer: {value}")
        return int(number)
    if data_type in NUMERIC_TYPES:
        return float(value)
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        return value.item()
    return value


def validate_rows(df: pd.DataFrame, mapping: Dict[str, str], column_types: Dict[str, str],
                  limit: int = VALIDATE_ROWS) -> Dict:
    """
    Check the first `limit` rows against the target column types.

    Args:
        mapping: {source_column: target_column}
        column_types: {target_column: information_schema data_type}

    Row numbers in errors are spreadsheet rows (header is row 1).
    """
    unknown = [target for target in mapping.values() if target not in column_types]
    if unknown:
        raise ExcelImportError(f"Unknown target columns: {', '.join(unknown)}")

    errors = []
    checked = df.head(limit)
    for i, row in enumerate(checked.to_dict('records')):
        for source, target in mapping.items():
            value = row.get(source)
            try:
                _convert(value, column_types[target])
            except (TypeError, ValueError):
                errors.append({
                    'row': i + 2,
                    'column': source,
                    'value': None if _is_blank(value) else str(value),
                    'message': f"Expected {column_types[target]}",
                })

    return {
        'valid': not errors,
        'checkedRows': len(checked),
        'errorCount': len(errors),
        'errors': errors[:MAX_REPORTED_ERRORS],
    }


# ==================== IMPORT ====================

def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def check_table_name(name: str) -> str:
    if not TABLE_NAME_PATTERN.match(name or ''):
        raise ExcelImportError(
            'Table name must start with a lowercase letter and contain only a-z, 0-9 and _'
        )
    return name


class ExcelImporter:
    """
    Usage:
        upload = read_upload('units.xlsx', content)
        importer = ExcelImporter()
        result = importer.execute('rpt2025', 'units', upload.frame, {'Unit': 'unit_code'})
    """

    def __init__(self, engine_factory: Callable[[str], Engine] = get_db_engine,
                 metadata: ImportMetadata = None):
        self._engine_factory = engine_factory
        self.metadata = metadata or ImportMetadata(engine_factory)

    def create_table(self, database_id: str, table: str, columns: Dict[str, str]) -> str:
        """
        Create a table with an id / created_at prefix.

        Args:
            columns: {column_name: key of COLUMN_TYPES}
        """
        db = resolve_database(database_id)
        check_table_name(table)
        if not columns:
            raise ExcelImportError('At least one column is required')

        column_sql = []
        for name, type_key in columns.items():
            check_table_name(name)
            if type_key not in COLUMN_TYPES:
                raise ExcelImportError(f"Unsupported column type: {type_key}")
            column_sql.append(f"{quote_ident(name)} {COLUMN_TYPES[type_key]}")

        if self.metadata.table_exists(database_id, table):
            raise ExcelImportError(f"Table already exists: {table}")

        ddl = (
            f"CREATE TABLE {quote_ident(db.schema)}.{quote_ident(table)} (\n"
            f"    id SERIAL PRIMARY KEY,\n"
            + ''.join(f"    {c},\n" for c in column_sql)
            + "    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP\n)"
        )
        with self._engine_factory(db.alias).begin() as conn:
            conn.execute(text(ddl))

        logger.info(f"✅ Created table {db.schema}.{table} ({len(columns)} columns)")
        return table

    def execute(self, database_id: str, table: str, df: pd.DataFrame, mapping: Dict[str, str]) -> Dict:
        """
        Insert mapped rows. Each row runs in its own transaction, so a bad row
        is reported without rolling back the others.
        """
        db = resolve_database(database_id)
        if not mapping:
            raise ExcelImportError('No column mapping provided')

        column_types = self.metadata.column_types(database_id, table)
        if not column_types:
            raise ExcelImportError(f"Table not found: {table}")
        unknown = [t for t in mapping.values() if t not in column_types]
        if unknown:
            raise ExcelImportError(f"Unknown target columns: {', '.join(unknown)}")

        targets = list(mapping.values())
        binds = [f"p{i}" for i in range(len(targets))]
        insert = text(
            f"INSERT INTO {quote_ident(db.schema)}.{quote_ident(table)} "
            f"({', '.join(quote_ident(t) for t in targets)}) "
            f"VALUES ({', '.join(':' + b for b in binds)})"
        )

        engine = self._engine_factory(db.alias)
        inserted, errors = 0, []
        rows = df.to_dict('records')

        for i, row in enumerate(rows):
            try:
                params = {
                    bind: _convert(row.get(source), column_types[target])
                    for bind, (source, target) in zip(binds, mapping.items())
                }
                with engine.begin() as conn:
                    conn.execute(insert, params)
                inserted += 1
            except Exception as e:
                errors.append({'row': i + 2, 'message': str(e).splitlines()[0]})

        failed = len(rows) - inserted
        if failed:
            logger.warning(f"⚠️ Import into {db.schema}.{table}: {failed:,} of {len(rows):,} rows failed")
        logger.info(f"✅ Imported {inserted:,} rows into {db.schema}.{table}")

        return {
            'success': failed == 0,
            'inserted': inserted,
            'failed': failed,
            'total': len(rows),
            'errors': errors[:MAX_REPORTED_ERRORS],
        }
