# bi_portal/data_tools/metadata.py
"""
Import target metadata (databases, tables, columns)

Only the databases listed in IMPORT_DATABASES can be browsed or
written by the import wizard. Table and column lists come from
information_schema of the database's import schema.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Engine

from ..db import get_db_engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportDatabase:
    id: str
    name: str
    description: str
    alias: str      # bi_portal.db engine alias
    schema: str

    def to_dict(self) -> Dict:
        return {'id': self.id, 'name': self.name, 'description': self.description}


IMPORT_DATABASES: Dict[str, ImportDatabase] = {
    'silverman': ImportDatabase(
        id='silverman',
        name='Common Fee (Silverman)',
        description='ฐานข้อมูลค่าส่วนกลาง - postgres/silverman schema',
        alias='silverman',
        schema='silverman',
    ),
    'rpt2025': ImportDatabase(
        id='rpt2025',
        name='Sales 2025 (RPT2025)',
        description='ฐานข้อมูลการขาย - RPT2025/public schema',
        alias='sales',
        schema='public',
    ),
}


def resolve_database(database_id: str) -> ImportDatabase:
    try:
        return IMPORT_DATABASES[database_id]
    except KeyError:
        raise ValueError(f"Invalid database selection: {database_id}") from None


class ImportMetadata:
    """
    Usage:
        meta = ImportMetadata()
        tables = meta.list_tables('silverman')
        columns = meta.list_columns('silverman', 'invoice')
    """

    def __init__(self, engine_factory: Callable[[str], Engine] = get_db_engine):
        self._engine_factory = engine_factory

    def engine_for(self, database_id: str) -> Engine:
        return self._engine_factory(resolve_database(database_id).alias)

    def _read(self, database_id: str, query: str, params: Dict, query_name: str) -> pd.DataFrame:
        try:
            return pd.read_sql(text(query), self.engine_for(database_id), params=params)
        except Exception as e:
            logger.error(f"❌ Error executing {query_name}: {e}")
            raise

    def list_databases(self) -> List[Dict]:
        return [db.to_dict() for db in IMPORT_DATABASES.values()]

    def list_tables(self, database_id: str) -> List[Dict]:
        schema = resolve_database(database_id).schema
        df = self._read(database_id, """
            SELECT
                t.table_name,
                (SELECT COUNT(*) FROM information_schema.columns c
                 WHERE c.table_schema = :schema AND c.table_name = t.table_name) AS column_count
            FROM information_schema.tables t
            WHERE t.table_schema = :schema AND t.table_type = 'BASE TABLE'
            ORDER BY t.table_name
        """, {'schema': schema}, "list_tables")
        return [
            {'name': row['table_name'], 'columnCount': int(row['column_count'])}
            for row in df.to_dict('records')
        ]

    def list_columns(self, database_id: str, table: str) -> List[Dict]:
        schema = resolve_database(database_id).schema
        df = self._read(database_id, """
            SELECT column_name, data_type, is_nullable, column_default, character_maximum_length
            FROM information_schema.columns
            WHERE table_schema = :schema AND table_name = :table
            ORDER BY ordinal_position
        """, {'schema': schema, 'table': table}, "list_columns")

        columns = []
        for row in df.to_dict('records'):
            max_length = row['character_maximum_length']
            columns.append({
                'name': row['column_name'],
                'type': row['data_type'],
                'nullable': row['is_nullable'] == 'YES',
                'hasDefault': row['column_default'] is not None,
                'maxLength': None if pd.isna(max_length) else int(max_length),
            })
        return columns

    def column_types(self, database_id: str, table: str) -> Dict[str, str]:
        """{column_name: data_type} for a table; empty when the table does not exist."""
        return {c['name']: c['type'] for c in self.list_columns(database_id, table)}

    def table_exists(self, database_id: str, table: str) -> bool:
        schema = resolve_database(database_id).schema
        df = self._read(database_id, """
            SELECT 1 AS found FROM information_schema.tables
            WHERE table_schema = :schema AND table_name = :table
        """, {'schema': schema, 'table': table}, "table_exists")
        return not df.empty
