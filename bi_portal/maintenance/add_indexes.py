# bi_portal/maintenance/add_indexes.py
"""
Add indexes to silverman.invoice and silverman.project

Indexes already present (pg_indexes) are skipped; the rest are built with
CREATE INDEX CONCURRENTLY IF NOT EXISTS, which must run outside a
transaction block.
"""

import logging
import sys
import time
from dataclasses import dataclass
from typing import Dict, List, Set

from sqlalchemy import text
from sqlalchemy.engine import Engine

from ..db import get_db_engine
from . import run_script

logger = logging.getLogger(__name__)

SCHEMA = 'silverman'
DB_ALIAS = 'silverman'


@dataclass(frozen=True)
class IndexSpec:
    name: str
    table: str
    definition: str     # "(columns) [WHERE ...]"

    def sql(self, schema: str = SCHEMA) -> str:
        return f"CREATE INDEX CONCURRENTLY IF NOT EXISTS {self.name} ON {schema}.{self.table}{self.definition}"


INDEXES: List[IndexSpec] = [
    # invoice: single-column filters
    IndexSpec('idx_invoice_issued_date', 'invoice', '(issued_date)'),
    IndexSpec('idx_invoice_due_date', 'invoice', '(due_date)'),
    IndexSpec('idx_invoice_paid_date', 'invoice', '(paid_date)'),
    IndexSpec('idx_invoice_status', 'invoice', '(status)'),
    IndexSpec('idx_invoice_site_id', 'invoice', '(site_id)'),
    IndexSpec('idx_invoice_pay_group', 'invoice', '(pay_group)'),
    # invoice: composite
    IndexSpec('idx_invoice_site_status', 'invoice', '(site_id, status)'),
    IndexSpec('idx_invoice_site_issued', 'invoice', '(site_id, issued_date)'),
    IndexSpec('idx_invoice_status_due', 'invoice', '(status, due_date)'),
    IndexSpec('idx_invoice_overdue', 'invoice',
              "(due_date, total) WHERE status IN ('active', 'partial_payment')"),
    IndexSpec('idx_invoice_name', 'invoice', '(name)'),
    # project: project_type subqueries
    IndexSpec('idx_project_type_site', 'project', '(type_of_project, site_id)'),
    IndexSpec('idx_project_site_id', 'project', '(site_id)'),
    IndexSpec('idx_project_type', 'project', '(type_of_project)'),
]


def existing_indexes(engine: Engine, table: str, schema: str = SCHEMA) -> Set[str]:
    with engine.connect() as conn:
        rows = conn.execute(text("""
            SELECT indexname FROM pg_indexes
            WHERE schemaname = :schema AND tablename = :table
        """), {'schema': schema, 'table': table})
        return {row[0] for row in rows}


def build_indexes(engine: Engine, indexes: List[IndexSpec] = None, schema: str = SCHEMA) -> Dict[str, List[str]]:
    """Create missing indexes; returns {'created': [...], 'skipped': [...], 'failed': [...]}."""
    indexes = indexes or INDEXES
    result = {'created': [], 'skipped': [], 'failed': []}

    existing: Dict[str, Set[str]] = {}
    for table in sorted({idx.table for idx in indexes}):
        existing[table] = existing_indexes(engine, table, schema)
        logger.info(f"🔍 {schema}.{table}: {len(existing[table])} existing indexes")

    with engine.connect().execution_options(isolation_level='AUTOCOMMIT') as conn:
        for idx in indexes:
            if idx.name in existing[idx.table]:
                logger.info(f"⏭️  {idx.name} - already exists")
                result['skipped'].append(idx.name)
                continue

            logger.info(f"📦 Creating {idx.name}...")
            start = time.time()
            try:
                conn.execute(text(idx.sql(schema)))
            except Exception as e:
                logger.error(f"   ❌ {idx.name}: {e}")
                result['failed'].append(idx.name)
                continue
            logger.info(f"   ✅ Created in {time.time() - start:.2f}s")
            result['created'].append(idx.name)

    return result


def _add_indexes() -> int:
    result = build_indexes(get_db_engine(DB_ALIAS))
    logger.info(
        f"📊 Summary: {len(result['created'])} created, "
        f"{len(result['skipped'])} skipped, {len(result['failed'])} failed"
    )
    return 1 if result['failed'] else 0


def main() -> int:
    return run_script('Add silverman invoice / project indexes', _add_indexes)


if __name__ == '__main__':
    sys.exit(main())
