# bi_portal/maintenance/check_sales_data.py
"""
Sanity check of the RPT2025 sales data

- sales_mkt column count and the LivNex / RentNex columns present
- months covered by "Project_User_Mapping"
- who is responsible for one sample project, month by month

CHECK_PROJECT_CODE selects the sample project (default BPEF).
"""

import logging
import os
import sys
from typing import Dict, List

from sqlalchemy import text

from ..helpers import sort_months
from ..sales_2025 import SalesQueries
from ..sales_2025.constants import PROGRAM_PREFIXES, SALES_MKT_TABLE
from ..sales_2025.rollup import group_team
from . import run_script

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_CODE = 'BPEF'


def sales_mkt_columns(queries: SalesQueries) -> List[Dict]:
    with queries.engine.connect() as conn:
        rows = conn.execute(text("""
            SELECT column_name, data_type FROM information_schema.columns
            WHERE table_name = :table
            ORDER BY ordinal_position
        """), {'table': SALES_MKT_TABLE})
        return [{'name': r[0], 'type': r[1]} for r in rows]


def program_columns(columns: List[Dict]) -> List[str]:
    return [c['name'] for c in columns if any(p in c['name'] for p in PROGRAM_PREFIXES)]


def format_team(team: List[Dict]) -> List[str]:
    return [
        f"{m['department']}/{m['roleType']} {m['name']} ({m['position']}): {', '.join(m['months'])}"
        for m in team
    ]


def _check() -> int:
    queries = SalesQueries()

    columns = sales_mkt_columns(queries)
    programs = program_columns(columns)
    logger.info(f"📋 {SALES_MKT_TABLE}: {len(columns)} columns, {len(programs)} LivNex/RentNex")
    if not programs:
        logger.warning("⚠️ No LivNex/RentNex columns; run bi_portal.maintenance.add_livnex_columns")

    mapping = queries.get_mapping()
    months = sort_months(mapping['month'].dropna()) if not mapping.empty else []
    logger.info(f"📅 Months in mapping: {', '.join(months) or '-'}")

    project_code = os.getenv('CHECK_PROJECT_CODE', DEFAULT_PROJECT_CODE)
    team = group_team(queries.get_mapping(project_codes=[project_code]), marketing_role=False)
    logger.info(f"📊 Project {project_code}: {len(team)} responsible people")
    for line in format_team(team):
        logger.info(f"  - {line}")
    return 0


def main() -> int:
    return run_script('Check RPT2025 sales data', _check)


if __name__ == '__main__':
    sys.exit(main())
