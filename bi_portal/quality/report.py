# bi_portal/quality/report.py
"""
Quality report assembly (overview, project list, category trend).
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from ..helpers import to_records
from .constants import CATEGORY_GROUP_MAP
from .metrics import QualityMetrics
from .queries import QualityQueries, QualityFilters

logger = logging.getLogger(__name__)


class QualityReport:
    """
    Usage:
        report = QualityReport()
        overview = report.overview(QualityFilters(date_from='2025-01', date_to='2025-06'))
    """

    def __init__(self, queries: QualityQueries = None):
        self.queries = queries or QualityQueries()

    def overview(self, f: QualityFilters, as_of: datetime = None) -> Dict:
        q = self.queries
        m = QualityMetrics
        as_of = as_of or datetime.now()

        project_categories, all_categories = m.build_project_category_pivot(q.get_project_categories(f))

        return {
            'kpis': m.build_kpis(q.get_kpis(f, as_of)),
            'trend': m.build_trend(q.get_monthly_trend(f)),
            'openJobsByCategory': m.build_category_groups(q.get_category_counts(f)),
            'projectDefects': m.build_project_defects(q.get_project_defects(f, as_of)),
            'projectDefectsByCategory': project_categories,
            'allCategories': all_categories,
            'statusDistribution': m.build_status_distribution(q.get_status_distribution(f)),
            'warrantyDistribution': m.build_warranty_distribution(q.get_distribution(f, 'warranty_status')),
            'requestChannelDistribution': m.build_channel_distribution(q.get_distribution(f, 'request_channel')),
            'syncInfo': m.build_sync_info(q.get_sync_info(f)),
            'nullDateOpenJobs': q.count_null_date_open_jobs(f),
        }

    def projects(self) -> List[Dict]:
        return to_records(self.queries.get_projects())

    def category_trend(self, category: Optional[str] = None, project_id: Optional[str] = None,
                       project_type: Optional[str] = None) -> List[Dict]:
        """Monthly trend for a category group (or a raw category not in any group)."""
        raw_categories = CATEGORY_GROUP_MAP.get(category, [category]) if category else None
        df = self.queries.get_category_trend(
            raw_categories, QualityFilters(project_id=project_id, project_type=project_type),
        )
        return QualityMetrics.build_trend(df, with_open=True)
