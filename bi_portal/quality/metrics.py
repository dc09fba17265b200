# bi_portal/quality/metrics.py
"""
Quality report view models built from trn_repair query results.
"""

import logging
from typing import Dict, List, Optional, Tuple

import pandas as pd

from ..helpers import safe_numeric, thai_month_label, to_records
from .constants import (
    CATEGORY_TO_GROUP, OTHER_GROUP, UNSPECIFIED, OPEN_JOB_AGING,
    GROUP_COLORS, DEFAULT_COLORS, FALLBACK_COLOR,
    WARRANTY_LABELS, WARRANTY_COLORS, CHANNEL_LABELS, CHANNEL_COLORS,
)

logger = logging.getLogger(__name__)


def category_group(raw_category: Optional[str]) -> str:
    """Raw repair_category -> display group; unknown or empty -> 'อื่นๆ'."""
    if not raw_category:
        return OTHER_GROUP
    return CATEGORY_TO_GROUP.get(raw_category, OTHER_GROUP)


def _int(value) -> int:
    return int(safe_numeric(value))


class QualityMetrics:

    @staticmethod
    def build_kpis(kpi_df: pd.DataFrame) -> Dict:
        row = kpi_df.iloc[0].to_dict() if kpi_df is not None and not kpi_df.empty else {}
        return {
            'totalJobs': _int(row.get('total_jobs')),
            'openJobs': _int(row.get('open_jobs')),
            'jobsOver14Days': _int(row.get('jobs_over_14_days')),
            'aging': {key: _int(row.get(key)) for key, _, _ in OPEN_JOB_AGING},
            'avgResolutionDays': safe_numeric(row.get('avg_resolution_days')),
            'completionRate': safe_numeric(row.get('completion_rate')),
        }

    @staticmethod
    def build_trend(trend_df: pd.DataFrame, with_open: bool = False) -> List[Dict]:
        """Monthly counts with Thai month labels ('มี.ค. 25')."""
        out = []
        for row in to_records(trend_df):
            point = {
                'month': thai_month_label(row['month'], short_year=True),
                'total': _int(row.get('total')),
                'completed': _int(row.get('completed')),
            }
            if with_open:
                point['openJobs'] = _int(row.get('open_jobs'))
            out.append(point)
        return out

    @staticmethod
    def build_category_groups(category_df: pd.DataFrame) -> List[Dict]:
        """Raw categories folded into groups; 'อื่นๆ' last, others by total desc."""
        totals: Dict[str, int] = {}
        open_jobs: Dict[str, int] = {}
        for row in to_records(category_df):
            group = category_group(row.get('category'))
            totals[group] = totals.get(group, 0) + _int(row.get('total_jobs'))
            open_jobs[group] = open_jobs.get(group, 0) + _int(row.get('open_jobs'))

        groups = []
        color_idx = 0
        for group, total in totals.items():
            color = GROUP_COLORS.get(group)
            if color is None:
                color = DEFAULT_COLORS[color_idx % len(DEFAULT_COLORS)]
                color_idx += 1
            groups.append({
                'category': group,
                'label': group,
                'totalJobs': total,
                'openJobs': open_jobs.get(group, 0),
                'color': color,
            })

        return sorted(groups, key=lambda g: (g['category'] == OTHER_GROUP, -g['totalJobs']))

    @staticmethod
    def build_project_defects(project_df: pd.DataFrame) -> List[Dict]:
        return [
            {
                'projectId': row.get('project_id') or '',
                'projectName': row.get('project_name') or row.get('project_id') or UNSPECIFIED,
                'totalDefects': _int(row.get('total_defects')),
                'openDefects': _int(row.get('open_defects')),
                'defectsOver14Days': _int(row.get('defects_over_14_days')),
                'avgResolutionDays': safe_numeric(row.get('avg_resolution_days')),
                'completionRate': safe_numeric(row.get('completion_rate')),
            }
            for row in to_records(project_df)
        ]

    @staticmethod
    def build_project_category_pivot(df: pd.DataFrame) -> Tuple[List[Dict], List[str]]:
        """
        Open jobs per project per raw category.

        Returns:
            (projects sorted by open total desc, distinct categories in first-seen order)
        """
        projects: Dict[str, Dict] = {}
        categories: List[str] = []
        for row in to_records(df):
            category = row.get('repair_category') or UNSPECIFIED
            if category not in categories:
                categories.append(category)
            entry = projects.setdefault(row.get('project_id'), {
                'projectId': row.get('project_id'),
                'projectName': row.get('project_name'),
                'categories': {},
                'total': 0,
            })
            count = _int(row.get('cnt'))
            entry['categories'][category] = entry['categories'].get(category, 0) + count
            entry['total'] += count

        return sorted(projects.values(), key=lambda p: -p['total']), categories

    @staticmethod
    def build_status_distribution(df: pd.DataFrame) -> List[Dict]:
        return [
            {
                'jobStatus': row.get('job_status') or '',
                'jobSubStatus': row.get('job_sub_status') or '',
                'count': _int(row.get('cnt')),
            }
            for row in to_records(df)
        ]

    @staticmethod
    def build_warranty_distribution(df: pd.DataFrame) -> List[Dict]:
        out = []
        for row in to_records(df):
            status = row.get('warranty_status')
            out.append({
                'warrantyStatus': status or '',
                'label': WARRANTY_LABELS.get(status) or status or UNSPECIFIED,
                'total': _int(row.get('total')),
                'openJobs': _int(row.get('open_jobs')),
                'color': WARRANTY_COLORS.get(status, FALLBACK_COLOR),
            })
        return out

    @staticmethod
    def build_channel_distribution(df: pd.DataFrame) -> List[Dict]:
        out = []
        for row in to_records(df):
            channel = row.get('request_channel')
            out.append({
                'channel': CHANNEL_LABELS.get(channel) or channel or UNSPECIFIED,
                'total': _int(row.get('total')),
                'openJobs': _int(row.get('open_jobs')),
                'color': CHANNEL_COLORS.get(channel, FALLBACK_COLOR),
            })
        return out

    @staticmethod
    def build_sync_info(sync_df: pd.DataFrame) -> Dict:
        rows = to_records(sync_df)
        row = rows[0] if rows else {}
        return {
            'lastDataDate': row.get('last_data_date'),
            'totalProjects': _int(row.get('total_projects')),
            'totalUnits': _int(row.get('total_units')),
        }
