# bi_portal/quality/__init__.py
"""
Quality (Repair Job) Reports

Open-job aging, category groups, project defects and request
channel / warranty distributions from trn_repair.
"""

from .queries import QualityQueries, QualityFilters, open_age_condition
from .metrics import QualityMetrics, category_group
from .report import QualityReport
from .charts import QualityCharts
from .constants import CATEGORY_GROUP_MAP, OPEN_JOB_AGING

__all__ = [
    'QualityQueries',
    'QualityFilters',
    'open_age_condition',
    'QualityMetrics',
    'category_group',
    'QualityReport',
    'QualityCharts',
    'CATEGORY_GROUP_MAP',
    'OPEN_JOB_AGING',
]

__version__ = '1.0.0'
