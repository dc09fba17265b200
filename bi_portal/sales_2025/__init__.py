# bi_portal/sales_2025/__init__.py
"""
Sales / Marketing 2025 Reports

VP / MGR roll-ups over "Performance2025" (quarterly) and sales_mkt
(monthly) driven by "Project_User_Mapping" responsibility months.
"""

from .queries import SalesQueries, SalesFilters
from .report import Sales2025Report, Sales2025V2Report
from .charts import SalesCharts
from .sales_mkt import melt_sales_mkt, monthly_column
from .rollup import (
    GRAIN_QUARTER,
    GRAIN_MONTH,
    PersonRollup,
    rollup_person,
    summarize_employees,
    responsibility_pairs,
    compute_kpis,
)

__all__ = [
    'SalesQueries',
    'SalesFilters',
    'Sales2025Report',
    'Sales2025V2Report',
    'SalesCharts',
    'melt_sales_mkt',
    'monthly_column',
    'GRAIN_QUARTER',
    'GRAIN_MONTH',
    'PersonRollup',
    'rollup_person',
    'summarize_employees',
    'responsibility_pairs',
    'compute_kpis',
]

__version__ = '1.0.0'
