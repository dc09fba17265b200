# bi_portal/__init__.py
"""
BI Portal

Reporting over the property-management PostgreSQL databases:
- common_fee:  invoice collection and aging (silverman schema)
- sales_2025:  sales / marketing performance and VP/MGR roll-ups
- quality:     repair job tracking
- data_tools:  Excel / CSV import wizard
- api:         FastAPI JSON endpoints
- maintenance: one-off database scripts
"""

__version__ = '1.0.0'
