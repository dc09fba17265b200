# bi_portal/api/dependencies.py
"""
Report providers for route handlers.

Tests swap these through app.dependency_overrides.
"""

from typing import Optional

from fastapi import Query

from ..common_fee import CommonFeeReport, InvoiceFilters
from ..data_tools import ImportMetadata
from ..quality import QualityReport, QualityFilters
from ..sales_2025 import Sales2025Report, Sales2025V2Report, SalesFilters


def get_common_fee_report() -> CommonFeeReport:
    return CommonFeeReport()


def get_sales_report() -> Sales2025Report:
    return Sales2025Report()


def get_sales_v2_report() -> Sales2025V2Report:
    return Sales2025V2Report()


def get_quality_report() -> QualityReport:
    return QualityReport()


def get_import_metadata() -> ImportMetadata:
    return ImportMetadata()


# ==================== QUERY FILTERS ====================

def invoice_filters(
    site_id: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    period: Optional[str] = Query(None, description="YYYY-MM"),
    status: Optional[str] = Query(None),
    pay_group: Optional[str] = Query(None),
    project_type: Optional[str] = Query(None, description="condo | lowrise"),
    expense_type: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
) -> InvoiceFilters:
    return InvoiceFilters(
        site_id=site_id, year=year, period=period, status=status,
        pay_group=pay_group, project_type=project_type, expense_type=expense_type,
        search=search or None,
    )


def sales_filters(
    bud: Optional[str] = Query(None),
    quarter: Optional[str] = Query(None, description="Q1 | Q2 | Q3 | Q4"),
    project: Optional[str] = Query(None),
    vp: Optional[str] = Query(None),
    mgr: Optional[str] = Query(None),
) -> SalesFilters:
    return SalesFilters(bud=bud, quarter=quarter, project=project, vp=vp, mgr=mgr)


def quality_filters(
    project_id: Optional[str] = Query(None),
    project_type: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None, description="YYYY-MM"),
    date_to: Optional[str] = Query(None, description="YYYY-MM"),
) -> QualityFilters:
    return QualityFilters(
        project_id=project_id, project_type=project_type, date_from=date_from, date_to=date_to,
    )
