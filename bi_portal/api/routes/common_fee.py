# bi_portal/api/routes/common_fee.py
"""
Common fee endpoints (/api/common-fee). GET only.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...common_fee import CommonFeeReport, InvoiceFilters, DEFAULT_PAGE_SIZE
from ..dependencies import get_common_fee_report, invoice_filters

router = APIRouter(prefix="/api/common-fee", tags=["Common Fee"])


@router.get("/filters")
def get_filters(report: CommonFeeReport = Depends(get_common_fee_report)):
    """Sites, projects, statuses and the last 24 billing periods."""
    return report.filters()


@router.get("/overview")
def get_overview(
    f: InvoiceFilters = Depends(invoice_filters),
    report: CommonFeeReport = Depends(get_common_fee_report),
):
    return report.overview(f)


@router.get("/collection")
def get_collection(
    f: InvoiceFilters = Depends(invoice_filters),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    offset: int = Query(0),
    sort_by: Optional[str] = Query(None),
    sort_order: Optional[str] = Query(None),
    report: CommonFeeReport = Depends(get_common_fee_report),
):
    return report.collection(f, limit=limit, offset=offset, sort_by=sort_by, sort_order=sort_order)


@router.get("/invoice/{invoice_id}/items")
def get_invoice_items(invoice_id: int, report: CommonFeeReport = Depends(get_common_fee_report)):
    return report.invoice_items(invoice_id)


@router.get("/expense-summary")
def get_expense_summary(
    f: InvoiceFilters = Depends(invoice_filters),
    report: CommonFeeReport = Depends(get_common_fee_report),
):
    return report.expense_summary(f)


@router.get("/aging")
def get_aging(
    f: InvoiceFilters = Depends(invoice_filters),
    bucket: Optional[str] = Query(None, description="0-30 | 31-60 | 61-90 | 91-180 | 181-360 | 360+"),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    offset: int = Query(0),
    sort_by: Optional[str] = Query(None),
    sort_order: Optional[str] = Query(None),
    report: CommonFeeReport = Depends(get_common_fee_report),
):
    """Bucket summary and one page of aged invoices. Unknown buckets return 400."""
    return report.aging(f, bucket=bucket, limit=limit, offset=offset,
                        sort_by=sort_by, sort_order=sort_order)


@router.get("/invoice-summary")
def get_invoice_summary(
    f: InvoiceFilters = Depends(invoice_filters),
    report: CommonFeeReport = Depends(get_common_fee_report),
):
    return report.invoice_summary(f)


@router.get("/collection-by-project")
def get_collection_by_project(
    f: InvoiceFilters = Depends(invoice_filters),
    report: CommonFeeReport = Depends(get_common_fee_report),
):
    return report.collection_by_project(f)
