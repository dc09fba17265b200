# bi_portal/api/routes/quality.py
"""
Quality (repair job) endpoints (/api/quality).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...quality import QualityReport, QualityFilters
from ..dependencies import get_quality_report, quality_filters

router = APIRouter(prefix="/api/quality", tags=["Quality"])


@router.get("/overview")
def get_overview(f: QualityFilters = Depends(quality_filters),
                 report: QualityReport = Depends(get_quality_report)):
    """KPIs, open-job aging, category groups, project defects and distributions."""
    return report.overview(f)


@router.get("/projects")
def get_projects(report: QualityReport = Depends(get_quality_report)):
    return report.projects()


@router.get("/category-trend")
def get_category_trend(
    category: Optional[str] = Query(None, description="Category group or raw repair_category"),
    project_id: Optional[str] = Query(None),
    project_type: Optional[str] = Query(None),
    report: QualityReport = Depends(get_quality_report),
):
    return report.category_trend(category, project_id, project_type)
