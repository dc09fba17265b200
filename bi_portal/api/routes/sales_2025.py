# bi_portal/api/routes/sales_2025.py
"""
Sales 2025 endpoints.

/api/sales-2025     quarterly figures from "Performance2025"
/api/sales-2025-v2  monthly figures from sales_mkt

Both expose the same /filters, /employees, /vp/{name} and /employee/{name}
shapes; only the data source and period grain differ.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from ...sales_2025 import Sales2025Report, Sales2025V2Report, SalesFilters
from ...sales_2025.constants import DEPT_SALE, ROLE_VP
from ..dependencies import get_sales_report, get_sales_v2_report, sales_filters

router = APIRouter(prefix="/api/sales-2025", tags=["Sales 2025"])
router_v2 = APIRouter(prefix="/api/sales-2025-v2", tags=["Sales 2025 v2"])


def _found(result, message: str):
    if result is None:
        raise HTTPException(status_code=404, detail=message)
    return result


# ==================== V1 (QUARTERLY) ====================

@router.get("/filters")
def get_filters(report: Sales2025Report = Depends(get_sales_report)):
    return report.filters()


@router.get("/performance")
def get_performance(f: SalesFilters = Depends(sales_filters),
                    report: Sales2025Report = Depends(get_sales_report)):
    return report.performance(f)


@router.get("/summary")
def get_summary(f: SalesFilters = Depends(sales_filters),
                report: Sales2025Report = Depends(get_sales_report)):
    return report.summary(f)


@router.get("/marketing-summary")
def get_marketing_summary(f: SalesFilters = Depends(sales_filters),
                          report: Sales2025Report = Depends(get_sales_report)):
    return report.marketing_summary(f)


@router.get("/marketing-projects")
def get_marketing_projects(f: SalesFilters = Depends(sales_filters),
                           report: Sales2025Report = Depends(get_sales_report)):
    return report.marketing_projects(f)


@router.get("/team/{project_code}")
def get_team(project_code: str, report: Sales2025Report = Depends(get_sales_report)):
    return report.team(project_code)


@router.get("/employees")
def get_employees(
    all: bool = Query(False, description="Include every role, not only VP/MGR"),
    department: str = Query(DEPT_SALE),
    roleType: str = Query(ROLE_VP),
    report: Sales2025Report = Depends(get_sales_report),
):
    return report.employees(all_roles=all, department=department, role_type=roleType)


@router.get("/employee/{name}")
def get_employee(name: str, report: Sales2025Report = Depends(get_sales_report)):
    return _found(report.employee_detail(name), "Employee not found")


@router.get("/vp/{name}")
def get_vp(name: str, report: Sales2025Report = Depends(get_sales_report)):
    return _found(report.vp_detail(name), "VP not found")


# ==================== V2 (MONTHLY) ====================

@router_v2.get("/filters")
def get_filters_v2(report: Sales2025V2Report = Depends(get_sales_v2_report)):
    return report.filters()


@router_v2.get("/summary")
def get_summary_v2(f: SalesFilters = Depends(sales_filters),
                   report: Sales2025V2Report = Depends(get_sales_v2_report)):
    """Twelve monthly rows, zero-filled."""
    return report.summary(f)


@router_v2.get("/performance")
def get_performance_v2(f: SalesFilters = Depends(sales_filters),
                       report: Sales2025V2Report = Depends(get_sales_v2_report)):
    return report.performance(f)


@router_v2.get("/marketing")
def get_marketing_v2(f: SalesFilters = Depends(sales_filters),
                     report: Sales2025V2Report = Depends(get_sales_v2_report)):
    return report.marketing(f)


@router_v2.get("/projects")
def get_projects_v2(f: SalesFilters = Depends(sales_filters),
                    report: Sales2025V2Report = Depends(get_sales_v2_report)):
    return report.projects(f)


@router_v2.get("/project/{project_code}")
def get_project_v2(project_code: str, report: Sales2025V2Report = Depends(get_sales_v2_report)):
    return _found(report.project_detail(project_code), "Project not found")


@router_v2.get("/employees")
def get_employees_v2(
    all: bool = Query(False),
    report: Sales2025V2Report = Depends(get_sales_v2_report),
):
    return report.employees(all_roles=all)


@router_v2.get("/vp/{name}")
def get_vp_v2(name: str, report: Sales2025V2Report = Depends(get_sales_v2_report)):
    return _found(report.vp_detail(name), "VP not found")


@router_v2.get("/employee/{name}")
def get_employee_v2(name: str, report: Sales2025V2Report = Depends(get_sales_v2_report)):
    return _found(report.employee_detail(name), "Employee not found")
