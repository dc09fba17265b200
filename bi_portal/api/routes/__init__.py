# bi_portal/api/routes/__init__.py

from . import common_fee, data_tools, quality, sales_2025

ROUTERS = [
    common_fee.router,
    sales_2025.router,
    sales_2025.router_v2,
    quality.router,
    data_tools.router,
]

__all__ = ['ROUTERS']
