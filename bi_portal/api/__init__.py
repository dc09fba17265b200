# bi_portal/api/__init__.py
"""
FastAPI application (read-only JSON endpoints).
"""

from .main import create_app

__all__ = ['create_app']
