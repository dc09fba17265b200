# bi_portal/api/routes/data_tools.py
"""
Import wizard metadata (/api/import). Uploads and inserts happen in the
Streamlit Excel Import page; the API only lists targets.
"""

from fastapi import APIRouter, Depends, Query

from ...data_tools import ImportMetadata
from ..dependencies import get_import_metadata

router = APIRouter(prefix="/api/import", tags=["Import"])


@router.get("/databases")
def get_databases(meta: ImportMetadata = Depends(get_import_metadata)):
    return meta.list_databases()


@router.get("/tables")
def get_tables(database: str = Query(...), meta: ImportMetadata = Depends(get_import_metadata)):
    return meta.list_tables(database)


@router.get("/columns")
def get_columns(database: str = Query(...), table: str = Query(...),
                meta: ImportMetadata = Depends(get_import_metadata)):
    return meta.list_columns(database, table)
