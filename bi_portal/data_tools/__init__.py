# bi_portal/data_tools/__init__.py
"""
Data Tools

Import wizard: target database metadata, upload parsing, validation
and row inserts.
"""

from .metadata import ImportMetadata, ImportDatabase, IMPORT_DATABASES, resolve_database
from .excel_import import (
    ExcelImporter,
    ExcelImportError,
    UploadedSheet,
    read_upload,
    validate_rows,
    COLUMN_TYPES,
)

__all__ = [
    'ImportMetadata',
    'ImportDatabase',
    'IMPORT_DATABASES',
    'resolve_database',
    'ExcelImporter',
    'ExcelImportError',
    'UploadedSheet',
    'read_upload',
    'validate_rows',
    'COLUMN_TYPES',
]

__version__ = '1.0.0'
