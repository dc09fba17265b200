import io
from contextlib import contextmanager

import pandas as pd
import pytest

from bi_portal.data_tools import (
    ExcelImporter,
    ExcelImportError,
    ImportMetadata,
    read_upload,
    resolve_database,
    validate_rows,
)
from bi_portal.data_tools.excel_import import check_table_name, quote_ident


# ==================== FAKES ====================

class FakeConnection:
    def __init__(self, engine):
        self.engine = engine

    def execute(self, statement, params=None):
        if params and params.get('p0') == 'BOOM':
            raise RuntimeError('duplicate key value\nDETAIL: ...')
        self.engine.executed.append((str(statement), params))


class FakeEngine:
    def __init__(self):
        self.executed = []

    @contextmanager
    def begin(self):
        yield FakeConnection(self)


class StubMetadata(ImportMetadata):
    def __init__(self, tables):
        super().__init__(engine_factory=lambda alias: None)
        self.tables = tables

    def column_types(self, database_id, table):
        return dict(self.tables.get(table, {}))

    def table_exists(self, database_id, table):
        return table in self.tables


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def importer(engine):
    metadata = StubMetadata({'units': {'unit_code': 'character varying', 'area': 'numeric', 'floor': 'integer'}})
    return ExcelImporter(engine_factory=lambda alias: engine, metadata=metadata)


# ==================== UPLOAD ====================

def test_read_csv_upload():
    content = b"Unit , Area,Floor\nA-1,35.5,3\n,,\nA-2,40,4\n"
    upload = read_upload('units.csv', content)
    assert upload.sheets == ['Sheet1']
    assert upload.columns == ['Unit', 'Area', 'Floor']
    assert upload.total_rows == 2
    assert upload.preview[0] == {'Unit': 'A-1', 'Area': 35.5, 'Floor': 3}


def test_read_xlsx_upload_picks_sheet():
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        pd.DataFrame({'a': [1]}).to_excel(writer, sheet_name='First', index=False)
        pd.DataFrame({'b': [2, 3]}).to_excel(writer, sheet_name='Second', index=False)
    content = buffer.getvalue()

    upload = read_upload('book.xlsx', content)
    assert upload.sheets == ['First', 'Second']
    assert upload.sheet == 'First'

    second = read_upload('book.xlsx', content, sheet='Second')
    assert second.columns == ['b']
    assert second.total_rows == 2

    with pytest.raises(ExcelImportError):
        read_upload('book.xlsx', content, sheet='Missing')


def test_rejects_other_extensions():
    with pytest.raises(ExcelImportError, match='Only Excel files'):
        read_upload('notes.txt', b'hello')


# ==================== VALIDATION ====================

def test_validate_rows_reports_spreadsheet_rows():
    df = pd.DataFrame({'Unit': ['A-1', 'A-2', 'A-3'], 'Area': [35.5, 'big', None], 'Floor': [3, 4.5, 2]})
    result = validate_rows(df, {'Unit': 'unit_code', 'Area': 'area', 'Floor': 'floor'},
                           {'unit_code': 'character varying', 'area': 'numeric', 'floor': 'integer'})
    assert result['valid'] is False
    assert result['checkedRows'] == 3
    assert [(e['row'], e['column']) for e in result['errors']] == [(3, 'Area'), (3, 'Floor')]
    assert result['errors'][0]['message'] == 'Expected numeric'


def test_validate_rows_unknown_target():
    with pytest.raises(ExcelImportError, match='Unknown target columns'):
        validate_rows(pd.DataFrame({'x': [1]}), {'x': 'nope'}, {'id': 'integer'})


def test_table_names_and_databases():
    assert check_table_name('units_2025') == 'units_2025'
    for bad in ['Units', '2units', 'units-x', '', 'a;drop']:
        with pytest.raises(ExcelImportError):
            check_table_name(bad)
    assert quote_ident('we"ird') == '"we""ird"'
    assert resolve_database('rpt2025').schema == 'public'
    with pytest.raises(ValueError):
        resolve_database('mysql')


# ==================== IMPORT ====================

def test_execute_inserts_row_by_row(importer, engine):
    df = pd.DataFrame({'Unit': ['A-1', 'BOOM', 'A-3'], 'Area': [35.5, 40, None]})
    result = importer.execute('rpt2025', 'units', df, {'Unit': 'unit_code', 'Area': 'area'})

    assert result['inserted'] == 2
    assert result['failed'] == 1
    assert result['success'] is False
    assert result['errors'] == [{'row': 3, 'message': 'duplicate key value'}]

    statement, params = engine.executed[0]
    assert statement.startswith('INSERT INTO "public"."units" ("unit_code", "area")')
    assert params == {'p0': 'A-1', 'p1': 35.5}
    assert engine.executed[1][1]['p1'] is None


def test_execute_requires_known_table_and_mapping(importer):
    df = pd.DataFrame({'Unit': ['A-1']})
    with pytest.raises(ExcelImportError, match='No column mapping'):
        importer.execute('rpt2025', 'units', df, {})
    with pytest.raises(ExcelImportError, match='Table not found'):
        importer.execute('rpt2025', 'ghost', df, {'Unit': 'unit_code'})
    with pytest.raises(ExcelImportError, match='Unknown target columns'):
        importer.execute('rpt2025', 'units', df, {'Unit': 'owner'})


def test_create_table(importer, engine):
    importer.create_table('silverman', 'meter_readings', {'unit_code': 'varchar', 'reading': 'numeric'})
    ddl = engine.executed[-1][0]
    assert ddl.startswith('CREATE TABLE "silverman"."meter_readings"')
    assert 'id SERIAL PRIMARY KEY' in ddl
    assert '"reading" NUMERIC' in ddl
    assert 'created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP' in ddl


def test_create_table_rejects_bad_input(importer):
    with pytest.raises(ExcelImportError, match='already exists'):
        importer.create_table('rpt2025', 'units', {'x': 'text'})
    with pytest.raises(ExcelImportError, match='Unsupported column type'):
        importer.create_table('rpt2025', 'fresh', {'x': 'money'})
    with pytest.raises(ExcelImportError, match='At least one column'):
        importer.create_table('rpt2025', 'fresh', {})
