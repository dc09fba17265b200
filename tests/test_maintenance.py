import os

import pytest
from sqlalchemy import create_engine, text

from bi_portal.config import config
from bi_portal.maintenance import import_csv, run_script
from bi_portal.maintenance.add_indexes import INDEXES, IndexSpec
from bi_portal.maintenance.add_livnex_columns import program_columns as livnex_columns
from bi_portal.maintenance.check_sales_data import format_team, program_columns
from bi_portal.maintenance.import_csv import (
    CsvImporter,
    CsvImportError,
    column_definitions,
    count_data_rows,
    read_header,
)

TEST_DATABASE_URL = os.getenv('TEST_DATABASE_URL')


def write_csv(path, content):
    path.write_text(content, encoding='utf-8')
    return path


# ==================== CSV IMPORT ====================

def test_read_header_strips_and_validates(tmp_path):
    path = write_csv(tmp_path / 'site.csv', '﻿id, name ,code\n1,A,X\n')
    assert read_header(path) == ['id', 'name', 'code']


@pytest.mark.parametrize('content, message', [
    ('', 'empty file'),
    ('id,Bad Name\n', 'invalid column names'),
    ('id,name,name\n', 'duplicate columns'),
    ('name,code\n', 'missing id column'),
])
def test_read_header_errors(tmp_path, content, message):
    path = write_csv(tmp_path / 'site.csv', content)
    with pytest.raises(CsvImportError, match=message):
        read_header(path)


def test_count_data_rows_keeps_quoted_newlines_in_one_record(tmp_path):
    path = write_csv(tmp_path / 'contact.csv', 'id,note\n1,"line one\n\nline two"\n2,plain\n')
    assert count_data_rows(path) == 2


@pytest.mark.parametrize('content', [
    'id,note\n1,a\n\n2,b\n',
    'id,note\n1,a\n2,b\n\n',
])
def test_blank_lines_are_rejected(tmp_path, content):
    path = write_csv(tmp_path / 'contact.csv', content)
    with pytest.raises(CsvImportError, match='blank line'):
        count_data_rows(path)
    with pytest.raises(CsvImportError, match='blank line'):
        CsvImporter(engine=None, csv_dir=tmp_path).plan()


def test_column_definitions_use_known_types():
    sql = column_definitions('invoice', ['id', 'doc_number', 'total', 'due_date'])
    assert sql == '"id" INTEGER PRIMARY KEY, "doc_number" TEXT, "total" NUMERIC, "due_date" DATE'
    assert column_definitions('unknown', ['id']) == '"id" TEXT PRIMARY KEY'


def test_plan_skips_missing_files(tmp_path):
    write_csv(tmp_path / 'site.csv', 'id,name\n1,A\n2,B\n')
    write_csv(tmp_path / 'invoice.csv', 'id,site_id\n10,1\n')

    plans = CsvImporter(engine=None, csv_dir=tmp_path).plan()
    assert [p.table for p in plans] == ['site', 'invoice']
    assert plans[0].expected_rows == 2
    assert plans[1].columns == ['id', 'site_id']


def test_plan_stops_on_bad_header(tmp_path):
    write_csv(tmp_path / 'site.csv', 'name\nA\n')
    with pytest.raises(CsvImportError):
        CsvImporter(engine=None, csv_dir=tmp_path).plan()


def test_run_without_files_touches_nothing(tmp_path):
    assert CsvImporter(engine=None, csv_dir=tmp_path).run() == {}


class FakeResult:
    def __init__(self, rows=(), value=None):
        self.rows = list(rows)
        self.value = value

    def __iter__(self):
        return iter(self.rows)

    def scalar(self):
        return self.value


class FakeConnection:
    def __init__(self, engine):
        self.engine = engine

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, statement, params=None):
        sql = ' '.join(str(statement).split())
        self.engine.statements.append(sql)
        if sql.startswith('SELECT COUNT(*)'):
            table = sql.rsplit('.', 1)[-1].strip('"')
            return FakeResult(value=self.engine.row_counts.get(table, 0))
        if sql.startswith('SELECT setval'):
            return FakeResult(value=1)
        return FakeResult()


class FakeCursor:
    def __init__(self, engine):
        self.engine = engine

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def copy_expert(self, sql, fh):
        fh.read()
        self.engine.statements.append(sql)
        if self.engine.copy_error:
            raise self.engine.copy_error


class FakeRawConnection:
    def __init__(self, engine):
        self.engine = engine

    def cursor(self):
        return FakeCursor(self.engine)

    def commit(self):
        self.engine.raw_calls.append('commit')

    def rollback(self):
        self.engine.raw_calls.append('rollback')

    def close(self):
        self.engine.raw_calls.append('close')


class FakeEngine:
    """Records every statement; COUNT(*) answers come from row_counts."""

    def __init__(self, row_counts=None, copy_error=None):
        self.row_counts = row_counts or {}
        self.copy_error = copy_error
        self.statements = []
        self.raw_calls = []
        self.disposed = False

    def begin(self):
        return FakeConnection(self)

    connect = begin

    def raw_connection(self):
        return FakeRawConnection(self)

    def dispose(self):
        self.disposed = True


def statements_starting(engine, prefix):
    return [s for s in engine.statements if s.startswith(prefix)]


def write_import_files(csv_dir):
    write_csv(csv_dir / 'site.csv', 'id,name\n1,A\n2,B\n')
    write_csv(csv_dir / 'contact.csv', 'id,site_id\n5,1\n')
    write_csv(csv_dir / 'invoice.csv', 'id,site_id\n10,1\n')


def test_run_drops_in_reverse_and_loads_in_order(tmp_path):
    write_import_files(tmp_path)
    engine = FakeEngine({'site': 2, 'contact': 1, 'invoice': 1})

    assert CsvImporter(engine, tmp_path).run() == {'site': 2, 'contact': 1, 'invoice': 1}

    assert engine.statements[0] == 'CREATE SCHEMA IF NOT EXISTS "silverman"'
    assert statements_starting(engine, 'DROP TABLE') == [
        'DROP TABLE IF EXISTS "silverman"."invoice" CASCADE',
        'DROP TABLE IF EXISTS "silverman"."contact" CASCADE',
        'DROP TABLE IF EXISTS "silverman"."site" CASCADE',
    ]
    assert [s.split()[2] for s in statements_starting(engine, 'CREATE TABLE')] == [
        '"silverman"."site"', '"silverman"."contact"', '"silverman"."invoice"',
    ]
    assert [s.split()[1] for s in statements_starting(engine, 'COPY')] == [
        '"silverman"."site"', '"silverman"."contact"', '"silverman"."invoice"',
    ]
    assert len(statements_starting(engine, 'SELECT setval')) == 3

    position = {s: i for i, s in enumerate(engine.statements)}
    last_drop = max(position[s] for s in statements_starting(engine, 'DROP TABLE'))
    first_create = min(position[s] for s in statements_starting(engine, 'CREATE TABLE'))
    last_count = max(position[s] for s in statements_starting(engine, 'SELECT COUNT(*)'))
    first_setval = min(position[s] for s in statements_starting(engine, 'SELECT setval'))
    assert last_drop < first_create
    assert last_count < first_setval
    assert engine.raw_calls == ['commit', 'close'] * 3


def test_row_count_mismatch_stops_before_sequences(tmp_path):
    write_import_files(tmp_path)
    engine = FakeEngine({'site': 1, 'contact': 1, 'invoice': 1})

    with pytest.raises(CsvImportError, match='site: 1 rows in table, 2 records in site.csv'):
        CsvImporter(engine, tmp_path).run()

    assert len(statements_starting(engine, 'COPY')) == 1
    assert statements_starting(engine, 'SELECT setval') == []


def test_copy_failure_rolls_back(tmp_path):
    write_import_files(tmp_path)
    engine = FakeEngine(copy_error=RuntimeError('invalid input syntax'))

    with pytest.raises(RuntimeError, match='invalid input syntax'):
        CsvImporter(engine, tmp_path).run()

    assert engine.raw_calls == ['rollback', 'close']
    assert statements_starting(engine, 'SELECT COUNT(*)') == []


@pytest.mark.parametrize('row_counts, status', [
    ({'site': 2, 'contact': 1, 'invoice': 1}, 0),
    ({'site': 2, 'contact': 0, 'invoice': 1}, 1),
])
def test_main_exit_status_and_engine_disposed(tmp_path, monkeypatch, row_counts, status):
    write_import_files(tmp_path)
    engine = FakeEngine(row_counts)
    aliases = []

    def fake_engine(alias):
        aliases.append(alias)
        return engine

    monkeypatch.setattr(import_csv, 'create_single_connection_engine', fake_engine)
    monkeypatch.setitem(config._app_config, 'CSV_DIR', str(tmp_path))

    assert import_csv.main() == status
    assert aliases == ['silverman']
    assert engine.disposed


@pytest.mark.skipif(not TEST_DATABASE_URL, reason='TEST_DATABASE_URL not set')
def test_import_into_postgres(tmp_path):
    schema = 'bi_portal_import_test'
    write_csv(tmp_path / 'site.csv', 'id,name\n1,Alpha\n2,"Beta, Inc."\n3,\n')
    engine = create_engine(TEST_DATABASE_URL, pool_size=1, max_overflow=0)
    try:
        importer = CsvImporter(engine, tmp_path, schema=schema, tables=['site'])
        assert importer.run() == {'site': 3}
        # second run recreates rather than appends
        assert importer.run() == {'site': 3}

        with engine.begin() as conn:
            assert conn.execute(text(f'SELECT name FROM "{schema}".site WHERE id = 3')).scalar() is None
            nextval = conn.execute(text(f"SELECT nextval('{schema}.site_id_seq')")).scalar()
        assert nextval > 3
    finally:
        with engine.begin() as conn:
            conn.execute(text(f'DROP SCHEMA IF EXISTS "{schema}" CASCADE'))
        engine.dispose()


# ==================== OTHER SCRIPTS ====================

def test_index_sql():
    spec = IndexSpec('idx_invoice_status', 'invoice', '(status)')
    assert spec.sql() == 'CREATE INDEX CONCURRENTLY IF NOT EXISTS idx_invoice_status ON silverman.invoice(status)'
    assert len({i.name for i in INDEXES}) == len(INDEXES)


def test_livnex_program_columns():
    columns = livnex_columns()
    assert len(columns) == 104
    assert 'livnex_jan_unit' in columns
    assert 'target_rentnex_totalthb' in columns
    assert len(set(columns)) == len(columns)


def test_check_sales_data_helpers():
    columns = [{'name': 'projectcode', 'type': 'text'}, {'name': 'livnex_jan_unit', 'type': 'text'}]
    assert program_columns(columns) == ['livnex_jan_unit']
    team = [{'department': 'Sale', 'roleType': 'VP', 'name': 'Alice', 'position': 'VP Sale', 'months': ['Jan', 'Feb']}]
    assert format_team(team) == ['Sale/VP Alice (VP Sale): Jan, Feb']


def test_run_script_turns_exceptions_into_exit_status():
    def broken():
        raise RuntimeError('no database')

    assert run_script('broken', broken) == 1
    assert run_script('ok', lambda: 0) == 0
    assert run_script('warn', lambda: 2) == 2
