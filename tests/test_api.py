import pandas as pd
import pytest
from fastapi.testclient import TestClient

from bi_portal.api import main as api_main
from bi_portal.api.dependencies import (
    get_common_fee_report,
    get_import_metadata,
    get_quality_report,
    get_sales_v2_report,
)
from bi_portal.common_fee import CommonFeeReport
from bi_portal.data_tools import ImportMetadata
from bi_portal.quality import QualityReport
from bi_portal.sales_2025 import Sales2025V2Report


class StubAgingQueries:
    def get_aging_bucket_summary(self, f, as_of):
        return pd.DataFrame([{'bucket': '31-60', 'cnt': 1, 'amount': 120}]), 1

    def get_aging_page(self, f, as_of, bucket=None, limit=50, offset=0, sort_by=None, sort_order=None):
        return pd.DataFrame([{
            'id': 5, 'doc_number': 'INV-5', 'unit': 'B-2', 'owner': 'Anan', 'project': 'Village B',
            'site_id': 2, 'amount': 120, 'due_date': '2025-05-01', 'days_overdue': 40, 'bucket': '31-60',
        }]), 1


class StubCategoryTrend:
    def get_category_trend(self, raw_categories, f):
        raise RuntimeError('connection refused')


@pytest.fixture
def app(fake_sales_queries):
    app = api_main.app
    app.dependency_overrides[get_sales_v2_report] = lambda: Sales2025V2Report(fake_sales_queries)
    app.dependency_overrides[get_common_fee_report] = lambda: CommonFeeReport(StubAgingQueries())
    app.dependency_overrides[get_quality_report] = lambda: QualityReport(StubCategoryTrend())
    app.dependency_overrides[get_import_metadata] = lambda: ImportMetadata(engine_factory=lambda alias: None)
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


def test_health_reports_each_database(client, monkeypatch):
    monkeypatch.setattr(api_main, 'check_db_connection',
                        lambda alias: (alias != 'quality', None if alias != 'quality' else 'down'))
    response = client.get('/api/health')
    assert response.status_code == 200
    body = response.json()
    assert body['status'] == 'ok'
    assert body['databases']['sales'] is True
    assert body['databases']['quality'] is False


def test_v2_performance_with_vp_filter(client):
    response = client.get('/api/sales-2025-v2/performance', params={'vp': 'Alice'})
    assert response.status_code == 200
    assert response.json()['summary']['presaleActual'] == 720.0


def test_v2_summary_and_filters(client):
    assert len(client.get('/api/sales-2025-v2/summary').json()) == 12
    filters = client.get('/api/sales-2025-v2/filters').json()
    assert filters['budList'] == ['BUD1', 'BUD2']


def test_v2_employees_all_flag(client):
    names = [e['name'] for e in client.get('/api/sales-2025-v2/employees', params={'all': 'true'}).json()['employees']]
    assert sorted(names) == ['Alice', 'Bob', 'Carol']


def test_not_found_shapes(client):
    response = client.get('/api/sales-2025-v2/vp/Nobody')
    assert response.status_code == 404
    assert response.json() == {'error': 'VP not found'}

    assert client.get('/api/sales-2025-v2/project/NOPE').json() == {'error': 'Project not found'}

    response = client.get('/api/does-not-exist')
    assert response.status_code == 404
    assert response.json() == {'error': 'Endpoint not found'}


def test_aging_endpoint(client):
    body = client.get('/api/common-fee/aging', params={'bucket': '31-60', 'limit': 10}).json()
    assert body['summary']['total'] == {'count': 1, 'amount': 120.0}
    assert body['invoices'][0]['docNumber'] == 'INV-5'
    assert body['pagination']['limit'] == 10


def test_unknown_bucket_is_bad_request(client):
    response = client.get('/api/common-fee/aging', params={'bucket': '7-14'})
    assert response.status_code == 400
    assert 'error' in response.json()


def test_invalid_parameter_is_bad_request(client):
    response = client.get('/api/common-fee/aging', params={'limit': 'lots'})
    assert response.status_code == 400
    assert response.json()['error'].startswith('Invalid parameter: ')
    assert 'limit' in response.json()['error']


def test_import_metadata(client):
    databases = client.get('/api/import/databases').json()
    assert {d['id'] for d in databases} == {'silverman', 'rpt2025'}

    response = client.get('/api/import/tables', params={'database': 'mysql'})
    assert response.status_code == 400
    assert response.json() == {'error': 'Invalid database selection: mysql'}

    assert client.get('/api/import/tables').status_code == 400


def test_unexpected_errors_are_500_with_message(client):
    response = client.get('/api/quality/category-trend', params={'category': 'ลิฟต์'})
    assert response.status_code == 500
    assert response.json() == {'error': 'connection refused'}


def test_engines_disposed_on_shutdown(app, monkeypatch):
    disposed = []
    monkeypatch.setattr(api_main, 'reset_db_engine', lambda alias=None: disposed.append(alias))
    with TestClient(app) as client:
        client.get('/api/import/databases')
        assert disposed == []
    assert disposed == [None]
