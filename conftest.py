import pytest

from app import app as flask_app


@pytest.fixture
def company():
    return {
        'name': "Test Traders",
        'gstin': "23AAAAA0000A1Z5",
        'state_code': "23",
        'freight_gst_rate': 18.0,
        'default_gst_rate': 18.0,
        'invoice_prefix': "NLTE",
    }


@pytest.fixture
def client(monkeypatch):
    monkeypatch.delenv('COMPANY_STATE_CODE', raising=False)
    monkeypatch.delenv('FREIGHT_GST_RATE', raising=False)
    flask_app.config['TESTING'] = True
    with flask_app.test_client() as client:
        yield client
