"""End-to-end tests for the /run, /keywords and /samples endpoints."""

import pytest
from fastapi.testclient import TestClient

from backend.app.main import app


@pytest.fixture(scope="module")
def client():
    client = TestClient(app)
    yield client
    client.close()


def test_run_returns_output_and_metadata(client):
    run_resp = client.post('/run', json={'code': 'srsti x = 10\nmudrisu x'})
    assert run_resp.status_code == 200
    rdata = run_resp.json()
    assert rdata['output'] == '10'
    assert rdata['errors'] is None
    assert rdata['warnings'] == []
    assert rdata['dialect'] == 'kannada'
    assert isinstance(rdata['duration_ms'], int)


def test_run_sanskrit(client):
    code = 'chakra (srsti i = 1; i <= 2; i = i + 1) { mudran "Count: " + i }'
    rdata = client.post('/run', json={'code': code, 'dialect': 'sanskrit'}).json()
    assert rdata['output'] == 'Count: 1\nCount: 2'


def test_run_reports_errors(client):
    rdata = client.post('/run', json={'code': 'srsti 5'}).json()
    assert rdata['errors']['code'] == 'SYNTAX_ERROR'
    assert rdata['output'] == "Error: expected variable name after 'srsti'"


def test_unknown_dialect_is_rejected(client):
    r = client.post('/run', json={'code': 'mudrisu 1', 'dialect': 'latin'})
    assert r.status_code == 422


def test_keywords(client):
    r = client.get('/keywords', params={'dialect': 'sanskrit'})
    assert r.status_code == 200
    data = r.json()
    assert data['dialect'] == 'sanskrit'
    rows = data['keywords']
    assert len(rows) == 9
    assert rows[1]['slot'] == 'print'
    assert rows[1]['keyword'].startswith('mudran')
    assert rows[1]['example'] == 'mudran "Hello World"'


def test_samples_default_to_kannada(client):
    data = client.get('/samples').json()
    assert data['dialect'] == 'kannada'
    assert set(data['samples']) == {'basic', 'conditions', 'loops', 'functions', 'arrays'}
    assert 'mudrisu name' in data['samples']['basic']
