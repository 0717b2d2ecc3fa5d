"""Tests for the release tooling HTTP endpoints."""
import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))
from screenshot_service import server
from screenshot_service.server import app


@pytest.fixture
def client():
    """Create a test client."""
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


def test_health_endpoint(client):
    """Test health check endpoint."""
    response = client.get('/health')
    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['status'] == 'ok'


def test_verify_setup_reports_missing_credentials(client, monkeypatch):
    """Without credentials the report is not ok and no method is detected."""
    for var in (
        "FASTLANE_TEAM_ID",
        "MATCH_PASSWORD",
        "MATCH_GIT_URL",
        "MATCH_CERTS_PAT",
        "FASTLANE_API_KEY_PATH",
        "APP_STORE_CONNECT_API_KEY_CONTENT",
        "APP_STORE_CONNECT_API_KEY_ID",
        "APP_STORE_CONNECT_ISSUER_ID",
        "APP_STORE_CONNECT_API_KEY_PATH",
        "CI",
    ):
        monkeypatch.delenv(var, raising=False)

    response = client.get('/setup/verify')
    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['ok'] is False
    assert data['method'] == 'none'
    assert data['environment'] == 'Local'
    assert any(c['name'] == 'MATCH_PASSWORD' and c['status'] == 'fail' for c in data['checks'])


def test_capture_missing_paths(client):
    """Test capture endpoint with missing data."""
    response = client.post('/capture', json={'plan_json_path': 'plan.json'})
    assert response.status_code == 400
    data = json.loads(response.data)
    assert 'error' in data


def test_capture_starts_background_run(client, monkeypatch):
    """The run is handed to a background thread with the posted paths."""
    calls = []

    class ImmediateThread:
        def __init__(self, target):
            self.target = target
            self.daemon = False

        def start(self):
            self.target()

    monkeypatch.setattr(server.threading, "Thread", ImmediateThread)
    monkeypatch.setattr(server, "run_tab_screenshots", lambda **kwargs: calls.append(kwargs))

    response = client.post(
        '/capture',
        json={'plan_json_path': 'plan.json', 'capabilities_json_path': 'caps.json'},
    )
    assert response.status_code == 200
    assert json.loads(response.data)['status'] == 'started'
    assert calls == [
        {
            'appium_server_url': 'http://127.0.0.1:4723',
            'capabilities_json_path': 'caps.json',
            'plan_json_path': 'plan.json',
            'artifacts_dir': None,
        }
    ]
