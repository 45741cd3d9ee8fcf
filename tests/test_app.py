"""
Tests for the Flask migration API.
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

import app as app_module
from models.migration_run import MigrationRun
from services.run_service import MigrationRunService


@pytest.fixture
def fake_service():
    service = MagicMock()
    service.run.side_effect = lambda workspace_id, dataflow_id, run_id: MigrationRun(
        run_id=run_id,
        status="ENDED",
        workspace_id=workspace_id,
        dataflow_id=dataflow_id,
        start_ts=datetime(2024, 5, 1, 10, 0, 0),
        end_ts=datetime(2024, 5, 1, 10, 5, 0),
        log_path="/tmp/nifi-migration-1.jsonl",
        summary_path="/tmp/nifi-migration-summary-1.json",
        has_failures=True
    )
    return service


@pytest.fixture
def run_service(monkeypatch, fake_service):
    service = MigrationRunService(service_factory=lambda: fake_service)
    monkeypatch.setattr(app_module, "run_service", service)
    return service


@pytest.fixture
def client(run_service):
    app_module.flask_app.config["TESTING"] = True
    with app_module.flask_app.test_client() as test_client:
        yield test_client


class TestRunsApi:

    def test_list_runs_empty(self, client):
        response = client.get("/api/migration/runs")
        assert response.status_code == 200
        assert response.get_json() == {"success": True, "runs": []}

    def test_get_run(self, client, run_service):
        run = run_service.start_run("W", None, background=False)
        body = client.get(f"/api/migration/runs/{run.run_id}").get_json()
        assert body["success"] is True
        assert body["run"] == {
            "id": run.run_id,
            "state": "ENDED",
            "workspaceId": "W",
            "dataflowId": None,
            "startTime": "2024-05-01T10:00:00",
            "endTime": "2024-05-01T10:05:00",
            "logPath": "/tmp/nifi-migration-1.jsonl",
            "summaryPath": "/tmp/nifi-migration-summary-1.json",
            "hasFailures": True,
            "error": None,
        }

    def test_unknown_run_is_404(self, client):
        response = client.get("/api/migration/runs/missing")
        assert response.status_code == 404
        assert response.get_json() == {"success": False, "error": "Run not found"}

    def test_list_error_reported(self, client, monkeypatch):
        broken = MagicMock()
        broken.list_runs.side_effect = RuntimeError("registry unavailable")
        monkeypatch.setattr(app_module, "run_service", broken)
        response = client.get("/api/migration/runs")
        assert response.status_code == 500
        assert response.get_json()["error"] == "registry unavailable"


class TestStartApi:

    def test_start_passes_filters(self, client, monkeypatch):
        started = MigrationRun(run_id="migration_run_1", status="RUNNING", workspace_id="493")
        fake_run_service = MagicMock()
        fake_run_service.start_run.return_value = started
        monkeypatch.setattr(app_module, "run_service", fake_run_service)

        response = client.post("/api/migration/start?workspaceId=493&dataflowId=abc")
        body = response.get_json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["runId"] == "migration_run_1"
        assert body["run"]["state"] == "RUNNING"
        fake_run_service.start_run.assert_called_once_with("493", "abc")

    def test_start_without_filters(self, client, monkeypatch):
        fake_run_service = MagicMock()
        fake_run_service.start_run.return_value = MigrationRun(run_id="r", status="RUNNING")
        monkeypatch.setattr(app_module, "run_service", fake_run_service)
        client.post("/api/migration/start")
        fake_run_service.start_run.assert_called_once_with(None, None)

    def test_get_not_allowed(self, client):
        response = client.get("/api/migration/start")
        assert response.status_code == 405
        assert response.get_json()["success"] is False


class TestPages:

    @pytest.mark.parametrize("path", ["/", "/migration"])
    def test_migration_page(self, client, path):
        response = client.get(path)
        assert response.status_code == 200
        assert b"<html" in response.data.lower()
