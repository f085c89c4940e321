"""
API endpoint tests
"""

import os

import pytest
from fastapi.testclient import TestClient
from api.main import app
from api.dependencies import get_import_job_runner, get_job_repository
from core.config import settings
from core.database import async_session_maker
from ingestion.job import JobRepository
from ingestion.jobs import build_import_job_runner


def _sqlite_path(url: str) -> str:
    return url.split(":///", 1)[1]


@pytest.fixture
def repository():
    return JobRepository()


@pytest.fixture
def client_for(repository):
    """Create test client whose import job reads the given file"""
    clients = []

    def _client(path):
        if settings.DATABASE_URL.startswith("sqlite") and ":memory:" not in settings.DATABASE_URL:
            db_path = _sqlite_path(settings.DATABASE_URL)
            if os.path.exists(db_path):
                os.remove(db_path)

        app.dependency_overrides[get_job_repository] = lambda: repository
        app.dependency_overrides[get_import_job_runner] = lambda: build_import_job_runner(
            async_session_maker, repository, settings, file_path=path
        )

        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _client

    for client in clients:
        client.__exit__(None, None, None)
    app.dependency_overrides.clear()


def test_import_data_returns_completed(client_for, write_csv, user_rows):
    client = client_for(write_csv(user_rows))

    response = client.post("/jobs/importData")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "COMPLETED"


def test_import_data_reports_failure_in_body(client_for, tmp_path):
    client = client_for(tmp_path / "missing.csv")

    response = client.post("/jobs/importData")

    assert response.status_code == 200
    assert response.text.startswith("FAILED: SourceUnavailableError")


def test_executions_endpoint_lists_recent_runs(client_for, write_csv, user_rows):
    client = client_for(write_csv(user_rows))
    client.post("/jobs/importData")

    response = client.get("/jobs/executions", params={"limit": 5})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["running"] == 0

    execution = data["executions"][0]
    assert execution["job_name"] == settings.IMPORT_JOB_NAME
    assert execution["status"] == "COMPLETED"
    assert "startAt" in execution["parameters"]

    step = execution["step_executions"][0]
    assert step["step_name"] == settings.IMPORT_STEP_NAME
    assert step["read_count"] == 3
    assert step["write_count"] == 3
    assert step["commit_count"] == 1


def test_executions_endpoint_validates_limit(client_for, write_csv):
    client = client_for(write_csv([]))

    assert client.get("/jobs/executions", params={"limit": 0}).status_code == 422


def test_health_endpoint_database_connected(client_for, write_csv):
    """Test health endpoint returns database status"""
    client = client_for(write_csv([]))

    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database_connected"] is True
    assert data["job_name"] == settings.IMPORT_JOB_NAME
    assert data["last_job_status"] is None


def test_health_degraded_after_failed_import(client_for, tmp_path):
    client = client_for(tmp_path / "missing.csv")
    client.post("/jobs/importData")

    data = client.get("/health").json()

    assert data["status"] == "degraded"
    assert data["last_job_status"] == "FAILED"


def test_request_id_header(client_for, write_csv):
    client = client_for(write_csv([]))

    generated = client.get("/")
    echoed = client.get("/", headers={"X-Request-ID": "req_fixed"})

    assert generated.headers["X-Request-ID"].startswith("req_")
    assert "X-API-Latency-ms" in generated.headers
    assert echoed.headers["X-Request-ID"] == "req_fixed"
