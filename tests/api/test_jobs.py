from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from car_repair.api.deps import get_job_service
from car_repair.api.main import create_app
from car_repair.boundary.db.models import QueueJobStatus


@pytest.fixture
def client():
    app = create_app(use_lifespan=False)
    return TestClient(app)


@pytest.fixture
def mock_job_service():
    return AsyncMock()


def _job(job_id, status="completed"):
    now = datetime.now(timezone.utc).isoformat()
    return {
        "id": str(job_id),
        "task_id": str(uuid4()),
        "status": status,
        "priority": 1,
        "attempt_count": 1,
        "max_attempts": 3,
        "run_after": now,
        "started_at": now,
        "finished_at": now,
        "last_error": None,
        "failure_kind": None,
        "result": {"success": True, "report_id": str(uuid4())},
        "created_at": now,
        "updated_at": now,
    }


def test_get_job_status(client, mock_job_service):
    job_id = uuid4()
    mock_job_service.get_job_status.return_value = _job(job_id)

    client.app.dependency_overrides[get_job_service] = lambda: mock_job_service

    response = client.get(f"/api/v1/jobs/{job_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["attempt_count"] == 1
    mock_job_service.get_job_status.assert_called_once_with(job_id)


def test_get_job_not_found(client, mock_job_service):
    job_id = uuid4()
    mock_job_service.get_job_status.side_effect = ValueError(f"Job {job_id} not found")

    client.app.dependency_overrides[get_job_service] = lambda: mock_job_service

    response = client.get(f"/api/v1/jobs/{job_id}")

    assert response.status_code == 404
    assert "not found" in response.json()["detail"].lower()


def test_list_jobs_filtered_by_status(client, mock_job_service):
    mock_job_service.list_jobs.return_value = [_job(uuid4(), status="failed")]

    client.app.dependency_overrides[get_job_service] = lambda: mock_job_service

    response = client.get("/api/v1/jobs", params={"status": "failed", "limit": 10})

    assert response.status_code == 200
    assert [job["status"] for job in response.json()] == ["failed"]
    mock_job_service.list_jobs.assert_called_once_with(QueueJobStatus.FAILED, 10, task_id=None)


def test_list_jobs_rejects_unknown_status(client, mock_job_service):
    client.app.dependency_overrides[get_job_service] = lambda: mock_job_service

    response = client.get("/api/v1/jobs", params={"status": "exploded"})

    assert response.status_code == 422


def test_list_jobs_filtered_by_task(client, mock_job_service):
    task_id = uuid4()
    mock_job_service.list_jobs.return_value = [_job(uuid4(), status="failed"), _job(uuid4())]

    client.app.dependency_overrides[get_job_service] = lambda: mock_job_service

    response = client.get("/api/v1/jobs", params={"task_id": str(task_id)})

    assert response.status_code == 200
    assert [job["status"] for job in response.json()] == ["failed", "completed"]
    mock_job_service.list_jobs.assert_called_once_with(None, 50, task_id=task_id)
