from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from car_repair.api.deps import get_task_service
from car_repair.api.main import create_app
from car_repair.core.exceptions import TaskLookupError
from car_repair.models.api import PaymentConfirmationResponse, TaskStatusResponse


@pytest.fixture
def client():
    app = create_app(use_lifespan=False)
    return TestClient(app)


@pytest.fixture
def mock_task_service(client):
    service = AsyncMock()
    client.app.dependency_overrides[get_task_service] = lambda: service
    return service


def test_confirm_payment(client, mock_task_service):
    task_id = uuid4()
    job_id = uuid4()
    mock_task_service.confirm_payment.return_value = PaymentConfirmationResponse(
        task_id=task_id, is_paid=True, newly_paid=True, job_id=job_id
    )

    response = client.post(f"/api/v1/tasks/{task_id}/payment/confirm")

    assert response.status_code == 200
    data = response.json()
    assert data["newly_paid"] is True
    assert data["job_id"] == str(job_id)
    mock_task_service.confirm_payment.assert_called_once_with(task_id, source="direct")


def test_confirm_payment_unknown_task(client, mock_task_service):
    task_id = uuid4()
    mock_task_service.confirm_payment.side_effect = TaskLookupError(task_id)

    response = client.post(f"/api/v1/tasks/{task_id}/payment/confirm")

    assert response.status_code == 404
    assert "not found" in response.json()["detail"].lower()


def test_get_task_status(client, mock_task_service):
    task_id = uuid4()
    mock_task_service.get_task_status.return_value = TaskStatusResponse(
        task_id=task_id, status="processing", is_paid=True
    )

    response = client.get(f"/api/v1/tasks/{task_id}/status")

    assert response.status_code == 200
    assert response.json() == {
        "task_id": str(task_id),
        "status": "processing",
        "is_paid": True,
        "report_id": None,
    }


def test_get_task_status_invalid_uuid(client, mock_task_service):
    response = client.get("/api/v1/tasks/not-a-uuid/status")

    assert response.status_code == 422
    mock_task_service.get_task_status.assert_not_called()
