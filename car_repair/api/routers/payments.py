"""
Payment webhook endpoint.

Routes: POST /payments/webhook

Dependencies: car_repair.application.services.task_service
System role: Payment provider signal intake
"""

import hmac

from fastapi import APIRouter, Depends, Header, HTTPException

from car_repair.api.deps import get_app_settings, get_task_service
from car_repair.application.services.task_service import TaskService
from car_repair.configs import Settings
from car_repair.core.exceptions import TaskLookupError
from car_repair.models.api import WebhookEvent, WebhookResponse

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/webhook", response_model=WebhookResponse)
async def payment_webhook(
    event: WebhookEvent,
    x_webhook_secret: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
    task_service: TaskService = Depends(get_task_service),
) -> WebhookResponse:
    """
    Receive a checkout event from the payment provider.

    Events other than checkout completion are acknowledged and ignored.

    Raises:
        HTTPException(401): Shared secret configured and missing or wrong
        HTTPException(404): Event references an unknown task
    """
    expected = settings.payment.webhook_secret
    if expected and not hmac.compare_digest(expected, x_webhook_secret or ""):
        raise HTTPException(status_code=401, detail="Invalid webhook secret")

    try:
        confirmation = await task_service.handle_checkout_event(event.type, event.data)
    except TaskLookupError as e:
        raise HTTPException(status_code=404, detail=e.message)

    if confirmation is None:
        return WebhookResponse()
    return WebhookResponse(task_id=confirmation.task_id, job_id=confirmation.job_id)
