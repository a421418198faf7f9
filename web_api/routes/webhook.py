"""
GitHub webhook route.

Endpoints:
- POST /api/webhook/github - Verify, parse and apply a GitHub delivery

The delivery is reconciled before the response is sent. Reconciliation
failures are logged and sent to Sentry rather than returned to GitHub, so
an accepted delivery always gets a 200.
"""

import logging

from fastapi import APIRouter, HTTPException, Request

from core.content import (
    WebhookPayloadError,
    WebhookSignatureError,
    parse_webhook_event,
    verify_webhook_signature,
)
from core.state import get_services

router = APIRouter(prefix="/api/webhook", tags=["webhook"])

logger = logging.getLogger(__name__)

EVENT_HEADER = "X-GitHub-Event"
DELIVERY_HEADER = "X-GitHub-Delivery"


@router.post("/github")
async def github_webhook(request: Request):
    """
    Handle a GitHub webhook delivery.

    Called by GitHub when a watched repository is pushed to.
    """
    services = get_services()
    body = await request.body()

    try:
        verify_webhook_signature(
            body, request.headers, services.settings.github_webhook_secret
        )
    except WebhookSignatureError as e:
        logger.warning("Rejected webhook from %s: %s", request.client, e)
        raise HTTPException(status_code=401, detail=str(e))

    event_type = request.headers.get(EVENT_HEADER)
    if not event_type:
        raise HTTPException(status_code=400, detail=f"Missing {EVENT_HEADER} header")

    try:
        event = parse_webhook_event(event_type, body)
    except WebhookPayloadError as e:
        logger.warning("Bad %s payload: %s", event_type, e)
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(
        "GitHub %s event received from %s (delivery %s)",
        event_type,
        event.repository_full_name,
        request.headers.get(DELIVERY_HEADER),
    )
    await services.content_sync.process_event(event)

    return {"status": "ok", "message": "Webhook received"}
