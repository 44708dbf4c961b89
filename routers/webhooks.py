from typing import Annotated
from fastapi import APIRouter, HTTPException, Request, Header
from starlette.concurrency import run_in_threadpool
from starlette import status
from utils.deps import db_dependency
from services.webhook_service import WebhookService, HANDLED_EVENTS, IntakeState, event_object
from utils.logger import get_logger, sanitize_log_data

logger = get_logger(__name__)


router = APIRouter(
    prefix="/webhooks",
    tags=["webhooks"]
)


@router.post("/payment", status_code=status.HTTP_200_OK)
async def payment_webhook(request: Request, db: db_dependency,
    stripe_signature: Annotated[str | None, Header()] = None):
    """
    Payment provider webhook.

    Answers 200 for processed, replayed and ignored events; providers retry
    anything else, so only storage failures before the order is recorded
    produce an error status.
    """
    payload = await request.body()
    event = WebhookService.verify_event(payload, stripe_signature)

    event_type = event.get("type")
    event_id = event.get("id")

    if event_type not in HANDLED_EVENTS:
        logger.info("Webhook event ignored", extra={"event_type": event_type, "event_id": event_id})
        return {"received": True, "handled": False}

    details = WebhookService.extract_payment_details(event)
    if not details or not details.email or not details.payment_intent_id:
        logger.error(
            "Webhook event missing email or payment intent id",
            extra={"event_type": event_type, "event_id": event_id}
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
        detail="Missing required fields: email or payment intent id")

    metadata = event_object(event).get("metadata")
    logger.info(
        "Processing payment event",
        extra={
            "event_type": event_type,
            "event_id": event_id,
            "metadata": sanitize_log_data(metadata) if isinstance(metadata, dict) else None
        }
    )

    # Database writes and SMTP block; keep them off the event loop
    outcome = await run_in_threadpool(WebhookService.process_payment, details, db)

    return {
        "received": True,
        "handled": True,
        "already_processed": outcome.state == IntakeState.ALREADY_PROCESSED,
        "order_id": outcome.order.id,
        "warnings": outcome.warnings
    }
