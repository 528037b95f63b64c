"""Clerk webhook endpoint (no session; verified by the svix-* headers)."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from libs.auth.clerk import ClerkUser
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.members_service.schemas import WebhookEvent
from services.members_service.services.user_sync import (
    create_user,
    delete_user,
    upsert_user,
)
from sqlalchemy.ext.asyncio import AsyncSession
from svix.webhooks import Webhook, WebhookVerificationError

logger = get_logger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


async def handle_event(db: AsyncSession, event: WebhookEvent) -> None:
    if event.type == "user.created":
        await create_user(db, ClerkUser.model_validate(event.data))
    elif event.type == "user.updated":
        await upsert_user(db, ClerkUser.model_validate(event.data))
    elif event.type == "user.deleted":
        await delete_user(db, str(event.data["id"]))
    else:
        logger.info("Unhandled webhook event type: %s", event.type)


@router.post("/clerk")
async def clerk_webhook(
    request: Request,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Receive a user lifecycle event from Clerk.

    Responses are written here directly: verification failures have their own
    messages, and any failure after verification is reported as a handler
    failure.
    """
    settings = request.app.state.settings
    if not settings.CLERK_WEBHOOK_SECRET:
        logger.error("Missing CLERK_WEBHOOK_SECRET")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Webhook secret not configured"},
        )

    try:
        webhook = Webhook(settings.CLERK_WEBHOOK_SECRET)
    except ValueError as exc:
        logger.error("CLERK_WEBHOOK_SECRET is not a valid signing secret: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Webhook secret not configured"},
        )

    raw = await request.body()
    try:
        payload = webhook.verify(raw, request.headers)
    except WebhookVerificationError as exc:
        logger.warning("Webhook verification failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "Invalid webhook signature"},
        )

    try:
        event = WebhookEvent.model_validate(payload)
        await handle_event(db, event)
    except Exception as exc:
        logger.exception("Webhook error: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Webhook handler failed"},
        )

    return {"received": True}


@router.get("/clerk")
async def clerk_webhook_status():
    """Reachability check for the webhook endpoint."""
    return {
        "status": "Clerk webhook endpoint active",
        "timestamp": utc_now().isoformat(),
    }
