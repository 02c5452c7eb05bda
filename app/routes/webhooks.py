import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_gateway, get_notifications
from app.services.notifications import NotificationQueue
from app.services.payment_gateway import PaymentGateway, WebhookSignatureError
from app.services.reconciliation import PaymentReconciler

router = APIRouter()
logger = logging.getLogger(__name__)


def _reconcile(db: Session, notifications: NotificationQueue, event: dict):
    try:
        outcome = PaymentReconciler(db, notifications).handle_event(event)
        logger.info("Webhook %s (%s): %s", event.get("id"), event.get("type"), outcome)
    except Exception:
        db.rollback()
        logger.exception("Webhook handler failed for %s (%s)", event.get("id"), event.get("type"))


# ─────────────────────────────────────────────
# WEBHOOKS STRIPE
# Signature invalide → 400, rien n'est lu ni écrit.
# Signature valide   → toujours 200 : un échec de traitement est journalisé,
# jamais renvoyé à Stripe (pas de tempête de retries).
# Lecture du corps en async, SDK Stripe et SQLAlchemy dans le threadpool.
# ─────────────────────────────────────────────
@router.post("/webhooks/payment")
async def payment_webhook(
    request: Request,
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_gateway),
    notifications: NotificationQueue = Depends(get_notifications),
):
    payload   = await request.body()
    signature = request.headers.get("stripe-signature")

    if not signature:
        return JSONResponse(status_code=400, content={"error": "Missing stripe-signature header"})

    try:
        event = await run_in_threadpool(gateway.construct_event, payload, signature)
    except WebhookSignatureError as e:
        logger.warning("Webhook signature verification failed: %s", e)
        return JSONResponse(status_code=400, content={"error": str(e)})

    await run_in_threadpool(_reconcile, db, notifications, event)
    return {"received": True}
