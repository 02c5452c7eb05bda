"""
app/routes/payments.py
- GET  /verify-payment        : lecture seule pour la page de confirmation
- POST /create-payment-intent : PaymentIntent portant leadId en metadata
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_gateway
from app.models import Client, ClientStatus
from app.schemas import PaymentIntentCreate, PaymentSummary, VerifyPaymentResponse
from app.services.email_format import normalize_email
from app.services.payment_gateway import GatewayError, PaymentGateway

router = APIRouter()
logger = logging.getLogger(__name__)

VERIFIED_STATUSES = (ClientStatus.COMPLETED.value, ClientStatus.ACTIVE.value)
MIN_AMOUNT = 0.50


# ─────────────────────────────────────────────
# VÉRIFICATION : aucune écriture
# Pas d'enregistrement vérifié → verified: false, jamais de succès supposé
# ─────────────────────────────────────────────
@router.get("/verify-payment", response_model=VerifyPaymentResponse, response_model_exclude_none=True)
def verify_payment(
    session_id: Optional[str] = None,
    email: Optional[str] = None,
    db: Session = Depends(get_db),
):
    if not session_id and not email:
        return JSONResponse(status_code=400, content={"error": "Missing session_id or email parameter"})

    try:
        query = db.query(Client)
        if session_id:
            query = query.filter(Client.stripe_session_id == session_id)
        else:
            query = query.filter(Client.email == normalize_email(email))
        client = (
            query.filter(Client.status.in_(VERIFIED_STATUSES))
            .order_by(Client.created_at.desc())
            .limit(1)
            .first()
        )
    except SQLAlchemyError:
        logger.exception("Payment verification error")
        return JSONResponse(status_code=500, content={"error": "Failed to verify payment"})

    if not client:
        return {"verified": False, "message": "No completed payment found"}

    return {
        "verified": True,
        "payment": PaymentSummary.model_validate(client),
    }


# ─────────────────────────────────────────────
# PAYMENT INTENT : montant en unités majeures
# ─────────────────────────────────────────────
@router.post("/create-payment-intent")
def create_payment_intent(
    data: PaymentIntentCreate,
    gateway: PaymentGateway = Depends(get_gateway),
):
    if not data.amount or data.amount < MIN_AMOUNT:
        return JSONResponse(status_code=400, content={"error": "Amount must be at least $0.50"})

    metadata = {
        "leadId": str(data.leadId) if data.leadId is not None else "",
        "email": normalize_email(data.email) if data.email else "",
    }
    try:
        intent = gateway.create_payment_intent(round(data.amount * 100), data.currency.lower(), metadata)
    except GatewayError as e:
        logger.error("Payment intent creation error: %s", e)
        return JSONResponse(status_code=500, content={"error": "Failed to create payment intent"})

    return {"clientSecret": intent.client_secret, "paymentIntentId": intent.id}
