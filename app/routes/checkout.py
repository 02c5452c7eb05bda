"""
app/routes/checkout.py
POST /checkout : contrôle anti-doublon puis session Stripe Checkout.

Politique :
- email mal formé          → 400 VALIDATION_ERROR
- client actif existant    → 409 DUPLICATE_CLIENT (aucun appel Stripe)
- lead existant / inconnu  → checkout
- base indisponible        → checkout quand même (fail-open, journalisé)
"""
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.dependencies import get_event_logger, get_gateway, limiter, request_metadata
from app.errors import (
    create_duplicate_client_error,
    create_server_error,
    create_validation_error,
    error_response,
)
from app.models import Lead, LeadStatus
from app.schemas import CheckoutRequest, CheckoutResponse
from app.services.email_format import normalize_email
from app.services.email_validation import DatastoreError, DuplicateLookupService, EmailValidator
from app.services.event_logger import EmailValidationLogger
from app.services.payment_gateway import CheckoutSessionConfig, GatewayError, PaymentGateway

router = APIRouter()
logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────
def _redirect_urls() -> tuple:
    base = settings.PUBLIC_BASE_URL.rstrip("/")
    success_url = f"{base}/thank-you?session_id={{CHECKOUT_SESSION_ID}}"
    cancel_url = f"{base}/join-now?checkout=cancelled&session_id={{CHECKOUT_SESSION_ID}}"
    return success_url, cancel_url


def _resolve_customer(gateway: PaymentGateway, event_logger: EmailValidationLogger,
                      email: str, data: CheckoutRequest, metadata: dict):
    """Réutilise le customer Stripe existant, sinon le crée. None → repli sur customer_email."""
    try:
        customer_id = gateway.find_customer_by_email(email)
        if customer_id:
            logger.info("Reusing Stripe customer %s", customer_id)
            return customer_id
        return gateway.create_customer(email, data.name, data.phone, settings.DEFAULT_BILLING_COUNTRY)
    except GatewayError as e:
        event_logger.log_graceful_degradation(
            email, "CUSTOMER_RESOLUTION", "fallback_to_customer_email", e, metadata
        )
        return None


def _link_lead(db: Session, email: str, session_id: str):
    """Best effort : rattache la session au lead. Un échec ne casse jamais le checkout."""
    try:
        lead = db.query(Lead).filter(Lead.email == email).first()
        if not lead:
            logger.info("No lead to link for checkout session %s", session_id)
            return
        lead.stripe_session_id = session_id
        # Ne jamais faire régresser un état terminal
        if lead.status in (LeadStatus.NEW, LeadStatus.CHECKOUT_STARTED):
            lead.status = LeadStatus.CHECKOUT_STARTED
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to link lead to checkout session %s: %s", session_id, e)


# ─────────────────────────────────────────────
# CHECKOUT SESSION
# ─────────────────────────────────────────────
@router.post("/checkout", response_model=CheckoutResponse)
@limiter.limit("20/minute")
def create_checkout(
    request: Request,
    data: CheckoutRequest,
    db: Session = Depends(get_db),
    event_logger: EmailValidationLogger = Depends(get_event_logger),
    gateway: PaymentGateway = Depends(get_gateway),
):
    metadata = request_metadata(request)
    try:
        email = None
        lead_id = None

        if data.email:
            validator = EmailValidator(DuplicateLookupService(db, event_logger), event_logger)
            try:
                result = validator.validate_email(data.email, metadata)
            except DatastoreError as e:
                # Fail-open : la disponibilité prime sur l'anti-doublon
                event_logger.log_graceful_degradation(
                    data.email, "DUPLICATE_CHECK", "proceed_with_checkout", e, metadata
                )
                result = None

            if result is not None:
                if not result.is_valid:
                    return error_response(create_validation_error("email"))
                if result.exists_as_client:
                    return error_response(create_duplicate_client_error())
                lead_id = result.lead_id
            email = normalize_email(data.email)

        customer_id = None
        if email and data.name:
            customer_id = _resolve_customer(gateway, event_logger, email, data, metadata)

        success_url, cancel_url = _redirect_urls()
        config = CheckoutSessionConfig(
            price_id=settings.STRIPE_PRICE_ID,
            success_url=success_url,
            cancel_url=cancel_url,
            customer=customer_id,
            customer_email=None if customer_id else email,
            client_reference_id=data.userId,
            metadata={
                "userId": data.userId,
                "leadId": lead_id,
                "email": email,
                "name": data.name,
                "phone": data.phone,
                "location": data.location,
            },
        )
        session = gateway.create_checkout_session(config)

        if email:
            _link_lead(db, email, session.id)

        return {"url": session.url}

    except Exception:
        logger.exception("Checkout session error")
        return error_response(create_server_error())
