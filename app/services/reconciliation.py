"""
app/services/reconciliation.py
Transitions Lead pilotées par les webhooks Stripe.

    payment_intent.succeeded       → paid            (terminal)
    payment_intent.payment_failed  → payment_failed  (sauf si déjà paid)

Les évènements peuvent arriver plusieurs fois ou dans le désordre : rejouer
un succès sur un lead déjà paid n'écrit rien, un échec n'écrase jamais paid.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from app.models import Lead, LeadStatus
from app.services.email_templates import PaymentNotificationData
from app.services.notifications import NotificationQueue

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"

DEFAULT_TIER_NAME = "Premium Membership"

# Résultats renvoyés par handle_event (utiles aux logs et aux tests)
APPLIED = "applied"
UNCHANGED = "unchanged"
SKIPPED = "skipped"
IGNORED = "ignored"


def minor_to_major(amount: Optional[int]) -> Decimal:
    """2500 → Decimal('25.00')"""
    return (Decimal(int(amount or 0)) / 100).quantize(Decimal("0.01"))


class PaymentReconciler:

    def __init__(self, db: Session, notifications: Optional[NotificationQueue] = None,
                 now=datetime.utcnow):
        self.db = db
        self.notifications = notifications
        self.now = now

    def handle_event(self, event: dict) -> str:
        event_type = event.get("type")
        obj = (event.get("data") or {}).get("object") or {}

        if event_type == PAYMENT_SUCCEEDED:
            return self.apply_payment_succeeded(obj)
        if event_type == PAYMENT_FAILED:
            return self.apply_payment_failed(obj)

        logger.info("Unhandled event type: %s (%s)", event_type, event.get("id"))
        return IGNORED

    def _find_lead(self, intent: dict) -> Optional[Lead]:
        lead_id = (intent.get("metadata") or {}).get("leadId")
        if not lead_id:
            logger.info("PaymentIntent %s has no leadId metadata", intent.get("id"))
            return None
        lead = self.db.query(Lead).filter(Lead.id == str(lead_id)).first()
        if lead is None:
            logger.warning("PaymentIntent %s references unknown lead %s", intent.get("id"), lead_id)
        return lead

    def apply_payment_succeeded(self, intent: dict) -> str:
        lead = self._find_lead(intent)
        if lead is None:
            return SKIPPED

        intent_id = intent.get("id")
        if lead.status == LeadStatus.PAID:
            if lead.payment_intent_id != intent_id:
                logger.warning("Lead %s already paid by %s, ignoring %s", lead.id, lead.payment_intent_id, intent_id)
            else:
                logger.info("Lead %s already paid, replay of %s ignored", lead.id, intent_id)
            return UNCHANGED

        amount = minor_to_major(intent.get("amount"))
        paid_at = self.now()
        lead.status = LeadStatus.PAID
        lead.payment_intent_id = intent_id
        lead.amount_paid = amount
        lead.paid_at = paid_at
        self.db.commit()
        logger.info("✅ Payment successful for lead %s: %s", lead.id, amount)

        if self.notifications is not None:
            metadata = intent.get("metadata") or {}
            self.notifications.payment_succeeded(PaymentNotificationData(
                name=lead.name or "Member",
                email=metadata.get("email") or lead.email,
                amount=str(amount),
                currency=(intent.get("currency") or "usd").upper(),
                tier_name=metadata.get("tierName") or DEFAULT_TIER_NAME,
                payment_date=paid_at.strftime("%Y-%m-%d"),
            ))
        return APPLIED

    def apply_payment_failed(self, intent: dict) -> str:
        lead = self._find_lead(intent)
        if lead is None:
            return SKIPPED

        intent_id = intent.get("id")
        if lead.status == LeadStatus.PAID:
            logger.warning("Lead %s already paid, failure %s ignored", lead.id, intent_id)
            return UNCHANGED
        if lead.status == LeadStatus.PAYMENT_FAILED and lead.payment_intent_id == intent_id:
            return UNCHANGED

        lead.status = LeadStatus.PAYMENT_FAILED
        lead.payment_intent_id = intent_id
        self.db.commit()
        logger.info("❌ Payment failed for lead %s", lead.id)

        if self.notifications is not None:
            self.notifications.payment_failed(lead.id, intent_id)
        return APPLIED
