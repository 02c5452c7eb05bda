"""
app/services/notifications.py
Notifications « fire-and-forget ».

NotificationQueue confie chaque envoi au BackgroundScheduler (APScheduler) :
l'appelant ne bloque jamais sur l'envoi, et un échec d'envoi ne touche pas
la transition d'état qui l'a déclenché. Seul le passage de relais est journalisé.
"""
import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

import resend

from app.services.email_templates import (
    EmailTemplate,
    LeadNotificationData,
    PaymentNotificationData,
    lead_admin_notification,
    lead_user_welcome,
    payment_admin_notification,
    payment_user_confirmation,
    payment_failed_admin_notification,
)
from app.services.event_logger import hash_email

logger = logging.getLogger(__name__)


class EmailErrorType(str, enum.Enum):
    PROVIDER_ERROR = "PROVIDER_ERROR"
    TEMPLATE_ERROR = "TEMPLATE_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"


@dataclass
class EmailResult:
    success: bool
    error: Optional[str] = None
    error_type: Optional[EmailErrorType] = None
    message_id: Optional[str] = None


def categorize_error(error: BaseException) -> EmailErrorType:
    message = str(error).lower()
    if "api key" in message or "unauthorized" in message:
        return EmailErrorType.CONFIGURATION_ERROR
    if "network" in message or "timeout" in message or "connection" in message:
        return EmailErrorType.NETWORK_ERROR
    if "template" in message or "invalid email" in message:
        return EmailErrorType.TEMPLATE_ERROR
    return EmailErrorType.PROVIDER_ERROR


class EmailService:
    """Envoi via Resend. Ne lève jamais : le résultat dit ce qui s'est passé."""

    def __init__(self, api_key: str, sender: str, admin_email: str = ""):
        self.api_key = api_key
        self.sender = sender
        self.admin_email = admin_email

    def send(self, to: str, template: EmailTemplate, kind: str) -> EmailResult:
        if not self.api_key:
            return self._failed(kind, to, "RESEND_API_KEY is not configured", EmailErrorType.CONFIGURATION_ERROR)
        if not to or not template.subject or not template.body:
            return self._failed(kind, to, "Missing required email parameters", EmailErrorType.TEMPLATE_ERROR)

        resend.api_key = self.api_key
        try:
            response = resend.Emails.send({
                "from": self.sender,
                "to": [to],
                "subject": template.subject,
                "text": template.body,
            })
        except Exception as e:
            return self._failed(kind, to, str(e) or "Unknown email sending error", categorize_error(e))

        message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        logger.info("Email %s sent to %s (id=%s)", kind, hash_email(to), message_id)
        return EmailResult(success=True, message_id=message_id)

    def _failed(self, kind: str, to: str, error: str, error_type: EmailErrorType) -> EmailResult:
        logger.error("Email %s to %s failed [%s]: %s", kind, hash_email(to or ""), error_type.value, error)
        return EmailResult(success=False, error=error, error_type=error_type)

    # ── Envois métier ───────────────────────────────────────────────────────
    def send_lead_admin_notification(self, data: LeadNotificationData) -> EmailResult:
        return self.send(self.admin_email, lead_admin_notification(data), "lead_admin_notification")

    def send_lead_user_welcome(self, data: LeadNotificationData) -> EmailResult:
        return self.send(data.email, lead_user_welcome(data), "lead_user_welcome")

    def send_payment_admin_notification(self, data: PaymentNotificationData) -> EmailResult:
        return self.send(self.admin_email, payment_admin_notification(data), "payment_admin_notification")

    def send_payment_user_confirmation(self, data: PaymentNotificationData) -> EmailResult:
        return self.send(data.email, payment_user_confirmation(data), "payment_user_confirmation")

    def send_payment_failed_admin_notification(self, lead_id: str, payment_intent_id: str) -> EmailResult:
        return self.send(
            self.admin_email,
            payment_failed_admin_notification(lead_id, payment_intent_id),
            "payment_failed_admin_notification",
        )


class NotificationQueue:
    """Relais vers le scheduler. enqueue() ne lève jamais et renvoie True si le job est accepté."""

    def __init__(self, scheduler, email_service: EmailService):
        self.scheduler = scheduler
        self.email_service = email_service

    def enqueue(self, kind: str, func, *args) -> bool:
        job_id = f"{kind}-{uuid.uuid4().hex[:12]}"
        try:
            self.scheduler.add_job(func, args=list(args), id=job_id, name=kind, misfire_grace_time=None)
        except Exception as e:
            logger.error("Notification %s not queued: %s", kind, e)
            return False
        logger.info("Notification %s queued (%s)", kind, job_id)
        return True

    def lead_created(self, data: LeadNotificationData):
        if self.email_service.admin_email:
            self.enqueue("lead_admin_notification", self.email_service.send_lead_admin_notification, data)
        self.enqueue("lead_user_welcome", self.email_service.send_lead_user_welcome, data)

    def payment_succeeded(self, data: PaymentNotificationData):
        if data.email:
            self.enqueue("payment_user_confirmation", self.email_service.send_payment_user_confirmation, data)
        if self.email_service.admin_email:
            self.enqueue("payment_admin_notification", self.email_service.send_payment_admin_notification, data)

    def payment_failed(self, lead_id: str, payment_intent_id: str):
        if self.email_service.admin_email:
            self.enqueue(
                "payment_failed_admin_notification",
                self.email_service.send_payment_failed_admin_notification,
                lead_id,
                payment_intent_id,
            )
