from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings
from app.services.event_logger import EmailValidationLogger
from app.services.notifications import NotificationQueue
from app.services.payment_gateway import PaymentGateway

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200/minute"],
    enabled=settings.RATE_LIMIT_ENABLED,
)


# Composants construits une seule fois dans main.py, portés par app.state
def get_event_logger(request: Request) -> EmailValidationLogger:
    return request.app.state.event_logger


def get_gateway(request: Request) -> PaymentGateway:
    return request.app.state.gateway


def get_notifications(request: Request) -> NotificationQueue:
    return request.app.state.notifications


def request_metadata(request: Request) -> dict:
    """Contexte non sensible attaché aux évènements de validation."""
    return {
        "userAgent": request.headers.get("user-agent"),
        "ip": request.client.host if request.client else None,
        "sessionId": request.headers.get("x-session-id"),
    }
