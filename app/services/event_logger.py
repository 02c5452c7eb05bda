"""
app/services/event_logger.py
Journal structuré de la validation des emails.

Une instance unique est construite au démarrage (main.py) puis injectée
dans les routes via app.dependencies.get_event_logger.
L'email brut n'est jamais écrit : chaque évènement porte hash_email(email).
"""
import json
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from app.services.email_format import normalize_email

validation_log = logging.getLogger("app.validation")
security_log = logging.getLogger("app.security")

BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

# Types d'évènements
VALIDATION_ATTEMPT = "VALIDATION_ATTEMPT"
DUPLICATE_CLIENT = "DUPLICATE_CLIENT"
LEAD_CONVERSION = "LEAD_CONVERSION"
DATABASE_ERROR = "DATABASE_ERROR"
VALIDATION_FAILURE = "VALIDATION_FAILURE"
PERFORMANCE_WARNING = "PERFORMANCE_WARNING"
PERFORMANCE_METRICS = "PERFORMANCE_METRICS"
GRACEFUL_DEGRADATION = "GRACEFUL_DEGRADATION"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(BASE36[rem])
    return "".join(reversed(digits))


def hash_email(email: str) -> str:
    """Hash polynomial 32 bits (h*31 + c) de l'email normalisé, base 36, 8 caractères."""
    h = 0
    for ch in normalize_email(email):
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return _to_base36(abs(h))[:8]


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _describe_error(error: BaseException) -> Dict[str, Any]:
    return {
        "type": type(error).__name__,
        "message": str(error),
        "code": getattr(error, "code", None),
    }


def _clean_metadata(metadata: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not metadata:
        return None
    return {k: v for k, v in metadata.items() if v is not None}


class EmailValidationLogger:
    """Sink logique unique pour la télémétrie de validation et de paiement."""

    def __init__(self, metrics_threshold_ms: float = 100, warning_threshold_ms: float = 1000):
        self.metrics_threshold_ms = metrics_threshold_ms
        self.warning_threshold_ms = warning_threshold_ms

    def _emit(self, level: int, tag: str, event: Dict[str, Any], target: logging.Logger = validation_log):
        payload = {k: v for k, v in event.items() if v is not None}
        target.log(level, "[%s] %s", tag, json.dumps(payload, default=str))

    # ── Tentatives ──────────────────────────────────────────────────────────
    def log_validation_attempt(self, email: str, result: Dict[str, Any], duration: float,
                               metadata: Optional[Dict[str, Any]] = None):
        self._emit(logging.INFO, "EMAIL_VALIDATION", {
            "timestamp": _utcnow(),
            "email": hash_email(email),
            "eventType": VALIDATION_ATTEMPT,
            "result": result,
            "performance": {"duration": round(duration, 2), "queryType": "COMBINED_VALIDATION"},
            "metadata": _clean_metadata(metadata),
        })
        if duration > self.warning_threshold_ms:
            self.log_performance_warning(email, duration, "EMAIL_VALIDATION")

    def log_duplicate_client_detection(self, email: str, client_id: str,
                                       metadata: Optional[Dict[str, Any]] = None):
        hashed = hash_email(email)
        self._emit(logging.INFO, "DUPLICATE_CLIENT_DETECTED", {
            "timestamp": _utcnow(),
            "email": hashed,
            "eventType": DUPLICATE_CLIENT,
            "result": {
                "isValid": True,
                "existsAsClient": True,
                "clientId": client_id,
            },
            "metadata": _clean_metadata(metadata),
        })
        # Signal de sécurité pour le monitoring
        self._emit(logging.WARNING, "SECURITY", {
            "timestamp": _utcnow(),
            "email": hashed,
            "eventType": DUPLICATE_CLIENT,
            "message": "Duplicate client registration attempt",
        }, target=security_log)

    def log_lead_conversion(self, email: str, lead_id: str, metadata: Optional[Dict[str, Any]] = None):
        self._emit(logging.INFO, "LEAD_CONVERSION", {
            "timestamp": _utcnow(),
            "email": hash_email(email),
            "eventType": LEAD_CONVERSION,
            "result": {
                "isValid": True,
                "existsAsClient": False,
                "existsAsLead": True,
                "leadId": lead_id,
            },
            "metadata": _clean_metadata(metadata),
        })

    # ── Erreurs ─────────────────────────────────────────────────────────────
    def log_database_error(self, operation: str, error: BaseException, duration: float):
        self._emit(logging.ERROR, "DATABASE_ERROR", {
            "timestamp": _utcnow(),
            "eventType": DATABASE_ERROR,
            "operation": operation,
            "error": _describe_error(error),
            "duration": round(duration, 2),
        })

    def log_validation_error(self, email: str, error: BaseException, duration: float,
                             metadata: Optional[Dict[str, Any]] = None):
        self._emit(logging.ERROR, "EMAIL_VALIDATION_ERROR", {
            "timestamp": _utcnow(),
            "email": hash_email(email),
            # Le DATABASE_ERROR est déjà émis par le lookup fautif
            "eventType": VALIDATION_FAILURE,
            "error": _describe_error(error),
            "performance": {"duration": round(duration, 2), "queryType": "COMBINED_VALIDATION"},
            "metadata": _clean_metadata(metadata),
        })

    def log_graceful_degradation(self, email: str, operation: str, decision: str,
                                 error: Optional[BaseException] = None,
                                 metadata: Optional[Dict[str, Any]] = None):
        """Une dépendance a échoué et le flux continue quand même."""
        self._emit(logging.WARNING, "GRACEFUL_DEGRADATION", {
            "timestamp": _utcnow(),
            "email": hash_email(email) if email else None,
            "eventType": GRACEFUL_DEGRADATION,
            "operation": operation,
            "decision": decision,
            "error": _describe_error(error) if error is not None else None,
            "metadata": _clean_metadata(metadata),
        })

    # ── Performance ─────────────────────────────────────────────────────────
    def log_performance_warning(self, email: Optional[str], duration: float, operation: str):
        self._emit(logging.WARNING, "PERFORMANCE_WARNING", {
            "timestamp": _utcnow(),
            "eventType": PERFORMANCE_WARNING,
            "operation": operation,
            "duration": round(duration, 2),
            "success": True,
            "email": hash_email(email) if email else None,
        })

    def log_performance_metrics(self, operation: str, duration: float, email: Optional[str] = None):
        if duration <= self.metrics_threshold_ms:
            return
        self._emit(logging.INFO, "PERFORMANCE_METRICS", {
            "timestamp": _utcnow(),
            "eventType": PERFORMANCE_METRICS,
            "operation": operation,
            "duration": round(duration, 2),
            "success": True,
            "email": hash_email(email) if email else None,
        })
