"""
app/services/email_validation.py
Contrôle anti-doublon avant checkout.

- DuplicateLookupService : lectures clients (status=active) / leads par email normalisé
- EmailValidator         : format → normalisation → lookups → résultat + télémétrie

EmailValidator ne décide jamais du fail-open : une DatastoreError est
journalisée puis remontée à l'appelant (routes/checkout.py).
"""
import time
from dataclasses import dataclass
from typing import Optional, Dict, Any, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import Client, ClientStatus, Lead
from app.schemas import EmailValidationResult
from app.services.email_format import normalize_email, is_valid_email_format
from app.services.event_logger import EmailValidationLogger

CLIENT_CHECK = "CLIENT_CHECK"
LEAD_CHECK = "LEAD_CHECK"


class DatastoreError(Exception):
    """Échec transitoire de la base (timeout, connexion coupée), distinct de « non trouvé »."""

    def __init__(self, operation: str, original: BaseException):
        super().__init__(f"{operation} failed: {original}")
        self.operation = operation
        self.original = original
        self.code = getattr(original, "code", None)


@dataclass
class ClientRecord:
    id: str
    email: str
    status: str


@dataclass
class LeadRecord:
    id: str
    email: str
    status: str


def _elapsed_ms(clock: Callable[[], float], start: float) -> float:
    return (clock() - start) * 1000


class DuplicateLookupService:
    """Chaque appel est une lecture indépendante ; None = aucun enregistrement."""

    def __init__(self, db: Session, event_logger: EmailValidationLogger,
                 clock: Callable[[], float] = time.perf_counter):
        self.db = db
        self.event_logger = event_logger
        self.clock = clock

    def find_active_client_by_email(self, email: str) -> Optional[ClientRecord]:
        def query():
            client = (
                self.db.query(Client)
                .filter(Client.email == email, Client.status == ClientStatus.ACTIVE.value)
                .order_by(Client.created_at.desc())
                .first()
            )
            if client is None:
                return None
            return ClientRecord(id=client.id, email=client.email, status=client.status)

        return self._run(CLIENT_CHECK, email, query)

    def find_lead_by_email(self, email: str) -> Optional[LeadRecord]:
        def query():
            lead = self.db.query(Lead).filter(Lead.email == email).first()
            if lead is None:
                return None
            status = lead.status.value if hasattr(lead.status, "value") else lead.status
            return LeadRecord(id=lead.id, email=lead.email, status=status)

        return self._run(LEAD_CHECK, email, query)

    def _run(self, operation: str, email: str, query: Callable):
        start = self.clock()
        try:
            record = query()
        except SQLAlchemyError as e:
            self.event_logger.log_database_error(operation, e, _elapsed_ms(self.clock, start))
            self.db.rollback()
            raise DatastoreError(operation, e) from e
        self.event_logger.log_performance_metrics(operation, _elapsed_ms(self.clock, start), email)
        return record


class EmailValidator:
    """Orchestrateur : format, normalisation, lookups client puis lead."""

    def __init__(self, lookup: DuplicateLookupService, event_logger: EmailValidationLogger,
                 clock: Callable[[], float] = time.perf_counter):
        self.lookup = lookup
        self.event_logger = event_logger
        self.clock = clock

    def validate_email(self, raw_email: str, metadata: Optional[Dict[str, Any]] = None) -> EmailValidationResult:
        start = self.clock()

        # Format invalide → aucune requête en base
        if not is_valid_email_format(raw_email):
            result = EmailValidationResult(is_valid=False)
            self.event_logger.log_validation_attempt(
                raw_email or "", result.to_log(), _elapsed_ms(self.clock, start), metadata
            )
            return result

        email = normalize_email(raw_email)

        try:
            # Lectures indépendantes, sans ordre imposé
            client = self.lookup.find_active_client_by_email(email)
            lead = self.lookup.find_lead_by_email(email)
        except DatastoreError as e:
            self.event_logger.log_validation_error(email, e, _elapsed_ms(self.clock, start), metadata)
            raise

        result = EmailValidationResult(
            is_valid=True,
            exists_as_client=client is not None,
            exists_as_lead=lead is not None,
            client_id=client.id if client else None,
            lead_id=lead.id if lead else None,
        )

        duration = _elapsed_ms(self.clock, start)
        self.event_logger.log_validation_attempt(email, result.to_log(), duration, metadata)
        self.event_logger.log_performance_metrics("EMAIL_VALIDATION", duration, email)

        if client is not None:
            self.event_logger.log_duplicate_client_detection(email, client.id, metadata)
        elif lead is not None:
            self.event_logger.log_lead_conversion(email, lead.id, metadata)

        return result
