from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import datetime
import logging
import time
import uuid

from app.database import get_db
from app.dependencies import get_event_logger, get_notifications, limiter
from app.errors import create_server_error, create_validation_error, error_response
from app.models import Lead, LeadStatus
from app.schemas import LeadCreate
from app.services.email_format import normalize_email, is_valid_email_format
from app.services.email_templates import LeadNotificationData
from app.services.event_logger import EmailValidationLogger, hash_email
from app.services.notifications import NotificationQueue

router = APIRouter()
logger = logging.getLogger(__name__)


def _apply(lead: Lead, data: LeadCreate):
    lead.name = data.name
    lead.phone = data.phone or None
    lead.location = data.location or None


def upsert_lead(db: Session, email: str, data: LeadCreate):
    """Insère ou met à jour le lead par email normalisé. Renvoie (lead, created)."""
    lead = db.query(Lead).filter(Lead.email == email).first()
    if lead:
        _apply(lead, data)
        db.commit()
        return lead, False

    lead = Lead(id=str(uuid.uuid4()), email=email, status=LeadStatus.NEW, created_at=datetime.utcnow())
    _apply(lead, data)
    db.add(lead)
    try:
        db.commit()
        return lead, True
    except IntegrityError:
        # Inscription concurrente sur le même email : l'index unique a tranché
        db.rollback()
        lead = db.query(Lead).filter(Lead.email == email).first()
        if lead is None:
            raise
        _apply(lead, data)
        db.commit()
        return lead, False


@router.post("/leads")
@limiter.limit("20/minute")
def create_lead(
    request: Request,
    data: LeadCreate,
    db: Session = Depends(get_db),
    event_logger: EmailValidationLogger = Depends(get_event_logger),
    notifications: NotificationQueue = Depends(get_notifications),
):
    if not data.name or not data.email:
        return JSONResponse(status_code=400, content={"error": "Name and email are required"})
    if not is_valid_email_format(data.email):
        return error_response(create_validation_error("email"))

    email = normalize_email(data.email)
    start = time.perf_counter()
    try:
        lead, created = upsert_lead(db, email, data)
    except SQLAlchemyError as e:
        db.rollback()
        duration = (time.perf_counter() - start) * 1000
        event_logger.log_database_error("LEAD_UPSERT", e, duration)
        return error_response(create_server_error("Failed to save lead information"))

    logger.info("✅ Lead saved: %s (%s)", hash_email(email), "created" if created else "updated")

    if created:
        notifications.lead_created(LeadNotificationData(
            name=lead.name,
            email=lead.email,
            phone=lead.phone,
            location=lead.location,
            created_at=lead.created_at.isoformat() if lead.created_at else datetime.utcnow().isoformat(),
        ))

    return {"success": True, "leadId": lead.id}
