from sqlalchemy import Column, String, DateTime, Numeric, Enum
from datetime import datetime
import enum
from app.database import Base


class LeadStatus(str, enum.Enum):
    NEW = "new"
    CHECKOUT_STARTED = "checkout_started"
    PAID = "paid"
    PAYMENT_FAILED = "payment_failed"


class Lead(Base):
    __tablename__ = "leads"

    id       = Column(String, primary_key=True)
    email    = Column(String, nullable=False, unique=True, index=True)   # toujours normalisé
    name     = Column(String, nullable=True)
    phone    = Column(String, nullable=True)
    location = Column(String, nullable=True)

    # Cycle de vie : new → checkout_started → paid | payment_failed
    status = Column(
        Enum(LeadStatus, values_callable=lambda e: [m.value for m in e], native_enum=False),
        default=LeadStatus.NEW,
        nullable=False,
    )

    # Stripe
    stripe_session_id = Column(String, nullable=True, index=True)
    payment_intent_id = Column(String, nullable=True)
    amount_paid       = Column(Numeric(10, 2), nullable=True)
    paid_at           = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
