from sqlalchemy import Column, String, Integer, DateTime
from datetime import datetime
import enum
from app.database import Base


class ClientStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    PAST_DUE = "past_due"


class Client(Base):
    """Membre payant. Écrit par la réconciliation checkout, lu ici seulement."""
    __tablename__ = "clients"

    id     = Column(String, primary_key=True, index=True)
    email  = Column(String, nullable=False, index=True)   # toujours normalisé
    name   = Column(String, nullable=True)
    status = Column(String, nullable=False, default=ClientStatus.ACTIVE.value)

    stripe_session_id  = Column(String, nullable=True, index=True)
    stripe_customer_id = Column(String, nullable=True)

    # Montant en unités mineures, tel que renvoyé par Stripe
    amount_total = Column(Integer, nullable=True)
    currency     = Column(String, nullable=True)
    tier_name    = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
