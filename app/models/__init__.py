from app.models.lead import Lead, LeadStatus
from app.models.client import Client, ClientStatus

__all__ = ["Lead", "LeadStatus", "Client", "ClientStatus"]
