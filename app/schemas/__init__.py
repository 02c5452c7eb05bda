from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union
from datetime import datetime

# Validation Schemas
class EmailValidationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(alias="isValid")
    exists_as_client: bool = Field(default=False, alias="existsAsClient")
    exists_as_lead: bool = Field(default=False, alias="existsAsLead")
    client_id: Optional[str] = Field(default=None, alias="clientId")
    lead_id: Optional[str] = Field(default=None, alias="leadId")

    def to_log(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

# Checkout Schemas
class CheckoutRequest(BaseModel):
    # str et non EmailStr : un email mal formé doit recevoir l'enveloppe VALIDATION_ERROR
    email: Optional[str] = None
    userId: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None

class CheckoutResponse(BaseModel):
    url: str

# Lead Schemas
class LeadCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None

# Payment Schemas
class PaymentIntentCreate(BaseModel):
    amount: float                      # unités majeures (ex. 25.00)
    currency: str = "usd"
    leadId: Optional[Union[str, int]] = None
    email: Optional[str] = None

class PaymentSummary(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    tier_name: Optional[str] = None
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class VerifyPaymentResponse(BaseModel):
    verified: bool
    payment: Optional[PaymentSummary] = None
    message: Optional[str] = None
