"""
app/services/payment_gateway.py
Façade Stripe : clients, sessions Checkout, PaymentIntents, signature webhook.

Les erreurs du SDK sont converties en GatewayError / WebhookSignatureError
pour que les routes n'aient pas à connaître stripe.
"""
import json
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Literal

import stripe
from pydantic import BaseModel, field_validator, model_validator

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    pass


class WebhookSignatureError(Exception):
    pass


@dataclass
class GatewaySession:
    id: str
    url: str


@dataclass
class GatewayPaymentIntent:
    id: str
    client_secret: str


class CheckoutSessionConfig(BaseModel):
    """Configuration typée d'une session Checkout : customer XOR customer_email."""

    price_id: str
    success_url: str
    cancel_url: str
    mode: Literal["subscription", "payment"] = "subscription"
    customer: Optional[str] = None
    customer_email: Optional[str] = None
    client_reference_id: Optional[str] = None
    metadata: Dict[str, str] = {}

    @field_validator("price_id", "success_url", "cancel_url")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("metadata", mode="before")
    @classmethod
    def _drop_empty_metadata(cls, value):
        # Stripe n'accepte que des chaînes
        return {k: str(v) for k, v in (value or {}).items() if v is not None and v != ""}

    @model_validator(mode="after")
    def _single_customer_source(self):
        if self.customer and self.customer_email:
            raise ValueError("customer and customer_email are mutually exclusive")
        return self

    def to_stripe_params(self) -> dict:
        params = {
            "mode": self.mode,
            "payment_method_types": ["card"],
            "line_items": [{"price": self.price_id, "quantity": 1}],
            "billing_address_collection": "required",
            "phone_number_collection": {"enabled": True},
            "success_url": self.success_url,
            "cancel_url": self.cancel_url,
            "metadata": self.metadata,
        }
        if self.customer:
            params["customer"] = self.customer
        elif self.customer_email:
            params["customer_email"] = self.customer_email
        if self.client_reference_id:
            params["client_reference_id"] = self.client_reference_id
        return params


class PaymentGateway:

    def __init__(self, secret_key: str, webhook_secret: str, tolerance: int = 300):
        stripe.api_key = secret_key
        self.webhook_secret = webhook_secret
        self.tolerance = tolerance

    def find_customer_by_email(self, email: str) -> Optional[str]:
        try:
            customers = stripe.Customer.list(email=email, limit=1)
        except stripe.StripeError as e:
            raise GatewayError(f"Customer search failed: {e}") from e
        return customers.data[0].id if customers.data else None

    def create_customer(self, email: str, name: str, phone: Optional[str] = None,
                        country: Optional[str] = None) -> str:
        params = {"email": email, "name": name}
        if phone:
            params["phone"] = phone
        if country:
            params["address"] = {"country": country}
        try:
            customer = stripe.Customer.create(**params)
        except stripe.StripeError as e:
            raise GatewayError(f"Customer creation failed: {e}") from e
        return customer.id

    def create_checkout_session(self, config: CheckoutSessionConfig) -> GatewaySession:
        try:
            session = stripe.checkout.Session.create(**config.to_stripe_params())
        except stripe.StripeError as e:
            raise GatewayError(f"Checkout session creation failed: {e}") from e
        return GatewaySession(id=session.id, url=session.url)

    def create_payment_intent(self, amount_minor: int, currency: str,
                              metadata: Dict[str, str]) -> GatewayPaymentIntent:
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_minor,
                currency=currency,
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as e:
            raise GatewayError(f"Payment intent creation failed: {e}") from e
        return GatewayPaymentIntent(id=intent.id, client_secret=intent.client_secret)

    def construct_event(self, payload: bytes, signature: str) -> dict:
        """Vérifie la signature sur le corps brut puis renvoie l'évènement en dict."""
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret, tolerance=self.tolerance)
        except ValueError as e:
            raise WebhookSignatureError("Invalid payload") from e
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError("Invalid signature") from e
        return json.loads(payload)
