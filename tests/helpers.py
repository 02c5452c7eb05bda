"""Doublures partagées par les tests : logger enregistreur, faux Stripe, webhooks signés."""
import hashlib
import hmac
import json
import os
import time

from app.services.event_logger import EmailValidationLogger
from app.services.payment_gateway import GatewaySession, GatewayPaymentIntent

WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")


class RecordingEventLogger(EmailValidationLogger):
    """Capture les évènements au lieu de les écrire."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.events = []

    def _emit(self, level, tag, event, target=None):
        self.events.append({"tag": tag, "level": level, **event})

    def of_type(self, event_type):
        return [e for e in self.events if e.get("eventType") == event_type]

    def tagged(self, tag):
        return [e for e in self.events if e["tag"] == tag]


class FakeGateway:
    def __init__(self):
        self.customers = {}
        self.created_customers = []
        self.sessions = []
        self.intents = []
        self.customer_error = None
        self.session_error = None

    def find_customer_by_email(self, email):
        if self.customer_error:
            raise self.customer_error
        return self.customers.get(email)

    def create_customer(self, email, name, phone=None, country=None):
        if self.customer_error:
            raise self.customer_error
        customer_id = f"cus_new_{len(self.created_customers) + 1}"
        self.created_customers.append({"email": email, "name": name, "phone": phone, "country": country})
        self.customers[email] = customer_id
        return customer_id

    def create_checkout_session(self, config):
        if self.session_error:
            raise self.session_error
        self.sessions.append(config)
        session_id = f"cs_test_{len(self.sessions)}"
        return GatewaySession(id=session_id, url=f"https://checkout.stripe.test/pay/{session_id}")

    def create_payment_intent(self, amount_minor, currency, metadata):
        self.intents.append({"amount": amount_minor, "currency": currency, "metadata": metadata})
        return GatewayPaymentIntent(id="pi_test_1", client_secret="pi_test_1_secret_abc")


class FakeNotifications:
    def __init__(self):
        self.calls = []

    def lead_created(self, data):
        self.calls.append(("lead_created", data))

    def payment_succeeded(self, data):
        self.calls.append(("payment_succeeded", data))

    def payment_failed(self, lead_id, payment_intent_id):
        self.calls.append(("payment_failed", lead_id, payment_intent_id))

    def kinds(self):
        return [c[0] for c in self.calls]


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """En-tête stripe-signature : t=...,v1=HMAC-SHA256("t.payload")."""
    t = timestamp or int(time.time())
    signed = f"{t}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={t},v1={signature}"


def make_event(event_type: str, obj: dict, event_id: str = "evt_test_1") -> bytes:
    return json.dumps({
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "data": {"object": obj},
    }).encode("utf-8")


