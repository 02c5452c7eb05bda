import uuid
from decimal import Decimal

from app.models import Lead, LeadStatus

from helpers import make_event, sign_payload


def add_lead(db, status=LeadStatus.CHECKOUT_STARTED, email="payer@example.com"):
    lead = Lead(id=str(uuid.uuid4()), email=email, name="Ada Obi", status=status)
    db.add(lead)
    db.commit()
    return lead


def intent(lead_id, intent_id="pi_test_1", amount=2500):
    return {
        "id": intent_id,
        "object": "payment_intent",
        "amount": amount,
        "currency": "usd",
        "metadata": {"leadId": lead_id} if lead_id else {},
    }


def post_event(client, payload, signature=None):
    headers = {"stripe-signature": signature if signature is not None else sign_payload(payload),
               "content-type": "application/json"}
    return client.post("/webhooks/payment", content=payload, headers=headers)


class TestSignature:

    def test_missing_header_is_rejected(self, webhook_client, db_session):
        payload = make_event("payment_intent.succeeded", intent("lead-1"))

        response = webhook_client.post("/webhooks/payment", content=payload)

        assert response.status_code == 400

    def test_invalid_signature_changes_nothing(self, webhook_client, db_session, notifications):
        lead = add_lead(db_session)
        payload = make_event("payment_intent.succeeded", intent(lead.id))

        response = post_event(webhook_client, payload, sign_payload(payload, secret="whsec_wrong"))

        assert response.status_code == 400
        assert "error" in response.json()
        db_session.refresh(lead)
        assert lead.status == LeadStatus.CHECKOUT_STARTED
        assert notifications.calls == []

    def test_tampered_body_is_rejected(self, webhook_client, db_session):
        lead = add_lead(db_session)
        payload = make_event("payment_intent.succeeded", intent(lead.id))
        signature = sign_payload(payload)
        tampered = payload.replace(b"2500", b"9900")

        response = post_event(webhook_client, tampered, signature)

        assert response.status_code == 400
        db_session.refresh(lead)
        assert lead.status == LeadStatus.CHECKOUT_STARTED

    def test_expired_timestamp_is_rejected(self, webhook_client, db_session):
        payload = make_event("payment_intent.succeeded", intent("lead-1"))

        response = post_event(webhook_client, payload, sign_payload(payload, timestamp=1_000_000_000))

        assert response.status_code == 400


class TestReconciliation:

    def test_succeeded_marks_lead_paid(self, webhook_client, db_session, notifications):
        lead = add_lead(db_session)

        response = post_event(webhook_client, make_event("payment_intent.succeeded", intent(lead.id)))

        assert response.status_code == 200
        assert response.json() == {"received": True}
        db_session.refresh(lead)
        assert lead.status == LeadStatus.PAID
        assert lead.payment_intent_id == "pi_test_1"
        assert lead.amount_paid == Decimal("25.00")
        assert lead.paid_at is not None
        assert notifications.kinds() == ["payment_succeeded"]
        data = notifications.calls[0][1]
        assert data.amount == "25.00"
        assert data.currency == "USD"
        assert data.email == "payer@example.com"

    def test_replayed_success_is_a_no_op(self, webhook_client, db_session, notifications):
        lead = add_lead(db_session)
        payload = make_event("payment_intent.succeeded", intent(lead.id))

        post_event(webhook_client, payload)
        db_session.refresh(lead)
        first_paid_at = lead.paid_at

        response = post_event(webhook_client, payload)

        assert response.status_code == 200
        db_session.refresh(lead)
        assert lead.status == LeadStatus.PAID
        assert lead.paid_at == first_paid_at
        assert notifications.kinds() == ["payment_succeeded"]

    def test_failed_marks_lead_payment_failed(self, webhook_client, db_session, notifications):
        lead = add_lead(db_session)

        response = post_event(webhook_client, make_event("payment_intent.payment_failed", intent(lead.id)))

        assert response.status_code == 200
        db_session.refresh(lead)
        assert lead.status == LeadStatus.PAYMENT_FAILED
        assert lead.payment_intent_id == "pi_test_1"
        assert notifications.calls == [("payment_failed", lead.id, "pi_test_1")]

    def test_failure_after_success_never_downgrades(self, webhook_client, db_session):
        lead = add_lead(db_session)

        post_event(webhook_client, make_event("payment_intent.succeeded", intent(lead.id), "evt_1"))
        response = post_event(webhook_client,
                              make_event("payment_intent.payment_failed", intent(lead.id, "pi_test_2"), "evt_2"))

        assert response.status_code == 200
        db_session.refresh(lead)
        assert lead.status == LeadStatus.PAID
        assert lead.payment_intent_id == "pi_test_1"

    def test_success_after_failure_is_applied(self, webhook_client, db_session):
        lead = add_lead(db_session, status=LeadStatus.PAYMENT_FAILED)

        post_event(webhook_client, make_event("payment_intent.succeeded", intent(lead.id, "pi_retry")))

        db_session.refresh(lead)
        assert lead.status == LeadStatus.PAID
        assert lead.payment_intent_id == "pi_retry"

    def test_missing_lead_reference_is_acknowledged(self, webhook_client, db_session, notifications):
        lead = add_lead(db_session)

        response = post_event(webhook_client, make_event("payment_intent.succeeded", intent(None)))

        assert response.status_code == 200
        db_session.refresh(lead)
        assert lead.status == LeadStatus.CHECKOUT_STARTED
        assert notifications.calls == []

    def test_unknown_lead_is_acknowledged(self, webhook_client):
        response = post_event(webhook_client, make_event("payment_intent.succeeded", intent("no-such-lead")))

        assert response.status_code == 200

    def test_unhandled_event_type_is_acknowledged(self, webhook_client):
        response = post_event(webhook_client, make_event("customer.created", {"id": "cus_1", "object": "customer"}))

        assert response.status_code == 200
        assert response.json() == {"received": True}

    def test_handler_failure_still_acknowledges(self, webhook_client, db_session, monkeypatch):
        lead = add_lead(db_session)

        def broken_commit():
            raise RuntimeError("disk full")

        monkeypatch.setattr(db_session, "commit", broken_commit)

        response = post_event(webhook_client, make_event("payment_intent.succeeded", intent(lead.id)))

        assert response.status_code == 200
        assert response.json() == {"received": True}
