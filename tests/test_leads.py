from app.models import Lead, LeadStatus


def test_creates_lead_and_queues_notifications(client, db_session, notifications):
    response = client.post("/leads", json={
        "name": "Ada Obi",
        "email": " Ada@Example.com ",
        "phone": "+2348000000000",
        "location": "Lagos",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    lead = db_session.query(Lead).filter(Lead.id == body["leadId"]).one()
    assert lead.email == "ada@example.com"
    assert lead.status == LeadStatus.NEW
    assert lead.location == "Lagos"
    assert notifications.kinds() == ["lead_created"]
    assert notifications.calls[0][1].email == "ada@example.com"


def test_resubmission_updates_same_lead(client, db_session, notifications):
    first = client.post("/leads", json={"name": "Ada", "email": "ada@example.com"}).json()
    second = client.post("/leads", json={"name": "Ada Obi", "email": "ADA@example.com", "phone": "+44 7700"}).json()

    assert first["leadId"] == second["leadId"]
    assert db_session.query(Lead).count() == 1
    lead = db_session.query(Lead).one()
    assert lead.name == "Ada Obi"
    assert lead.phone == "+44 7700"
    assert notifications.kinds() == ["lead_created"]


def test_resubmission_keeps_status(client, db_session):
    client.post("/leads", json={"name": "Ada", "email": "ada@example.com"})
    lead = db_session.query(Lead).one()
    lead.status = LeadStatus.PAID
    db_session.commit()

    client.post("/leads", json={"name": "Ada", "email": "ada@example.com"})

    db_session.refresh(lead)
    assert lead.status == LeadStatus.PAID


def test_name_and_email_are_required(client, db_session):
    response = client.post("/leads", json={"email": "ada@example.com"})

    assert response.status_code == 400
    assert response.json() == {"error": "Name and email are required"}
    assert db_session.query(Lead).count() == 0


def test_invalid_email_is_rejected(client, db_session):
    response = client.post("/leads", json={"name": "Ada", "email": "ada-at-example"})

    assert response.status_code == 400
    assert response.json()["errorType"] == "VALIDATION_ERROR"
    assert db_session.query(Lead).count() == 0
