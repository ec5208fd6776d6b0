from models.requests import ClaimRequest, GeneralQuoteRequest, QuoteRequest


def test_quote_request_is_created(client, db, make_company):
    company = make_company()

    response = client.post(
        "/api/quote-requests",
        json={
            "companyId": company.id,
            "name": "Anna Svensson",
            "email": "anna@verkstad.se",
            "company": "Svenssons Verkstad",
            "serviceType": "Reparation",
            "message": "Behöver hjälp med en hydraulpress",
            "urgency": "akut",
            "preferredContact": "phone",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["companyId"] == company.id
    assert body["company"] == "Svenssons Verkstad"
    assert body["urgency"] == "akut"
    assert body["preferredContact"] == "phone"

    stored = db.query(QuoteRequest).one()
    assert stored.company_name == "Svenssons Verkstad"


def test_quote_request_defaults_preferred_contact_to_email(client, make_company):
    company = make_company()

    body = client.post(
        "/api/quote-requests",
        json={"companyId": company.id, "name": "Anna", "email": "anna@verkstad.se", "message": "Hej"},
    ).json()

    assert body["preferredContact"] == "email"


def test_quote_request_for_unknown_company(client):
    response = client.post(
        "/api/quote-requests",
        json={"companyId": "missing", "name": "Anna", "email": "anna@verkstad.se", "message": "Hej"},
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Company not found"


def test_quote_request_validation_error(client, make_company):
    company = make_company()

    response = client.post(
        "/api/quote-requests",
        json={"companyId": company.id, "name": "Anna", "email": "not-an-email", "message": ""},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid request data"
    assert body["errors"]


def test_claim_via_company_path(client, db, make_company):
    company = make_company()

    response = client.post(
        f"/api/companies/{company.id}/claim",
        json={
            "name": "Erik Ek",
            "email": "Erik@Precision.se",
            "phone": "070-123 45 67",
            "message": "Jag är VD på företaget",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["companyId"] == company.id
    assert body["email"] == "erik@precision.se"
    assert db.query(ClaimRequest).count() == 1


def test_claim_path_overrides_body_company(client, make_company):
    company = make_company()
    other = make_company(name="Annat AB")

    body = client.post(
        f"/api/companies/{company.id}/claim",
        json={"companyId": other.id, "name": "Erik", "email": "erik@precision.se", "message": "Min firma"},
    ).json()

    assert body["companyId"] == company.id


def test_claim_via_body_company_id(client, make_company):
    company = make_company()

    response = client.post(
        "/api/claim-requests",
        json={"companyId": company.id, "name": "Erik", "email": "erik@precision.se", "message": "Min firma"},
    )

    assert response.status_code == 201


def test_claim_for_unknown_company(client):
    response = client.post(
        "/api/companies/missing/claim",
        json={"name": "Erik", "email": "erik@precision.se", "message": "Min firma"},
    )
    assert response.status_code == 404

    response = client.post(
        "/api/claim-requests",
        json={"name": "Erik", "email": "erik@precision.se", "message": "Min firma"},
    )
    assert response.status_code == 404


def test_general_quote_request(client, db):
    response = client.post(
        "/api/general-quote-requests",
        json={
            "description": "Vi söker någon som kan serva vår kompressor",
            "serviceType": "Service",
            "name": "Lisa",
            "email": "lisa@bageri.se",
            "company": "Lisas Bageri",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["urgency"] == "planerad"
    assert body["company"] == "Lisas Bageri"
    assert db.query(GeneralQuoteRequest).count() == 1


def test_general_quote_request_rejects_unknown_urgency(client):
    response = client.post(
        "/api/general-quote-requests",
        json={"description": "x", "name": "Lisa", "email": "lisa@bageri.se", "urgency": "igår"},
    )

    assert response.status_code == 400
