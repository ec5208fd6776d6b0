import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt

from authentication import identity_tokens
from authentication.security import create_admin_token, create_company_token, hash_password
from models.company_user import CompanyUser


@pytest.fixture
def portal(db, make_company):
    company = make_company(slug="precision-tech-ab", phone="033-123 45 67")
    company_user = CompanyUser(
        company_id=company.id,
        email="erik@precision.se",
        name="Erik Ek",
        role="owner",
        access_token_hash=hash_password("secret-token"),
    )
    db.add(company_user)
    db.commit()
    db.refresh(company_user)
    headers = {"Authorization": f"Bearer {create_company_token(company_user)}"}
    return company, company_user, headers


def test_profile_returns_own_company(client, portal):
    company, _, headers = portal

    response = client.get("/api/company/profile", headers=headers)

    assert response.status_code == 200
    assert response.json()["slug"] == "precision-tech-ab"


def test_verify_returns_principal(client, portal):
    company, _, headers = portal

    body = client.get("/api/company/verify", headers=headers).json()

    assert body["email"] == "erik@precision.se"
    assert body["company"]["id"] == company.id


def test_update_profile(client, portal):
    _, _, headers = portal

    response = client.put(
        "/api/company/profile",
        headers=headers,
        json={
            "descriptionSv": "Vi fräser och svarvar",
            "categories": ["CNC-bearbetning", "Svarvning"],
            "serviceAreas": ["Borås", "Ulricehamn"],
            "website": "www.precision.se",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["descriptionSv"] == "Vi fräser och svarvar"
    assert body["categories"] == ["CNC-bearbetning", "Svarvning"]
    assert body["serviceAreas"] == ["Borås", "Ulricehamn"]
    # untouched fields keep their value
    assert body["phone"] == "033-123 45 67"


def test_update_profile_ignores_admin_only_fields(client, portal):
    _, _, headers = portal

    body = client.put(
        "/api/company/profile",
        headers=headers,
        json={"slug": "hijacked", "isFeatured": True, "isVerified": True, "city": "Ulricehamn"},
    ).json()

    assert body["slug"] == "precision-tech-ab"
    assert body["isFeatured"] is False
    assert body["isVerified"] is False
    assert body["city"] == "Ulricehamn"


def test_update_profile_rejects_clearing_required_fields(client, portal):
    _, _, headers = portal

    assert client.put("/api/company/profile", headers=headers, json={"name": ""}).status_code == 400
    assert client.put("/api/company/profile", headers=headers, json={"region": None}).status_code == 400


def test_quote_requests_are_scoped_to_own_company(client, portal, make_company):
    company, _, headers = portal
    other = make_company(name="Annat AB")
    for target in (company, other):
        client.post(
            "/api/quote-requests",
            json={"companyId": target.id, "name": "Kund", "email": "kund@example.se", "message": "Offert"},
        )

    quotes = client.get("/api/company/quote-requests", headers=headers).json()

    assert [q["companyId"] for q in quotes] == [company.id]


def test_claim_requests_are_scoped_to_own_company(client, portal, make_company):
    company, _, headers = portal
    other = make_company(name="Annat AB")
    for target in (company, other):
        client.post(
            f"/api/companies/{target.id}/claim",
            json={"name": "Anna", "email": "anna@example.se", "message": "Min firma"},
        )

    claims = client.get("/api/company/claim-requests", headers=headers).json()

    assert [c["companyId"] for c in claims] == [company.id]


def test_portal_requires_valid_token(client, portal):
    assert client.get("/api/company/profile").status_code == 401
    response = client.get("/api/company/profile", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json() == {"message": "Invalid token"}


def test_admin_token_is_not_a_portal_token(client, portal, admin_user):
    headers = {"Authorization": f"Bearer {create_admin_token(admin_user)}"}

    assert client.get("/api/company/profile", headers=headers).status_code == 401


def test_deactivated_user_is_rejected(client, db, portal):
    _, company_user, headers = portal
    company_user.is_active = False
    db.commit()

    assert client.get("/api/company/profile", headers=headers).status_code == 401


@pytest.fixture
def provider_keys(monkeypatch):
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    public_pem = key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    jwks = {"keys": [jwk.construct(public_pem, "RS256").to_dict()]}

    monkeypatch.setenv("IDENTITY_JWKS_URL", "https://idp.test/.well-known/jwks.json")
    monkeypatch.setattr(identity_tokens, "_fetch_jwks", lambda url: jwks)
    identity_tokens.invalidate_jwks_cache()
    yield private_pem
    identity_tokens.invalidate_jwks_cache()


def _provider_headers(private_pem, **claims):
    token = jwt.encode({"sub": "user_1", **claims}, private_pem, algorithm="RS256")
    return {"Authorization": f"Bearer {token}"}


def test_provider_token_maps_to_company_user(client, db, portal, provider_keys):
    company, _, _ = portal
    company.identity_org_id = "org_1"
    db.commit()

    headers = _provider_headers(provider_keys, org_id="org_1", email="Erik@Precision.se")

    response = client.get("/api/company/profile", headers=headers)
    assert response.status_code == 200
    assert response.json()["id"] == company.id


def test_provider_token_for_unknown_org_is_rejected(client, db, portal, provider_keys):
    company, _, _ = portal
    company.identity_org_id = "org_1"
    db.commit()

    headers = _provider_headers(provider_keys, org_id="org_other", email="erik@precision.se")

    assert client.get("/api/company/profile", headers=headers).status_code == 401


def test_provider_tokens_ignored_when_disabled(client, portal, provider_keys, monkeypatch):
    monkeypatch.delenv("IDENTITY_JWKS_URL")
    headers = _provider_headers(provider_keys, org_id="org_1", email="erik@precision.se")

    assert client.get("/api/company/profile", headers=headers).status_code == 401
