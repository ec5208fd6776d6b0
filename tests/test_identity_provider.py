from types import SimpleNamespace
from urllib.error import URLError

import pytest

from services.identity_provider import IdentityProviderClient, IdentityProviderError


def _company(**overrides):
    values = {"id": "c1", "name": "Precision Tech AB", "slug": "precision-tech-ab", "identity_org_id": None}
    values.update(overrides)
    return SimpleNamespace(**values)


def _slug_taken():
    return {"errors": [{"code": "form_identifier_exists", "message": "That slug is taken."}]}


def test_create_organization_retries_taken_slug(identity_client, fake_transport):
    fake_transport.queue("POST", "/organizations", 422, _slug_taken())
    fake_transport.queue("POST", "/organizations", 422, _slug_taken())
    fake_transport.queue("POST", "/organizations", 200, {"id": "org_3"})

    org = identity_client.create_organization("Precision Tech AB", "precision-tech-ab")

    assert org["id"] == "org_3"
    assert [call[2]["slug"] for call in fake_transport.calls] == [
        "precision-tech-ab",
        "precision-tech-ab-2",
        "precision-tech-ab-3",
    ]


def test_create_organization_gives_up_after_max_slug_attempts(identity_client, fake_transport):
    for _ in range(5):
        fake_transport.queue("POST", "/organizations", 422, _slug_taken())

    with pytest.raises(IdentityProviderError) as excinfo:
        identity_client.create_organization("Precision Tech AB", "precision-tech-ab")

    assert excinfo.value.status == 409
    assert len(fake_transport.calls) == 5


def test_creator_and_redirect_are_sent_when_configured(fake_transport):
    client = IdentityProviderClient(
        secret_key="sk_test",
        api_url="https://idp.test/v1/",
        invite_redirect_url="https://katalog.test/portal",
        org_creator_user_id="user_1",
        transport=fake_transport,
        backoff_seconds=0,
    )
    fake_transport.queue("POST", "/organizations", 200, {"id": "org_1"})
    fake_transport.queue("POST", "/organizations/org_1/invitations", 200, {"id": "inv_1"})

    result = client.provision_claim(_company(), "erik@precision.se")

    assert result.organization_id == "org_1"
    assert result.invitation_id == "inv_1"
    assert fake_transport.calls[0][2]["created_by"] == "user_1"
    assert fake_transport.calls[1][2] == {
        "email_address": "erik@precision.se",
        "role": "org:admin",
        "redirect_url": "https://katalog.test/portal",
        "inviter_user_id": "user_1",
    }


def test_already_invited_returns_none(identity_client, fake_transport):
    fake_transport.queue(
        "POST",
        "/organizations/org_1/invitations",
        422,
        {"errors": [{"code": "already_a_member_in_organization", "message": "Already a member"}]},
    )

    assert identity_client.invite_member("org_1", "erik@precision.se") is None


def test_transient_errors_are_retried(identity_client, fake_transport):
    fake_transport.queue("POST", "/organizations/org_1/invitations", 503, {})
    fake_transport.queue("POST", "/organizations/org_1/invitations", 429, {"errors": [{"message": "Too many"}]})
    fake_transport.queue("POST", "/organizations/org_1/invitations", 200, {"id": "inv_1"})

    assert identity_client.invite_member("org_1", "erik@precision.se") == {"id": "inv_1"}
    assert len(fake_transport.calls) == 3


def test_transient_errors_give_up_after_max_attempts(identity_client, fake_transport):
    for _ in range(3):
        fake_transport.queue("POST", "/organizations", 500, {})

    with pytest.raises(IdentityProviderError) as excinfo:
        identity_client.create_organization("Precision Tech AB", "precision-tech-ab")

    assert excinfo.value.status == 500
    assert excinfo.value.message == "Identity provider returned HTTP 500"


def test_unreachable_provider_is_transient(identity_client, fake_transport):
    fake_transport.queue("POST", "/organizations", 0, URLError("connection refused"))
    fake_transport.queue("POST", "/organizations", 200, {"id": "org_1"})

    assert identity_client.create_organization("Precision Tech AB", "precision-tech-ab") == {"id": "org_1"}


def test_client_errors_are_not_retried(identity_client, fake_transport):
    fake_transport.queue(
        "POST",
        "/organizations",
        401,
        {"errors": [{"code": "authentication_invalid", "long_message": "Invalid secret key"}]},
    )

    with pytest.raises(IdentityProviderError) as excinfo:
        identity_client.create_organization("Precision Tech AB", "precision-tech-ab")

    assert excinfo.value.codes == ("authentication_invalid",)
    assert excinfo.value.message == "Invalid secret key"
    assert not excinfo.value.is_transient
    assert len(fake_transport.calls) == 1


def test_unconfigured_client_refuses_calls(fake_transport):
    client = IdentityProviderClient(secret_key=None, transport=fake_transport)

    assert not client.is_configured()
    with pytest.raises(IdentityProviderError):
        client.invite_member("org_1", "erik@precision.se")
    assert fake_transport.calls == []


def test_ensure_organization_reuses_linked_org(identity_client, fake_transport):
    assert identity_client.ensure_organization(_company(identity_org_id="org_9")) == "org_9"
    assert fake_transport.calls == []


def test_organization_without_id_is_an_error(identity_client, fake_transport):
    fake_transport.queue("POST", "/organizations", 200, {})

    with pytest.raises(IdentityProviderError):
        identity_client.ensure_organization(_company())


def test_invalid_slug_is_not_retried(identity_client, fake_transport):
    fake_transport.queue(
        "POST",
        "/organizations",
        422,
        {
            "errors": [
                {
                    "code": "form_param_format_invalid",
                    "message": "slug must only contain lowercase letters, numbers and dashes",
                }
            ]
        },
    )

    with pytest.raises(IdentityProviderError) as excinfo:
        identity_client.create_organization("Acme", "-acme-")

    assert excinfo.value.status == 422
    assert excinfo.value.codes == ("form_param_format_invalid",)
    assert len(fake_transport.calls) == 1


def test_provision_claim_links_company_before_inviting(identity_client, fake_transport):
    company = _company()
    fake_transport.queue("POST", "/organizations", 200, {"id": "org_1"})
    fake_transport.queue("POST", "/organizations/org_1/invitations", 500, {})
    fake_transport.queue("POST", "/organizations/org_1/invitations", 500, {})
    fake_transport.queue("POST", "/organizations/org_1/invitations", 500, {})

    with pytest.raises(IdentityProviderError):
        identity_client.provision_claim(company, "erik@precision.se")

    assert company.identity_org_id == "org_1"
