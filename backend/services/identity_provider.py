"""
Client for the identity provider's Backend API (Clerk-compatible).

Approving a claim mirrors the company as an organization at the provider and
invites the claimant as its admin. Calls are plain JSON over HTTPS; the
provider reports failures as ``{"errors": [{"code": ..., "message": ...}]}``
and the client decides what to do by matching those codes.
"""

import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Callable
from urllib.error import HTTPError, URLError
from urllib.request import Request as UrlRequest, urlopen

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.clerk.com/v1"
MAX_ATTEMPTS = 3
MAX_SLUG_ATTEMPTS = 5

SLUG_TAKEN_PATTERNS = (
    "form_identifier_exists",
    "duplicate_record",
    "already exists",
    "taken",
)
ALREADY_INVITED_PATTERNS = (
    "duplicate_record",
    "already_a_member",
    "already a member",
    "already invited",
    "invitation_already",
)
TRANSIENT_STATUSES = {429, 500, 502, 503, 504}

Transport = Callable[[str, str, dict[str, str], bytes | None, float], tuple[int, bytes]]


class IdentityProviderError(Exception):
    def __init__(self, message: str, status: int | None = None, codes: tuple[str, ...] = ()):
        super().__init__(message)
        self.message = message
        self.status = status
        self.codes = codes

    @property
    def is_transient(self) -> bool:
        return self.status is None or self.status in TRANSIENT_STATUSES

    def matches(self, patterns: tuple[str, ...]) -> bool:
        haystack = " ".join([*self.codes, self.message]).lower()
        return any(p in haystack for p in patterns)


@dataclass
class ProvisionResult:
    organization_id: str
    invitation_id: str | None


def _urllib_transport(
    method: str,
    url: str,
    headers: dict[str, str],
    body: bytes | None,
    timeout: float,
) -> tuple[int, bytes]:
    req = UrlRequest(url, data=body, headers=headers, method=method)
    try:
        with urlopen(req, timeout=timeout) as resp:
            return resp.status, resp.read()
    except HTTPError as exc:
        return exc.code, exc.read() or b""


def _parse_error(status: int, raw: bytes) -> IdentityProviderError:
    try:
        payload = json.loads(raw.decode("utf-8")) if raw else {}
    except (ValueError, UnicodeDecodeError):
        payload = {}

    errors = payload.get("errors") if isinstance(payload, dict) else None
    codes: list[str] = []
    messages: list[str] = []
    for err in errors or []:
        if not isinstance(err, dict):
            continue
        if err.get("code"):
            codes.append(str(err["code"]))
        text = err.get("long_message") or err.get("message")
        if text:
            messages.append(str(text))

    message = "; ".join(messages) or f"Identity provider returned HTTP {status}"
    return IdentityProviderError(message, status=status, codes=tuple(codes))


class IdentityProviderClient:
    def __init__(
        self,
        secret_key: str | None,
        api_url: str = DEFAULT_API_URL,
        timeout_seconds: float = 10.0,
        invite_redirect_url: str | None = None,
        org_creator_user_id: str | None = None,
        transport: Transport | None = None,
        backoff_seconds: float = 0.5,
    ):
        self.secret_key = secret_key
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.invite_redirect_url = invite_redirect_url
        self.org_creator_user_id = org_creator_user_id
        self.transport = transport or _urllib_transport
        self.backoff_seconds = backoff_seconds

    def is_configured(self) -> bool:
        return bool(self.secret_key)

    # --------------------------------------------------
    # TRANSPORT
    # --------------------------------------------------
    def _send(self, method: str, path: str, payload: dict[str, Any] | None) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        body = json.dumps(payload).encode("utf-8") if payload is not None else None
        try:
            status, raw = self.transport(method, f"{self.api_url}{path}", headers, body, self.timeout_seconds)
        except (URLError, TimeoutError, OSError) as exc:
            raise IdentityProviderError(f"Identity provider unreachable: {exc}") from exc

        if status >= 400:
            raise _parse_error(status, raw)
        if not raw:
            return {}
        try:
            return json.loads(raw.decode("utf-8"))
        except (ValueError, UnicodeDecodeError) as exc:
            raise IdentityProviderError("Identity provider returned invalid JSON", status=status) from exc

    def _call(self, method: str, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        if not self.is_configured():
            raise IdentityProviderError("Identity provider is not configured")

        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                return self._send(method, path, payload)
            except IdentityProviderError as exc:
                if not exc.is_transient or attempt == MAX_ATTEMPTS:
                    raise
                logger.warning(
                    "Identity provider %s %s failed (attempt %s/%s): %s",
                    method,
                    path,
                    attempt,
                    MAX_ATTEMPTS,
                    exc.message,
                )
                time.sleep(self.backoff_seconds * attempt)
        raise IdentityProviderError("unreachable")

    # --------------------------------------------------
    # ORGANIZATIONS
    # --------------------------------------------------
    def create_organization(
        self,
        name: str,
        slug: str,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create an organization, suffixing the slug while the provider reports it taken."""
        for attempt in range(1, MAX_SLUG_ATTEMPTS + 1):
            candidate = slug if attempt == 1 else f"{slug}-{attempt}"
            body: dict[str, Any] = {"name": name, "slug": candidate}
            if metadata:
                body["public_metadata"] = metadata
            if self.org_creator_user_id:
                body["created_by"] = self.org_creator_user_id

            try:
                org = self._call("POST", "/organizations", body)
            except IdentityProviderError as exc:
                if exc.status in {400, 409, 422} and exc.matches(SLUG_TAKEN_PATTERNS):
                    logger.info("Organization slug %s taken, retrying", candidate)
                    continue
                raise
            logger.info("Created organization %s (%s)", org.get("id"), candidate)
            return org

        raise IdentityProviderError(
            f"No free organization slug for {slug} after {MAX_SLUG_ATTEMPTS} attempts",
            status=409,
        )

    def invite_member(self, org_id: str, email: str, role: str = "org:admin") -> dict[str, Any] | None:
        """Invite ``email`` to the organization. ``None`` means the address was already invited or a member."""
        body: dict[str, Any] = {"email_address": email, "role": role}
        if self.invite_redirect_url:
            body["redirect_url"] = self.invite_redirect_url
        if self.org_creator_user_id:
            body["inviter_user_id"] = self.org_creator_user_id

        try:
            return self._call("POST", f"/organizations/{org_id}/invitations", body)
        except IdentityProviderError as exc:
            if exc.status in {400, 409, 422} and exc.matches(ALREADY_INVITED_PATTERNS):
                logger.info("%s already invited to organization %s", email, org_id)
                return None
            raise

    def ensure_organization(self, company) -> str:
        if company.identity_org_id:
            return company.identity_org_id
        org = self.create_organization(
            company.name,
            company.slug,
            metadata={"company_id": company.id},
        )
        org_id = org.get("id")
        if not org_id:
            raise IdentityProviderError("Organization response had no id")
        return org_id

    def provision_claim(self, company, email: str) -> ProvisionResult:
        """Link ``company`` to its organization, then invite ``email`` as an admin."""
        org_id = self.ensure_organization(company)
        company.identity_org_id = org_id
        invitation = self.invite_member(org_id, email)
        return ProvisionResult(
            organization_id=org_id,
            invitation_id=(invitation or {}).get("id"),
        )


_client: IdentityProviderClient | None = None


def get_identity_client() -> IdentityProviderClient:
    global _client
    if _client is None:
        _client = IdentityProviderClient(
            secret_key=os.getenv("IDENTITY_SECRET_KEY"),
            api_url=os.getenv("IDENTITY_API_URL", DEFAULT_API_URL),
            timeout_seconds=float(os.getenv("IDENTITY_TIMEOUT_SECONDS", "10")),
            invite_redirect_url=os.getenv("IDENTITY_INVITE_REDIRECT_URL"),
            org_creator_user_id=os.getenv("IDENTITY_ORG_CREATOR_USER_ID"),
        )
    return _client
