"""
Verification of bearer tokens issued by the external identity provider.

Company-portal sessions may come straight from the provider instead of from
``/api/company/login``. Those are RS256 JWTs signed with keys published at
``IDENTITY_JWKS_URL``; the key set is cached for ``IDENTITY_JWKS_TTL_SECONDS``.
"""

import json
import logging
import os
import threading
import time
from urllib.error import URLError
from urllib.request import Request as UrlRequest, urlopen

from jose import JWTError, jwt

logger = logging.getLogger(__name__)

_JWKS_TTL_SECONDS = int(os.getenv("IDENTITY_JWKS_TTL_SECONDS", "3600"))
_jwks_lock = threading.Lock()
_jwks_cache: dict[str, tuple[float, dict]] = {}


def jwks_url() -> str | None:
    return os.getenv("IDENTITY_JWKS_URL") or None


def provider_tokens_enabled() -> bool:
    return jwks_url() is not None


def _fetch_jwks(url: str) -> dict:
    timeout_seconds = float(os.getenv("IDENTITY_TIMEOUT_SECONDS", "10"))
    req = UrlRequest(url, headers={"Accept": "application/json"}, method="GET")
    with urlopen(req, timeout=timeout_seconds) as resp:
        payload = json.loads(resp.read().decode("utf-8"))
    if not isinstance(payload, dict) or not isinstance(payload.get("keys"), list):
        raise ValueError("JWKS response has no keys")
    return payload


def get_jwks(url: str) -> dict:
    now = time.time()
    with _jwks_lock:
        cached = _jwks_cache.get(url)
        if cached and cached[0] > now:
            return cached[1]

    keys = _fetch_jwks(url)
    with _jwks_lock:
        _jwks_cache[url] = (now + _JWKS_TTL_SECONDS, keys)
    return keys


def invalidate_jwks_cache() -> None:
    with _jwks_lock:
        _jwks_cache.clear()


def decode_provider_token(token: str) -> dict:
    """Return the verified claims or raise ``JWTError``."""
    url = jwks_url()
    if url is None:
        raise JWTError("Identity provider tokens are not enabled")

    try:
        keys = get_jwks(url)
    except (URLError, TimeoutError, OSError, ValueError) as exc:
        logger.warning("Could not load identity provider keys: %s", exc)
        raise JWTError("Identity provider keys unavailable") from exc

    return jwt.decode(token, keys, algorithms=["RS256"], options={"verify_aud": False})
