# espocrm_client/http/auth.py
from __future__ import annotations

import base64
import hashlib
import hmac
from dataclasses import dataclass
from enum import Enum
from typing import Dict, MutableMapping, Optional

from espocrm_client.errors import ConfigurationError

HMAC_HEADER = "X-Hmac-Authorization"
API_KEY_HEADER = "X-Api-Key"


class AuthScheme(Enum):
    BASIC = "basic"
    HMAC = "hmac"
    API_KEY = "api_key"
    NONE = "none"


@dataclass(frozen=True)
class Credentials:
    username: Optional[str] = None
    password: Optional[str] = None
    api_key: Optional[str] = None
    secret_key: Optional[str] = None

    def __repr__(self) -> str:
        # keep secrets out of logs and tracebacks
        shown = ", ".join(
            f"{name}={'***' if getattr(self, name) else None}"
            for name in ("username", "password", "api_key", "secret_key")
        )
        return f"Credentials({shown})"


def _is_set(v: Optional[str]) -> bool:
    return bool(v)


def resolve_scheme(creds: Credentials) -> AuthScheme:
    """
    First match wins:
      username + password  -> BASIC (even if api keys are also set)
      api_key + secret_key -> HMAC
      api_key              -> API_KEY
      otherwise            -> NONE
    """
    if _is_set(creds.username) and _is_set(creds.password):
        return AuthScheme.BASIC
    if _is_set(creds.api_key) and _is_set(creds.secret_key):
        return AuthScheme.HMAC
    if _is_set(creds.api_key):
        return AuthScheme.API_KEY
    return AuthScheme.NONE


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def secret_key_bytes(secret_key: str) -> bytes:
    try:
        return secret_key.encode("utf-8")
    except (AttributeError, UnicodeEncodeError) as e:
        raise ConfigurationError(
            "Secret key cannot be used as an HMAC key. Is your key valid?"
        ) from e


def signing_string(method: str, action: str) -> str:
    return f"{method.upper()} /{action}"


def hmac_signature(secret_key: str, method: str, action: str) -> bytes:
    """HMAC-SHA256 over "<METHOD> /<action>", keyed with the secret key."""
    return hmac.new(
        secret_key_bytes(secret_key),
        signing_string(method, action).encode("utf-8"),
        hashlib.sha256,
    ).digest()


def hmac_header_value(api_key: str, secret_key: str, method: str, action: str) -> str:
    # base64(api_key) + ":" + base64(mac); the colon sits between the two
    # encoded halves, it is not encoded itself
    mac = hmac_signature(secret_key, method, action)
    return f"{_b64(api_key.encode('utf-8'))}:{_b64(mac)}"


def basic_header_value(username: str, password: str) -> str:
    return "Basic " + _b64(f"{username}:{password}".encode("utf-8"))


def auth_headers(creds: Credentials, method: str, action: str) -> Dict[str, str]:
    scheme = resolve_scheme(creds)
    if scheme is AuthScheme.BASIC:
        return {"Authorization": basic_header_value(creds.username, creds.password)}
    if scheme is AuthScheme.HMAC:
        return {
            HMAC_HEADER: hmac_header_value(
                creds.api_key, creds.secret_key, method, action
            )
        }
    if scheme is AuthScheme.API_KEY:
        return {API_KEY_HEADER: creds.api_key}
    return {}


def apply_auth_headers(
    headers: MutableMapping[str, str], creds: Credentials, method: str, action: str
) -> AuthScheme:
    """Add the auth header for the resolved scheme; caller-set headers win."""
    for k, v in auth_headers(creds, method, action).items():
        headers.setdefault(k, v)
    return resolve_scheme(creds)
