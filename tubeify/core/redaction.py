"""Mask credential-like values before provider payloads reach logs or API responses."""
import re
from typing import Any

MASK = "***"

_SENSITIVE_KEYS = (
    "api_token",
    "access_token",
    "refresh_token",
    "token",
    "authorization",
    "secret",
    "password",
    "api_key",
    "client_secret",
)

# key=value pairs inside free text, e.g. an echoed query string
_SECRET_PAIR = re.compile(
    r"(?i)\b([\w-]*(?:token|secret|password|api_key)[\w-]*)=([^&\s\"',;]+)"
)
_BEARER = re.compile(r"(?i)\b(bearer)\s+[\w.~+/=-]+")


def _is_sensitive(key: str) -> bool:
    k = key.lower()
    return any(s in k for s in _SENSITIVE_KEYS)


def redact_text(text: str) -> str:
    """Mask secret-looking key=value pairs and bearer tokens in a string."""
    text = _SECRET_PAIR.sub(lambda m: f"{m.group(1)}={MASK}", text)
    return _BEARER.sub(lambda m: f"{m.group(1)} {MASK}", text)


def redact(value: Any) -> Any:
    """Return a copy of value with sensitive dict keys and in-text credentials masked."""
    if isinstance(value, dict):
        return {
            k: (MASK if isinstance(k, str) and _is_sensitive(k) else redact(v))
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(v) for v in value]
    if isinstance(value, str):
        return redact_text(value)
    return value
