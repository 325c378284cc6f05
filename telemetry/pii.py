from __future__ import annotations

import hashlib
import re
from typing import Any, Dict

# Basic detectors for high-risk PII patterns.
EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
# Phone-like numbers: allow country code, separators, and require at least 9 digits overall.
# Never starts inside a word or right after a hash label.
PHONE_RE = re.compile(r"(?<![\w:])\+?\d[\d\s().-]{8,}\d")
# Personal ID shapes: SSN-like 3-2-4 and Argentine DNI/CUIT style 2-8-1.
GOV_ID_RE = re.compile(r"\b(?:\d{3}-\d{2}-\d{4}|\d{2}-\d{7,8}-\d)\b")
BEARER_RE = re.compile(r"(?i)bearer\s+[A-Za-z0-9._~+/=-]+")

# Keys whose values are chat content or credentials and never logged verbatim.
SENSITIVE_FIELDS = {
    "message",
    "messages",
    "transcript",
    "history",
    "reply",
    "response_text",
    "password",
    "token",
    "auth_token",
    "authorization",
}


def _hash_token(text: str) -> str:
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]
    return f"[HASH:{digest}]"


def scrub_text(text: str) -> str:
    """Redact or hash obvious PII tokens from free text."""
    if not text:
        return text

    def _replace(match: re.Match, label: str) -> str:
        token = match.group(0)
        return f"[{label}_{_hash_token(token)}]"

    scrubbed = BEARER_RE.sub("Bearer [REDACTED]", text)
    scrubbed = EMAIL_RE.sub(lambda m: _replace(m, "EMAIL"), scrubbed)
    scrubbed = GOV_ID_RE.sub(lambda m: _replace(m, "ID"), scrubbed)
    scrubbed = PHONE_RE.sub(lambda m: _replace(m, "PHONE"), scrubbed)
    return scrubbed


def _redact(value: Any) -> Dict[str, Any]:
    if isinstance(value, str):
        return {"redacted": True, "length": len(value)}
    length = len(value) if hasattr(value, "__len__") else None
    return {"redacted": True, "items": length}


def _is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    if lowered in SENSITIVE_FIELDS:
        return True
    if "password" in lowered or "secret" in lowered:
        return True
    if "transcript" in lowered or "messages" in lowered:
        return True
    return False


def scrub_value(value: Any) -> Any:
    """Scrub a generic value for PII before logging."""
    if isinstance(value, str):
        cleaned = scrub_text(value)
        if len(cleaned) > 500:
            return _hash_token(cleaned)
        return cleaned
    if isinstance(value, dict):
        return sanitize_log_payload(value)
    if isinstance(value, (list, tuple)):
        # Lists of chat entries are summarized instead of logged.
        if any(isinstance(item, dict) and "text" in item for item in value):
            return _redact(value)
        return [scrub_value(item) for item in value]
    return value


def sanitize_log_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Strip or hash PII-heavy fields from a log payload."""
    if not isinstance(payload, dict):
        return {}

    cleaned: Dict[str, Any] = {}
    for key, value in payload.items():
        if value is None:
            cleaned[key] = value
            continue
        if _is_sensitive_key(str(key)):
            cleaned[key] = _redact(value)
            continue
        cleaned[key] = scrub_value(value)
    return cleaned
