from __future__ import annotations

import base64
import hashlib
import hmac
import os
import secrets
from typing import Optional

ALGORITHM = "pbkdf2_sha256"
ITERATIONS = 390000
SALT_BYTES = 16
TOKEN_BYTES = 32


def hash_password(password: str, *, iterations: int = ITERATIONS) -> str:
    salt = os.urandom(SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations, dklen=32)
    return "$".join(
        [
            ALGORITHM,
            str(iterations),
            base64.b64encode(salt).decode("utf-8"),
            base64.b64encode(digest).decode("utf-8"),
        ]
    )


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iter_str, salt_b64, hash_b64 = encoded.split("$")
        iterations = int(iter_str)
        salt = base64.b64decode(salt_b64.encode("utf-8"))
        stored = base64.b64decode(hash_b64.encode("utf-8"))
    except ValueError:
        return False
    if algorithm != ALGORITHM:
        return False
    candidate = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations, dklen=len(stored))
    return hmac.compare_digest(candidate, stored)


def issue_token() -> str:
    """Opaque bearer token for the stub backend."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def parse_bearer(header: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not header or not header.lower().startswith("bearer "):
        return None
    token = header.split(None, 1)[1].strip()
    return token or None
