"""
Security primitives.

Password hashing uses Werkzeug's salted PBKDF2/scrypt helpers. Session tokens
are signed, timestamped payloads produced by ``itsdangerous``; the server sends
them to the client after login and expects them back in an
``Authorization: Bearer`` header.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import UnauthorizedError

TOKEN_SALT = "schooladmin-session"

PASSWORD_MIN_LENGTH = 8

_PASSWORD_RULES = [
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[0-9]"), "Password must contain at least one number"),
    (re.compile(r"[^A-Za-z0-9]"), "Password must contain at least one special character"),
]


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: Optional[str], password: str) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def check_password_strength(password: str) -> str:
    """Return ``password`` unchanged or raise ``ValueError`` naming the first rule it breaks.

    Written to be used from pydantic ``field_validator`` functions.
    """
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    for pattern, message in _PASSWORD_RULES:
        if not pattern.search(password):
            raise ValueError(message)
    return password


class TokenSigner:
    """Issue and verify session tokens."""

    def __init__(self, secret_key: str, max_age: int) -> None:
        self.max_age = max_age
        self._serializer = URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)

    def issue(self, user_id: int) -> str:
        return self._serializer.dumps({"user_id": user_id})

    def verify(self, token: str) -> Dict[str, Any]:
        """Return the token payload.

        Raises:
            UnauthorizedError: when the signature is wrong, the token expired or
                the payload does not carry a user id
        """
        try:
            payload = self._serializer.loads(token, max_age=self.max_age)
        except BadSignature:
            # SignatureExpired is a BadSignature too
            raise UnauthorizedError("Invalid or expired token")
        if not isinstance(payload, dict) or "user_id" not in payload:
            raise UnauthorizedError("Invalid or expired token")
        return payload
