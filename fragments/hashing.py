"""Privacy-preserving owner ids derived from authenticated principals."""

import hashlib
import hmac
from collections.abc import Mapping
from typing import Any, Optional

from fragments import config

# Checked in order; the first non-empty string wins.
OWNER_ID_FIELDS = ("email", "username", "name", "user")


def hash_email(value: str, secret: Optional[str] = None) -> str:
    """
    Hash an identifier with HMAC-SHA256 after trimming and lowercasing it.

    Args:
        value: Email or username (an empty string is allowed)
        secret: HMAC key, defaults to HASH_SECRET

    Returns:
        64-character hex digest

    Raises:
        TypeError: If value is not a string
    """
    if not isinstance(value, str):
        raise TypeError("Email must be a string")

    normalized = value.strip().lower()
    key = (secret if secret is not None else config.HASH_SECRET).encode("utf-8")
    return hmac.new(key, normalized.encode("utf-8"), hashlib.sha256).hexdigest()


def principal_identifier(principal: Any) -> str:
    """
    Pick the identifying string out of an authenticated principal.

    Mappings and objects are searched for the fields in OWNER_ID_FIELDS, in
    that order. A plain string principal is its own identifier.

    Returns:
        Trimmed, lowercased identifier, or "" when none is found
    """
    if isinstance(principal, str):
        return principal.strip().lower()

    for field in OWNER_ID_FIELDS:
        if isinstance(principal, Mapping):
            value = principal.get(field)
        else:
            value = getattr(principal, field, None)
        if isinstance(value, str) and value.strip():
            return value.strip().lower()

    return ""


def resolve_owner_id(principal: Any, secret: Optional[str] = None) -> Optional[str]:
    """
    Derive the owner id for a principal.

    Returns:
        Hashed owner id, or None when the principal carries no identifier
    """
    identifier = principal_identifier(principal)
    if not identifier:
        return None
    return hash_email(identifier, secret)
