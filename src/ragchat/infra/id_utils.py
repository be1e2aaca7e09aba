"""Prefixed random IDs for stored messages and rate-limit entries.

IDs look like ``msg_kJ3pW7mD4bNx``; the prefix tells which store an ID
belongs to.
"""

import secrets
import string

ID_PREFIX_MESSAGE = "msg"
ID_PREFIX_RATELIMIT_ENTRY = "req"

_ALPHABET = string.ascii_letters + string.digits
_DEFAULT_LENGTH = 12  # ~71 bits


def generate_id(prefix: str, length: int = _DEFAULT_LENGTH) -> str:
    """Return ``"{prefix}_{random}"`` with *length* alphanumeric characters."""
    return f"{prefix}_{''.join(secrets.choice(_ALPHABET) for _ in range(length))}"
