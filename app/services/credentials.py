from __future__ import annotations

import secrets
import string

CODE_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_CODE_LENGTH = 25


def generate_secure_code(length: int = DEFAULT_CODE_LENGTH) -> str:
    """Return ``length`` characters drawn uniformly from A-Z0-9 using the OS CSPRNG."""
    if length < 1:
        raise ValueError('Code length must be at least 1')
    return ''.join(secrets.choice(CODE_ALPHABET) for _ in range(length))
