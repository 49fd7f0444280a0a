from __future__ import annotations

import secrets
import string

ALPHABET = string.ascii_letters + string.digits


def generate(length: int) -> str:
    """Return a random alphanumeric string drawn from the OS CSPRNG."""
    if not isinstance(length, int) or isinstance(length, bool) or length <= 0:
        raise ValueError("length must be a positive integer.")
    return "".join(secrets.choice(ALPHABET) for _ in range(length))
