"""
External id generation for newly created records.
"""

from __future__ import annotations

import secrets
import string
import time

ID_ALPHABET = string.digits + string.ascii_lowercase
SUFFIX_LENGTH = 7


def generate_id(prefix: str) -> str:
    """
    Return ``<prefix>_<epoch millis>_<random base36 suffix>``.

    Collisions are not retried; the store's unique index rejects them.
    """
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(ID_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{prefix}_{millis}_{suffix}"
