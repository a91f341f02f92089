from __future__ import annotations

import hashlib
import hmac
import os
import re

_PASSCODE_PATTERN = re.compile(r"[0-9]{4}")


def is_valid_passcode(value: object) -> bool:
    return isinstance(value, str) and _PASSCODE_PATTERN.fullmatch(value) is not None


def hash_passcode(passcode: str, salt: str | None = None) -> str:
    """Return ``salt$digest`` for storage; the raw passcode is never persisted."""
    effective_salt = salt or os.urandom(16).hex()
    digest = hashlib.sha256((effective_salt + ":" + passcode).encode("utf-8")).hexdigest()
    return f"{effective_salt}${digest}"


def verify_passcode(passcode: str, stored_hash: str) -> bool:
    salt, separator, _ = stored_hash.partition("$")
    if not separator or not salt:
        return False
    return hmac.compare_digest(hash_passcode(passcode, salt), stored_hash)
