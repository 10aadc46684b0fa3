# salesbook/utils/auth.py
from __future__ import annotations

import hashlib
import hmac
from typing import Union

import bcrypt

# ---- PBKDF2 (hashes imported from older installs) ----
_PBKDF2_PREFIX = "pbkdf2_sha256$"

# ---- bcrypt defaults / policy ----
_BCRYPT_DEFAULT_ROUNDS = 12
_BCRYPT_MIN_ACCEPTABLE_ROUNDS = 12
_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def _verify_pbkdf2(password: str, encoded: str) -> bool:
    try:
        # expected format: pbkdf2_sha256$<iters>$<salt_hex>$<digest_hex>
        _, iters_salt_dk = encoded.split(_PBKDF2_PREFIX, 1)
        iters_str, salt_hex, dk_hex = iters_salt_dk.split("$", 2)
        got = hashlib.pbkdf2_hmac(
            "sha256", password.encode("utf-8"), bytes.fromhex(salt_hex), int(iters_str)
        )
        return hmac.compare_digest(got, bytes.fromhex(dk_hex))
    except ValueError:
        return False


def _verify_bcrypt(password: str, encoded: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), encoded.encode("utf-8"))
    except ValueError:
        return False


def _parse_bcrypt_cost(hash_str: str) -> int | None:
    """
    Extract the cost from a bcrypt hash: $2b$12$...
    Returns None if not parseable.
    """
    parts = hash_str.split("$")
    if len(parts) < 4:
        return None
    try:
        return int(parts[2])
    except ValueError:
        return None


# ------------------------------- Public API -------------------------------

def hash_password(password: str, *, rounds: int = _BCRYPT_DEFAULT_ROUNDS) -> str:
    """
    Hash `password` with bcrypt. Cost is clamped to a minimum of
    _BCRYPT_MIN_ACCEPTABLE_ROUNDS.
    """
    if not isinstance(password, str) or password == "":
        raise ValueError("Password must be a non-empty string")
    rounds = max(int(rounds), _BCRYPT_MIN_ACCEPTABLE_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(password: str, stored_hash: Union[str, bytes, None]) -> bool:
    """
    Verify `password` against `stored_hash`.
    Supports:
      - bcrypt: $2a$ / $2b$ / $2y$...
      - PBKDF2: 'pbkdf2_sha256$...'
    """
    if not stored_hash or password is None:
        return False

    if isinstance(stored_hash, bytes):
        try:
            stored_hash = stored_hash.decode("utf-8")
        except UnicodeDecodeError:
            return False

    stored_hash = stored_hash.strip()
    if stored_hash.startswith(_BCRYPT_PREFIXES):
        return _verify_bcrypt(password, stored_hash)
    if stored_hash.startswith(_PBKDF2_PREFIX):
        return _verify_pbkdf2(password, stored_hash)
    return False


def needs_rehash(stored_hash: Union[str, bytes, None]) -> bool:
    """
    True when a stored hash should be upgraded on the next successful login:
    PBKDF2 hashes, weak bcrypt costs, and anything unrecognised.
    """
    if not stored_hash:
        return True
    if isinstance(stored_hash, bytes):
        try:
            stored_hash = stored_hash.decode("utf-8")
        except UnicodeDecodeError:
            return True
    h = stored_hash.strip()
    if h.startswith(_BCRYPT_PREFIXES):
        cost = _parse_bcrypt_cost(h)
        return cost is None or cost < _BCRYPT_MIN_ACCEPTABLE_ROUNDS
    return True
