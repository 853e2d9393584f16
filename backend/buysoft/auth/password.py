"""
Admin password hashing.

New hashes are Argon2id. Accounts seeded by older tooling may still carry
bcrypt hashes (``$2a$``, ``$2b$``, ``$2y$``); those verify through bcrypt
and report ``needs_rehash`` so a successful login can upgrade them.
"""

import bcrypt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

# 3 passes over 64 MiB with 4 lanes, 32-byte hash and 16-byte salt.
_hasher = PasswordHasher(time_cost=3, memory_cost=65536, parallelism=4, hash_len=32, salt_len=16)

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def is_bcrypt_hash(stored: str) -> bool:
    return stored.startswith(BCRYPT_PREFIXES)


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, stored: str) -> bool:
    """True when the password matches; malformed hashes never match."""
    if is_bcrypt_hash(stored):
        try:
            return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
        except ValueError:
            return False
    try:
        return _hasher.verify(stored, password)
    except (VerificationError, InvalidHashError):
        return False


def needs_rehash(stored: str) -> bool:
    """bcrypt hashes, unreadable hashes and outdated Argon2 parameters."""
    if is_bcrypt_hash(stored):
        return True
    try:
        return _hasher.check_needs_rehash(stored)
    except InvalidHashError:
        return True
