"""Tests for password hashing."""

import bcrypt

from buysoft.auth.password import hash_password, needs_rehash, verify_password


def test_argon2_hash_roundtrip():
    hashed = hash_password("s3cret-pass")
    assert hashed.startswith("$argon2id$")
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong-pass", hashed)
    assert not needs_rehash(hashed)


def test_legacy_bcrypt_hash_verifies_and_needs_rehash():
    legacy = bcrypt.hashpw(b"legacy-pass", bcrypt.gensalt(rounds=4)).decode()
    assert verify_password("legacy-pass", legacy)
    assert not verify_password("other-pass", legacy)
    assert needs_rehash(legacy)


def test_2a_prefixed_bcrypt_hash_is_recognised():
    legacy = bcrypt.hashpw(b"legacy-pass", bcrypt.gensalt(rounds=4, prefix=b"2a")).decode()
    assert legacy.startswith("$2a$")
    assert verify_password("legacy-pass", legacy)


def test_malformed_hash_never_verifies():
    assert not verify_password("anything", "not-a-hash")
    assert not verify_password("anything", "$2b$garbage")
