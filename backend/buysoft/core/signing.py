"""
HMAC-tagged values.

A SignedValue pairs a plaintext payload with an HMAC-SHA256 tag keyed by the
server secret. It lets the server hand state to the client (e.g. the captcha
answer in a cookie) and later trust it without server-side storage.

Wire format: ``<value>.<hex signature>``.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from typing import ClassVar


def compute_signature(value: str, secret: str) -> str:
    """HMAC-SHA256 of ``value`` keyed by ``secret``, as lowercase hex."""
    return hmac.new(secret.encode(), value.encode(), hashlib.sha256).hexdigest()


@dataclass(frozen=True)
class SignedValue:
    """A payload and its HMAC tag."""

    SEPARATOR: ClassVar[str] = "."

    value: str
    signature: str

    @classmethod
    def sign(cls, value: str, secret: str) -> SignedValue:
        """Tag ``value`` with ``secret``."""
        if cls.SEPARATOR in value:
            raise ValueError(f"Signed values must not contain {cls.SEPARATOR!r}")
        return cls(value=value, signature=compute_signature(value, secret))

    def verify(self, secret: str) -> bool:
        """True if the tag was produced by ``secret`` over this value."""
        expected = compute_signature(self.value, secret)
        return hmac.compare_digest(expected, self.signature)

    def encode(self) -> str:
        return f"{self.value}{self.SEPARATOR}{self.signature}"

    @classmethod
    def parse(cls, raw: str | None) -> SignedValue | None:
        """
        Split an encoded value.

        Returns None when the input is empty or lacks either part. Parsing
        does not verify; call ``verify`` before trusting ``value``.
        """
        if not raw:
            return None
        value, sep, signature = raw.partition(cls.SEPARATOR)
        if not sep or not value or not signature:
            return None
        return cls(value=value, signature=signature)
