"""
CSRF protection for the back office.

Each admin session owns a random CSRF token. The SPA reads it from a
non-HttpOnly cookie and echoes it in a header; a state-changing request
passes only when header, cookie and session all carry the same token and
the request's origin is on the allowlist.
"""

import hmac
import re
import secrets
from urllib.parse import urlsplit

LOCAL_DEV_ORIGIN = re.compile(r"^http://(localhost|127\.0\.0\.1)(:\d+)?$")


def generate_csrf_token() -> str:
    return secrets.token_urlsafe(32)


def tokens_match(header_token: str | None, cookie_token: str | None, session_token: str) -> bool:
    """Double-submit check: header, cookie and the session's token all agree."""
    if not header_token or not cookie_token:
        return False
    return hmac.compare_digest(header_token, cookie_token) and hmac.compare_digest(
        header_token, session_token
    )


def request_origin(origin: str | None, referer: str | None) -> str | None:
    """Scheme and host the request came from, preferring Origin over Referer."""
    if origin:
        return origin
    if referer:
        parts = urlsplit(referer)
        if parts.scheme and parts.netloc:
            return f"{parts.scheme}://{parts.netloc}"
    return None


def validate_origin(
    origin: str | None,
    referer: str | None,
    allowed_origins: list[str],
    allow_local_dev: bool = True,
) -> bool:
    """
    Check the request's origin against the CORS allowlist.

    Requests with neither header pass: some proxies strip both, and the
    token check still applies. Local dev servers pass unless disabled.
    """
    source = request_origin(origin, referer)
    if source is None:
        return True
    if allow_local_dev and LOCAL_DEV_ORIGIN.match(source):
        return True
    return source in allowed_origins
