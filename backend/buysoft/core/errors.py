"""
Error codes and the exception hierarchy behind the JSON error envelope.

Every failure a client can see is an ``AppError`` subclass naming its code,
HTTP status and default message. Handlers in ``core.middleware`` render
them as ``{"error": {"code", "message", "request_id", "details"?}}``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar


class ErrorCode(str, Enum):
    """Stable error codes for API responses."""

    # General (1xxx)
    INTERNAL_ERROR = "E1000"
    VALIDATION_ERROR = "E1001"
    NOT_FOUND = "E1002"
    REQUEST_TOO_LARGE = "E1004"

    # Sessions and login (2xxx)
    UNAUTHORIZED = "E2000"
    INVALID_CREDENTIALS = "E2001"
    SESSION_EXPIRED = "E2002"
    CSRF_FAILED = "E2003"
    MISSING_INPUT = "E2010"
    CAPTCHA_EXPIRED = "E2011"
    CAPTCHA_INVALID = "E2012"
    CAPTCHA_WRONG = "E2013"
    ACCOUNT_LOCKED = "E2014"

    # Catalog (5xxx)
    PRODUCT_NOT_FOUND = "E5000"
    FRIEND_LINK_NOT_FOUND = "E5001"
    PLATFORM_NOT_FOUND = "E5002"
    SLUG_TAKEN = "E5003"
    PLATFORM_NAME_TAKEN = "E5004"

    # Image host (6xxx)
    IMAGE_HOST_NOT_CONFIGURED = "E6000"
    IMAGE_HOST_ERROR = "E6001"
    IMAGE_HOST_UNAVAILABLE = "E6002"
    INVALID_UPLOAD = "E6003"


@dataclass(frozen=True)
class ErrorResponse:
    code: ErrorCode
    message: str
    request_id: str | None = None
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.request_id:
            error["request_id"] = self.request_id
        if self.details:
            error["details"] = self.details
        return {"error": error}


class AppError(Exception):
    """Base class; subclasses set code, status_code and default_message."""

    code: ClassVar[ErrorCode] = ErrorCode.INTERNAL_ERROR
    status_code: ClassVar[int] = 500
    default_message: ClassVar[str] = "Internal error"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_response(self, request_id: str | None = None) -> ErrorResponse:
        return ErrorResponse(self.code, self.message, request_id, self.details)


class InternalError(AppError):
    """Server-side failure unrelated to the caller's input."""


class ValidationError(AppError):
    """Domain validation failure on otherwise well-formed input."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400
    default_message = "Validation error"


# Sessions


class UnauthorizedError(AppError):
    code = ErrorCode.UNAUTHORIZED
    status_code = 401
    default_message = "Authentication required"


class SessionExpiredError(AppError):
    code = ErrorCode.SESSION_EXPIRED
    status_code = 401
    default_message = "Session expired"


class CSRFError(AppError):
    code = ErrorCode.CSRF_FAILED
    status_code = 403
    default_message = "CSRF validation failed"


# Login, in the order LoginGuard checks them


class MissingInputError(AppError):
    code = ErrorCode.MISSING_INPUT
    status_code = 400
    default_message = "Email, password and captcha are required"


class CaptchaExpiredError(AppError):
    """No captcha cookie accompanied the request."""

    code = ErrorCode.CAPTCHA_EXPIRED
    status_code = 400
    default_message = "Captcha has expired, please refresh it"


class CaptchaInvalidError(AppError):
    """Captcha cookie failed signature verification."""

    code = ErrorCode.CAPTCHA_INVALID
    status_code = 400
    default_message = "Captcha is invalid"


class CaptchaWrongError(AppError):
    code = ErrorCode.CAPTCHA_WRONG
    status_code = 400
    default_message = "Captcha answer is incorrect"


class InvalidCredentialsError(AppError):
    code = ErrorCode.INVALID_CREDENTIALS
    status_code = 401
    default_message = "Invalid email or password"


class AccountLockedError(AppError):
    code = ErrorCode.ACCOUNT_LOCKED
    status_code = 423
    default_message = "Account is temporarily locked"


# Catalog


class ProductNotFoundError(AppError):
    code = ErrorCode.PRODUCT_NOT_FOUND
    status_code = 404
    default_message = "Product not found"


class FriendLinkNotFoundError(AppError):
    code = ErrorCode.FRIEND_LINK_NOT_FOUND
    status_code = 404
    default_message = "Friend link not found"


class PlatformNotFoundError(AppError):
    code = ErrorCode.PLATFORM_NOT_FOUND
    status_code = 404
    default_message = "Platform not found"


class SlugTakenError(AppError):
    code = ErrorCode.SLUG_TAKEN
    status_code = 409
    default_message = "Slug already in use"


class PlatformNameTakenError(AppError):
    code = ErrorCode.PLATFORM_NAME_TAKEN
    status_code = 409
    default_message = "Platform name already exists"


# Image host


class ImageHostNotConfiguredError(AppError):
    """No SM.MS token in site config or environment."""

    code = ErrorCode.IMAGE_HOST_NOT_CONFIGURED
    status_code = 500
    default_message = "Image host token is not configured"


class ImageHostError(AppError):
    """The host answered and refused the upload."""

    code = ErrorCode.IMAGE_HOST_ERROR
    status_code = 400
    default_message = "Image upload failed"


class ImageHostUnavailableError(AppError):
    """Host unreachable, or its reply could not be understood."""

    code = ErrorCode.IMAGE_HOST_UNAVAILABLE
    status_code = 502
    default_message = "Image host unavailable"


class InvalidUploadError(AppError):
    code = ErrorCode.INVALID_UPLOAD
    status_code = 400
    default_message = "Invalid upload"
