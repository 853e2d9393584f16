"""Core module with logging, errors, signing and metrics."""

from buysoft.core.errors import (
    AccountLockedError,
    AppError,
    CaptchaExpiredError,
    CaptchaInvalidError,
    CaptchaWrongError,
    CSRFError,
    ErrorCode,
    ErrorResponse,
    FriendLinkNotFoundError,
    ImageHostError,
    ImageHostNotConfiguredError,
    ImageHostUnavailableError,
    InternalError,
    InvalidCredentialsError,
    InvalidUploadError,
    MissingInputError,
    PlatformNameTakenError,
    PlatformNotFoundError,
    ProductNotFoundError,
    SessionExpiredError,
    SlugTakenError,
    UnauthorizedError,
    ValidationError,
)
from buysoft.core.logging import get_logger, request_id_ctx, setup_logging, user_id_ctx
from buysoft.core.metrics import metrics
from buysoft.core.signing import SignedValue
from buysoft.core.time import utcnow

__all__ = [
    # Errors
    "AppError",
    "ErrorCode",
    "ErrorResponse",
    "InternalError",
    "ValidationError",
    "UnauthorizedError",
    "SessionExpiredError",
    "CSRFError",
    "MissingInputError",
    "CaptchaExpiredError",
    "CaptchaInvalidError",
    "CaptchaWrongError",
    "InvalidCredentialsError",
    "AccountLockedError",
    "ProductNotFoundError",
    "FriendLinkNotFoundError",
    "PlatformNotFoundError",
    "SlugTakenError",
    "PlatformNameTakenError",
    "ImageHostNotConfiguredError",
    "ImageHostError",
    "ImageHostUnavailableError",
    "InvalidUploadError",
    # Logging
    "get_logger",
    "setup_logging",
    "request_id_ctx",
    "user_id_ctx",
    # Misc
    "metrics",
    "SignedValue",
    "utcnow",
]
