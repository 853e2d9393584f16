"""
Business logic services.

Orchestrates external hosts, database access, and application logic.
"""

from buysoft.services.image_host import (
    ALLOWED_CONTENT_TYPES,
    SmmsClient,
    UploadResult,
    upload_image,
    validate_upload,
)

__all__ = [
    "ALLOWED_CONTENT_TYPES",
    "SmmsClient",
    "UploadResult",
    "upload_image",
    "validate_upload",
]
