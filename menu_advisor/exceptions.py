"""
exceptions.py

Errors raised by the analyze endpoint.

Each error knows its machine-readable code and the HTTP status it maps to.
A single exception handler (see api/middleware.py) turns them into the
standard error envelope:

    {"success": false, "error": {"code", "message", "details"?}, "requestId"}
"""

from typing import Any, Mapping, Optional


class MenuAnalysisError(Exception):
    """Base class for all request-level failures.

    Attributes:
        message: human-readable message shown to the client
        details: optional mapping with extra context
        code: machine-readable error code
        http_status: HTTP status code for the response
    """

    code = "INTERNAL_ERROR"
    http_status = 500
    default_message = "An error occurred while processing your request."

    def __init__(self, message: Optional[str] = None, details: Optional[Mapping[str, Any]] = None):
        self.message = message or self.default_message
        self.details = dict(details) if details else None
        super().__init__(self.message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload

    def __str__(self) -> str:
        return self.message


class ConfigurationError(MenuAnalysisError):
    code = "CONFIG_ERROR"
    http_status = 503
    default_message = "The analysis service is not configured. Please try again later."


class RateLimitExceededError(MenuAnalysisError):
    code = "RATE_LIMITED"
    http_status = 429
    default_message = "Too many requests. Please try again later."


class MissingImageError(MenuAnalysisError):
    code = "MISSING_IMAGE"
    http_status = 400
    default_message = "Image file is required. Use 'image' as the form field name."


class InvalidFileTypeError(MenuAnalysisError):
    code = "INVALID_FILE_TYPE"
    http_status = 400
    default_message = "Invalid file type. Only JPEG, PNG, WebP, and GIF are allowed."


class FileTooLargeError(MenuAnalysisError):
    code = "FILE_TOO_LARGE"
    http_status = 400
    default_message = "File too large."


class InvalidFileContentError(MenuAnalysisError):
    code = "INVALID_FILE_CONTENT"
    http_status = 400
    default_message = "Invalid file content. File does not match declared type."


class NoTextFoundError(MenuAnalysisError):
    code = "NO_TEXT_FOUND"
    http_status = 400
    default_message = (
        "Could not extract text from image. "
        "Please ensure the menu is clear and readable."
    )


class OCRFailedError(MenuAnalysisError):
    code = "OCR_FAILED"
    http_status = 500
    default_message = "Failed to process the image. Please try again."


class InternalServerError(MenuAnalysisError):
    code = "INTERNAL_ERROR"
    http_status = 500
