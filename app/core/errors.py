"""Exception types and their mapping to HTTP responses."""

from http import HTTPStatus

from robyn import Response, status_codes

from app.core.logger import LogIcon, logger


class AuthenticationError(Exception):
    """The caller could not be identified."""


class AuthorizationError(Exception):
    """The caller is known but not allowed to do this."""


class UploadError(Exception):
    """Base class for errors while receiving an upload."""


class MultipartDecodeError(UploadError):
    """The request body is not valid multipart/form-data."""


class UnsupportedMediaTypeError(UploadError):
    """The request body is not declared as multipart/form-data."""


class UploadTooLargeError(UploadError):
    """The request body exceeds the configured size or part limits."""


class MissingPictureError(UploadError):
    """The multipart body carried no file part to optimize."""


# Ordered from most to least specific, first isinstance match wins.
STATUS_CODES: tuple[tuple[type[Exception], int], ...] = (
    (AuthenticationError, status_codes.HTTP_401_UNAUTHORIZED),
    (AuthorizationError, status_codes.HTTP_403_FORBIDDEN),
    (MissingPictureError, status_codes.HTTP_400_BAD_REQUEST),
    (UploadTooLargeError, status_codes.HTTP_413_REQUEST_ENTITY_TOO_LARGE),
    (UnsupportedMediaTypeError, status_codes.HTTP_415_UNSUPPORTED_MEDIA_TYPE),
    (MultipartDecodeError, status_codes.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(error: BaseException) -> int:
    """Resolve the HTTP status for an exception, 500 when unmapped."""
    for exc_type, status in STATUS_CODES:
        if isinstance(error, exc_type):
            return status
    return status_codes.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status: int, detail: str | None = None) -> Response:
    """Plain-text error response carrying the reason phrase and an optional detail."""
    phrase = HTTPStatus(status).phrase
    return Response(
        status_code=status,
        headers={"content-type": "text/plain; charset=utf-8"},
        description=f"{phrase}: {detail}" if detail else phrase,
    )


def handle_exception(error: Exception) -> Response:
    """Map an exception to its HTTP response. Server errors hide their details."""
    status = status_for(error)
    if status >= status_codes.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Request failed", icon=LogIcon.ERROR, error=type(error).__name__, exc_info=error)
        return error_response(status)

    logger.warning("Request rejected", icon=LogIcon.FORBIDDEN, status=status, error=type(error).__name__)
    detail = str(error) if isinstance(error, UploadError) else None
    return error_response(status, detail)
