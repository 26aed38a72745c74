"""Core models for request/response handling."""

from enum import StrEnum


class BodyType(StrEnum):
    """Body content type classification for request parsing."""

    MULTIPART = "multipart"


class HtmlPage(str):
    """Rendered HTML document, answered as text/html."""

    __slots__ = ()
