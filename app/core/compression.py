"""Response compression negotiated from the Accept-Encoding header."""

import gzip
import zlib
from collections.abc import Callable
from dataclasses import dataclass

from robyn import Response
from werkzeug.http import parse_accept_header

from app.core.settings import settings as st


@dataclass(frozen=True, slots=True)
class Encoder:
    """A content coding with its negotiation priority and minimum body size."""

    name: str
    priority: float
    encode: Callable[[bytes], bytes]
    min_size: int = 0


ENCODERS: tuple[Encoder, ...] = (
    Encoder(name="gzip", priority=1.0, encode=gzip.compress),
    Encoder(name="deflate", priority=10.0, encode=zlib.compress, min_size=st.DEFLATE_MIN_SIZE),
)


def choose_encoder(accept_encoding: str | None, body_size: int) -> Encoder | None:
    """Pick the encoder with the best client quality, ties broken by priority."""
    if not accept_encoding or body_size == 0:
        return None

    accepted = parse_accept_header(accept_encoding)
    candidates = []
    for encoder in ENCODERS:
        quality = accepted[encoder.name]
        if quality <= 0 or body_size < encoder.min_size:
            continue
        candidates.append((quality, encoder.priority, encoder))

    if not candidates:
        return None
    return max(candidates, key=lambda candidate: candidate[:2])[2]


def _body_bytes(description: str | bytes) -> bytes:
    return description.encode("utf-8") if isinstance(description, str) else bytes(description)


def compress_response(response: Response, accept_encoding: str | None) -> Response:
    """Compress the response body in place when the client accepts it."""
    if response.headers.get("content-encoding"):
        return response

    body = _body_bytes(response.description)
    encoder = choose_encoder(accept_encoding, len(body))
    if encoder is None:
        return response

    response.description = encoder.encode(body)
    response.headers.set("content-encoding", encoder.name)
    response.headers.set("vary", "accept-encoding")
    return response
