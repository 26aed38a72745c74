"""Streaming multipart/form-data decoding into upload parts."""

from collections.abc import Iterable, Iterator
from tempfile import SpooledTemporaryFile

from werkzeug.datastructures import Headers
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.http import parse_options_header
from werkzeug.sansio.multipart import Data, Epilogue, Field, File, MultipartDecoder, NeedData

from app.core.errors import MultipartDecodeError, UnsupportedMediaTypeError, UploadTooLargeError
from app.core.settings import settings as st
from app.models.parts import BinaryItem, FileItem, FormItem, UploadPart

MULTIPART_FORM_DATA = "multipart/form-data"
DEFAULT_FILE_CONTENT_TYPE = "application/octet-stream"


def parse_boundary(content_type: str | None) -> bytes:
    """Extract the boundary of a multipart/form-data content type."""
    mimetype, options = parse_options_header(content_type or "")
    if mimetype != MULTIPART_FORM_DATA:
        raise UnsupportedMediaTypeError(f"expected {MULTIPART_FORM_DATA}, got {mimetype or 'nothing'}")
    boundary = options.get("boundary")
    if not boundary:
        raise MultipartDecodeError("multipart/form-data without boundary")
    return boundary.encode("latin-1")


def _build_part(event: Field | File, buffer: SpooledTemporaryFile) -> UploadPart:
    headers: Headers = event.headers
    content_type = headers.get("content-type")
    buffer.seek(0)

    if isinstance(event, File):
        return FileItem(
            name=event.name,
            original_file_name=event.filename,
            content_type=content_type or DEFAULT_FILE_CONTENT_TYPE,
            stream=buffer,
        )

    mimetype, options = parse_options_header(content_type or "")
    if mimetype and not mimetype.startswith("text/"):
        return BinaryItem(name=event.name, stream=buffer)

    try:
        value = buffer.read().decode(options.get("charset", "utf-8"), errors="replace")
    except LookupError:
        buffer.seek(0)
        value = buffer.read().decode("utf-8", errors="replace")
    finally:
        buffer.close()
    return FormItem(name=event.name, value=value)


def iter_parts(
    chunks: Iterable[bytes],
    boundary: bytes,
    max_parts: int | None = None,
) -> Iterator[UploadPart]:
    """Yield parts in wire order, disposing each one before decoding the next."""
    decoder = MultipartDecoder(boundary, max_parts=max_parts)
    pending = iter(chunks)
    current: Field | File | None = None
    buffer: SpooledTemporaryFile | None = None

    while True:
        try:
            event = decoder.next_event()
        except RequestEntityTooLarge as ex:
            raise UploadTooLargeError(f"more than {max_parts} parts") from ex
        except ValueError as ex:
            raise MultipartDecodeError(str(ex)) from ex

        match event:
            case NeedData():
                decoder.receive_data(next(pending, None))
            case Field() | File():
                current = event
                buffer = SpooledTemporaryFile(max_size=st.SPOOL_MAX_SIZE)
            case Data(data=data, more_data=more_data) if current is not None and buffer is not None:
                buffer.write(data)
                if more_data:
                    continue
                part = _build_part(current, buffer)
                current, buffer = None, None
                try:
                    yield part
                finally:
                    part.dispose()
            case Epilogue():
                return
            case _:
                continue


def _chunked(body: bytes, size: int) -> Iterator[bytes]:
    view = memoryview(body)
    for start in range(0, len(view), size):
        yield bytes(view[start : start + size])


class MultipartBody:
    """Raw multipart request body, decoded lazily part by part."""

    __slots__ = ("body", "boundary")

    def __init__(self, body: bytes, content_type: str | None) -> None:
        self.body = body
        self.boundary = parse_boundary(content_type)

    def __len__(self) -> int:
        return len(self.body)

    def parts(self) -> Iterator[UploadPart]:
        return iter_parts(_chunked(self.body, st.MULTIPART_CHUNK_SIZE), self.boundary, max_parts=st.MAX_PARTS)
