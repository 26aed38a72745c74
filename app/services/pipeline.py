"""Decode -> optimize -> render, for one POST /optimize request."""

from contextlib import closing
from dataclasses import dataclass

from app.core.errors import MissingPictureError
from app.core.logger import LogIcon, logger
from app.models.core import HtmlPage
from app.models.optimization import OptimizationResult, Variant
from app.models.parts import FileItem
from app.services.multipart import MultipartBody
from app.services.optimizer import OptimizationClient
from app.services.renderer import build_context, describe_part, render_result, summarize_parts

PICTURE_FIELD = "picture"


@dataclass(frozen=True, slots=True)
class Upload:
    """The picture chosen from a multipart body."""

    field_name: str
    file_name: str
    content_type: str
    content: bytes


def _log_ignored(field: str, file_name: str) -> None:
    logger.warning("Ignoring extra file part", icon=LogIcon.FILE, field=field, file=file_name)


def read_picture(body: MultipartBody) -> Upload:
    """Read the picture file part: the one named 'picture', else the first file part."""
    chosen: Upload | None = None
    with closing(body.parts()) as parts:
        for part in parts:
            if not isinstance(part, FileItem):
                continue
            if chosen is None or (chosen.field_name != PICTURE_FIELD and part.name == PICTURE_FIELD):
                if chosen is not None:
                    _log_ignored(chosen.field_name, chosen.file_name)
                chosen = Upload(part.name, part.original_file_name, part.content_type, part.read())
            else:
                _log_ignored(part.name, part.original_file_name)

    if chosen is None:
        raise MissingPictureError(f"no file part found, send the picture in the '{PICTURE_FIELD}' field")
    return chosen


def list_parts(body: MultipartBody) -> str:
    """Minimal variant: describe every received part."""
    with closing(body.parts()) as parts:
        return summarize_parts([describe_part(part) for part in parts])


def log_outcome(upload: Upload, result: OptimizationResult) -> None:
    if result.internal_error is not None:
        logger.warning(
            "The optimization failed",
            icon=LogIcon.ERROR,
            content_type=upload.content_type,
            error=result.internal_error,
        )
    elif result.picture != upload.content:
        logger.info(
            "The optimization returned a different picture",
            icon=LogIcon.IMAGE,
            elapsed_ms=result.elapsed_time,
            saved_bytes=result.saved_bytes,
            saved_ratio=result.saved_ratio,
            quality=result.jpeg_quality_used,
        )
    else:
        logger.info("The optimization returned the same picture", icon=LogIcon.IMAGE, content_type=upload.content_type)


async def process_upload(body: MultipartBody, client: OptimizationClient, variant: Variant) -> HtmlPage | str:
    """Run the whole pipeline and return the page to answer with."""
    if variant.debug:
        return list_parts(body)

    upload = read_picture(body)
    logger.info("Picture received", icon=LogIcon.UPLOAD, file=upload.file_name, size=len(upload.content))

    result = await client.optimize(upload.content, variant.config)
    log_outcome(upload, result)

    return render_result(build_context(upload.content_type, upload.content, result, variant))
