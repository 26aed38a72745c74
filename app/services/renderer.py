"""HTML pages and the explanation shown after an optimization."""

import base64

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.settings import settings as st
from app.models.core import HtmlPage
from app.models.optimization import OptimizationResult, RenderContext, Variant
from app.models.parts import BinaryItem, FileItem, FormItem, UploadPart

OPTIMIZED_CONTENT_TYPE = "image/jpeg"
FILE_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")

environment = Environment(
    loader=FileSystemLoader(st.TEMPLATES_PATH),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def format_file_size(size: int) -> str:
    """Human readable size with one optional decimal, e.g. 39.1 KB."""
    if size == 0:
        return "0 B"
    sign = "-" if size < 0 else ""
    size = abs(size)
    group = min((size.bit_length() - 1) // 10, len(FILE_SIZE_UNITS) - 1)
    value = f"{size / 1024**group:,.1f}".removesuffix(".0")
    return f"{sign}{value} {FILE_SIZE_UNITS[group]}"


def format_percentage(ratio: float) -> str:
    """Ratio as a percentage with up to two decimals, e.g. 0.4 -> 40%."""
    value = f"{ratio * 100:,.2f}".rstrip("0").rstrip(".")
    return f"{'0' if value == '-0' else value}%"


def format_elapsed_time(milliseconds: int) -> str:
    return f"{milliseconds:,}"


def readable_content_type(content_type: str) -> str:
    """image/png -> PNG"""
    return content_type.rpartition("/")[2].upper()


def kilobytes(size: int) -> int:
    return size // 1024


def data_uri(content_type: str, data: bytes) -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def explain(source_content_type: str, source: bytes, result: OptimizationResult, variant: Variant) -> str:
    """Pick the explanation for the user: failure, success, or nothing to do."""
    if result.internal_error is not None:
        return (
            "The optimization failed. "
            "There's something in your picture that the image decoder didn't like. "
            f"It told us that the error was '{result.internal_error}'. "
            "Please, feel free to file an issue including this error and the picture you tried to compress."
        )

    if result.picture != source:
        explanation = (
            "The optimization was a success. "
            f"It took {format_elapsed_time(result.elapsed_time)}ms, "
            f"saved {format_file_size(result.saved_bytes)} "
            f"which is the {format_percentage(result.saved_ratio)} of the file, "
            f"and applied a JPEG quality of {result.jpeg_quality_used}%."
        )
        if result.saved_ratio < 0:
            explanation += (
                " Why is the optimized file bigger than the original one? "
                "It's because the original one wasn't a JPG. "
                f"That conversion from {readable_content_type(source_content_type)} to JPG gave a bigger JPG. "
                "Oooh, you touched the limits!"
            )
        if variant.note:
            explanation += f" {variant.note}"
        return explanation

    return (
        "The optimization was a success... but it returned exactly the same picture. "
        "It happens when the original file was so well optimized that there's nothing better to do "
        "without losing any quality. "
        "We call it artifical intelligence because being humble is too much."
    )


def build_context(source_content_type: str, source: bytes, result: OptimizationResult, variant: Variant) -> RenderContext:
    return RenderContext(
        source_content_type=source_content_type,
        source=source,
        result=result,
        explanation=explain(source_content_type, source, result, variant),
    )


def render_index() -> HtmlPage:
    """Upload form."""
    return HtmlPage(environment.get_template("index.html").render())


def render_result(context: RenderContext) -> HtmlPage:
    """Before/after comparison page."""
    template = environment.get_template("result.html")
    return HtmlPage(
        template.render(
            explanation=context.explanation,
            issues_url=st.ISSUES_URL if context.failed else None,
            source_src=data_uri(context.source_content_type, context.source),
            source_label=f"Original size: {kilobytes(len(context.source))} KB",
            optimized_src=data_uri(OPTIMIZED_CONTENT_TYPE, context.optimized),
            optimized_label=(
                f"Optimized size: {kilobytes(len(context.optimized))} KB "
                f"({format_percentage(1 - context.result.saved_ratio)})"
            ),
        )
    )


def describe_part(part: UploadPart) -> str:
    match part:
        case FormItem(name=name, value=value):
            return f"FormItem({name},{value})"
        case FileItem(name=name, original_file_name=file_name, content_type=content_type):
            return f"FileItem({name},{file_name},{content_type},{len(part.read())} bytes)"
        case BinaryItem(name=name):
            return f"BinaryItem({name},{len(part.read())} bytes)"


def summarize_parts(descriptions: list[str]) -> str:
    """Plain-text listing of the received parts, one per line."""
    return "\n".join(descriptions) + "\n" if descriptions else "No parts received\n"
