"""Optimization request/response records and the available variants."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class OptimizationConfig(BaseModel):
    """Tuning options passed to the optimizer."""

    model_config = ConfigDict(frozen=True)

    max_visual_diff: float = Field(default=0.5, ge=0)
    max_file_weight_kb: int | None = Field(default=None, gt=0)
    keep_metadata: bool | None = None


class OptimizationResult(BaseModel):
    """What the optimizer hands back. Failures travel in internal_error, never as exceptions."""

    model_config = ConfigDict(frozen=True)

    picture: bytes
    elapsed_time: int
    saved_bytes: int
    saved_ratio: float
    jpeg_quality_used: int
    internal_error: str | None = None

    @classmethod
    def from_pictures(cls, source: bytes, picture: bytes, elapsed_time: int, quality: int) -> "OptimizationResult":
        saved_bytes = len(source) - len(picture)
        return cls(
            picture=picture,
            elapsed_time=elapsed_time,
            saved_bytes=saved_bytes,
            saved_ratio=saved_bytes / len(source) if source else 0.0,
            jpeg_quality_used=quality,
        )

    @classmethod
    def failed(cls, source: bytes, elapsed_time: int, error: BaseException) -> "OptimizationResult":
        """Result carrying the untouched source and the error message."""
        return cls(
            picture=source,
            elapsed_time=elapsed_time,
            saved_bytes=0,
            saved_ratio=0.0,
            jpeg_quality_used=0,
            internal_error=str(error) or type(error).__name__,
        )


class Variant(BaseModel):
    """Optimizer settings plus how the outcome is explained to the user."""

    model_config = ConfigDict(frozen=True)

    name: str
    config: OptimizationConfig = OptimizationConfig()
    note: str | None = None
    debug: bool = False


VARIANTS: dict[str, Variant] = {
    "visual": Variant(name="visual", config=OptimizationConfig(max_visual_diff=0.5)),
    "weight": Variant(
        name="weight",
        config=OptimizationConfig(max_visual_diff=1.0, max_file_weight_kb=200),
        note="We also asked for a picture lighter than 200 KB, even if that meant a visual difference above 1%.",
    ),
    "metadata": Variant(
        name="metadata",
        config=OptimizationConfig(max_visual_diff=0.5, keep_metadata=True),
        note="The EXIF data and the color profile of your picture were kept.",
    ),
    "debug": Variant(name="debug", debug=True),
}


@dataclass(frozen=True, slots=True)
class RenderContext:
    """Everything the result page needs for one request."""

    source_content_type: str
    source: bytes
    result: OptimizationResult
    explanation: str

    @property
    def optimized(self) -> bytes:
        return self.result.picture

    @property
    def failed(self) -> bool:
        return self.result.internal_error is not None
