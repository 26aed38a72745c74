"""Optimizer interface, the Pillow backend and the client the web layer calls."""

import asyncio
import io
import time
from concurrent.futures import Executor
from typing import Protocol

from PIL import Image, ImageChops, ImageStat

from app.models.optimization import OptimizationConfig, OptimizationResult

MIN_QUALITY = 10
MAX_QUALITY = 100
WEIGHT_QUALITY_STEP = 5


class Optimizer(Protocol):
    """Anything that turns picture bytes into an OptimizationResult."""

    def __call__(self, source: bytes, config: OptimizationConfig) -> OptimizationResult: ...


def run_optimizer(optimizer: Optimizer, source: bytes, config: OptimizationConfig) -> OptimizationResult:
    """Module-level entry point so the call can be pickled into a process pool."""
    return optimizer(source, config)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def flatten_on_white(image: Image.Image) -> Image.Image:
    """Composite alpha images onto white background, JPEG has no alpha channel."""
    if image.mode == "P" and "transparency" in image.info:
        image = image.convert("RGBA")
    if "A" not in image.getbands():
        return image.convert("RGB")
    rgba = image.convert("RGBA")
    background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
    return Image.alpha_composite(background, rgba).convert("RGB")


def visual_diff(reference: Image.Image, candidate: bytes) -> float:
    """Mean absolute pixel difference, as a percentage of the full 0-255 range."""
    with Image.open(io.BytesIO(candidate)) as decoded:
        diff = ImageChops.difference(reference, decoded.convert("RGB"))
    means = ImageStat.Stat(diff).mean
    return sum(means) / len(means) / 255 * 100


class PillowOptimizer:
    """Re-encodes pictures as JPEG with the lowest quality that stays within the configured bounds."""

    def __call__(self, source: bytes, config: OptimizationConfig) -> OptimizationResult:
        started = time.perf_counter()
        try:
            picture, quality = self._optimize(source, config)
        except (OSError, ValueError, Image.DecompressionBombError) as ex:
            return OptimizationResult.failed(source, _elapsed_ms(started), ex)
        return OptimizationResult.from_pictures(source, picture, _elapsed_ms(started), quality)

    def _optimize(self, source: bytes, config: OptimizationConfig) -> tuple[bytes, int]:
        with Image.open(io.BytesIO(source)) as image:
            image.load()
            is_jpeg = image.format == "JPEG"
            save_kwargs = self._metadata(image) if config.keep_metadata else {}
            reference = flatten_on_white(image)

        picture, quality = self._search_quality(reference, config.max_visual_diff, save_kwargs)

        if config.max_file_weight_kb is not None:
            limit = config.max_file_weight_kb * 1024
            while len(picture) > limit and quality > MIN_QUALITY:
                quality = max(MIN_QUALITY, quality - WEIGHT_QUALITY_STEP)
                picture = self._encode(reference, quality, save_kwargs)

        # A JPEG that cannot be improved is handed back untouched.
        if is_jpeg and len(picture) >= len(source):
            return source, quality
        return picture, quality

    def _search_quality(self, reference: Image.Image, max_visual_diff: float, save_kwargs: dict) -> tuple[bytes, int]:
        """Binary search for the lowest quality within the visual difference bound."""
        best: tuple[bytes, int] | None = None
        low, high = MIN_QUALITY, MAX_QUALITY
        while low <= high:
            quality = (low + high) // 2
            candidate = self._encode(reference, quality, save_kwargs)
            if visual_diff(reference, candidate) <= max_visual_diff:
                best = (candidate, quality)
                high = quality - 1
            else:
                low = quality + 1

        if best is None:
            return self._encode(reference, MAX_QUALITY, save_kwargs), MAX_QUALITY
        return best

    @staticmethod
    def _metadata(image: Image.Image) -> dict:
        kept = {}
        if exif := image.info.get("exif"):
            kept["exif"] = exif
        if icc_profile := image.info.get("icc_profile"):
            kept["icc_profile"] = icc_profile
        return kept

    @staticmethod
    def _encode(image: Image.Image, quality: int, save_kwargs: dict) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=quality, optimize=True, progressive=True, **save_kwargs)
        return buffer.getvalue()


class OptimizationClient:
    """Runs an optimizer for the web layer, in a process pool when one is given."""

    def __init__(self, optimizer: Optimizer, executor: Executor | None = None) -> None:
        self._optimizer = optimizer
        self._executor = executor

    async def optimize(self, source: bytes, config: OptimizationConfig) -> OptimizationResult:
        if self._executor is None:
            return self._optimizer(source, config)

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, run_optimizer, self._optimizer, source, config)
