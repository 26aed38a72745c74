"""Test fixtures for slim-jpg-web unit tests."""

import io
from dataclasses import dataclass, field

import pytest
from PIL import Image

from app.core.lifespan import State
from app.models.optimization import OptimizationConfig, OptimizationResult

BOUNDARY = "----slimjpgboundary"


# -----------------------------------------------------------------------------
# Mock classes for Robyn Request
# -----------------------------------------------------------------------------


@dataclass
class MockHeaders:
    """Mock Headers object for Robyn Request."""

    _data: dict = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key.lower(), default)

    def set(self, key: str, value: str) -> None:
        self._data[key.lower()] = value


@dataclass
class MockUrl:
    """Mock Url object for Robyn Request."""

    path: str = "/"


@dataclass
class MockRequest:
    """Mock Request object for Robyn."""

    body: bytes | str | None = b""
    headers: MockHeaders = field(default_factory=MockHeaders)
    method: str = "GET"
    url: MockUrl = field(default_factory=MockUrl)


# -----------------------------------------------------------------------------
# Multipart bodies
# -----------------------------------------------------------------------------


@dataclass
class Part:
    """One part of a multipart body under construction."""

    name: str
    payload: bytes
    filename: str | None = None
    content_type: str | None = None


def build_multipart(parts: list[Part], boundary: str = BOUNDARY) -> tuple[bytes, str]:
    """Encode parts as a multipart/form-data body, returns (body, content type)."""
    chunks = []
    for part in parts:
        disposition = f'form-data; name="{part.name}"'
        if part.filename is not None:
            disposition += f'; filename="{part.filename}"'
        headers = f"Content-Disposition: {disposition}\r\n"
        if part.content_type:
            headers += f"Content-Type: {part.content_type}\r\n"
        chunks.append(f"--{boundary}\r\n{headers}\r\n".encode() + part.payload + b"\r\n")
    chunks.append(f"--{boundary}--\r\n".encode())
    return b"".join(chunks), f"multipart/form-data; boundary={boundary}"


# -----------------------------------------------------------------------------
# Pictures
# -----------------------------------------------------------------------------


def gradient_image(size: int = 64, mode: str = "RGB") -> Image.Image:
    image = Image.new(mode, (size, size))
    for x in range(size):
        for y in range(size):
            value = (x * 4 % 256, y * 4 % 256, (x + y) * 2 % 256)
            image.putpixel((x, y), value if mode == "RGB" else (*value, 255))
    return image


def encode(image: Image.Image, format: str, **kwargs) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=format, **kwargs)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return encode(gradient_image(), "PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return encode(gradient_image(), "JPEG", quality=95)


# -----------------------------------------------------------------------------
# Fake optimizer
# -----------------------------------------------------------------------------


class FakeOptimizer:
    """Optimizer returning a canned result and remembering its calls."""

    def __init__(self, result: OptimizationResult | None = None) -> None:
        self.result = result
        self.calls: list[tuple[bytes, OptimizationConfig]] = []

    def __call__(self, source: bytes, config: OptimizationConfig) -> OptimizationResult:
        self.calls.append((source, config))
        if self.result is not None:
            return self.result
        return OptimizationResult.from_pictures(source, source[: len(source) // 2], elapsed_time=12, quality=80)


@pytest.fixture
def fake_optimizer() -> FakeOptimizer:
    return FakeOptimizer()


# -----------------------------------------------------------------------------
# State fixture
# -----------------------------------------------------------------------------


@pytest.fixture(scope="session")
def test_state() -> State:
    """Create a test state container."""
    return State()


@pytest.fixture
def global_dependencies(test_state: State) -> dict:
    """Setup global dependencies for tests."""
    yield {"state": test_state}
    test_state.clear()


@pytest.fixture
def make_mock_request():
    """Factory fixture to create mock requests."""

    def _make(
        body: bytes | str | None = b"",
        headers: dict | None = None,
        method: str = "GET",
        path: str = "/",
    ) -> MockRequest:
        mock_headers = MockHeaders()
        for key, value in (headers or {}).items():
            mock_headers.set(key, value)
        return MockRequest(body=body, headers=mock_headers, method=method, url=MockUrl(path=path))

    return _make


# -----------------------------------------------------------------------------
# Helper factories exposed as fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def make_part() -> type[Part]:
    return Part


@pytest.fixture
def make_multipart():
    return build_multipart


@pytest.fixture
def make_image():
    return gradient_image


@pytest.fixture
def encode_image():
    return encode


@pytest.fixture
def make_optimizer() -> type[FakeOptimizer]:
    return FakeOptimizer
