"""Tests for the upload form and optimization routes."""

import pytest

from app.api import pages
from app.core.router import _create_method_wrapper
from app.core.settings import settings as st
from app.models.core import HtmlPage
from app.models.optimization import VARIANTS
from app.services.multipart import MultipartBody
from app.services.optimizer import OptimizationClient


@pytest.fixture
def optimizer(global_dependencies, make_optimizer):
    """Fake optimizer reachable through the state, like OptimizerEvent sets it up."""
    fake = make_optimizer()
    global_dependencies["state"].optimizer = OptimizationClient(fake)
    return fake


@pytest.fixture
def picture_upload(make_part, make_multipart):
    def _make(payload: bytes = b"P" * 4096) -> MultipartBody:
        body, content_type = make_multipart(
            [make_part("picture", payload, filename="beach.png", content_type="image/png")]
        )
        return MultipartBody(body, content_type)

    return _make


# -----------------------------------------------------------------------------
# Index Tests
# -----------------------------------------------------------------------------


async def test_index_renders_upload_form() -> None:
    page = await pages.index()

    assert isinstance(page, HtmlPage)
    assert "Welcome to the Slim JPG demo page!" in page
    assert 'action="/optimize"' in page
    assert 'name="picture"' in page


async def test_index_head_keeps_headers_without_body(make_mock_request) -> None:
    route = _create_method_wrapper(lambda *a, **kw: lambda handler: handler, "head")("/")(pages.index)

    response = await route(make_mock_request(method="HEAD"))

    assert response.status_code == 200
    assert response.headers.get("content-type") == "text/html; charset=utf-8"
    assert response.description == ""


# -----------------------------------------------------------------------------
# Optimize Tests
# -----------------------------------------------------------------------------


class TestOptimize:
    """Tests for POST /optimize."""

    async def test_uses_optimizer_from_state(self, optimizer, global_dependencies, picture_upload) -> None:
        page = await pages.optimize(picture_upload(), global_dependencies)

        assert "Here's your lovely picture" in page
        assert "Original size: 4 KB" in page
        assert "Optimized size: 2 KB (50%)" in page
        assert [source for source, _ in optimizer.calls] == [b"P" * 4096]

    @pytest.mark.parametrize("variant", ["visual", "weight", "metadata"])
    async def test_configured_variant_drives_the_optimizer(
        self, variant, optimizer, global_dependencies, picture_upload, monkeypatch
    ) -> None:
        monkeypatch.setattr(st, "VARIANT", variant)

        await pages.optimize(picture_upload(), global_dependencies)

        assert optimizer.calls[0][1] == VARIANTS[variant].config

    async def test_debug_variant_lists_parts(self, optimizer, global_dependencies, picture_upload, monkeypatch) -> None:
        monkeypatch.setattr(st, "VARIANT", "debug")

        listing = await pages.optimize(picture_upload(b"abc"), global_dependencies)

        assert listing == "FileItem(picture,beach.png,image/png,3 bytes)\n"
        assert optimizer.calls == []
