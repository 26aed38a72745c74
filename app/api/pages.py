"""Upload form and optimization result pages."""

from app.core.router import Router
from app.core.settings import settings as st
from app.models.core import HtmlPage
from app.models.optimization import VARIANTS
from app.services.multipart import MultipartBody
from app.services.pipeline import process_upload
from app.services.renderer import render_index

router = Router(__file__)


async def index() -> HtmlPage:
    return render_index()


async def optimize(upload: MultipartBody, global_dependencies) -> HtmlPage | str:
    """Optimize the uploaded picture and compare it with the original."""
    client = global_dependencies["state"].optimizer
    return await process_upload(upload, client, VARIANTS[st.VARIANT])


# HEAD shares the GET handler, the router wrapper drops the body
router.get("/")(index)
router.head("/")(index)
router.post("/optimize")(optimize)
