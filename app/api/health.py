"""Health check endpoint."""

from pydantic import BaseModel

from app.core.logger import LogIcon, logger
from app.core.router import Router
from app.core.settings import settings as st

router = Router(__file__)


class HealthResponse(BaseModel):
    """Service identity plus how pictures are being optimized."""

    status: str
    service: str
    version: str
    environment: str
    variant: str
    optimizer: str


async def health_check(global_dependencies) -> HealthResponse:
    state = global_dependencies["state"]
    optimizer = "process_pool" if state.get("process_pool") is not None else "inline"
    logger.info("Health check requested", icon=LogIcon.HEALTHCHECK, optimizer=optimizer)
    return HealthResponse(
        status="healthy",
        service=st.API_NAME,
        version=st.API_VERSION,
        environment=st.ENVIRONMENT,
        variant=st.VARIANT,
        optimizer=optimizer,
    )


router.get("/health")(health_check)
