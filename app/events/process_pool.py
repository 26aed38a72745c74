"""Process pool the optimizer runs in, so CPU-bound encoding stays off the event loop."""

import multiprocessing as mp
from concurrent.futures import ProcessPoolExecutor

from app.core.lifespan import BaseEvent
from app.core.settings import settings as st


def create_process_pool(max_workers: int | None = None) -> ProcessPoolExecutor:
    """Create ProcessPoolExecutor with spawn context for asyncio compatibility."""
    ctx = mp.get_context("spawn")
    return ProcessPoolExecutor(
        max_workers=max_workers or mp.cpu_count(),
        mp_context=ctx,
    )


class ProcessPoolEvent(BaseEvent[ProcessPoolExecutor]):
    """Manages ProcessPoolExecutor lifecycle."""

    name = "process_pool"

    async def startup(self) -> ProcessPoolExecutor:
        return create_process_pool(max_workers=st.MAX_WORKERS)

    async def shutdown(self, instance: ProcessPoolExecutor) -> None:
        instance.shutdown(wait=True, cancel_futures=True)
