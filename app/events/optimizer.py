"""Optimization client lifespan event."""

from app.core.lifespan import BaseEvent
from app.services.optimizer import OptimizationClient, PillowOptimizer


class OptimizerEvent(BaseEvent[OptimizationClient]):
    """Builds the optimization client on top of the process pool, when one was started before."""

    name = "optimizer"

    async def startup(self) -> OptimizationClient:
        return OptimizationClient(PillowOptimizer(), executor=self.state.get("process_pool"))
