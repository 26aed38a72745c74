"""Application lifespan: resources created at startup, released in reverse order at shutdown."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine
from contextlib import AsyncExitStack
from typing import Any

from robyn import Robyn

from app.core.logger import LogIcon, logger
from app.core.settings import settings as st

AsyncHandler = Callable[[], Coroutine[Any, Any, None]]


class State:
    """Named resources handed to handlers as `global_dependencies["state"]`."""

    __slots__ = ("_resources",)

    def __init__(self) -> None:
        object.__setattr__(self, "_resources", {})

    def __getattr__(self, name: str) -> Any:
        if name not in self._resources:
            raise AttributeError(f"State has no attribute '{name}'")
        return self._resources[name]

    def __setattr__(self, name: str, value: Any) -> None:
        self._resources[name] = value

    def __contains__(self, name: str) -> bool:
        return name in self._resources

    def __iter__(self):
        return iter(list(self._resources))

    def __repr__(self) -> str:
        return f"State({sorted(self._resources)})"

    def get(self, name: str, default: Any = None) -> Any:
        return self._resources.get(name, default)

    def clear(self) -> None:
        self._resources.clear()


class BaseEvent[T](ABC):
    """One startup resource, stored in the state under `name`."""

    name: str
    state: State

    @abstractmethod
    async def startup(self) -> T:
        """Create the resource. Resources of events registered earlier are in `self.state`."""

    async def shutdown(self, instance: T) -> None:  # noqa: B027
        """Release the resource. Events without cleanup keep this no-op."""

    @classmethod
    def has_shutdown(cls) -> bool:
        return cls.shutdown is not BaseEvent.shutdown


class Lifespan:
    """Runs registered events at startup and their cleanups, last first, at shutdown."""

    def __init__(self, app: Robyn) -> None:
        self._app = app
        self._event_classes: list[type[BaseEvent[Any]]] = []
        self._events: list[BaseEvent[Any]] = []
        self._state: State | None = None
        self._cleanups = AsyncExitStack()

    def register(self, event_cls: type[BaseEvent[Any]]) -> "Lifespan":
        self._event_classes.append(event_cls)
        return self

    @property
    def state(self) -> State | None:
        return self._state

    @property
    def events(self) -> list[BaseEvent[Any]]:
        return self._events

    async def _start_event(self, event_cls: type[BaseEvent[Any]], state: State) -> None:
        event = event_cls()
        event.state = state
        logger.info(f"Starting event: {event.name}", icon=LogIcon.PROCESSING)

        instance = await event.startup()
        setattr(state, event.name, instance)
        if event.has_shutdown():
            self._cleanups.push_async_callback(self._stop_event, event, instance)

        self._events.append(event)
        logger.info(f"Event ready: {event.name}", icon=LogIcon.SUCCESS)

    @staticmethod
    async def _stop_event(event: BaseEvent[Any], instance: Any) -> None:
        logger.info(f"Shutting down: {event.name}", icon=LogIcon.PROCESSING)
        await event.shutdown(instance)

    @property
    def startup(self) -> AsyncHandler:
        async def _startup() -> None:
            logger.info("Starting application lifespan", icon=LogIcon.START, version=st.API_VERSION, variant=st.VARIANT)
            self._state = State()
            for event_cls in self._event_classes:
                await self._start_event(event_cls, self._state)

            self._app.inject_global(state=self._state)
            logger.info("App state ready", icon=LogIcon.COMPLETE, resources=list(self._state))

        return _startup

    @property
    def shutdown(self) -> AsyncHandler:
        async def _shutdown() -> None:
            if self._state is None:
                logger.info("No state to cleanup", icon=LogIcon.WARNING)
                return

            await self._cleanups.aclose()
            self._events.clear()
            self._state.clear()
            logger.info("Cleanup complete", icon=LogIcon.COMPLETE)

        return _shutdown


def create_lifespan(app: Robyn) -> Lifespan:
    return Lifespan(app)
