"""Tests for lifespan management."""

from unittest.mock import MagicMock

import pytest

from app.core.lifespan import BaseEvent, Lifespan, State, create_lifespan


class RecordingEvent(BaseEvent[str]):
    """Event storing its name and remembering shutdowns."""

    name = "recording"
    shutdowns: list[str] = []

    async def startup(self) -> str:
        return f"{self.name}-instance"

    async def shutdown(self, instance: str) -> None:
        RecordingEvent.shutdowns.append(instance)


class PoolEvent(RecordingEvent):
    name = "pool"


class ClientEvent(RecordingEvent):
    name = "client"

    async def startup(self) -> str:
        return f"client-on-{self.state.get('pool')}"


class StartupOnlyEvent(BaseEvent[int]):
    name = "startup_only"

    async def startup(self) -> int:
        return 42


@pytest.fixture(autouse=True)
def reset_shutdowns() -> None:
    RecordingEvent.shutdowns = []


@pytest.fixture
def mock_app() -> MagicMock:
    app = MagicMock()
    app.inject_global = MagicMock()
    return app


# -----------------------------------------------------------------------------
# State Tests
# -----------------------------------------------------------------------------


class TestState:
    """Tests for the State class."""

    def test_attribute_access(self) -> None:
        state = State()
        state.optimizer = "client"

        assert state.optimizer == "client"
        assert "optimizer" in state
        assert list(state) == ["optimizer"]

    def test_missing_attribute_raises(self) -> None:
        with pytest.raises(AttributeError, match="State has no attribute 'process_pool'"):
            _ = State().process_pool

    def test_get_with_default(self) -> None:
        state = State()
        assert state.get("process_pool") is None
        assert state.get("process_pool", "inline") == "inline"

    def test_repr_lists_names(self) -> None:
        state = State()
        state.optimizer = "client"
        state.process_pool = "pool"
        assert repr(state) == "State(['optimizer', 'process_pool'])"

    def test_clear(self) -> None:
        state = State()
        state.optimizer = "client"
        state.clear()
        assert "optimizer" not in state


# -----------------------------------------------------------------------------
# BaseEvent Tests
# -----------------------------------------------------------------------------


def test_has_shutdown() -> None:
    assert RecordingEvent.has_shutdown()
    assert not StartupOnlyEvent.has_shutdown()


# -----------------------------------------------------------------------------
# Lifespan Tests
# -----------------------------------------------------------------------------


class TestLifespan:
    """Tests for Lifespan class."""

    def test_create_lifespan(self, mock_app) -> None:
        lifespan = create_lifespan(mock_app)

        assert isinstance(lifespan, Lifespan)
        assert lifespan.state is None
        assert lifespan.events == []

    def test_register_chains(self, mock_app) -> None:
        lifespan = Lifespan(mock_app)
        assert lifespan.register(PoolEvent).register(ClientEvent) is lifespan

    async def test_startup_exposes_state(self, mock_app) -> None:
        lifespan = Lifespan(mock_app).register(StartupOnlyEvent)

        await lifespan.startup()

        assert lifespan.state.startup_only == 42
        mock_app.inject_global.assert_called_once_with(state=lifespan.state)

    async def test_later_events_see_earlier_ones(self, mock_app) -> None:
        lifespan = Lifespan(mock_app).register(PoolEvent).register(ClientEvent)

        await lifespan.startup()

        assert lifespan.state.client == "client-on-pool-instance"

    async def test_shutdown_in_reverse_order(self, mock_app) -> None:
        lifespan = Lifespan(mock_app).register(PoolEvent).register(StartupOnlyEvent).register(ClientEvent)

        await lifespan.startup()
        await lifespan.shutdown()

        assert RecordingEvent.shutdowns == ["client-on-pool-instance", "pool-instance"]
        assert "pool" not in lifespan.state
        assert lifespan.events == []

    async def test_shutdown_without_startup(self, mock_app) -> None:
        await Lifespan(mock_app).shutdown()
        assert RecordingEvent.shutdowns == []
