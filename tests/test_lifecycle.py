"""
Entry-point lifecycle tests.

Covers single initialization under concurrency, failure memoization, reset
and the 503 rendering of initialization failures.
"""

import asyncio

import pytest

from conftest import FakeLambdaContext, make_event

from switchyard.controller import GET, Router, controller
from switchyard.controller.registry import route_registry
from switchyard.di import ContainerFactory
from switchyard.entrypoints import define_entry_point, entry_point_registry
from switchyard.faults import EntryPointInitFault, EntryPointNotRegisteredFault
from switchyard.lifecycle import EntryPointManager, EntryPointStatus


class CountingFactory(ContainerFactory):
    """Counts builds; optionally fails the first ``failures`` builds."""

    def __init__(self, failures=0, delay=0.01):
        super().__init__()
        self.builds = 0
        self.failures = failures
        self.delay = delay

    async def build(self, config):
        self.builds += 1
        await asyncio.sleep(self.delay)
        if self.builds <= self.failures:
            raise ConnectionError("database unreachable")
        return await super().build(config)


@pytest.fixture
def app(registry, entry_points):
    @controller("/api/po", entry_point="po", registry=registry)
    class POController:
        @GET("/")
        def list_all(self):
            return ["po-1"]

    define_entry_point("po", POController, registry=entry_points)
    return registry, entry_points


def make_manager(app, factory):
    registry, entry_points = app
    return EntryPointManager(entry_points, registry, factory)


# ============================================================================
# Initialization
# ============================================================================

class TestInitialization:

    @pytest.mark.asyncio
    async def test_concurrent_requests_build_once(self, app):
        factory = CountingFactory()
        manager = make_manager(app, factory)

        routers = await asyncio.gather(*(manager.get_router("po") for _ in range(10)))

        assert factory.builds == 1
        assert all(r is routers[0] for r in routers)
        assert isinstance(routers[0], Router)
        assert manager.state("po").status is EntryPointStatus.READY

    @pytest.mark.asyncio
    async def test_ready_router_is_reused(self, app):
        factory = CountingFactory()
        manager = make_manager(app, factory)

        first = await manager.get_router("po")
        assert await manager.get_router("po") is first
        assert factory.builds == 1

    @pytest.mark.asyncio
    async def test_state_before_first_request(self, app):
        manager = make_manager(app, CountingFactory())
        assert manager.state("po").status is EntryPointStatus.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_initialization(self, app):
        factory = CountingFactory(delay=0.05)
        manager = make_manager(app, factory)

        first = asyncio.create_task(manager.get_router("po"))
        second = asyncio.create_task(manager.get_router("po"))
        await asyncio.sleep(0.01)
        first.cancel()

        assert isinstance(await second, Router)
        assert factory.builds == 1


# ============================================================================
# Failure memoization
# ============================================================================

class TestFailures:

    @pytest.mark.asyncio
    async def test_failure_is_cached(self, app):
        factory = CountingFactory(failures=1)
        manager = make_manager(app, factory)

        with pytest.raises(EntryPointInitFault) as first:
            await manager.get_router("po")
        assert isinstance(first.value.__cause__, ConnectionError)

        with pytest.raises(EntryPointInitFault) as second:
            await manager.get_router("po")

        assert second.value is first.value
        assert factory.builds == 1
        assert manager.state("po").status is EntryPointStatus.FAILED

    @pytest.mark.asyncio
    async def test_concurrent_waiters_share_failure(self, app):
        factory = CountingFactory(failures=1)
        manager = make_manager(app, factory)

        results = await asyncio.gather(
            *(manager.get_router("po") for _ in range(5)),
            return_exceptions=True,
        )
        assert factory.builds == 1
        assert all(isinstance(r, EntryPointInitFault) for r in results)

    @pytest.mark.asyncio
    async def test_reset_allows_retry(self, app):
        factory = CountingFactory(failures=1)
        manager = make_manager(app, factory)

        with pytest.raises(EntryPointInitFault):
            await manager.get_router("po")

        manager.reset("po")
        assert manager.state("po").status is EntryPointStatus.UNINITIALIZED
        assert isinstance(await manager.get_router("po"), Router)
        assert factory.builds == 2

    @pytest.mark.asyncio
    async def test_reset_all(self, app):
        factory = CountingFactory()
        manager = make_manager(app, factory)

        await manager.get_router("po")
        manager.reset_all()
        await manager.get_router("po")
        assert factory.builds == 2

    @pytest.mark.asyncio
    async def test_unregistered_entry_point(self, app):
        manager = make_manager(app, CountingFactory())

        with pytest.raises(EntryPointInitFault) as exc_info:
            await manager.get_router("missing")
        assert isinstance(exc_info.value.__cause__, EntryPointNotRegisteredFault)


# ============================================================================
# handle()
# ============================================================================

class TestHandle:

    @pytest.mark.asyncio
    async def test_handle_serves_request(self, app):
        manager = make_manager(app, CountingFactory())

        response = await manager.handle("po", make_event("GET", "/api/po"), FakeLambdaContext())
        assert response.status_code == 200
        assert response.json() == {"success": True, "data": ["po-1"]}

    @pytest.mark.asyncio
    async def test_init_failure_renders_503(self, app):
        manager = make_manager(app, CountingFactory(failures=5))

        for _ in range(2):
            response = await manager.handle("po", make_event("GET", "/api/po"))
            assert response.status_code == 503
            assert response.json()["error"] == {
                "code": "ENTRY_POINT_INIT_FAILED",
                "message": "Service initialization failed",
            }
            assert "database" not in response.body

    @pytest.mark.asyncio
    async def test_route_not_found_through_handle(self, app):
        manager = make_manager(app, CountingFactory())

        response = await manager.handle("po", make_event("DELETE", "/api/po"))
        assert response.status_code == 404


# ============================================================================
# Explicit registries
# ============================================================================

class TestExplicitRegistries:

    def test_empty_registries_are_kept(self, registry, entry_points):
        manager = EntryPointManager(entry_points, registry, CountingFactory())
        assert manager.routes is registry
        assert manager.entry_points is entry_points
        assert manager.routes is not route_registry

    @pytest.mark.asyncio
    async def test_registries_populated_after_construction(self, registry, entry_points):
        manager = EntryPointManager(entry_points, registry, CountingFactory())

        @controller("/po", entry_point="po", registry=registry)
        class POController:
            @GET("/")
            def list_all(self):
                return ["po-1"]

        define_entry_point("po", POController, registry=entry_points)

        response = await manager.handle("po", make_event("GET", "/po"))
        assert response.status_code == 200
        assert response.json()["data"] == ["po-1"]
        assert len(route_registry) == 0
        assert "po" not in entry_point_registry
