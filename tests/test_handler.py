"""
Runtime handler tests.

The runtime calls handlers synchronously, so these tests are plain
functions driving ``LambdaHandler.__call__``.
"""

import json
import logging

import pytest

from conftest import FakeLambdaContext, make_event

from switchyard import handler as handler_module
from switchyard.config import Settings
from switchyard.controller import GET, controller
from switchyard.di import ContainerFactory
from switchyard.entrypoints import define_entry_point
from switchyard.handler import (
    LambdaHandler,
    clear_all_handler_states,
    configure,
    create_handler,
    get_manager,
    reset_handler_state,
)
from switchyard.lifecycle import EntryPointManager, EntryPointStatus
from switchyard.logs import bind_request_context, clear_request_context


class CountingFactory(ContainerFactory):

    def __init__(self):
        super().__init__()
        self.builds = 0

    async def build(self, config):
        self.builds += 1
        return await super().build(config)


@pytest.fixture
def manager(registry, entry_points):
    @controller("/api/po", entry_point="po", registry=registry)
    class POController:
        def __init__(self):
            self.calls = 0

        @GET("/")
        def list_all(self):
            self.calls += 1
            return {"calls": self.calls}

    define_entry_point("po", POController, registry=entry_points)
    return EntryPointManager(entry_points, registry, CountingFactory())


class TestLambdaHandler:

    def test_sync_invocation(self, manager):
        handler = create_handler("po", manager=manager)

        result = handler(make_event("GET", "/api/po"), FakeLambdaContext())

        assert result["statusCode"] == 200
        assert result["headers"]["Access-Control-Allow-Origin"] == "*"
        assert '"calls": 1' in result["body"]

    def test_warm_invocations_reuse_router(self, manager):
        handler = create_handler("po", manager=manager)

        handler(make_event("GET", "/api/po"))
        result = handler(make_event("GET", "/api/po"))

        assert manager.factory.builds == 1
        assert '"calls": 2' in result["body"]

    def test_unregistered_entry_point_returns_503(self, manager):
        result = create_handler("invoices", manager=manager)(make_event("GET", "/api/invoices"))
        assert result["statusCode"] == 503

    @pytest.mark.asyncio
    async def test_async_handle(self, manager):
        result = await LambdaHandler("po", manager).handle(make_event("GET", "/api/po"))
        assert result["statusCode"] == 200

    def test_repr(self):
        assert repr(LambdaHandler("po")) == "<LambdaHandler 'po'>"


class TestProcessDefaults:

    def test_configure_with_manager(self, manager):
        assert configure(manager=manager) is manager
        assert get_manager() is manager
        assert create_handler("po").manager is manager

    def test_configure_from_settings_without_secret(self, capsys):
        manager = configure(settings=Settings())
        assert manager.authenticator is None
        assert "No JWT secret" in capsys.readouterr().err

    def test_configure_installs_log_handler(self, capsys, monkeypatch):
        monkeypatch.delenv("AWS_SAM_LOCAL", raising=False)
        monkeypatch.delenv("IS_LOCAL", raising=False)
        configure(settings=Settings(log_level="INFO", jwt_secret="s3cret"))

        logger = logging.getLogger("switchyard")
        assert any(getattr(h, "_switchyard", False) for h in logger.handlers)
        assert logger.level == logging.INFO

        token = bind_request_context(request_id="req-9", entry_point="po")
        try:
            logging.getLogger("switchyard.handler").info("warm start")
        finally:
            clear_request_context(token)

        entry = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert entry["message"] == "warm start"
        assert entry["request_id"] == "req-9"
        assert entry["entry_point"] == "po"

    def test_configure_with_manager_leaves_logging_alone(self, manager):
        configure(manager=manager)
        logger = logging.getLogger("switchyard")
        assert not any(getattr(h, "_switchyard", False) for h in logger.handlers)

    def test_configure_from_settings_with_secret(self):
        manager = configure(settings=Settings(jwt_secret="s3cret", cors_allow_origin="https://app.example"))
        assert manager.authenticator is not None
        assert manager.headers == {"Access-Control-Allow-Origin": "https://app.example"}

    def test_reset_handler_state(self, manager):
        configure(manager=manager)
        handler = create_handler("po")
        handler(make_event("GET", "/api/po"))
        assert manager.state("po").status is EntryPointStatus.READY

        reset_handler_state("po")
        assert manager.state("po").status is EntryPointStatus.UNINITIALIZED

        handler(make_event("GET", "/api/po"))
        clear_all_handler_states()
        assert manager.state("po").status is EntryPointStatus.UNINITIALIZED
        assert manager.factory.builds == 2

    def test_reset_defaults(self, manager):
        configure(manager=manager)
        handler_module.reset_defaults()
        assert handler_module._manager is None
