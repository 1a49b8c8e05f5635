"""
Router dispatch tests.

Covers route matching, preflight, envelopes, error rendering and
authentication of non-public routes.
"""

import json

import pytest

from conftest import make_request

from switchyard.controller import (
    GET,
    OPTIONS,
    POST,
    Body,
    CurrentUser,
    PathParam,
    Router,
    bind,
    controller,
)
from switchyard.di import ContainerFactory
from switchyard.entrypoints import EntryPointConfig
from switchyard.faults import Fault, FaultDomain, NotFoundFault, UnauthorizedFault, ValidationFault
from switchyard.response import CORS_HEADERS, success_response


class StubAuthenticator:
    async def authenticate(self, request):
        if request.header("Authorization") != "Bearer good":
            raise UnauthorizedFault("Invalid or expired token")
        return request.with_principal({"sub": "user-1"})


def declare_po(registry):
    @controller("/api/po", entry_point="po", registry=registry)
    class POController:
        @GET("/")
        async def list_all(self):
            return [{"id": "1"}]

        @GET("/raw")
        def raw(self):
            return {"statusCode": 202, "body": "accepted", "headers": {"X-Custom": "1"}}

        @GET("/crash")
        def crash(self):
            raise RuntimeError("secret detail")

        @GET("/private-fault")
        def private_fault(self):
            raise Fault(code="DB_DOWN", message="connection string leaked", domain=FaultDomain.IO)

        @GET("/health", public=True)
        def health(self):
            return {"ok": True}

        @GET("/{id}")
        @bind(PathParam("id"))
        async def get_by_id(self, id):
            if id == "missing":
                raise NotFoundFault(f"Purchase order {id} not found")
            return {"id": id}

        @GET("/special")
        def special(self):
            return "special"

        @POST("/")
        @bind(Body(), CurrentUser())
        async def create(self, data, user):
            if not data:
                raise ValidationFault("Body is required")
            return success_response({"created": data, "by": user}, status_code=201)

    return POController


async def build_router(registry, name="po", *, authenticator=None, headers=None):
    controllers = [entry.controller for entry in registry.routes_for_entry_point(name)]
    container = await ContainerFactory().build(EntryPointConfig(name=name, controllers=controllers))
    return Router(name, container, registry=registry, authenticator=authenticator, headers=headers)


# ============================================================================
# Matching
# ============================================================================

class TestMatching:

    @pytest.mark.asyncio
    async def test_compiled_patterns(self, registry):
        declare_po(registry)
        router = await build_router(registry)
        patterns = [r.pattern for r in router.routes]
        assert patterns[0] == "/api/po"
        assert patterns.index("/api/po/{id}") < patterns.index("/api/po/special")

    @pytest.mark.asyncio
    async def test_path_param_dispatch(self, registry):
        declare_po(registry)
        router = await build_router(registry)

        response = await router.dispatch(make_request("GET", "/api/po/42"))
        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {"id": "42"}}

    @pytest.mark.asyncio
    async def test_first_registered_route_wins(self, registry):
        declare_po(registry)
        router = await build_router(registry)

        response = await router.dispatch(make_request("GET", "/api/po/special"))
        assert response.json()["data"] == {"id": "special"}

    @pytest.mark.asyncio
    async def test_method_mismatch_is_not_found(self, registry):
        declare_po(registry)
        router = await build_router(registry)

        response = await router.dispatch(make_request("PUT", "/api/po"))
        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": {"code": "ROUTE_NOT_FOUND", "message": "No route found for PUT /api/po"},
        }
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_unknown_path_is_not_found(self, registry):
        declare_po(registry)
        router = await build_router(registry)
        assert (await router.dispatch(make_request("GET", "/api/other"))).status_code == 404

    @pytest.mark.asyncio
    async def test_other_entry_points_not_served(self, registry):
        declare_po(registry)

        @controller("/api/invoices", entry_point="invoices", registry=registry)
        class InvoiceController:
            @GET("/")
            def list_all(self):
                return []

        router = await build_router(registry)
        assert (await router.dispatch(make_request("GET", "/api/invoices"))).status_code == 404


# ============================================================================
# Envelopes
# ============================================================================

class TestEnvelopes:

    @pytest.mark.asyncio
    async def test_domain_value_wrapped(self, registry):
        declare_po(registry)
        router = await build_router(registry)

        response = await router.dispatch(make_request("GET", "/api/po"))
        assert response.json() == {"success": True, "data": [{"id": "1"}]}
        for key, value in CORS_HEADERS.items():
            assert response.headers[key] == value
        assert "Cache-Control" in response.headers

    @pytest.mark.asyncio
    async def test_envelope_passthrough(self, registry):
        declare_po(registry)
        router = await build_router(registry)

        response = await router.dispatch(make_request("GET", "/api/po/raw"))
        assert response.status_code == 202
        assert response.body == "accepted"
        assert response.headers["X-Custom"] == "1"
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_success_response_passthrough(self, registry):
        declare_po(registry)
        router = await build_router(registry)

        request = make_request("POST", "/api/po", body={"total": 5})
        response = await router.dispatch(request)
        assert response.status_code == 201
        assert response.json()["data"]["created"] == {"total": 5}

    @pytest.mark.asyncio
    async def test_extra_headers(self, registry):
        declare_po(registry)
        router = await build_router(registry, headers={"Access-Control-Allow-Origin": "https://app.example"})

        response = await router.dispatch(make_request("GET", "/api/po"))
        assert response.headers["Access-Control-Allow-Origin"] == "https://app.example"


# ============================================================================
# Preflight
# ============================================================================

class TestPreflight:

    @pytest.mark.asyncio
    async def test_options_short_circuit(self, registry):
        declare_po(registry)
        router = await build_router(registry, authenticator=StubAuthenticator())

        response = await router.dispatch(make_request("OPTIONS", "/api/po/42"))
        assert response.status_code == 204
        assert response.body == ""
        assert response.headers["Access-Control-Allow-Methods"] == CORS_HEADERS["Access-Control-Allow-Methods"]

    @pytest.mark.asyncio
    async def test_options_for_unknown_path(self, registry):
        declare_po(registry)
        router = await build_router(registry)
        assert (await router.dispatch(make_request("OPTIONS", "/nowhere"))).status_code == 204

    @pytest.mark.asyncio
    async def test_explicit_options_route(self, registry):
        @controller("/api/files", entry_point="files", registry=registry)
        class FileController:
            @OPTIONS("/")
            def preflight(self):
                return {"statusCode": 200, "body": "", "headers": {"Allow": "GET"}}

        router = await build_router(registry, "files")
        response = await router.dispatch(make_request("OPTIONS", "/api/files"))
        assert response.status_code == 200
        assert response.headers["Allow"] == "GET"


# ============================================================================
# Error rendering
# ============================================================================

class TestErrors:

    @pytest.mark.asyncio
    async def test_http_fault(self, registry):
        declare_po(registry)
        router = await build_router(registry)

        response = await router.dispatch(make_request("GET", "/api/po/missing"))
        assert response.status_code == 404
        assert response.json()["error"] == {"code": "NOT_FOUND", "message": "Purchase order missing not found"}

    @pytest.mark.asyncio
    async def test_validation_fault(self, registry):
        declare_po(registry)
        router = await build_router(registry)

        response = await router.dispatch(make_request("POST", "/api/po"))
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_generic(self, registry, caplog):
        declare_po(registry)
        router = await build_router(registry)

        response = await router.dispatch(make_request("GET", "/api/po/crash"))
        assert response.status_code == 500
        body = response.json()
        assert body["error"]["code"] == "INTERNAL_ERROR"
        assert "secret detail" not in response.body
        assert "Unhandled error" in caplog.text

    @pytest.mark.asyncio
    async def test_private_fault_hides_message(self, registry):
        declare_po(registry)
        router = await build_router(registry)

        response = await router.dispatch(make_request("GET", "/api/po/private-fault"))
        assert response.status_code == 502
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"
        assert "leaked" not in response.body

    @pytest.mark.asyncio
    async def test_dispatch_never_raises_on_bad_body(self, registry):
        declare_po(registry)
        router = await build_router(registry)

        response = await router.dispatch(make_request("POST", "/api/po", body="not json"))
        assert response.status_code == 201
        assert json.loads(response.body)["data"]["created"] == "not json"


# ============================================================================
# Authentication
# ============================================================================

class TestAuthentication:

    @pytest.mark.asyncio
    async def test_missing_credentials_rejected(self, registry):
        declare_po(registry)
        router = await build_router(registry, authenticator=StubAuthenticator())

        response = await router.dispatch(make_request("GET", "/api/po"))
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_principal_reaches_handler(self, registry):
        declare_po(registry)
        router = await build_router(registry, authenticator=StubAuthenticator())

        request = make_request("POST", "/api/po", body={"total": 1}, headers={"Authorization": "Bearer good"})
        response = await router.dispatch(request)
        assert response.status_code == 201
        assert response.json()["data"]["by"] == {"sub": "user-1"}

    @pytest.mark.asyncio
    async def test_public_route_skips_authenticator(self, registry):
        declare_po(registry)
        router = await build_router(registry, authenticator=StubAuthenticator())

        response = await router.dispatch(make_request("GET", "/api/po/health"))
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_sync_authenticator(self, registry):
        declare_po(registry)

        class SyncAuthenticator:
            def authenticate(self, request):
                return request.with_principal({"sub": "sync"})

        router = await build_router(registry, authenticator=SyncAuthenticator())
        request = make_request("POST", "/api/po", body={"total": 1})
        assert (await router.dispatch(request)).json()["data"]["by"] == {"sub": "sync"}

    @pytest.mark.asyncio
    async def test_authenticator_returning_none_is_internal_error(self, registry, caplog):
        declare_po(registry)

        class BrokenAuthenticator:
            async def authenticate(self, request):
                return None

        router = await build_router(registry, authenticator=BrokenAuthenticator())

        response = await router.dispatch(make_request("GET", "/api/po"))
        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"
        assert "GET /api/po" in caplog.text
