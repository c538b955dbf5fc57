import pytest
from fastapi import APIRouter, FastAPI
from fastapi.testclient import TestClient

from purchase_api.main import create_app
from purchase_api.providers import (
    AUTH_PREFIX,
    USERS_PREFIX,
    RouteProvider,
    RouterProvider,
    mount_route_providers,
)


def _stub_provider(prefix: str, name: str) -> RouterProvider:
    router = APIRouter()

    @router.get("/whoami")
    async def whoami():
        return {"provider": name}

    @router.post("/echo")
    async def echo(payload: dict):
        return payload

    return RouterProvider(prefix=prefix, api_router=router, tags=[name])


def test_router_provider_satisfies_protocol():
    assert isinstance(_stub_provider(AUTH_PREFIX, "auth"), RouteProvider)


def test_providers_are_mounted_under_their_prefix(settings, logger):
    app = create_app(
        settings,
        logger=logger,
        route_providers=[_stub_provider(AUTH_PREFIX, "auth"), _stub_provider(USERS_PREFIX, "users")],
    )
    with TestClient(app) as client:
        assert client.get("/api/auth/whoami").json() == {"provider": "auth"}
        assert client.get("/api/users/whoami").json() == {"provider": "users"}
        resp = client.post("/api/users/echo", json={"id": 7})
        assert resp.json() == {"id": 7}
        assert resp.headers["x-content-type-options"] == "nosniff"
        # Built-in route next to the mounted prefixes is untouched
        assert client.get("/api").json() == {"message": "Purchase API is running!"}


def test_unmounted_provider_prefix_is_not_found(client):
    resp = client.get("/api/auth/whoami")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "not_found"


@pytest.mark.parametrize("prefix", ["api/auth", "/api/auth/"])
def test_malformed_prefix_rejected(prefix):
    with pytest.raises(ValueError):
        mount_route_providers(FastAPI(), [_stub_provider(prefix, "auth")])


def test_duplicate_prefix_rejected_before_mounting():
    app = FastAPI()
    before = len(app.routes)
    with pytest.raises(ValueError, match="Duplicate"):
        mount_route_providers(
            app, [_stub_provider(AUTH_PREFIX, "a"), _stub_provider(AUTH_PREFIX, "b")]
        )
    assert len(app.routes) == before


def test_non_provider_rejected():
    with pytest.raises(ValueError):
        mount_route_providers(FastAPI(), [APIRouter()])


def test_mount_returns_prefixes_in_order():
    app = FastAPI()
    mounted = mount_route_providers(
        app, [_stub_provider(USERS_PREFIX, "users"), _stub_provider(AUTH_PREFIX, "auth")]
    )
    assert mounted == [USERS_PREFIX, AUTH_PREFIX]
