import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient


def test_unmatched_path_returns_structured_404(client):
    resp = client.get("/does-not-exist")
    assert resp.status_code == 404
    error = resp.json()["error"]
    assert error["code"] == "not_found"
    assert error["message"] == "Route GET /does-not-exist not found"


@pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "PATCH"])
def test_known_path_with_wrong_method_returns_404(client, method):
    resp = client.request(method, "/health")
    assert resp.status_code == 404
    assert resp.json() == {
        "error": {"code": "not_found", "message": f"Route {method} /health not found"}
    }
    assert "allow" not in resp.headers


@pytest.mark.parametrize("path", ["/", "/health", "/health/live", "/health/ready", "/api", "/metrics"])
def test_head_is_answered_on_read_routes(client, path):
    resp = client.head(path)
    assert resp.status_code == 200
    assert resp.headers["x-request-id"]


def test_http_exception_detail_is_kept(app):
    @app.get("/locked")
    async def locked():
        raise HTTPException(status_code=403, detail="Purchases are frozen")

    with TestClient(app) as client:
        resp = client.get("/locked")
    assert resp.status_code == 403
    assert resp.json() == {"error": {"code": "forbidden", "message": "Purchases are frozen"}}


def test_validation_errors_are_structured(app):
    @app.get("/items/{item_id}")
    async def item(item_id: int):
        return {"item_id": item_id}

    with TestClient(app) as client:
        resp = client.get("/items/not-a-number")
    assert resp.status_code == 422
    error = resp.json()["error"]
    assert error["code"] == "validation_error"
    assert error["details"]["errors"][0]["loc"] == ["path", "item_id"]
