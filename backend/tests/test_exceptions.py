"""Problem-details mapping for the error taxonomy."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from authapi.core.exceptions import AuthenticationFailure, StoreFailure, register_exception_handlers


def _app(debug: bool = False) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app, debug=debug)

    @app.get("/auth-failure")
    async def auth_failure():
        raise AuthenticationFailure()

    @app.get("/store-failure")
    async def store_failure():
        raise StoreFailure("connection refused")

    @app.get("/bad-input")
    async def bad_input():
        raise ValueError("limit must be positive")

    @app.get("/missing")
    async def missing():
        raise KeyError("nope")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("boom")

    return app


async def _get(app: FastAPI, path: str):
    async with AsyncClient(transport=ASGITransport(app=app, raise_app_exceptions=False), base_url="http://test") as ac:
        return await ac.get(path)


@pytest.mark.asyncio
async def test_authentication_failure_is_401_problem():
    resp = await _get(_app(), "/auth-failure")
    assert resp.status_code == 401
    assert resp.headers["content-type"].startswith("application/problem+json")
    body = resp.json()
    assert body["title"] == "Unauthorized"
    assert body["detail"] == "Invalid credentials"
    assert body["instance"] == "/auth-failure"
    assert body["traceId"]


@pytest.mark.asyncio
async def test_store_failure_hides_detail_unless_debug():
    resp = await _get(_app(), "/store-failure")
    assert resp.status_code == 503
    assert "connection refused" not in resp.json()["detail"]
    resp = await _get(_app(debug=True), "/store-failure")
    assert resp.json()["detail"] == "connection refused"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path,status,title",
    [
        ("/bad-input", 400, "Bad Request"),
        ("/missing", 404, "Not Found"),
        ("/boom", 500, "Internal Server Error"),
    ],
)
async def test_generic_exception_mapping(path, status, title):
    resp = await _get(_app(), path)
    assert resp.status_code == status
    assert resp.json()["title"] == title
