import httpx
import jwt
import pytest
from httpx import AsyncClient
from fastapi import status
from app.main import app


@pytest.mark.asyncio
async def test_anonymous_session_me_refresh():
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.post("/auth/anonymous")
        assert r.status_code == status.HTTP_201_CREATED
        tokens = r.json()
        assert "access" in tokens and "refresh" in tokens

        me = await ac.get("/auth/me", headers={"Authorization": f"Bearer {tokens['access']}"})
        assert me.status_code == 200
        assert me.json()["id"] == tokens["user_id"]

        r = await ac.post("/auth/refresh", headers={"Authorization": f"Bearer {tokens['refresh']}"})
        assert r.status_code == 200
        assert r.json()["user_id"] == tokens["user_id"]


@pytest.mark.asyncio
async def test_each_anonymous_session_is_a_new_identity():
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        a = (await ac.post("/auth/anonymous")).json()
        b = (await ac.post("/auth/anonymous")).json()
        assert a["user_id"] != b["user_id"]


@pytest.mark.asyncio
async def test_missing_and_invalid_tokens():
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.get("/auth/me")
        assert r.status_code == 401
        assert r.json()["detail"] == "Missing bearer token"

        r = await ac.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert r.status_code == 401
        assert r.json()["detail"] == "Invalid session"

        forged = jwt.encode({"sub": "x", "type": "access"}, "other-secret", algorithm="HS256")
        r = await ac.get("/auth/me", headers={"Authorization": f"Bearer {forged}"})
        assert r.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token_cannot_be_used_as_access():
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        tokens = (await ac.post("/auth/anonymous")).json()
        r = await ac.get("/auth/me", headers={"Authorization": f"Bearer {tokens['refresh']}"})
        assert r.status_code == 401
        r = await ac.post("/auth/refresh", headers={"Authorization": f"Bearer {tokens['access']}"})
        assert r.status_code == 401
