"""
Integration tests for the current user's identity and profile.
"""

from datetime import datetime

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.testing import create_admin, create_user, get_auth_headers


@pytest.mark.integration
async def test_read_me_includes_profile_and_roles(client: AsyncClient, session: AsyncSession):
    user = await create_user(session, metadata={"full_name": "Grace Hopper"})

    response = await client.get("/api/v1/users/me", headers=get_auth_headers(user))

    assert response.status_code == 200
    data = response.json()
    assert data["roles"] == ["user"]
    assert data["profile"]["display_name"] == "Grace Hopper"


@pytest.mark.integration
async def test_read_me_as_admin(client: AsyncClient, session: AsyncSession):
    admin = await create_admin(session)

    response = await client.get("/api/v1/users/me", headers=get_auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["roles"] == ["admin", "user"]


@pytest.mark.integration
async def test_update_my_profile(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    headers = get_auth_headers(user)
    before = (await client.get("/api/v1/users/me", headers=headers)).json()["profile"]

    response = await client.patch(
        "/api/v1/users/me/profile",
        json={"display_name": "Renamed", "bio": "Writes code"},
        headers=headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["display_name"] == "Renamed"
    assert data["bio"] == "Writes code"
    assert datetime.fromisoformat(data["updated_at"]) >= datetime.fromisoformat(before["updated_at"])
