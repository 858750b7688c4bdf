"""
Fixtures for driving the API in-process.
"""

import httpx
import pytest_asyncio

from groupmatch.api.app import create_app
from groupmatch.config.settings import Settings
from groupmatch.core.uuid import uuid7


@pytest_asyncio.fixture(scope="session")
def api(server_settings: Settings, database):
    yield create_app(settings=server_settings)


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def client(api):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=api), base_url="http://test"
    ) as client:
        yield client


@pytest_asyncio.fixture(scope="session")
def make_api_user(client):
    """
    Create a user through the API; returns their ID and authorization headers.
    """

    async def make(user_name: str):
        response = await client.put(
            "/users", json={"user_name": f"{user_name}_{uuid7().hex}"}
        )
        assert response.status_code == 201
        content = response.json()
        return content["user"]["user_id"], {
            "Authorization": f"Bearer {content['access_token']}"
        }

    yield make
