"""
Core configuration
"""

import pytest_asyncio

from groupmatch.config.settings import Settings


@pytest_asyncio.fixture(scope="session")
def database_file(tmp_path_factory):
    yield tmp_path_factory.mktemp("database") / "groupmatch.db"


@pytest_asyncio.fixture(scope="session")
def server_settings(database_file):
    yield Settings(
        database_type="sqlite",
        database_db=str(database_file),
        jwt_secret="test-secret",
    )


@pytest_asyncio.fixture(scope="session")
def database(server_settings: Settings):
    manager = server_settings.sync_manager()
    manager.create_all()
    yield
    manager.engine.dispose()
