import asyncio

import pytest
from fastapi.testclient import TestClient

from sharebin.config import Settings
from sharebin.database import ShareStore
from sharebin.main import create_app


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "shares.db"


@pytest.fixture
def run_with_store(db_path):
    """Run an async test body against a freshly opened store."""

    def runner(scenario):
        async def main():
            async with ShareStore(db_path) as store:
                return await scenario(store)

        return asyncio.run(main())

    return runner


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_path=str(tmp_path / "api.db"),
        base_url="https://share.example",
        max_file_size=1024,
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as client:
        yield client
