"""
Conftest
"""

import os

# Keep test runs from writing logs/ into the working directory
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from swes_glossary.app import create_app
from swes_glossary.config import Settings
from swes_glossary.database import Backend, Storage
from swes_glossary.services.term_service import TermService

ADMIN_PASSWORD = "s3cret-test"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=None,
        sqlite_path=str(tmp_path / "glossary.db"),
        admin_password=ADMIN_PASSWORD,
        static_dir=str(tmp_path / "dist"),
        seed_on_startup=False,
        log_to_file=False,
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def admin_headers() -> dict:
    return {"X-Admin-Password": ADMIN_PASSWORD}


@pytest_asyncio.fixture
async def storage(tmp_path):
    storage = Storage(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}", Backend.SQLITE)
    await storage.initialize_schema()
    yield storage
    await storage.dispose()


@pytest_asyncio.fixture
async def term_service(storage) -> TermService:
    return TermService(storage)
