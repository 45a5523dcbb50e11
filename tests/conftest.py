from __future__ import annotations

import asyncio
import os

import pytest

from app.core.db import Base, create_engine


@pytest.fixture()
def database_url(tmp_path) -> str:
    db_file = tmp_path / "test.sqlite3"
    return f"sqlite+aiosqlite:///{db_file}"


@pytest.fixture(autouse=True)
def _set_test_environment(database_url: str, tmp_path) -> None:
    os.environ["DATABASE_URL"] = database_url
    os.environ["LOCAL_STORAGE_BASE_PATH"] = str(tmp_path / "documents")
    os.environ["JWT_SECRET"] = "test-only-jwt-secret-0123456789abcdef"
    # External integrations stay off unless a test overrides the dependency.
    os.environ.pop("OPENAI_API_KEY", None)
    os.environ.pop("FIREBASE_PROJECT_ID", None)
    # Settings are cached via @lru_cache; clear so each test can use its own DB URL.
    from app.core.settings import get_settings

    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _create_test_schema(database_url: str) -> None:
    async def run() -> None:
        # Ensure all model modules are imported so Base.metadata is populated.
        from app.analysis import models as _analysis_models  # noqa: F401
        from app.contracts import models as _contracts_models  # noqa: F401
        from app.sharing import models as _sharing_models  # noqa: F401
        from app.templates import models as _templates_models  # noqa: F401
        from app.users import models as _users_models  # noqa: F401

        engine = create_engine(database_url=database_url)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

    asyncio.run(run())


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from app.main import create_app

    app = create_app()
    with TestClient(app) as c:
        yield c
