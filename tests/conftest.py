from __future__ import annotations

import os
import shutil
from datetime import UTC, datetime
from pathlib import Path

import pytest

# Set env before any skystatus imports (settings/engine are created at import time).
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///./.skystatus_test.db")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("LOCAL_STORAGE_PATH", ".tmp_storage_test")


@pytest.fixture(autouse=True)
def _reset_db_and_storage() -> None:
    import skystatus.models  # noqa: F401
    from skystatus.core.db import engine
    from skystatus.core.models import Base
    from skystatus.core.storage import reset_storage

    reset_storage()

    storage_path = Path(os.environ["LOCAL_STORAGE_PATH"])
    if storage_path.exists():
        shutil.rmtree(storage_path)

    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)

    yield


@pytest.fixture
def fixed_clock():
    moment = datetime(2025, 12, 5, 9, 30, tzinfo=UTC)
    return lambda: moment
