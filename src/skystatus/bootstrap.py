from __future__ import annotations

from skystatus.core.config import settings
from skystatus.core.db import engine
from skystatus.core.models import Base


def bootstrap() -> None:
    if settings.environment == "dev" and str(settings.database_url).startswith("sqlite"):
        import skystatus.models  # noqa: F401

        Base.metadata.create_all(engine)
