"""
Alembic model import hook.

Importing this module ensures all SQLAlchemy models are registered on Base.metadata.
"""

from __future__ import annotations

# Member first: every imports table points at it
from skystatus.modules.members.models import Member  # noqa: F401

from skystatus.modules.imports.models import (  # noqa: F401
    Flight,
    ImportRun,
    ManualLedgerEntry,
    MilesMonth,
    Qualification,
)
