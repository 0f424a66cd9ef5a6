"""Database layer for Variant Family Scanner."""

from .models import (
    ApiLogDB,
    Base,
    FamilyMemberDB,
    FamilyRunDB,
    ProductSnapshotDB,
)
from .repository import FamilyRunSummary, Repository
from .session import close_database, get_engine, get_session, init_database, session_scope

__all__ = [
    "Base",
    "ProductSnapshotDB",
    "FamilyRunDB",
    "FamilyMemberDB",
    "ApiLogDB",
    "FamilyRunSummary",
    "Repository",
    "close_database",
    "get_engine",
    "get_session",
    "init_database",
    "session_scope",
]
