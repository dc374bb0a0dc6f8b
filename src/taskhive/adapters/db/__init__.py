"""Application database adapters."""

from taskhive.adapters.db.app_db import AppDatabase
from taskhive.adapters.db.memory import InMemoryStore, InMemoryTenancyRepository
from taskhive.adapters.db.postgres import PostgresTenancyRepository

__all__ = [
    "AppDatabase",
    "InMemoryStore",
    "InMemoryTenancyRepository",
    "PostgresTenancyRepository",
]
