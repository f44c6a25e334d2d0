"""
Database package for the lab reservation system.

This package provides modular database operations:
- repository: Repository contract and persistence errors
- sqlite_repository / json_repository: Storage backends
- connection: Per-request repository management (get_repository, close_db, init_db)
- migrations: Legacy JSON store import and ownership backfill
- schema: Table creation and indexes
- seed: Initial seed data
"""

from database.repository import Repository, PersistenceError, DuplicateUsernameError
from database.connection import (get_db, get_repository, create_repository,
                                 close_db, init_db, ensure_schema)
from database.schema import drop_tables, create_tables, create_indexes
from database.seed import seed_database

__all__ = [
    # Contract
    'Repository',
    'PersistenceError',
    'DuplicateUsernameError',
    # Connection
    'get_db',
    'get_repository',
    'create_repository',
    'close_db',
    'init_db',
    'ensure_schema',
    # Schema
    'drop_tables',
    'create_tables',
    'create_indexes',
    # Seed
    'seed_database',
]
