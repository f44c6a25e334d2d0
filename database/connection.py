"""
Database connection management.
Builds the configured repository per app context, plus initialization and teardown.
"""

import logging

from flask import g, current_app

logger = logging.getLogger(__name__)

BACKENDS = ('sqlite', 'json')


def get_db():
    """
    Get the SQLite connection for this app context.

    Returns:
        sqlite3.Connection: Database connection object
    """
    from database.sqlite_repository import connect

    if 'db' not in g:
        db_path = current_app.config.get('DATABASE_PATH', 'instance/labreserve.db')
        g.db = connect(db_path)
    return g.db


def create_repository(config):
    """
    Build a repository from a config mapping.

    Args:
        config: Mapping with DATABASE_BACKEND, DATABASE_PATH, JSON_DB_PATH

    Returns:
        Repository
    """
    from database.json_repository import JSONRepository
    from database.sqlite_repository import SQLiteRepository, connect

    backend = config.get('DATABASE_BACKEND', 'sqlite')
    if backend == 'json':
        return JSONRepository(config.get('JSON_DB_PATH', 'instance/db.json'))
    if backend == 'sqlite':
        return SQLiteRepository(connect(config.get('DATABASE_PATH', 'instance/labreserve.db')))
    raise ValueError(f'Unknown DATABASE_BACKEND: {backend} (expected one of {BACKENDS})')


def get_repository():
    """
    Get the repository for this app context.

    Returns:
        Repository: SQLiteRepository or JSONRepository, per DATABASE_BACKEND
    """
    if 'repository' not in g:
        if current_app.config.get('DATABASE_BACKEND', 'sqlite') == 'sqlite':
            from database.sqlite_repository import SQLiteRepository
            g.repository = SQLiteRepository(get_db())
        else:
            g.repository = create_repository(current_app.config)
    return g.repository


def close_db(e=None):
    """
    Close database connection.

    Args:
        e: Exception if any (from Flask teardown context)
    """
    g.pop('repository', None)
    db = g.pop('db', None)
    if db is not None:
        db.close()


def init_db():
    """
    Initialize storage: drop existing tables (or empty the JSON store), create
    the schema and insert seed data.
    WARNING: This will delete all existing data!
    """
    from database.schema import drop_tables, create_tables, create_indexes
    from database.seed import seed_database

    backend = current_app.config.get('DATABASE_BACKEND', 'sqlite')

    if backend == 'sqlite':
        db = get_db()

        # Drop existing tables (in reverse order of dependencies)
        drop_tables(db)

        # Create all tables
        create_tables(db)

        # Create indexes
        create_indexes(db)

        db.commit()
    else:
        from database.json_repository import empty_document

        repo = get_repository()
        with repo.transaction():
            repo.data.clear()
            repo.data.update(empty_document())

    # Insert seed data
    seed_database(get_repository(), current_app.config)
    logger.info('Database initialized (%s backend)', backend)


def ensure_schema():
    """Create missing SQLite tables without touching existing data."""
    from database.schema import create_tables, create_indexes

    if current_app.config.get('DATABASE_BACKEND', 'sqlite') != 'sqlite':
        return
    db = get_db()
    create_tables(db)
    create_indexes(db)
    db.commit()
