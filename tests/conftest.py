"""
Pytest configuration and fixtures.
Every test gets isolated storage under tmp_path, never the real database.
"""

import pytest

from database.json_repository import JSONRepository
from database.schema import create_tables, create_indexes
from database.sqlite_repository import SQLiteRepository, connect
from models.user import Role, create_account

BACKENDS = ['sqlite', 'json']

ADMIN_PASSWORD = 'admin123'
USER_PASSWORD = 'alice-pass'


def make_repository(backend, tmp_path):
    """Build an empty repository of the given backend under tmp_path."""
    if backend == 'sqlite':
        conn = connect(str(tmp_path / 'test.db'))
        create_tables(conn)
        create_indexes(conn)
        conn.commit()
        return SQLiteRepository(conn)
    return JSONRepository(str(tmp_path / 'db.json'))


@pytest.fixture(params=BACKENDS)
def repo(request, tmp_path):
    """Empty repository, once per storage backend."""
    repository = make_repository(request.param, tmp_path)
    yield repository
    repository.close()


@pytest.fixture
def admin(repo):
    return create_account(repo, 'admin', ADMIN_PASSWORD, Role.ADMIN)


@pytest.fixture
def alice(repo):
    return create_account(repo, 'alice', USER_PASSWORD)


@pytest.fixture
def bob(repo):
    return create_account(repo, 'bob', 'bob-pass')


@pytest.fixture(params=BACKENDS)
def app(request, tmp_path):
    """Create test application with isolated storage, seeded with the admin."""
    from app import create_app
    from database import init_db

    app = create_app('test')
    app.config.update(
        TESTING=True,
        WTF_CSRF_ENABLED=False,
        DATABASE_BACKEND=request.param,
        DATABASE_PATH=str(tmp_path / 'app.db'),
        JSON_DB_PATH=str(tmp_path / 'app.json'),
        ADMIN_USERNAME='admin',
        ADMIN_PASSWORD=ADMIN_PASSWORD,
    )

    with app.app_context():
        init_db()

    yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


def login(client, username, password):
    return client.post('/login', data={
        'username': username,
        'password': password
    }, follow_redirects=False)


@pytest.fixture
def app_user(app):
    """A regular account in the app's storage."""
    from database import get_repository

    with app.app_context():
        return create_account(get_repository(), 'alice', USER_PASSWORD)


@pytest.fixture
def user_client(app, app_user):
    """Client logged in as a regular user."""
    client = app.test_client()
    login(client, 'alice', USER_PASSWORD)
    return client


@pytest.fixture
def admin_client(app):
    """Client logged in as the seeded admin."""
    client = app.test_client()
    login(client, 'admin', ADMIN_PASSWORD)
    return client
