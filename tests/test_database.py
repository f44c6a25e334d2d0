"""
Database tests.
Repository contract on both backends, schema, seed data and the JSON store.
"""

import json

import pytest
from filelock import FileLock, Timeout

from database import get_db, get_repository, init_db, create_repository, PersistenceError
from database.json_repository import JSONRepository, load_document
from models.entities import ReservationItem


def add_reservation(repo, **fields):
    record = {
        'venue': 'Lab A',
        'date': '2025-03-10',
        'time_from': '09:00',
        'time_to': '10:00',
        'status': 'pending',
        'created_at': '2025-03-01 10:00:00',
    }
    record.update(fields)
    return repo.create_reservation(record)


class TestRepositoryContract:
    """Behaviour shared by the SQLite and JSON backends."""

    def test_users_round_trip(self, repo):
        user_id = repo.create_user('dave', 'hash', 'user')

        user = repo.get_user(user_id)
        assert user.username == 'dave'
        assert repo.find_user_by_username('dave').id == user_id
        assert repo.find_user_by_username('nobody') is None
        assert repo.get_user(999) is None

    def test_update_password(self, repo):
        user_id = repo.create_user('dave', 'old', 'user')

        assert repo.update_user_password(user_id, 'new') is True
        assert repo.get_user(user_id).password_hash == 'new'
        assert repo.update_user_password(999, 'new') is False

    def test_list_users_ordered_by_id(self, repo):
        first = repo.create_user('b-user', 'h', 'user')
        second = repo.create_user('a-user', 'h', 'admin')

        assert [u.id for u in repo.list_users()] == [first, second]

    def test_reservation_with_items(self, repo):
        rid = add_reservation(repo)
        repo.create_reservation_items(rid, [ReservationItem('Laptop', 2), ReservationItem('Mouse', 1)])

        reservation = repo.get_reservation(rid)
        assert reservation.id == rid
        assert [i.as_pair() for i in reservation.items] == [('Laptop', 2), ('Mouse', 1)]
        assert all(i.reservation_id == rid for i in reservation.items)

    def test_list_newest_first_and_by_status(self, repo):
        old = add_reservation(repo, created_at='2025-01-01 08:00:00')
        new = add_reservation(repo, created_at='2025-02-01 08:00:00', status='approved')

        assert [r.id for r in repo.list_reservations()] == [new, old]
        assert [r.id for r in repo.list_reservations(status='approved')] == [new]

    def test_owner_queries(self, repo):
        user_id = repo.create_user('dave', 'h', 'user')
        owned = add_reservation(repo, created_by=user_id)
        unowned = add_reservation(repo, person_name='dave')

        assert [r.id for r in repo.list_reservations_by_owner(user_id)] == [owned]
        assert [r.id for r in repo.list_unowned_reservations()] == [unowned]

        assert repo.set_reservation_owner(unowned, user_id) is True
        assert repo.list_unowned_reservations() == []

    def test_approved_overlap(self, repo):
        approved = add_reservation(repo, status='approved', time_from='09:30', time_to='11:00')
        add_reservation(repo, status='approved', time_from='10:00', time_to='11:00')
        add_reservation(repo, status='pending', time_from='09:00', time_to='10:00')

        found = repo.list_approved_overlap('Lab A', '2025-03-10', '09:00', '10:00')

        assert [r.id for r in found] == [approved]
        assert repo.list_approved_overlap('Lab A', '2025-03-10', '09:00', '10:00',
                                          exclude_id=approved) == []

    def test_update_status(self, repo):
        rid = add_reservation(repo)

        assert repo.update_reservation_status(rid, 'approved') is True
        assert repo.get_reservation(rid).status == 'approved'
        assert repo.update_reservation_status(999, 'approved') is False

    def test_update_status_only_from_expected(self, repo):
        rid = add_reservation(repo)
        repo.update_reservation_status(rid, 'cancelled')

        assert repo.update_reservation_status(rid, 'approved', expected='pending') is False
        assert repo.get_reservation(rid).status == 'cancelled'
        assert repo.update_reservation_status(rid, 'approved', expected='cancelled') is True

    def test_delete_removes_items(self, repo):
        rid = add_reservation(repo)
        repo.create_reservation_items(rid, [ReservationItem('Laptop', 1)])
        keep = add_reservation(repo)
        repo.create_reservation_items(keep, [ReservationItem('Mouse', 1)])

        assert repo.delete_reservation(rid) is True
        assert repo.get_reservation(rid) is None
        assert repo.delete_reservation(rid) is False
        assert [i.name for i in repo.get_reservation(keep).items] == ['Mouse']

    def test_transaction_rolls_back(self, repo):
        with pytest.raises(RuntimeError):
            with repo.transaction():
                add_reservation(repo)
                repo.create_user('eve', 'h', 'user')
                raise RuntimeError('abort')

        assert repo.list_reservations() == []
        assert repo.find_user_by_username('eve') is None

    def test_nested_transaction_joins_outer(self, repo):
        with repo.transaction():
            with repo.transaction():
                add_reservation(repo)
            assert repo.in_transaction is True

        assert repo.in_transaction is False
        assert len(repo.list_reservations()) == 1


class TestJSONStore:
    """JSON-document specifics."""

    def test_writes_survive_reopen(self, tmp_path):
        path = str(tmp_path / 'db.json')
        repo = JSONRepository(path)
        user_id = repo.create_user('dave', 'h', 'user')

        reopened = JSONRepository(path)
        assert reopened.get_user(user_id).username == 'dave'

    def test_legacy_list_equipment(self, tmp_path):
        path = tmp_path / 'db.json'
        path.write_text(json.dumps({
            'users': [],
            'reservations': [{
                'id': 7, 'venue': 'Lab A', 'date': '2025-03-10',
                'equipment': ['Laptop', 'Mouse'], 'status': 'approved',
            }],
        }))

        reservation = JSONRepository(str(path)).get_reservation(7)
        assert reservation.equipment == 'Laptop, Mouse'

    def test_missing_file_is_empty(self, tmp_path):
        data = load_document(str(tmp_path / 'missing.json'))
        assert data == {'users': [], 'reservations': [], 'reservation_items': []}

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / 'db.json'
        path.write_text('{not json')

        with pytest.raises(PersistenceError):
            JSONRepository(str(path))

    def test_writes_from_stale_handle_keep_other_writes(self, tmp_path):
        path = str(tmp_path / 'db.json')
        first = JSONRepository(path)
        second = JSONRepository(path)

        first.create_user('dave', 'h', 'user')
        second.create_user('erin', 'h', 'user')

        assert {u.username for u in JSONRepository(path).list_users()} == {'dave', 'erin'}

    def test_transaction_holds_lock_file(self, tmp_path):
        path = str(tmp_path / 'db.json')
        repo = JSONRepository(path)
        outside = FileLock(path + '.lock')

        with repo.transaction():
            with pytest.raises(Timeout):
                outside.acquire(timeout=0)

        with outside.acquire(timeout=0):
            pass

    def test_lock_timeout_is_persistence_error(self, tmp_path, monkeypatch):
        path = str(tmp_path / 'db.json')
        repo = JSONRepository(path)
        monkeypatch.setattr('database.json_repository.LOCK_TIMEOUT', 0)

        with FileLock(path + '.lock'):
            with pytest.raises(PersistenceError):
                repo.create_user('dave', 'h', 'user')

        repo.create_user('dave', 'h', 'user')
        assert repo.find_user_by_username('dave') is not None

    def test_failed_flush_restores_memory(self, tmp_path, monkeypatch):
        repo = JSONRepository(str(tmp_path / 'db.json'))

        def broken_flush():
            raise PersistenceError('read-only filesystem')

        monkeypatch.setattr(repo, '_flush', broken_flush)

        with pytest.raises(PersistenceError):
            repo.create_user('dave', 'h', 'user')
        assert repo.list_users() == []


class TestInitDb:
    """Tests for init_db, schema and seed through the app."""

    def test_seeds_admin(self, app):
        with app.app_context():
            admin = get_repository().find_user_by_username('admin')
            assert admin is not None
            assert admin.is_admin is True

    def test_reinit_clears_data(self, app):
        with app.app_context():
            get_repository().create_user('dave', 'h', 'user')
            init_db()
            assert [u.username for u in get_repository().list_users()] == ['admin']

    def test_sqlite_tables(self, app):
        if app.config['DATABASE_BACKEND'] != 'sqlite':
            pytest.skip('SQLite only')

        with app.app_context():
            rows = get_db().execute(
                "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
            ).fetchall()
            tables = [row[0] for row in rows]

        for table in ('reservation_items', 'reservations', 'users'):
            assert table in tables


def test_create_repository_rejects_unknown_backend():
    with pytest.raises(ValueError):
        create_repository({'DATABASE_BACKEND': 'mongodb'})
