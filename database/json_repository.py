"""
JSON document store repository.

Keeps the whole dataset in one JSON file:
    {"users": [...], "reservations": [...], "reservation_items": [...]}

This is the layout of the legacy file-based store. Writes go to a temp file
and replace the original atomically; transactions snapshot the in-memory
document and restore it on failure. Each transaction holds a lock file next
to the store, so gunicorn workers sharing the file write one at a time.
"""

import copy
import json
import logging
import os
import tempfile
import threading

from filelock import FileLock, Timeout

from database.repository import Repository, PersistenceError, DuplicateUsernameError
from models.entities import Reservation, ReservationItem, ReservationStatus
from models.user import User

logger = logging.getLogger(__name__)

# Seconds to wait for another process to finish writing the store
LOCK_TIMEOUT = 10

# One lock pair per file path, shared by every repository instance in the process
_LOCKS = {}
_LOCKS_GUARD = threading.Lock()


def _locks_for(path: str) -> tuple:
    """
    Get the (thread lock, file lock) pair guarding a store path.

    The RLock serializes threads of this process; the FileLock on
    "<path>.lock" serializes worker processes sharing the file.
    """
    key = os.path.abspath(path)
    with _LOCKS_GUARD:
        if key not in _LOCKS:
            _LOCKS[key] = (threading.RLock(), FileLock(key + '.lock', thread_local=False))
        return _LOCKS[key]


def empty_document() -> dict:
    return {'users': [], 'reservations': [], 'reservation_items': []}


def load_document(path: str) -> dict:
    """
    Read a JSON store from disk; a missing file is an empty store.

    Raises:
        PersistenceError: If the file cannot be read or parsed
    """
    if not os.path.exists(path):
        return empty_document()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise PersistenceError(f'Cannot read JSON store {path}: {e}') from e

    for key, value in empty_document().items():
        data.setdefault(key, value)
    return data


class JSONRepository(Repository):
    """Repository backed by a single JSON document on disk."""

    def __init__(self, path: str):
        super().__init__()
        self.path = path
        self._lock, self._file_lock = _locks_for(path)
        self._snapshot = None
        self.data = load_document(path)

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def _begin(self):
        self._lock.acquire()
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
            self._file_lock.acquire(timeout=LOCK_TIMEOUT)
        except (OSError, Timeout) as e:
            self._lock.release()
            raise PersistenceError(f'Cannot lock JSON store {self.path}: {e}') from e

        try:
            # Pick up writes made by other instances and processes since this one was opened
            self.data = load_document(self.path)
        except PersistenceError:
            self._release()
            raise
        self._snapshot = copy.deepcopy(self.data)

    def _release(self):
        self._file_lock.release()
        self._lock.release()

    def _commit(self):
        try:
            self._flush()
        except PersistenceError:
            self.data = self._snapshot
            raise
        finally:
            self._snapshot = None
            self._release()

    def _rollback(self):
        if self._snapshot is not None:
            self.data = self._snapshot
        self._snapshot = None
        self._release()

    def _flush(self):
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(self.data, f, indent=2, default=str)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error('Failed to write JSON store %s: %s', self.path, e)
            raise PersistenceError(f'Cannot write JSON store {self.path}: {e}') from e

    @staticmethod
    def _next_id(rows: list) -> int:
        return max((int(row['id']) for row in rows if row.get('id') is not None), default=0) + 1

    def _items_for(self, reservation_id: int) -> list:
        return [
            ReservationItem(
                name=row['name'],
                quantity=int(row.get('quantity') or 1),
                id=row.get('id'),
                reservation_id=row['reservation_id'],
            )
            for row in self.data['reservation_items']
            if row.get('reservation_id') == reservation_id
        ]

    def _to_reservation(self, row: dict) -> Reservation:
        row = dict(row)
        # Legacy documents store equipment as a list of names
        if isinstance(row.get('equipment'), list):
            row['equipment'] = ', '.join(str(name) for name in row['equipment'])
        return Reservation.from_row(row, self._items_for(row['id']))

    def _select(self, predicate) -> list:
        rows = [r for r in self.data['reservations'] if predicate(r)]
        rows.sort(key=lambda r: (str(r.get('created_at') or ''), r['id']), reverse=True)
        return [self._to_reservation(r) for r in rows]

    def _find_reservation_row(self, reservation_id: int):
        for row in self.data['reservations']:
            if row.get('id') == reservation_id:
                return row
        return None

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def create_user(self, username: str, password_hash: str, role: str, user_id: int = None) -> int:
        with self.transaction():
            users = self.data['users']
            if any(u.get('username') == username for u in users):
                raise DuplicateUsernameError(username)
            if user_id is None or any(u.get('id') == user_id for u in users):
                user_id = self._next_id(users)
            users.append({'id': user_id, 'username': username, 'password': password_hash, 'role': role})
        return user_id

    def get_user(self, user_id: int):
        for row in self.data['users']:
            if row.get('id') == user_id:
                return User.from_row(row)
        return None

    def find_user_by_username(self, username: str):
        for row in self.data['users']:
            if row.get('username') == username:
                return User.from_row(row)
        return None

    def list_users(self) -> list:
        return [User.from_row(row) for row in sorted(self.data['users'], key=lambda u: u['id'])]

    def update_user_password(self, user_id: int, password_hash: str) -> bool:
        with self.transaction():
            for row in self.data['users']:
                if row.get('id') == user_id:
                    row['password'] = password_hash
                    return True
        return False

    # -------------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------------

    def create_reservation(self, fields: dict) -> int:
        with self.transaction():
            rows = self.data['reservations']
            reservation_id = fields.get('id')
            if reservation_id is None or self._find_reservation_row(reservation_id) is not None:
                reservation_id = self._next_id(rows)

            row = dict(fields, id=reservation_id)
            row.setdefault('status', ReservationStatus.PENDING.value)
            rows.append(row)
        return reservation_id

    def create_reservation_items(self, reservation_id: int, items: list) -> None:
        if not items:
            return
        with self.transaction():
            if self._find_reservation_row(reservation_id) is None:
                raise PersistenceError(f'Reservation {reservation_id} does not exist')

            rows = self.data['reservation_items']
            next_id = self._next_id(rows)
            for offset, item in enumerate(items):
                rows.append({
                    'id': next_id + offset,
                    'reservation_id': reservation_id,
                    'name': item.name,
                    'quantity': item.quantity,
                })

    def get_reservation(self, reservation_id: int):
        row = self._find_reservation_row(reservation_id)
        return self._to_reservation(row) if row else None

    def list_reservations(self, status: str = None) -> list:
        return self._select(lambda r: status is None or r.get('status') == status)

    def list_reservations_by_owner(self, owner_id: int) -> list:
        return self._select(lambda r: r.get('created_by') == owner_id)

    def list_unowned_reservations(self) -> list:
        return self._select(lambda r: r.get('created_by') is None)

    def list_approved_on(self, venue: str, date: str, exclude_id: int = None) -> list:
        found = self._select(lambda r: (
            r.get('venue') == venue
            and str(r.get('date')) == date
            and r.get('status') == ReservationStatus.APPROVED.value
            and (exclude_id is None or r.get('id') != exclude_id)
        ))
        found.sort(key=lambda r: (r.time_from or '', r.id))
        return found

    def _update_reservation(self, reservation_id: int, **changes) -> bool:
        with self.transaction():
            row = self._find_reservation_row(reservation_id)
            if row is None:
                return False
            row.update(changes)
        return True

    def update_reservation_status(self, reservation_id: int, status: str, expected: str = None) -> bool:
        with self.transaction():
            row = self._find_reservation_row(reservation_id)
            if row is None:
                return False
            if expected is not None and row.get('status') != expected:
                return False
            row['status'] = status
        return True

    def set_reservation_owner(self, reservation_id: int, user_id: int) -> bool:
        return self._update_reservation(reservation_id, created_by=user_id)

    def delete_reservation(self, reservation_id: int) -> bool:
        with self.transaction():
            row = self._find_reservation_row(reservation_id)
            if row is None:
                return False
            self.data['reservation_items'] = [
                item for item in self.data['reservation_items']
                if item.get('reservation_id') != reservation_id
            ]
            self.data['reservations'].remove(row)
        return True
