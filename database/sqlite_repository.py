"""
SQLite repository.
Raw SQL implementation of the repository contract over a sqlite3 connection.
"""

import logging
import sqlite3

from database.repository import Repository, PersistenceError, DuplicateUsernameError
from models.entities import Reservation, ReservationItem, ReservationStatus
from models.user import User

logger = logging.getLogger(__name__)

RESERVATION_COLUMNS = (
    'id', 'venue', 'date', 'time_from', 'time_to', 'purpose', 'equipment',
    'person_name', 'person_signature', 'created_by', 'status', 'created_at'
)


def connect(db_path: str) -> sqlite3.Connection:
    """
    Open a connection with row factory and foreign keys enabled.

    Args:
        db_path: File path or ':memory:'

    Returns:
        sqlite3.Connection
    """
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    # Enable foreign key constraints (item cascade)
    conn.execute('PRAGMA foreign_keys = ON')
    if db_path != ':memory:':
        # Enable WAL mode for better concurrency
        conn.execute('PRAGMA journal_mode = WAL')
    return conn


class SQLiteRepository(Repository):
    """Repository backed by the users/reservations/reservation_items tables."""

    def __init__(self, conn: sqlite3.Connection):
        super().__init__()
        self.db = conn

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def _execute(self, sql: str, params=()):
        try:
            return self.db.execute(sql, params)
        except sqlite3.Error as e:
            logger.error('SQLite error: %s', e)
            raise PersistenceError(str(e)) from e

    def _begin(self):
        try:
            if self.db.in_transaction:
                self.db.commit()
            self.db.execute('BEGIN IMMEDIATE')
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e

    def _commit(self):
        try:
            self.db.commit()
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e

    def _rollback(self):
        try:
            self.db.rollback()
        except sqlite3.Error as e:
            logger.error('Rollback failed: %s', e)

    def close(self):
        self.db.close()

    def _items_for(self, reservation_ids: list) -> dict:
        """Load items for several reservations: {reservation_id: [ReservationItem]}."""
        if not reservation_ids:
            return {}
        placeholders = ','.join('?' * len(reservation_ids))
        rows = self._execute(f'''
            SELECT id, reservation_id, name, quantity
            FROM reservation_items
            WHERE reservation_id IN ({placeholders})
            ORDER BY id
        ''', list(reservation_ids)).fetchall()

        grouped = {}
        for row in rows:
            grouped.setdefault(row['reservation_id'], []).append(ReservationItem(
                name=row['name'],
                quantity=row['quantity'],
                id=row['id'],
                reservation_id=row['reservation_id'],
            ))
        return grouped

    def _reservations(self, sql: str, params=()) -> list:
        rows = [dict(row) for row in self._execute(sql, params).fetchall()]
        items = self._items_for([row['id'] for row in rows])
        return [Reservation.from_row(row, items.get(row['id'])) for row in rows]

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def create_user(self, username: str, password_hash: str, role: str, user_id: int = None) -> int:
        try:
            if user_id is None:
                cursor = self.db.execute(
                    'INSERT INTO users (username, password, role) VALUES (?, ?, ?)',
                    (username, password_hash, role)
                )
            else:
                cursor = self.db.execute(
                    'INSERT INTO users (id, username, password, role) VALUES (?, ?, ?, ?)',
                    (user_id, username, password_hash, role)
                )
        except sqlite3.IntegrityError as e:
            if 'username' in str(e):
                raise DuplicateUsernameError(username) from e
            raise PersistenceError(str(e)) from e
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e

        self._autocommit()
        return cursor.lastrowid

    def get_user(self, user_id: int):
        row = self._execute('SELECT * FROM users WHERE id = ?', (user_id,)).fetchone()
        return User.from_row(dict(row)) if row else None

    def find_user_by_username(self, username: str):
        row = self._execute('SELECT * FROM users WHERE username = ?', (username,)).fetchone()
        return User.from_row(dict(row)) if row else None

    def list_users(self) -> list:
        rows = self._execute('SELECT * FROM users ORDER BY id').fetchall()
        return [User.from_row(dict(row)) for row in rows]

    def update_user_password(self, user_id: int, password_hash: str) -> bool:
        cursor = self._execute('UPDATE users SET password = ? WHERE id = ?', (password_hash, user_id))
        self._autocommit()
        return cursor.rowcount > 0

    # -------------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------------

    def create_reservation(self, fields: dict) -> int:
        columns = [c for c in RESERVATION_COLUMNS if c in fields and fields[c] is not None]
        placeholders = ', '.join('?' * len(columns))
        cursor = self._execute(
            f'INSERT INTO reservations ({", ".join(columns)}) VALUES ({placeholders})',
            [fields[c] for c in columns]
        )
        self._autocommit()
        return cursor.lastrowid

    def create_reservation_items(self, reservation_id: int, items: list) -> None:
        if not items:
            return
        try:
            self.db.executemany(
                'INSERT INTO reservation_items (reservation_id, name, quantity) VALUES (?, ?, ?)',
                [(reservation_id, item.name, item.quantity) for item in items]
            )
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e
        self._autocommit()

    def get_reservation(self, reservation_id: int):
        found = self._reservations('SELECT * FROM reservations WHERE id = ?', (reservation_id,))
        return found[0] if found else None

    def list_reservations(self, status: str = None) -> list:
        if status:
            return self._reservations('''
                SELECT * FROM reservations WHERE status = ?
                ORDER BY created_at DESC, id DESC
            ''', (status,))
        return self._reservations('SELECT * FROM reservations ORDER BY created_at DESC, id DESC')

    def list_reservations_by_owner(self, owner_id: int) -> list:
        return self._reservations('''
            SELECT * FROM reservations WHERE created_by = ?
            ORDER BY created_at DESC, id DESC
        ''', (owner_id,))

    def list_unowned_reservations(self) -> list:
        return self._reservations('''
            SELECT * FROM reservations WHERE created_by IS NULL
            ORDER BY created_at DESC, id DESC
        ''')

    def list_approved_on(self, venue: str, date: str, exclude_id: int = None) -> list:
        query = 'SELECT * FROM reservations WHERE venue = ? AND date = ? AND status = ?'
        params = [venue, date, ReservationStatus.APPROVED.value]

        if exclude_id is not None:
            query += ' AND id != ?'
            params.append(exclude_id)

        query += ' ORDER BY time_from, id'
        return self._reservations(query, params)

    def update_reservation_status(self, reservation_id: int, status: str, expected: str = None) -> bool:
        query = 'UPDATE reservations SET status = ? WHERE id = ?'
        params = [status, reservation_id]
        if expected is not None:
            query += ' AND status = ?'
            params.append(expected)
        cursor = self._execute(query, params)
        self._autocommit()
        return cursor.rowcount > 0

    def set_reservation_owner(self, reservation_id: int, user_id: int) -> bool:
        cursor = self._execute('UPDATE reservations SET created_by = ? WHERE id = ?', (user_id, reservation_id))
        self._autocommit()
        return cursor.rowcount > 0

    def delete_reservation(self, reservation_id: int) -> bool:
        # Items cascade via FK; deleted explicitly as well in case foreign keys are off
        self._execute('DELETE FROM reservation_items WHERE reservation_id = ?', (reservation_id,))
        cursor = self._execute('DELETE FROM reservations WHERE id = ?', (reservation_id,))
        self._autocommit()
        return cursor.rowcount > 0
