"""
Repository contract shared by the storage backends.
Core operations only talk to this interface, never to SQL or JSON directly.
"""

from contextlib import contextmanager


class PersistenceError(Exception):
    """Storage I/O failure. Propagated unchanged to the caller."""


class DuplicateUsernameError(PersistenceError):
    """Raised when a username is already taken."""

    def __init__(self, username: str):
        super().__init__(f'Username already exists: {username}')
        self.username = username


class Repository:
    """
    Abstract persistence boundary for users, reservations and reservation items.

    Backends implement the storage primitives; transaction handling and the
    overlap query are shared here.
    """

    def __init__(self):
        self._tx_depth = 0

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return self._tx_depth > 0

    @contextmanager
    def transaction(self):
        """
        Scoped transactional write.

        Commits when the block exits normally, rolls back and re-raises on any
        exception. Nested blocks join the outermost transaction.
        """
        if self._tx_depth:
            self._tx_depth += 1
            try:
                yield self
            finally:
                self._tx_depth -= 1
            return

        self._begin()
        self._tx_depth = 1
        try:
            yield self
        except BaseException:
            self._tx_depth = 0
            self._rollback()
            raise
        else:
            self._tx_depth = 0
            self._commit()

    def _autocommit(self):
        """Commit a single write unless an outer transaction owns it."""
        if not self._tx_depth:
            self._commit()

    def _begin(self):
        raise NotImplementedError

    def _commit(self):
        raise NotImplementedError

    def _rollback(self):
        raise NotImplementedError

    def close(self):
        """Release backend resources."""

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def create_user(self, username: str, password_hash: str, role: str, user_id: int = None) -> int:
        """Insert a user; user_id preserves an id when importing. Raises DuplicateUsernameError."""
        raise NotImplementedError

    def get_user(self, user_id: int):
        raise NotImplementedError

    def find_user_by_username(self, username: str):
        raise NotImplementedError

    def list_users(self) -> list:
        raise NotImplementedError

    def update_user_password(self, user_id: int, password_hash: str) -> bool:
        raise NotImplementedError

    # -------------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------------

    def create_reservation(self, fields: dict) -> int:
        raise NotImplementedError

    def create_reservation_items(self, reservation_id: int, items: list) -> None:
        raise NotImplementedError

    def get_reservation(self, reservation_id: int):
        raise NotImplementedError

    def list_reservations(self, status: str = None) -> list:
        raise NotImplementedError

    def list_reservations_by_owner(self, owner_id: int) -> list:
        raise NotImplementedError

    def list_unowned_reservations(self) -> list:
        raise NotImplementedError

    def list_approved_on(self, venue: str, date: str, exclude_id: int = None) -> list:
        raise NotImplementedError

    def list_approved_overlap(self, venue: str, date: str, time_from: str, time_to: str,
                              exclude_id: int = None, missing_bounds: str = 'full_day') -> list:
        """
        Approved reservations at venue/date whose time range overlaps the window.

        Storage narrows by venue, date and status; the time test is the same
        open-interval rule the conflict detector applies.
        """
        from models.reservation_availability import times_overlap

        return [
            r for r in self.list_approved_on(venue, date, exclude_id)
            if times_overlap(time_from, time_to, r.time_from, r.time_to, missing_bounds)
        ]

    def update_reservation_status(self, reservation_id: int, status: str, expected: str = None) -> bool:
        """
        Set a reservation's status.

        Args:
            reservation_id: Reservation ID
            status: New status
            expected: If given, only update while the stored status still equals it

        Returns:
            bool: True if a row was updated
        """
        raise NotImplementedError

    def set_reservation_owner(self, reservation_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def delete_reservation(self, reservation_id: int) -> bool:
        raise NotImplementedError
