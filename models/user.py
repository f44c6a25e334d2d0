"""
User model and account operations.
Handles signup, authentication, password resets and Flask-Login integration.
"""

import logging
from dataclasses import dataclass
from enum import Enum

import bcrypt
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from database.repository import DuplicateUsernameError
from utils.messages import MESSAGES
from utils.validators import validate_password, sanitize_input
from .entities import Outcome, OutcomeKind

logger = logging.getLogger(__name__)

# Admin resets keep the legacy minimum; signups use MIN_PASSWORD_LENGTH
RESET_MIN_PASSWORD_LENGTH = 4


class Role(str, Enum):
    """User roles."""
    USER = 'user'
    ADMIN = 'admin'

    @classmethod
    def parse(cls, value) -> 'Role':
        """Load a stored role; anything unrecognised is a plain user."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.USER


@dataclass(eq=False)
class User(UserMixin):
    """User entity compatible with Flask-Login."""

    id: int
    username: str
    password_hash: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def get_id(self) -> str:
        return str(self.id)

    @classmethod
    def from_row(cls, row: dict) -> 'User':
        return cls(
            id=int(row['id']),
            username=row['username'],
            password_hash=row.get('password') or row.get('password_hash') or '',
            role=Role.parse(row.get('role')),
        )

    def to_dict(self) -> dict:
        """Public fields only (no password hash)."""
        return {'id': self.id, 'username': self.username, 'role': self.role.value}


# =============================================================================
# PASSWORDS
# =============================================================================

def hash_password(password: str) -> str:
    return generate_password_hash(password)


def check_password(user: User, password: str) -> bool:
    """
    Verify password against stored hash.

    Accounts imported from the legacy JSON store carry bcrypt hashes
    ($2a$/$2b$); everything else is a werkzeug hash.
    """
    stored = user.password_hash or ''
    if not stored or password is None:
        return False

    if stored.startswith(('$2a$', '$2b$', '$2y$')):
        try:
            return bcrypt.checkpw(password.encode('utf-8'), stored.encode('utf-8'))
        except ValueError:
            return False

    try:
        return check_password_hash(stored, password)
    except ValueError:
        logger.warning('Unrecognised password hash format for user %s', user.username)
        return False


# =============================================================================
# ACCOUNT OPERATIONS
# =============================================================================

def signup(repo, username: str, password: str, min_length: int = 6) -> Outcome:
    """
    Register a new user account with the 'user' role.

    Args:
        repo: Repository
        username: Requested username (trimmed)
        password: Plain text password
        min_length: Minimum password length

    Returns:
        Outcome: CREATED with the new user, DUPLICATE_USERNAME or VALIDATION_ERROR
    """
    username = sanitize_input(username, max_length=150)
    if not username or not password:
        return Outcome(OutcomeKind.VALIDATION_ERROR, message=MESSAGES['missing_fields'])

    is_valid, error = validate_password(password, min_length=min_length)
    if not is_valid:
        return Outcome(OutcomeKind.VALIDATION_ERROR, message=error)

    if repo.find_user_by_username(username):
        return Outcome(OutcomeKind.DUPLICATE_USERNAME, message=MESSAGES['username_exists'])

    try:
        user_id = repo.create_user(username, hash_password(password), Role.USER.value)
    except DuplicateUsernameError:
        # Lost a race with a concurrent signup
        return Outcome(OutcomeKind.DUPLICATE_USERNAME, message=MESSAGES['username_exists'])

    logger.info('User %s signed up (id=%s)', username, user_id)
    return Outcome(OutcomeKind.CREATED, user=repo.get_user(user_id))


def create_account(repo, username: str, password: str, role: Role = Role.USER) -> User:
    """
    Create an account directly (CLI and seed data).

    Raises:
        DuplicateUsernameError: if the username is taken
    """
    user_id = repo.create_user(username.strip(), hash_password(password), Role.parse(role).value)
    return repo.get_user(user_id)


def authenticate(repo, username: str, password: str) -> Outcome:
    """
    Check login credentials.

    Returns:
        Outcome: UPDATED with the user, or INVALID_CREDENTIALS
    """
    user = repo.find_user_by_username((username or '').strip())
    if user is None or not check_password(user, password):
        return Outcome(OutcomeKind.INVALID_CREDENTIALS, message=MESSAGES['invalid_credentials'])
    return Outcome(OutcomeKind.UPDATED, user=user)


def reset_password(repo, principal, user_id: int, new_password: str) -> Outcome:
    """
    Set a new password for a user.

    Admins may reset any account; other users only their own.

    Returns:
        Outcome: UPDATED, FORBIDDEN, NOT_FOUND or VALIDATION_ERROR
    """
    from utils.permissions import can_administer, is_authenticated

    if not is_authenticated(principal):
        return Outcome(OutcomeKind.FORBIDDEN, message=MESSAGES['permission_denied'])
    if not can_administer(principal) and principal.id != user_id:
        return Outcome(OutcomeKind.FORBIDDEN, message=MESSAGES['permission_denied'])

    if not new_password or len(new_password) < RESET_MIN_PASSWORD_LENGTH:
        return Outcome(OutcomeKind.VALIDATION_ERROR, message=MESSAGES['password_too_short'])

    target = repo.get_user(user_id)
    if target is None:
        return Outcome(OutcomeKind.NOT_FOUND, message=MESSAGES['user_not_found'])

    repo.update_user_password(user_id, hash_password(new_password))
    logger.info('Password for %s reset by %s', target.username, principal.username)
    return Outcome(OutcomeKind.UPDATED, user=target)
