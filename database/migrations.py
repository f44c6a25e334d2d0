"""
Database migrations.
Safe, idempotent data migrations from the legacy JSON store.
"""

import logging
from datetime import datetime

from database.json_repository import load_document
from database.repository import DuplicateUsernameError, PersistenceError

logger = logging.getLogger(__name__)


def _legacy_equipment_text(value):
    """Legacy documents hold equipment as a string or a list of names."""
    if isinstance(value, list):
        return ', '.join(str(name) for name in value)
    if isinstance(value, str):
        return value
    return None


def import_json_store(source_path: str, repo) -> dict:
    """
    Migration: copy users and reservations from a legacy JSON store.

    Users keep their id when it is free; existing usernames are mapped to the
    account already present. Reservations whose id already exists are skipped.
    Equipment text is parsed into item rows. Each reservation is written with
    its items in one transaction.

    Safe to run multiple times.

    Args:
        source_path: Path to the legacy db.json
        repo: Target repository

    Returns:
        dict: {'users': created, 'reservations': created, 'items': created,
               'skipped': skipped reservations}
    """
    from models.equipment import parse_equipment

    data = load_document(source_path)
    counts = {'users': 0, 'reservations': 0, 'items': 0, 'skipped': 0}

    # old id -> new id
    id_map = {}

    for legacy_user in data.get('users', []):
        username = legacy_user.get('username')
        if not username:
            continue

        existing = repo.find_user_by_username(username)
        if existing:
            id_map[legacy_user.get('id')] = existing.id
            continue

        try:
            new_id = repo.create_user(
                username,
                legacy_user.get('password') or '',
                legacy_user.get('role') or 'user',
                user_id=legacy_user.get('id'),
            )
        except DuplicateUsernameError:
            continue
        except PersistenceError:
            # Preserved id collided with another row; let storage assign one
            new_id = repo.create_user(username, legacy_user.get('password') or '',
                                      legacy_user.get('role') or 'user')
        id_map[legacy_user.get('id')] = new_id
        counts['users'] += 1

    for legacy in data.get('reservations', []):
        legacy_id = legacy.get('id')
        if legacy_id is not None and repo.get_reservation(legacy_id) is not None:
            counts['skipped'] += 1
            continue

        record = {
            'id': legacy_id,
            'venue': legacy.get('venue') or 'Unknown',
            'date': legacy.get('date') or '',
            'time_from': legacy.get('time_from') or None,
            'time_to': legacy.get('time_to') or None,
            'purpose': legacy.get('purpose') or None,
            'equipment': _legacy_equipment_text(legacy.get('equipment')),
            'person_name': legacy.get('person_name') or None,
            'person_signature': legacy.get('person_signature') or None,
            'created_by': id_map.get(legacy.get('created_by')),
            'status': legacy.get('status') or 'pending',
            'created_at': legacy.get('created_at') or datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
        }
        items = parse_equipment(legacy.get('equipment'))

        with repo.transaction():
            reservation_id = repo.create_reservation(record)
            repo.create_reservation_items(reservation_id, items)

        counts['reservations'] += 1
        counts['items'] += len(items)

    logger.info(
        'Imported %d users, %d reservations (%d items) from %s; %d reservations skipped',
        counts['users'], counts['reservations'], counts['items'], source_path, counts['skipped']
    )
    return counts


def backfill_created_by(repo) -> int:
    """
    Migration: set created_by on reservations that only carry a person_name.

    Matches person_name exactly against usernames. Safe to run multiple times.

    Returns:
        int: Number of reservations updated
    """
    users = {u.username: u.id for u in repo.list_users()}
    changed = 0

    for reservation in repo.list_unowned_reservations():
        name = (reservation.person_name or '').strip()
        user_id = users.get(name)
        if name and user_id is not None:
            repo.set_reservation_owner(reservation.id, user_id)
            logger.info('Backfilled reservation %s -> created_by=%s (%s)', reservation.id, user_id, name)
            changed += 1

    return changed
