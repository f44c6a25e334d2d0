"""
Reservation query operations.
Ownership resolution, per-user listings, calendar data and statistics.
"""

from datetime import date as date_cls

from .entities import ReservationStatus


def _normalize_name(name) -> str:
    return str(name or '').strip().lower()


def resolve_owner(reservation, users_by_name: dict):
    """
    Resolve the owning user id of a reservation.

    created_by wins when present. Legacy records without it fall back to a
    case-insensitive, trimmed match of person_name against usernames.

    Args:
        reservation: Reservation
        users_by_name: {normalized username: user id}

    Returns:
        User id or None
    """
    if reservation.created_by is not None:
        return reservation.created_by
    name = _normalize_name(reservation.person_name)
    if not name:
        return None
    return users_by_name.get(name)


def users_index(users) -> dict:
    """Build the {normalized username: id} lookup used by resolve_owner."""
    return {_normalize_name(u.username): u.id for u in users}


def list_reservations_for_user(repo, user) -> list:
    """
    Get all reservations owned by a user, newest first.

    Includes legacy unowned rows whose person_name resolves to the user.
    """
    owned = repo.list_reservations_by_owner(user.id)

    legacy = []
    unowned = repo.list_unowned_reservations()
    if unowned:
        index = users_index(repo.list_users())
        for reservation in unowned:
            reservation.owner_id = resolve_owner(reservation, index)
            if reservation.owner_id == user.id:
                legacy.append(reservation)

    combined = owned + legacy
    combined.sort(key=lambda r: (r.created_at or '', r.id), reverse=True)
    return combined


def split_by_kind(reservations) -> tuple:
    """
    Split reservations into (lab, equipment) lists.
    """
    lab = [r for r in reservations if not r.is_equipment]
    equipment = [r for r in reservations if r.is_equipment]
    return lab, equipment


def get_calendar_events(repo) -> list:
    """
    Get approved reservations for the public calendar, ordered by date.
    """
    events = repo.list_reservations(status=ReservationStatus.APPROVED.value)
    events.sort(key=lambda r: (r.date or '', r.time_from or '', r.id))
    return events


def get_calendar_stats(events, today=None) -> dict:
    """
    Count past and upcoming calendar events.

    Args:
        events: Reservations (usually from get_calendar_events)
        today: date or 'YYYY-MM-DD' (default: today)

    Returns:
        dict: {'past': int, 'future': int}
    """
    if today is None:
        today = date_cls.today()
    today_str = today.isoformat() if hasattr(today, 'isoformat') else str(today)

    past = sum(1 for r in events if (r.date or '') < today_str)
    return {'past': past, 'future': len(events) - past}


def get_reservation_stats(reservations) -> dict:
    """
    Summarize reservations by status and kind.

    Returns:
        dict with 'total', 'lab', 'equipment' and one count per status
    """
    stats = {status.value: 0 for status in ReservationStatus}
    lab, equipment = split_by_kind(reservations)

    for reservation in reservations:
        stats[reservation.status] = stats.get(reservation.status, 0) + 1

    stats.update({
        'total': len(reservations),
        'lab': len(lab),
        'equipment': len(equipment),
    })
    return stats


def get_reservation_with_owner(repo, reservation_id: int):
    """
    Load a reservation with owner_id resolved (legacy name match included).

    Returns:
        Reservation or None
    """
    reservation = repo.get_reservation(reservation_id)
    if reservation is not None and reservation.created_by is None:
        reservation.owner_id = resolve_owner(reservation, users_index(repo.list_users()))
    return reservation
