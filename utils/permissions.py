"""
Authorization gate.
Pure functions deciding whether a principal may view, mutate or administer.

A principal is a models.user.User, Flask-Login's anonymous user, or None.
"""

from models.entities import ReservationStatus


def is_authenticated(principal) -> bool:
    """True for a logged-in user; False for None or anonymous principals."""
    return principal is not None and bool(getattr(principal, 'is_authenticated', False))


def can_administer(principal) -> bool:
    """
    Check admin rights.

    Args:
        principal: Acting user (or None/anonymous)

    Returns:
        True if the principal's role is admin
    """
    from models.user import Role

    if not is_authenticated(principal):
        return False
    return Role.parse(getattr(principal, 'role', None)) == Role.ADMIN


def can_mutate(principal, reservation) -> bool:
    """
    Check whether the principal may change (e.g. cancel) a reservation.

    Only admins and the user recorded in created_by qualify; legacy records
    matched by name alone are read-only for their owner.
    """
    if can_administer(principal):
        return True
    if not is_authenticated(principal):
        return False
    return reservation.created_by is not None and principal.id == reservation.created_by


def can_view(principal, reservation) -> bool:
    """
    Check whether the principal may see a reservation's details.

    Approved reservations are public calendar data; anything else is
    visible to admins and to its owner.
    """
    if reservation.status == ReservationStatus.APPROVED.value:
        return True
    if can_administer(principal):
        return True
    if not is_authenticated(principal):
        return False
    return principal.id in (reservation.owner_id, reservation.created_by)


def can_create(principal) -> bool:
    """Any authenticated user may submit reservations."""
    return is_authenticated(principal)
