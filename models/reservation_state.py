"""
Reservation lifecycle management.
Handles creation, admin decisions, cancellation and deletion.

Status transitions:
    pending  -> approved | declined | cancelled
    approved -> cancelled
    declined, cancelled -> (terminal)
"""

import logging
from datetime import datetime

from utils.messages import MESSAGES, get_message
from utils.permissions import can_administer, can_create, can_mutate
from utils.validators import (validate_date_format, validate_time_format,
                              validate_time_range, sanitize_input)
from .entities import EQUIPMENT_VENUE, Outcome, OutcomeKind, ReservationStatus
from .equipment import format_equipment, items_from_form, names_with_separator, parse_equipment
from .reservation_availability import MISSING_BOUNDS_POLICIES, get_conflicting_reservations

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

PENDING = ReservationStatus.PENDING.value
APPROVED = ReservationStatus.APPROVED.value
DECLINED = ReservationStatus.DECLINED.value
CANCELLED = ReservationStatus.CANCELLED.value

# No backward moves: a declined or cancelled reservation stays that way,
# and an approved one can only be cancelled.
VALID_TRANSITIONS = {
    PENDING: {APPROVED, DECLINED, CANCELLED},
    APPROVED: {CANCELLED},
    DECLINED: set(),
    CANCELLED: set(),
}

ADMIN_DECISIONS = (APPROVED, DECLINED)


class InvalidStateTransitionError(ValueError):
    """Raised when a status change is not in VALID_TRANSITIONS."""

    def __init__(self, current_state: str, new_state: str):
        allowed = sorted(get_allowed_transitions(current_state))
        allowed_text = ', '.join(allowed) if allowed else 'none'
        super().__init__(
            f"Cannot change status from '{current_state}' to '{new_state}'. "
            f"Allowed transitions: {allowed_text}"
        )
        self.current_state = current_state
        self.new_state = new_state


# =============================================================================
# TRANSITION RULES
# =============================================================================

def get_allowed_transitions(current_state: str) -> set:
    """
    Get the statuses reachable from current_state.

    Returns:
        set: Allowed target statuses (empty for terminal or unknown states)
    """
    return set(VALID_TRANSITIONS.get(current_state, set()))


def validate_state_transition(current_state: str, new_state: str) -> None:
    """
    Validate a status change.

    Raises:
        InvalidStateTransitionError: If the transition is not allowed
    """
    if new_state not in get_allowed_transitions(current_state):
        raise InvalidStateTransitionError(current_state, new_state)


def _apply_transition(repo, reservation, new_state: str, actor) -> Outcome:
    """Validate and persist a status change, logging who made it."""
    try:
        validate_state_transition(reservation.status, new_state)
    except InvalidStateTransitionError as e:
        logger.warning(
            'Rejected transition for reservation %s by %s: %s',
            reservation.id, getattr(actor, 'username', None), e
        )
        return Outcome(OutcomeKind.INVALID_TRANSITION, reservation_id=reservation.id, message=str(e))

    # Only applies while the row still holds the status that was validated
    if not repo.update_reservation_status(reservation.id, new_state, expected=reservation.status):
        current = repo.get_reservation(reservation.id)
        if current is None:
            return Outcome(OutcomeKind.NOT_FOUND, reservation_id=reservation.id,
                           message=MESSAGES['reservation_not_found'])
        logger.warning(
            'Reservation %s changed to %s before %s -> %s by %s was applied',
            reservation.id, current.status, reservation.status, new_state,
            getattr(actor, 'username', None)
        )
        reservation.status = current.status
        return Outcome(OutcomeKind.INVALID_TRANSITION, reservation_id=reservation.id,
                       message=str(InvalidStateTransitionError(current.status, new_state)))

    logger.info(
        'Reservation %s: %s -> %s by %s',
        reservation.id, reservation.status, new_state, getattr(actor, 'username', None)
    )
    reservation.status = new_state
    return Outcome(OutcomeKind.UPDATED, reservation_id=reservation.id)


# =============================================================================
# CREATE
# =============================================================================

def _validate_fields(fields: dict):
    """Return an error message for invalid reservation fields, or None."""
    if not fields.get('venue'):
        return MESSAGES['venue_required']
    if not fields.get('date'):
        return MESSAGES['date_required']
    if not validate_date_format(fields['date']):
        return MESSAGES['invalid_date']

    for key in ('time_from', 'time_to'):
        if fields.get(key) and not validate_time_format(fields[key]):
            return MESSAGES['invalid_time']

    if not validate_time_range(fields.get('time_from'), fields.get('time_to')):
        return MESSAGES['invalid_time_range']
    return None


def create_reservation(repo, principal, fields: dict, items=None) -> Outcome:
    """
    Submit a new reservation in the pending state.

    The reservation row and its item rows are written in one transaction:
    either all of them persist or none do.

    Args:
        repo: Repository
        principal: Authenticated user making the request
        fields: venue, date, time_from, time_to, purpose, equipment,
                person_name, person_signature
        items: Optional equipment items (anything parse_equipment accepts)

    Returns:
        Outcome: CREATED with reservation_id, FORBIDDEN or VALIDATION_ERROR

    Raises:
        PersistenceError: If the repository write fails
    """
    if not can_create(principal):
        return Outcome(OutcomeKind.FORBIDDEN, message=MESSAGES['permission_denied'])

    clean = {
        key: sanitize_input(fields.get(key)) if isinstance(fields.get(key), str) else fields.get(key)
        for key in ('venue', 'date', 'time_from', 'time_to', 'purpose',
                    'equipment', 'person_name', 'person_signature')
    }

    error = _validate_fields(clean)
    if error:
        return Outcome(OutcomeKind.VALIDATION_ERROR, message=error)

    parsed_items = parse_equipment(items) if items is not None else []
    if names_with_separator(parsed_items):
        return Outcome(OutcomeKind.VALIDATION_ERROR, message=MESSAGES['equipment_name_separator'])
    if parsed_items:
        clean['equipment'] = format_equipment(parsed_items)

    record = dict(
        clean,
        time_from=clean['time_from'] or None,
        time_to=clean['time_to'] or None,
        person_name=clean['person_name'] or principal.username,
        created_by=principal.id,
        status=PENDING,
        created_at=datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
    )

    with repo.transaction():
        reservation_id = repo.create_reservation(record)
        if parsed_items:
            repo.create_reservation_items(reservation_id, parsed_items)

    logger.info(
        'Reservation %s created by %s for %s on %s',
        reservation_id, principal.username, record['venue'], record['date']
    )
    return Outcome(OutcomeKind.CREATED, reservation_id=reservation_id,
                   message=MESSAGES['reservation_created'])


def create_equipment_reservation(repo, principal, fields: dict, names, quantities) -> Outcome:
    """
    Submit an equipment-only reservation from repeated form fields.

    Args:
        repo: Repository
        principal: Authenticated user
        fields: date, time_from, time_to, purpose, person_name
        names: equipment_name values (str or list)
        quantities: equipment_qty values (str or list)

    Returns:
        Outcome: see create_reservation
    """
    if not can_create(principal):
        return Outcome(OutcomeKind.FORBIDDEN, message=MESSAGES['permission_denied'])

    items = items_from_form(names, quantities)
    if not items:
        return Outcome(OutcomeKind.VALIDATION_ERROR, message=MESSAGES['equipment_required'])

    return create_reservation(repo, principal, dict(fields, venue=EQUIPMENT_VENUE), items=items)


# =============================================================================
# ADMIN DECISIONS
# =============================================================================

def decide_reservation(repo, principal, reservation_id: int, decision: str,
                       missing_bounds: str = 'full_day') -> Outcome:
    """
    Approve or decline a pending reservation.

    Approval always commits. If other approved reservations share the venue
    and date with an overlapping time range, the outcome is CONFLICT_WARNING
    carrying the conflicts so the admin can be warned.

    Args:
        repo: Repository
        principal: Acting admin
        reservation_id: Reservation ID
        decision: 'approved' or 'declined'
        missing_bounds: Conflict policy for reservations without times

    Returns:
        Outcome: UPDATED, CONFLICT_WARNING, FORBIDDEN, NOT_FOUND,
                 VALIDATION_ERROR or INVALID_TRANSITION

    Raises:
        ValueError: If missing_bounds is not a known policy
    """
    # Must fail before the status write
    if missing_bounds not in MISSING_BOUNDS_POLICIES:
        raise ValueError(f'Unknown missing-bounds policy: {missing_bounds}')

    if not can_administer(principal):
        return Outcome(OutcomeKind.FORBIDDEN, reservation_id=reservation_id,
                       message=MESSAGES['permission_denied'])

    decision = (decision or '').strip().lower()
    if decision not in ADMIN_DECISIONS:
        return Outcome(OutcomeKind.VALIDATION_ERROR, reservation_id=reservation_id,
                       message=MESSAGES['invalid_decision'])

    reservation = repo.get_reservation(reservation_id)
    if reservation is None:
        return Outcome(OutcomeKind.NOT_FOUND, reservation_id=reservation_id,
                       message=MESSAGES['reservation_not_found'])

    outcome = _apply_transition(repo, reservation, decision, principal)
    if not outcome.ok:
        return outcome

    if decision == DECLINED:
        outcome.message = get_message('reservation_declined', id=reservation_id)
        return outcome

    outcome.message = get_message('reservation_approved', id=reservation_id)
    conflicts = get_conflicting_reservations(repo, reservation, missing_bounds)
    if conflicts:
        return Outcome(
            OutcomeKind.CONFLICT_WARNING,
            reservation_id=reservation_id,
            conflicts=conflicts,
            message=get_message(
                'conflict_warning',
                id=reservation_id,
                venue=reservation.venue,
                date=reservation.date,
                conflicts=', '.join(c.describe() for c in conflicts),
            ),
        )
    return outcome


# =============================================================================
# CANCEL / DELETE
# =============================================================================

def cancel_reservation(repo, principal, reservation_id: int) -> Outcome:
    """
    Cancel a pending or approved reservation.

    Args:
        repo: Repository
        principal: Owner (created_by) or an admin

    Returns:
        Outcome: UPDATED, FORBIDDEN, NOT_FOUND or INVALID_TRANSITION
    """
    reservation = repo.get_reservation(reservation_id)
    if reservation is None:
        return Outcome(OutcomeKind.NOT_FOUND, reservation_id=reservation_id,
                       message=MESSAGES['reservation_not_found'])

    if not can_mutate(principal, reservation):
        return Outcome(OutcomeKind.FORBIDDEN, reservation_id=reservation_id,
                       message=MESSAGES['permission_denied'])

    outcome = _apply_transition(repo, reservation, CANCELLED, principal)
    if outcome.ok:
        outcome.message = MESSAGES['reservation_cancelled']
    return outcome


def delete_reservation(repo, principal, reservation_id: int) -> Outcome:
    """
    Delete a reservation and its items (admin only).

    Returns:
        Outcome: DELETED, FORBIDDEN or NOT_FOUND
    """
    if not can_administer(principal):
        return Outcome(OutcomeKind.FORBIDDEN, reservation_id=reservation_id,
                       message=MESSAGES['permission_denied'])

    with repo.transaction():
        deleted = repo.delete_reservation(reservation_id)

    if not deleted:
        return Outcome(OutcomeKind.NOT_FOUND, reservation_id=reservation_id,
                       message=MESSAGES['reservation_not_found'])

    logger.info('Reservation %s deleted by %s', reservation_id, principal.username)
    return Outcome(OutcomeKind.DELETED, reservation_id=reservation_id,
                   message=MESSAGES['reservation_deleted'])
