"""
Reservation data access and lifecycle functions.

This module re-exports all functions from the split modules so routes can
import everything reservation-related from one place:
- entities.py: Reservation, ReservationItem, Conflict and Outcome read models
- reservation_state.py: Lifecycle transitions (create, decide, cancel, delete)
- reservation_availability.py: Time-overlap conflict detection
- reservation_queries.py: Ownership resolution, listings and statistics
- equipment.py: Equipment text parsing and formatting
"""

# =============================================================================
# RE-EXPORTS
# =============================================================================

# Read models
from .entities import (
    EQUIPMENT_VENUE,
    ReservationStatus,
    ReservationItem,
    Reservation,
    Conflict,
    OutcomeKind,
    Outcome,
)

# State management
from .reservation_state import (
    VALID_TRANSITIONS,
    InvalidStateTransitionError,
    validate_state_transition,
    get_allowed_transitions,
    create_reservation,
    create_equipment_reservation,
    decide_reservation,
    cancel_reservation,
    delete_reservation,
)

# Conflict detection
from .reservation_availability import (
    MISSING_BOUNDS_POLICIES,
    parse_time,
    times_overlap,
    find_conflicts,
    get_conflicting_reservations,
)

# Query operations
from .reservation_queries import (
    resolve_owner,
    get_reservation_with_owner,
    list_reservations_for_user,
    split_by_kind,
    get_calendar_events,
    get_calendar_stats,
    get_reservation_stats,
)

# Equipment
from .equipment import (
    parse_equipment,
    items_from_form,
    format_equipment,
    names_with_separator,
)

# =============================================================================
# PUBLIC API
# =============================================================================

__all__ = [
    # Read models
    'EQUIPMENT_VENUE',
    'ReservationStatus',
    'ReservationItem',
    'Reservation',
    'Conflict',
    'OutcomeKind',
    'Outcome',

    # State management
    'VALID_TRANSITIONS',
    'InvalidStateTransitionError',
    'validate_state_transition',
    'get_allowed_transitions',
    'create_reservation',
    'create_equipment_reservation',
    'decide_reservation',
    'cancel_reservation',
    'delete_reservation',

    # Conflict detection
    'MISSING_BOUNDS_POLICIES',
    'parse_time',
    'times_overlap',
    'find_conflicts',
    'get_conflicting_reservations',

    # Queries
    'resolve_owner',
    'get_reservation_with_owner',
    'list_reservations_for_user',
    'split_by_kind',
    'get_calendar_events',
    'get_calendar_stats',
    'get_reservation_stats',

    # Equipment
    'parse_equipment',
    'items_from_form',
    'format_equipment',
    'names_with_separator',
]
