"""
Venue availability and conflict detection.
Finds approved reservations whose time range overlaps a reservation being approved.
"""

import logging
from datetime import datetime, time

from .entities import Conflict, ReservationStatus

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

# How a reservation without time_from/time_to is treated:
# - full_day: missing start is 00:00, missing end is end of day
# - ignore:   a pair with any missing bound is never reported
MISSING_BOUNDS_POLICIES = ('full_day', 'ignore')

DAY_START = time.min
DAY_END = time.max

_TIME_FORMATS = ('%H:%M', '%H:%M:%S')


# =============================================================================
# TIME HELPERS
# =============================================================================

def parse_time(value):
    """
    Parse a time-of-day value.

    Args:
        value: 'HH:MM', 'HH:MM:SS', a datetime.time or None

    Returns:
        datetime.time, or None when blank or unparseable
    """
    if value is None:
        return None
    if isinstance(value, time):
        return value

    text = str(value).strip()
    if not text:
        return None

    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return None


def _bounds(time_from, time_to, missing_bounds: str):
    """Resolve a (start, end) pair under the missing-bounds policy, or None to skip."""
    start = parse_time(time_from)
    end = parse_time(time_to)

    if start is not None and end is not None:
        return start, end
    if missing_bounds == 'ignore':
        return None
    return (start or DAY_START), (end or DAY_END)


def times_overlap(a_from, a_to, b_from, b_to, missing_bounds: str = 'full_day') -> bool:
    """
    Open-interval overlap test: a_from < b_to and a_to > b_from.

    Touching ranges (one ends exactly when the other starts) do not overlap.

    Args:
        a_from, a_to: First range
        b_from, b_to: Second range
        missing_bounds: 'full_day' or 'ignore'

    Returns:
        bool: True if the ranges intersect
    """
    if missing_bounds not in MISSING_BOUNDS_POLICIES:
        raise ValueError(f'Unknown missing-bounds policy: {missing_bounds}')

    a = _bounds(a_from, a_to, missing_bounds)
    b = _bounds(b_from, b_to, missing_bounds)
    if a is None or b is None:
        return False

    return a[0] < b[1] and a[1] > b[0]


# =============================================================================
# CONFLICT DETECTION
# =============================================================================

def find_conflicts(target, candidates, missing_bounds: str = 'full_day') -> list:
    """
    Find approved reservations that clash with the target.

    A candidate conflicts when it is approved, is not the target itself,
    shares venue and date, and its time range overlaps the target's.

    Args:
        target: Reservation being approved
        candidates: Iterable of Reservation
        missing_bounds: 'full_day' or 'ignore'

    Returns:
        list: Conflict entries ordered by start time, then id
    """
    conflicts = []
    for other in candidates:
        if other.id == target.id:
            continue
        if other.status != ReservationStatus.APPROVED.value:
            continue
        if other.venue != target.venue or other.date != target.date:
            continue
        if not times_overlap(target.time_from, target.time_to,
                             other.time_from, other.time_to, missing_bounds):
            continue
        conflicts.append(other)

    conflicts.sort(key=lambda r: (parse_time(r.time_from) or DAY_START, r.id))

    return [
        Conflict(
            reservation_id=r.id,
            venue=r.venue,
            date=r.date,
            time_from=r.time_from,
            time_to=r.time_to,
            person_name=r.person_name,
        )
        for r in conflicts
    ]


def get_conflicting_reservations(repo, reservation, missing_bounds: str = 'full_day') -> list:
    """
    Get approved reservations that conflict with a reservation.

    Args:
        repo: Repository
        reservation: Reservation to check
        missing_bounds: 'full_day' or 'ignore'

    Returns:
        list: Conflict entries (empty if none)
    """
    candidates = repo.list_approved_overlap(
        reservation.venue,
        reservation.date,
        reservation.time_from,
        reservation.time_to,
        exclude_id=reservation.id,
        missing_bounds=missing_bounds,
    )
    conflicts = find_conflicts(reservation, candidates, missing_bounds)

    if conflicts:
        logger.info(
            'Reservation %s overlaps %d approved reservation(s) at %s on %s',
            reservation.id, len(conflicts), reservation.venue, reservation.date
        )
    return conflicts
