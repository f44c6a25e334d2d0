"""
Dataclass-style entity representations.
Plain read models for reservations, their items, conflicts and operation outcomes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


EQUIPMENT_VENUE = 'Equipment Reservation'


class ReservationStatus(str, Enum):
    """Lifecycle status of a reservation."""
    PENDING = 'pending'
    APPROVED = 'approved'
    DECLINED = 'declined'
    CANCELLED = 'cancelled'


@dataclass
class ReservationItem:
    """Equipment line item owned by a single reservation."""

    name: str
    quantity: int = 1
    id: Optional[int] = None
    reservation_id: Optional[int] = None

    def as_pair(self) -> tuple:
        return (self.name, self.quantity)


@dataclass
class Reservation:
    """Venue or equipment booking request."""

    id: int
    venue: str
    date: str
    time_from: Optional[str] = None
    time_to: Optional[str] = None
    purpose: Optional[str] = None
    equipment: Optional[str] = None
    person_name: Optional[str] = None
    person_signature: Optional[str] = None
    created_by: Optional[int] = None
    status: str = ReservationStatus.PENDING.value
    created_at: Optional[str] = None
    items: List[ReservationItem] = field(default_factory=list)
    owner_id: Optional[int] = None

    def __post_init__(self):
        if self.owner_id is None:
            self.owner_id = self.created_by

    @property
    def is_equipment(self) -> bool:
        return self.venue == EQUIPMENT_VENUE

    @classmethod
    def from_row(cls, row: dict, items: list = None) -> 'Reservation':
        """Build from a storage row (sqlite3.Row converted to dict, or a JSON document)."""
        created_by = row.get('created_by')
        return cls(
            id=row['id'],
            venue=row.get('venue') or '',
            date=str(row['date']) if row.get('date') is not None else '',
            time_from=row.get('time_from') or None,
            time_to=row.get('time_to') or None,
            purpose=row.get('purpose'),
            equipment=row.get('equipment'),
            person_name=row.get('person_name'),
            person_signature=row.get('person_signature'),
            created_by=int(created_by) if created_by is not None else None,
            status=row.get('status') or ReservationStatus.PENDING.value,
            created_at=str(row['created_at']) if row.get('created_at') is not None else None,
            items=list(items or []),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'venue': self.venue,
            'date': self.date,
            'time_from': self.time_from,
            'time_to': self.time_to,
            'purpose': self.purpose,
            'equipment': self.equipment,
            'person_name': self.person_name,
            'created_by': self.created_by,
            'status': self.status,
            'created_at': self.created_at,
            'items': [{'name': i.name, 'quantity': i.quantity} for i in self.items],
        }


@dataclass(frozen=True)
class Conflict:
    """Approved reservation that overlaps the one being approved."""

    reservation_id: int
    venue: str
    date: str
    time_from: Optional[str]
    time_to: Optional[str]
    person_name: Optional[str] = None

    def describe(self) -> str:
        span = f"{self.time_from or '--:--'}-{self.time_to or '--:--'}"
        who = f' ({self.person_name})' if self.person_name else ''
        return f'#{self.reservation_id} {span}{who}'


class OutcomeKind(str, Enum):
    CREATED = 'created'
    UPDATED = 'updated'
    CONFLICT_WARNING = 'conflict_warning'
    DELETED = 'deleted'
    FORBIDDEN = 'forbidden'
    NOT_FOUND = 'not_found'
    VALIDATION_ERROR = 'validation_error'
    INVALID_TRANSITION = 'invalid_transition'
    DUPLICATE_USERNAME = 'duplicate_username'
    INVALID_CREDENTIALS = 'invalid_credentials'


SUCCESS_KINDS = frozenset({
    OutcomeKind.CREATED,
    OutcomeKind.UPDATED,
    OutcomeKind.CONFLICT_WARNING,
    OutcomeKind.DELETED,
})


@dataclass
class Outcome:
    """
    Result of a core operation.

    Expected failures (validation, authorization, missing records) come back
    as outcomes rather than exceptions.
    """

    kind: OutcomeKind
    reservation_id: Optional[int] = None
    conflicts: List[Conflict] = field(default_factory=list)
    message: str = ''
    user: object = None

    @property
    def ok(self) -> bool:
        return self.kind in SUCCESS_KINDS

    @property
    def has_warning(self) -> bool:
        return self.kind == OutcomeKind.CONFLICT_WARNING


