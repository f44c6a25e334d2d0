"""
Tests for reservation status transitions.

pending -> approved | declined | cancelled, approved -> cancelled;
declined and cancelled are terminal.
"""

import logging

import pytest

from database.json_repository import JSONRepository
from database.sqlite_repository import SQLiteRepository, connect
from models.entities import OutcomeKind
from models.reservation_state import (
    VALID_TRANSITIONS, InvalidStateTransitionError, get_allowed_transitions,
    validate_state_transition, create_reservation, decide_reservation,
    cancel_reservation
)

FIELDS = {'venue': 'Lab A', 'date': '2025-03-10', 'time_from': '09:00', 'time_to': '10:00'}


def submit(repo, user, **overrides):
    outcome = create_reservation(repo, user, dict(FIELDS, **overrides))
    assert outcome.kind == OutcomeKind.CREATED
    return outcome.reservation_id


class TestTransitionMatrix:
    """Tests for VALID_TRANSITIONS."""

    @pytest.mark.parametrize('current, new', [
        ('pending', 'approved'),
        ('pending', 'declined'),
        ('pending', 'cancelled'),
        ('approved', 'cancelled'),
    ])
    def test_allowed(self, current, new):
        validate_state_transition(current, new)

    @pytest.mark.parametrize('current, new', [
        ('declined', 'approved'),
        ('declined', 'pending'),
        ('cancelled', 'approved'),
        ('cancelled', 'pending'),
        ('approved', 'pending'),
        ('approved', 'declined'),
        ('pending', 'pending'),
    ])
    def test_rejected(self, current, new):
        with pytest.raises(InvalidStateTransitionError) as exc:
            validate_state_transition(current, new)
        assert exc.value.current_state == current
        assert exc.value.new_state == new

    def test_terminal_states(self):
        assert get_allowed_transitions('declined') == set()
        assert get_allowed_transitions('cancelled') == set()
        assert get_allowed_transitions('unknown') == set()

    def test_matrix_covers_every_status(self):
        assert set(VALID_TRANSITIONS) == {'pending', 'approved', 'declined', 'cancelled'}

    def test_error_message_lists_allowed(self):
        with pytest.raises(InvalidStateTransitionError) as exc:
            validate_state_transition('approved', 'declined')
        assert "from 'approved' to 'declined'" in str(exc.value)
        assert 'cancelled' in str(exc.value)


class TestDecisions:
    """Tests for decide_reservation."""

    def test_approve(self, repo, admin, alice):
        rid = submit(repo, alice)

        outcome = decide_reservation(repo, admin, rid, 'approved')

        assert outcome.kind == OutcomeKind.UPDATED
        assert repo.get_reservation(rid).status == 'approved'

    def test_decline(self, repo, admin, alice):
        rid = submit(repo, alice)

        outcome = decide_reservation(repo, admin, rid, 'declined')

        assert outcome.kind == OutcomeKind.UPDATED
        assert repo.get_reservation(rid).status == 'declined'

    def test_declined_cannot_be_approved(self, repo, admin, alice):
        rid = submit(repo, alice)
        decide_reservation(repo, admin, rid, 'declined')

        outcome = decide_reservation(repo, admin, rid, 'approved')

        assert outcome.kind == OutcomeKind.INVALID_TRANSITION
        assert repo.get_reservation(rid).status == 'declined'

    def test_approved_cannot_be_declined(self, repo, admin, alice):
        rid = submit(repo, alice)
        decide_reservation(repo, admin, rid, 'approved')

        outcome = decide_reservation(repo, admin, rid, 'declined')

        assert outcome.kind == OutcomeKind.INVALID_TRANSITION
        assert repo.get_reservation(rid).status == 'approved'

    def test_non_admin_forbidden(self, repo, alice):
        rid = submit(repo, alice)

        outcome = decide_reservation(repo, alice, rid, 'approved')

        assert outcome.kind == OutcomeKind.FORBIDDEN
        assert repo.get_reservation(rid).status == 'pending'

    def test_invalid_decision(self, repo, admin, alice):
        rid = submit(repo, alice)

        outcome = decide_reservation(repo, admin, rid, 'cancelled')

        assert outcome.kind == OutcomeKind.VALIDATION_ERROR
        assert repo.get_reservation(rid).status == 'pending'

    def test_missing_reservation(self, repo, admin):
        assert decide_reservation(repo, admin, 999, 'approved').kind == OutcomeKind.NOT_FOUND

    def test_overlap_warns_but_approves(self, repo, admin, alice, bob):
        first = submit(repo, alice, time_from='09:00', time_to='11:00')
        second = submit(repo, bob, time_from='10:00', time_to='12:00')
        decide_reservation(repo, admin, first, 'approved')

        outcome = decide_reservation(repo, admin, second, 'approved')

        assert outcome.kind == OutcomeKind.CONFLICT_WARNING
        assert outcome.ok is True
        assert [c.reservation_id for c in outcome.conflicts] == [first]
        assert f'#{first}' in outcome.message
        assert repo.get_reservation(second).status == 'approved'

    def test_touching_ranges_no_warning(self, repo, admin, alice, bob):
        first = submit(repo, alice, time_from='09:00', time_to='10:00')
        second = submit(repo, bob, time_from='10:00', time_to='11:00')
        decide_reservation(repo, admin, first, 'approved')

        assert decide_reservation(repo, admin, second, 'approved').kind == OutcomeKind.UPDATED

    def test_missing_times_policy(self, repo, admin, alice, bob):
        first = submit(repo, alice, time_from='', time_to='')
        second = submit(repo, bob)
        third = submit(repo, bob, time_from='13:00', time_to='14:00')
        decide_reservation(repo, admin, first, 'approved')

        assert decide_reservation(repo, admin, second, 'approved').kind == OutcomeKind.CONFLICT_WARNING
        assert decide_reservation(repo, admin, third, 'approved',
                                  missing_bounds='ignore').kind == OutcomeKind.UPDATED

    def test_unknown_policy_rejected_before_write(self, repo, admin, alice):
        rid = submit(repo, alice)

        with pytest.raises(ValueError):
            decide_reservation(repo, admin, rid, 'approved', missing_bounds='conservative')

        assert repo.get_reservation(rid).status == 'pending'

    def test_transitions_are_logged(self, repo, admin, alice, caplog):
        rid = submit(repo, alice)

        with caplog.at_level(logging.INFO, logger='models.reservation_state'):
            decide_reservation(repo, admin, rid, 'declined')
            decide_reservation(repo, admin, rid, 'approved')

        messages = [r.getMessage() for r in caplog.records]
        assert any('pending -> declined by admin' in m for m in messages)
        assert any('Rejected transition' in m for m in messages)


class TestCancel:
    """Tests for cancel_reservation."""

    def test_owner_cancels_pending(self, repo, alice):
        rid = submit(repo, alice)

        outcome = cancel_reservation(repo, alice, rid)

        assert outcome.kind == OutcomeKind.UPDATED
        assert repo.get_reservation(rid).status == 'cancelled'

    def test_owner_cancels_approved(self, repo, admin, alice):
        rid = submit(repo, alice)
        decide_reservation(repo, admin, rid, 'approved')

        assert cancel_reservation(repo, alice, rid).kind == OutcomeKind.UPDATED
        assert repo.get_reservation(rid).status == 'cancelled'

    def test_admin_cancels_any(self, repo, admin, alice):
        rid = submit(repo, alice)
        assert cancel_reservation(repo, admin, rid).kind == OutcomeKind.UPDATED

    def test_other_user_forbidden(self, repo, alice, bob):
        rid = submit(repo, alice)

        outcome = cancel_reservation(repo, bob, rid)

        assert outcome.kind == OutcomeKind.FORBIDDEN
        assert repo.get_reservation(rid).status == 'pending'

    def test_anonymous_forbidden(self, repo, alice):
        rid = submit(repo, alice)

        assert cancel_reservation(repo, None, rid).kind == OutcomeKind.FORBIDDEN
        assert repo.get_reservation(rid).status == 'pending'

    def test_cancelled_is_terminal(self, repo, alice):
        rid = submit(repo, alice)
        cancel_reservation(repo, alice, rid)

        assert cancel_reservation(repo, alice, rid).kind == OutcomeKind.INVALID_TRANSITION

    def test_declined_cannot_be_cancelled(self, repo, admin, alice):
        rid = submit(repo, alice)
        decide_reservation(repo, admin, rid, 'declined')

        assert cancel_reservation(repo, alice, rid).kind == OutcomeKind.INVALID_TRANSITION
        assert repo.get_reservation(rid).status == 'declined'

    def test_missing_reservation(self, repo, alice):
        assert cancel_reservation(repo, alice, 999).kind == OutcomeKind.NOT_FOUND


def second_handle(repo, tmp_path):
    """Open another repository on the same storage, as a second worker would."""
    if isinstance(repo, JSONRepository):
        return JSONRepository(str(tmp_path / 'db.json'))
    return SQLiteRepository(connect(str(tmp_path / 'test.db')))


class TestConcurrentWrites:
    """Two writers racing on the same reservation."""

    def test_cancel_lands_between_read_and_approve(self, repo, admin, alice, tmp_path, monkeypatch):
        rid = submit(repo, alice)
        other = second_handle(repo, tmp_path)
        read = repo.get_reservation
        cancelled = []

        def read_then_cancel(reservation_id):
            reservation = read(reservation_id)
            if not cancelled:
                cancelled.append(cancel_reservation(other, alice, reservation_id))
            return reservation

        monkeypatch.setattr(repo, 'get_reservation', read_then_cancel)

        outcome = decide_reservation(repo, admin, rid, 'approved')

        assert cancelled[0].kind == OutcomeKind.UPDATED
        assert outcome.kind == OutcomeKind.INVALID_TRANSITION
        assert "from 'cancelled' to 'approved'" in outcome.message
        assert other.get_reservation(rid).status == 'cancelled'
        other.close()

    def test_decline_lands_between_read_and_cancel(self, repo, admin, alice, tmp_path, monkeypatch):
        rid = submit(repo, alice)
        other = second_handle(repo, tmp_path)
        read = repo.get_reservation
        declined = []

        def read_then_decline(reservation_id):
            reservation = read(reservation_id)
            if not declined:
                declined.append(decide_reservation(other, admin, reservation_id, 'declined'))
            return reservation

        monkeypatch.setattr(repo, 'get_reservation', read_then_decline)

        outcome = cancel_reservation(repo, alice, rid)

        assert declined[0].kind == OutcomeKind.UPDATED
        assert outcome.kind == OutcomeKind.INVALID_TRANSITION
        assert other.get_reservation(rid).status == 'declined'
        other.close()
