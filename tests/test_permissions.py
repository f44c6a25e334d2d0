"""
Tests for the authorization gate.
"""

import pytest
from flask_login import AnonymousUserMixin

from models.entities import Reservation
from models.user import Role, User
from utils.permissions import (
    is_authenticated, can_administer, can_mutate, can_view, can_create
)

ADMIN = User(id=1, username='admin', password_hash='', role=Role.ADMIN)
ALICE = User(id=2, username='alice', password_hash='')
BOB = User(id=3, username='bob', password_hash='')
ANONYMOUS = AnonymousUserMixin()


def reservation(status='pending', created_by=2, owner_id=None):
    return Reservation(id=10, venue='Lab A', date='2025-03-10', status=status,
                       created_by=created_by, owner_id=owner_id)


class TestAuthentication:
    """Tests for principals."""

    def test_authenticated(self):
        assert is_authenticated(ALICE) is True
        assert is_authenticated(ANONYMOUS) is False
        assert is_authenticated(None) is False

    @pytest.mark.parametrize('principal, expected', [
        (ADMIN, True), (ALICE, False), (ANONYMOUS, False), (None, False),
    ])
    def test_can_administer(self, principal, expected):
        assert can_administer(principal) is expected

    @pytest.mark.parametrize('principal, expected', [
        (ADMIN, True), (ALICE, True), (ANONYMOUS, False), (None, False),
    ])
    def test_can_create(self, principal, expected):
        assert can_create(principal) is expected

    def test_role_stored_as_text(self):
        user = User(id=5, username='root', password_hash='', role='admin')
        assert can_administer(user) is True


class TestCanMutate:
    """Only the creator or an admin may change a reservation."""

    @pytest.mark.parametrize('principal, expected', [
        (ADMIN, True), (ALICE, True), (BOB, False), (ANONYMOUS, False), (None, False),
    ])
    def test_owned_reservation(self, principal, expected):
        assert can_mutate(principal, reservation(created_by=2)) is expected

    def test_name_matched_owner_is_read_only(self):
        legacy = reservation(created_by=None, owner_id=2)
        assert can_mutate(ALICE, legacy) is False
        assert can_mutate(ADMIN, legacy) is True


class TestCanView:
    """Approved reservations are public; others need owner or admin."""

    @pytest.mark.parametrize('principal', [ADMIN, ALICE, BOB, ANONYMOUS, None])
    def test_approved_is_public(self, principal):
        assert can_view(principal, reservation(status='approved')) is True

    @pytest.mark.parametrize('principal, expected', [
        (ADMIN, True), (ALICE, True), (BOB, False), (ANONYMOUS, False), (None, False),
    ])
    @pytest.mark.parametrize('status', ['pending', 'declined', 'cancelled'])
    def test_private_statuses(self, principal, expected, status):
        assert can_view(principal, reservation(status=status)) is expected

    def test_name_matched_owner_can_view(self):
        legacy = reservation(created_by=None, owner_id=2)
        assert can_view(ALICE, legacy) is True
        assert can_view(BOB, legacy) is False
