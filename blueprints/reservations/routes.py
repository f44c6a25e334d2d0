"""
Reservation routes.
Dashboard, submission forms, per-kind listings, statistics, details and calendar.
"""

from flask import Blueprint, render_template, request, url_for, abort
from flask_login import login_required, current_user

from database import get_repository
from models.reservation import (
    create_reservation, create_equipment_reservation, cancel_reservation,
    get_reservation_with_owner,
    list_reservations_for_user, split_by_kind, get_calendar_events,
    get_calendar_stats, get_reservation_stats
)
from utils.datetime_helpers import get_today
from utils.helpers import respond_to_outcome
from utils.permissions import can_administer, can_view

reservations_bp = Blueprint('reservations', __name__)

RESERVATION_FIELDS = ('venue', 'date', 'time_from', 'time_to', 'purpose',
                      'equipment', 'person_name', 'person_signature')


def _form_fields(keys=RESERVATION_FIELDS) -> dict:
    """Collect submitted reservation fields (missing ones as empty strings)."""
    return {key: request.form.get(key, '').strip() for key in keys}


def _my_reservations():
    if not current_user.is_authenticated:
        return []
    return list_reservations_for_user(get_repository(), current_user)


@reservations_bp.route('/')
def index():
    """Dashboard: own reservations, and every reservation for admins."""
    mine = _my_reservations()
    reservations = []
    if can_administer(current_user):
        reservations = get_repository().list_reservations()

    return render_template(
        'index.html',
        mine=mine,
        reservations=reservations,
        active_tab=request.args.get('tab', 'home')
    )


@reservations_bp.route('/lab-reservations')
@login_required
def lab_reservations():
    """Own venue bookings and the venue booking form."""
    lab, _ = split_by_kind(_my_reservations())
    return render_template('lab_reservations.html', reservations=lab)


@reservations_bp.route('/equipment-reservations')
@login_required
def equipment_reservations():
    """Own equipment bookings and the equipment booking form."""
    _, equipment = split_by_kind(_my_reservations())
    return render_template('equipment_reservations.html', reservations=equipment)


@reservations_bp.route('/statistics')
@login_required
def statistics():
    """Counts of the user's reservations by status and kind."""
    mine = _my_reservations()
    return render_template('statistics.html', mine=mine, stats=get_reservation_stats(mine))


@reservations_bp.route('/reserve', methods=['POST'])
@login_required
def reserve():
    """Submit a venue reservation."""
    outcome = create_reservation(get_repository(), current_user, _form_fields())

    if not outcome.ok:
        return respond_to_outcome(outcome, url_for('reservations.lab_reservations'))
    return respond_to_outcome(outcome, url_for('reservations.index', tab='reservations'))


@reservations_bp.route('/reserve-equipment', methods=['POST'])
@login_required
def reserve_equipment():
    """Submit an equipment reservation from repeated name/quantity fields."""
    fields = _form_fields(('date', 'time_from', 'time_to', 'purpose', 'person_name'))

    outcome = create_equipment_reservation(
        get_repository(),
        current_user,
        fields,
        request.form.getlist('equipment_name'),
        request.form.getlist('equipment_qty')
    )
    return respond_to_outcome(outcome, url_for('reservations.equipment_reservations'))


@reservations_bp.route('/reservation/<int:reservation_id>')
def detail(reservation_id):
    """Reservation details with its equipment items."""
    reservation = get_reservation_with_owner(get_repository(), reservation_id)
    if reservation is None:
        abort(404)
    if not can_view(current_user, reservation):
        abort(403)

    return render_template('reservation.html', r=reservation)


@reservations_bp.route('/cancel/<int:reservation_id>', methods=['POST'])
def cancel(reservation_id):
    """Cancel a reservation (owner or admin)."""
    outcome = cancel_reservation(get_repository(), current_user, reservation_id)
    return respond_to_outcome(outcome, request.referrer or url_for('reservations.index'))


@reservations_bp.route('/calendar')
def calendar():
    """Public calendar of approved reservations."""
    events = get_calendar_events(get_repository())
    admin_stats = None
    if can_administer(current_user):
        admin_stats = get_calendar_stats(events, today=get_today())

    return render_template('calendar.html', events=events, admin_stats=admin_stats)
