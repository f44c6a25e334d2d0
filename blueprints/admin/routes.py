"""
Admin routes for reservation decisions and user management.
Every route requires an authenticated admin.
"""

from flask import render_template, url_for, request, Blueprint, current_app
from flask_login import login_required, current_user

from database import get_repository
from models.reservation import decide_reservation, delete_reservation, get_reservation_stats
from models.user import reset_password
from utils.decorators import admin_required
from utils.helpers import respond_to_outcome
from utils.messages import MESSAGES

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/')
@login_required
@admin_required
def reservations():
    """All reservations, newest first, with decision controls."""
    status_filter = request.args.get('status', '')

    all_reservations = get_repository().list_reservations(status=status_filter or None)
    stats = get_reservation_stats(get_repository().list_reservations())

    return render_template('admin/reservations.html', reservations=all_reservations,
                           stats=stats, status_filter=status_filter)


@admin_bp.route('/users')
@login_required
@admin_required
def users():
    """List all users."""
    return render_template('admin/users.html', users=get_repository().list_users())


@admin_bp.route('/reset-password/<int:user_id>', methods=['POST'])
@login_required
@admin_required
def reset_user_password(user_id):
    """Set a new password for a user."""
    outcome = reset_password(get_repository(), current_user, user_id,
                             request.form.get('newpassword', ''))
    if outcome.ok:
        outcome.message = MESSAGES['password_updated']
    return respond_to_outcome(outcome, url_for('admin.users'))


@admin_bp.route('/decision/<int:reservation_id>', methods=['POST'])
@login_required
@admin_required
def decision(reservation_id):
    """Approve or decline a pending reservation; overlaps flash a warning."""
    outcome = decide_reservation(
        get_repository(),
        current_user,
        reservation_id,
        request.form.get('decision', ''),
        missing_bounds=current_app.config.get('CONFLICT_MISSING_TIMES', 'full_day')
    )
    return respond_to_outcome(outcome, url_for('admin.reservations'))


@admin_bp.route('/delete/<int:reservation_id>', methods=['POST'])
@login_required
@admin_required
def delete(reservation_id):
    """Delete a reservation with its items."""
    outcome = delete_reservation(get_repository(), current_user, reservation_id)
    return respond_to_outcome(outcome, url_for('admin.reservations'))
