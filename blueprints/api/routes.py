"""
API routes for JSON endpoints.
Provides JSON access to the calendar and reservation details, and a
cancel action for scripted clients.
"""

from flask import jsonify, Blueprint, current_app
from flask_login import current_user

from database import get_repository
from models.reservation import cancel_reservation, get_calendar_events, get_reservation_with_owner
from utils.api_response import api_success, api_error, api_outcome
from utils.messages import MESSAGES
from utils.permissions import can_view

api_bp = Blueprint('api', __name__)

# Fields exposed for calendar events (no signatures or purposes)
CALENDAR_FIELDS = ('id', 'venue', 'date', 'time_from', 'time_to', 'status')


@api_bp.route('/health')
def health_check():
    """
    Health check endpoint (no authentication required).

    Returns:
        JSON with status and version
    """
    return jsonify({
        'status': 'ok',
        'version': current_app.config.get('APP_VERSION', '1.0.0'),
        'app': current_app.config.get('APP_NAME', 'LabReserve')
    })


@api_bp.route('/calendar')
def api_calendar():
    """
    Get approved reservations as calendar events.

    Returns:
        JSON: {"success": true, "data": {"events": [...], "count": n}}
    """
    events = [
        {key: getattr(event, key) for key in CALENDAR_FIELDS}
        for event in get_calendar_events(get_repository())
    ]

    return api_success(data={'events': events, 'count': len(events)})


@api_bp.route('/reservation/<int:reservation_id>')
def api_reservation(reservation_id):
    """
    Get one reservation with its items.

    Returns:
        JSON reservation, 404 if missing, 403 if the caller may not see it
    """
    reservation = get_reservation_with_owner(get_repository(), reservation_id)
    if reservation is None:
        return api_error(MESSAGES['reservation_not_found'], status=404)
    if not can_view(current_user, reservation):
        return api_error(MESSAGES['permission_denied'], status=403)

    return api_success(data=reservation.to_dict())


@api_bp.route('/reservation/<int:reservation_id>/cancel', methods=['POST'])
def api_cancel_reservation(reservation_id):
    """
    Cancel a reservation (owner or admin).

    Returns:
        JSON outcome: 200 on success, 403, 404 or 409 for a terminal status
    """
    outcome = cancel_reservation(get_repository(), current_user, reservation_id)
    return api_outcome(outcome)
