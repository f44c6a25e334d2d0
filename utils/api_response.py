"""
JSON response helpers for the /api blueprint.

    Success:  {"success": true, "data": {...}, "message": "..."}
    Warning:  {"success": true, "data": {...}, "warning": "...", "conflicts": [...]}
    Error:    {"success": false, "error": "...", "kind": "..."}

api_outcome is the JSON counterpart of utils.helpers.respond_to_outcome.
"""

from flask import jsonify

from models.entities import OutcomeKind

# HTTP status for each outcome kind; anything unlisted is a 400
OUTCOME_STATUS = {
    OutcomeKind.CREATED: 201,
    OutcomeKind.UPDATED: 200,
    OutcomeKind.CONFLICT_WARNING: 200,
    OutcomeKind.DELETED: 200,
    OutcomeKind.FORBIDDEN: 403,
    OutcomeKind.NOT_FOUND: 404,
    OutcomeKind.INVALID_TRANSITION: 409,
    OutcomeKind.DUPLICATE_USERNAME: 409,
    OutcomeKind.INVALID_CREDENTIALS: 401,
}


def api_success(data: dict = None, message: str = None, status: int = 200) -> tuple:
    """
    Build a success JSON response.

    Args:
        data: Optional dict to include as 'data' key
        message: Optional success message
        status: HTTP status code (default 200)

    Returns:
        Tuple of (Response, status_code)
    """
    response = {'success': True}
    if data is not None:
        response['data'] = data
    if message:
        response['message'] = message
    return jsonify(response), status


def api_error(error: str, status: int = 400, kind: str = None) -> tuple:
    """Build an error JSON response."""
    response = {'success': False, 'error': error}
    if kind:
        response['kind'] = kind
    return jsonify(response), status


def api_outcome(outcome, data: dict = None) -> tuple:
    """
    Map an Outcome to a JSON response.

    Failures carry no detail beyond the outcome message; FORBIDDEN returns
    a bare denial. A conflict warning is a success that also lists the
    clashing reservations.

    Args:
        outcome: models.entities.Outcome
        data: Optional payload for successful outcomes

    Returns:
        Tuple of (Response, status_code)
    """
    status = OUTCOME_STATUS.get(outcome.kind, 400)

    if not outcome.ok:
        return api_error(outcome.message or outcome.kind.value, status=status, kind=outcome.kind.value)

    payload = dict(data or {})
    if outcome.reservation_id is not None:
        payload.setdefault('reservation_id', outcome.reservation_id)

    if not outcome.has_warning:
        return api_success(data=payload, message=outcome.message, status=status)

    return jsonify({
        'success': True,
        'data': payload,
        'warning': outcome.message,
        'conflicts': [c.reservation_id for c in outcome.conflicts],
    }), status
