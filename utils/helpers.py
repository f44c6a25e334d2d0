"""
Miscellaneous utility helper functions.
Turns core operation outcomes into HTTP responses for the route layer.
"""

from datetime import datetime

from flask import abort, flash, redirect

from models.entities import OutcomeKind


def respond_to_outcome(outcome, redirect_to: str):
    """
    Map an Outcome to a response.

    FORBIDDEN aborts with 403 and NOT_FOUND with 404, neither flashing
    anything. Everything else flashes the outcome message and redirects:
    conflicts as a warning, other failures as an error.

    Args:
        outcome: models.entities.Outcome
        redirect_to: URL to redirect to

    Returns:
        Redirect response
    """
    if outcome.kind == OutcomeKind.FORBIDDEN:
        abort(403)
    if outcome.kind == OutcomeKind.NOT_FOUND:
        abort(404)

    if outcome.has_warning:
        flash(outcome.message, 'warning')
    elif outcome.ok:
        if outcome.message:
            flash(outcome.message, 'success')
    else:
        flash(outcome.message, 'error')

    return redirect(redirect_to)


def format_datetime(datetime_str: str, format_str: str = '%d/%m/%Y %H:%M') -> str:
    """
    Format a stored timestamp for display.

    Args:
        datetime_str: Datetime string
        format_str: Output format (default: DD/MM/YYYY HH:MM)

    Returns:
        Formatted datetime string or original if invalid
    """
    if not datetime_str:
        return ''

    for input_format in ['%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M:%S.%f', '%Y-%m-%dT%H:%M:%S']:
        try:
            return datetime.strptime(datetime_str, input_format).strftime(format_str)
        except (ValueError, TypeError):
            continue

    return datetime_str
