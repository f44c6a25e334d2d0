"""
Centralized UI messages.
All user-facing text in one place for consistency.
"""

MESSAGES = {
    # Success messages
    'login_success': 'Welcome {name}',
    'logout_success': 'You have been logged out',
    'signup_success': 'Account created, welcome {name}',
    'reservation_created': 'Reservation submitted and awaiting approval',
    'reservation_approved': 'Reservation #{id} approved',
    'reservation_declined': 'Reservation #{id} declined',
    'reservation_cancelled': 'Reservation cancelled',
    'reservation_deleted': 'Reservation deleted',
    'password_updated': 'Password updated',

    # Warnings
    'conflict_warning': 'Reservation #{id} overlaps approved reservation(s) at {venue} on {date}: {conflicts}',

    # Error messages
    'invalid_credentials': 'Invalid credentials',
    'permission_denied': 'You are not allowed to perform this action',
    'missing_fields': 'Missing fields',
    'venue_required': 'Venue is required',
    'date_required': 'Date is required',
    'invalid_date': 'Date must be in YYYY-MM-DD format',
    'invalid_time': 'Times must be in HH:MM format',
    'invalid_time_range': 'End time must be after start time',
    'equipment_required': 'Add at least one equipment item',
    'equipment_name_separator': 'Equipment names cannot contain commas',
    'invalid_decision': 'Decision must be approved or declined',
    'reservation_not_found': 'Reservation not found',
    'user_not_found': 'User not found',
    'username_exists': 'User exists',
    'password_too_short': 'Password too short',
    'operation_failed': 'Operation failed, please try again',
    'login_required': 'Please log in to access this page',
}


def get_message(key: str, **kwargs) -> str:
    """
    Get message with optional formatting.

    Args:
        key: Message key
        **kwargs: Format parameters

    Returns:
        Formatted message or key if not found
    """
    message = MESSAGES.get(key, key)
    if kwargs:
        return message.format(**kwargs)
    return message
