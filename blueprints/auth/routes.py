"""
Authentication routes: login, signup, logout.
Handles user authentication and account registration.
"""

from flask import render_template, redirect, url_for, flash, request, Blueprint, current_app
from flask_login import login_user, logout_user, login_required, current_user
from urllib.parse import urlparse

from blueprints.auth.forms import LoginForm, SignupForm
from database import get_repository
from models.entities import OutcomeKind
from models.user import authenticate, signup as signup_user
from utils.messages import MESSAGES

auth_bp = Blueprint('auth', __name__)


def _safe_next_page():
    """Return the ?next= target if it stays on this site, else the dashboard."""
    next_page = request.args.get('next')
    if not next_page or urlparse(next_page).netloc != '':
        next_page = url_for('reservations.index')
    return next_page


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    """
    Login route with form handling.

    GET: Display login form
    POST: Process login credentials
    """
    # Redirect if already logged in
    if current_user.is_authenticated:
        return redirect(url_for('reservations.index'))

    form = LoginForm()
    error = None

    if form.validate_on_submit():
        outcome = authenticate(get_repository(), form.username.data, form.password.data)

        if outcome.kind == OutcomeKind.INVALID_CREDENTIALS:
            error = MESSAGES['invalid_credentials']
            current_app.logger.info('Failed login for %s', form.username.data)
            return render_template('login.html', form=form, error=error)

        # Log user in
        login_user(outcome.user, remember=form.remember_me.data)

        flash(MESSAGES['login_success'].format(name=outcome.user.username), 'success')
        return redirect(_safe_next_page())

    return render_template('login.html', form=form, error=error)


@auth_bp.route('/signup', methods=['GET', 'POST'])
def signup():
    """
    Signup route.

    GET: Display signup form
    POST: Create the account and log it in
    """
    if current_user.is_authenticated:
        return redirect(url_for('reservations.index'))

    form = SignupForm()
    error = None

    if form.validate_on_submit():
        outcome = signup_user(
            get_repository(),
            form.username.data,
            form.password.data,
            min_length=current_app.config.get('MIN_PASSWORD_LENGTH', 6)
        )

        if not outcome.ok:
            return render_template('signup.html', form=form, error=outcome.message)

        login_user(outcome.user)
        flash(MESSAGES['signup_success'].format(name=outcome.user.username), 'success')
        return redirect(url_for('reservations.index'))

    if request.method == 'POST' and form.errors:
        error = MESSAGES['missing_fields']
        for messages in form.errors.values():
            error = messages[0]
            break

    return render_template('signup.html', form=form, error=error)


@auth_bp.route('/logout')
@login_required
def logout():
    """Logout current user."""
    logout_user()
    flash(MESSAGES['logout_success'], 'success')
    return redirect(url_for('reservations.index'))
