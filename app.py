"""
LabReserve - Room and Equipment Reservation System
Flask application factory and initialization
"""

import os
import click
import logging
from flask import Flask, render_template, g
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import configuration
from config import config

# Import extensions
from extensions import login_manager, csrf

# Import database functions
from database import close_db, init_db, get_repository, PersistenceError, DuplicateUsernameError


def create_app(config_name=None):
    """
    Application factory for Flask app.

    Args:
        config_name: Configuration name ('development', 'production', 'test')

    Returns:
        Flask application instance
    """
    # Determine config
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config[config_name])
    validate_settings(app)

    # Initialize extensions
    initialize_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Register context processors
    register_context_processors(app)

    # Register teardown handlers
    register_teardown_handlers(app)

    # Configure logging
    configure_logging(app)

    return app


def validate_settings(app):
    """Fail at startup on settings that would only break mid-request."""
    from models.reservation_availability import MISSING_BOUNDS_POLICIES

    policy = app.config.get('CONFLICT_MISSING_TIMES')
    if policy not in MISSING_BOUNDS_POLICIES:
        raise ValueError(
            f"CONFLICT_MISSING_TIMES must be one of {', '.join(MISSING_BOUNDS_POLICIES)}, got '{policy}'"
        )


def initialize_extensions(app):
    """Initialize Flask extensions."""
    # Initialize Flask-Login
    login_manager.init_app(app)
    # Initialize CSRF Protection
    csrf.init_app(app)


def register_blueprints(app):
    """Register Flask blueprints."""
    # Import blueprints
    from blueprints.auth.routes import auth_bp
    from blueprints.reservations.routes import reservations_bp
    from blueprints.admin.routes import admin_bp
    from blueprints.api.routes import api_bp

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(reservations_bp)
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(api_bp, url_prefix='/api')


def _rollback_storage():
    """Drop uncommitted work on the request's connection."""
    db = g.get('db')
    if db is not None:
        db.rollback()


def register_error_handlers(app):
    """Register error handlers."""

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors."""
        return render_template('errors/404.html'), 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        # Rollback database on error
        _rollback_storage()
        return render_template('errors/500.html'), 500

    @app.errorhandler(403)
    def forbidden_error(error):
        """Handle 403 errors."""
        return render_template('errors/403.html'), 403

    @app.errorhandler(PersistenceError)
    def persistence_error(error):
        """Storage failures surface as a generic 500."""
        app.logger.error('Persistence failure: %s', error)
        _rollback_storage()
        return render_template('errors/500.html'), 500


def register_cli_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db_command():
        """Initialize database with schema and seed data."""
        click.echo('Initializing database...')
        with app.app_context():
            init_db()
        click.echo('Database initialized successfully!')

    @app.cli.command('create-user')
    @click.argument('username')
    @click.option('--admin', is_flag=True, help='Give the account the admin role')
    @click.password_option()
    def create_user_command(username, admin, password):
        """Create a new user."""
        from models.user import Role, create_account

        role = Role.ADMIN if admin else Role.USER
        with app.app_context():
            try:
                user = create_account(get_repository(), username, password, role)
                click.echo(f'User created successfully! ID: {user.id}')
            except DuplicateUsernameError as e:
                click.echo(f'Error creating user: {e}', err=True)

    @app.cli.command('reset-password')
    @click.argument('username')
    @click.password_option()
    def reset_password_command(username, password):
        """Set a new password for an existing user."""
        from models.user import hash_password

        with app.app_context():
            repo = get_repository()
            user = repo.find_user_by_username(username)
            if user is None:
                click.echo(f'User not found: {username}', err=True)
                return
            repo.update_user_password(user.id, hash_password(password))
            click.echo(f'Password updated for {username}')

    @app.cli.command('import-json')
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    def import_json_command(path):
        """Import users and reservations from a legacy db.json."""
        from database.migrations import import_json_store

        with app.app_context():
            counts = import_json_store(path, get_repository())
        click.echo(
            f"Imported {counts['users']} users, {counts['reservations']} reservations "
            f"({counts['items']} items); skipped {counts['skipped']}"
        )

    @app.cli.command('backfill-owners')
    def backfill_owners_command():
        """Link legacy reservations to users by person name."""
        from database.migrations import backfill_created_by

        with app.app_context():
            changed = backfill_created_by(get_repository())
        click.echo(f'Backfilled {changed} reservations')


def register_context_processors(app):
    """Register template context processors."""

    @app.context_processor
    def utility_processor():
        """Inject utility functions into templates."""
        from utils.permissions import can_administer, can_mutate
        from datetime import datetime

        return {
            'can_administer': can_administer,
            'can_mutate': can_mutate,
            'current_year': datetime.now().year,
            'app_name': app.config.get('APP_NAME', 'LabReserve'),
            'app_version': app.config.get('APP_VERSION', '1.0.0')
        }

    # Add custom template filters
    @app.template_filter('format_date')
    def format_date_filter(date_str, format='%d/%m/%Y'):
        """Format date string."""
        from datetime import datetime
        if not date_str:
            return ''
        try:
            if isinstance(date_str, str):
                date_obj = datetime.strptime(date_str, '%Y-%m-%d')
            else:
                date_obj = date_str
            return date_obj.strftime(format)
        except (TypeError, ValueError):
            return date_str

    # Stored timestamps (created_at)
    from utils.helpers import format_datetime
    app.add_template_filter(format_datetime, 'format_datetime')


def register_teardown_handlers(app):
    """Register teardown handlers."""

    @app.teardown_appcontext
    def teardown_db(error):
        """Close database connection at end of request."""
        close_db(error)


def configure_logging(app):
    """Configure application logging."""
    if not app.debug and not app.testing:
        # Production logging
        if not os.path.exists('logs'):
            os.mkdir('logs')

        file_handler = logging.FileHandler('logs/labreserve.log')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

        # Domain modules log through their own module loggers
        for name in ('models', 'database'):
            logging.getLogger(name).addHandler(file_handler)
            logging.getLogger(name).setLevel(logging.INFO)

        app.logger.setLevel(logging.INFO)
        app.logger.info('LabReserve startup')
    else:
        # Development logging
        app.logger.setLevel(logging.DEBUG)


# Create application instance for development server
if __name__ == '__main__':
    app = create_app()
    # host='0.0.0.0' allows access from other devices on the network
    app.run(host='0.0.0.0', debug=True)
