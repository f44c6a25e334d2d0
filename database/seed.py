"""
Database seed data.
Initial data population for fresh database installations.
"""


def seed_database(repo, config):
    """
    Insert initial seed data: the administrator account.

    Args:
        repo: Repository
        config: App config with ADMIN_USERNAME / ADMIN_PASSWORD
    """
    from models.user import Role, create_account

    username = config.get('ADMIN_USERNAME', 'admin')
    password = config.get('ADMIN_PASSWORD', 'admin123')

    if repo.find_user_by_username(username) is None:
        create_account(repo, username, password, role=Role.ADMIN)
