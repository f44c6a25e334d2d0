"""
Database schema definitions.
Table creation, indexes, and structure management.
"""


def drop_tables(db):
    """Drop all existing tables."""
    # Disable foreign key constraints before dropping
    db.execute('PRAGMA foreign_keys = OFF')

    tables = [
        'reservation_items',
        'reservations',
        'users'
    ]

    for table in tables:
        db.execute(f'DROP TABLE IF EXISTS {table}')

    # Re-enable foreign key constraints
    db.execute('PRAGMA foreign_keys = ON')


def create_tables(db):
    """Create all database tables."""

    # 1. Users
    db.execute('''
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            password TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'user'
        )
    ''')

    # 2. Reservations
    db.execute('''
        CREATE TABLE IF NOT EXISTS reservations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            venue TEXT NOT NULL,
            date TEXT NOT NULL,
            time_from TEXT,
            time_to TEXT,
            purpose TEXT,
            equipment TEXT,
            person_name TEXT,
            person_signature TEXT,
            created_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
            status TEXT NOT NULL DEFAULT 'pending',
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 3. Reservation line items
    db.execute('''
        CREATE TABLE IF NOT EXISTS reservation_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            reservation_id INTEGER NOT NULL REFERENCES reservations(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            quantity INTEGER NOT NULL DEFAULT 1 CHECK (quantity >= 1)
        )
    ''')


def create_indexes(db):
    """Create performance indexes."""

    # Conflict lookups: approved reservations by venue and date
    db.execute('CREATE INDEX IF NOT EXISTS idx_reservations_venue_date ON reservations(venue, date, status)')
    db.execute('CREATE INDEX IF NOT EXISTS idx_reservations_owner ON reservations(created_by)')
    db.execute('CREATE INDEX IF NOT EXISTS idx_reservations_status ON reservations(status, date)')

    # Item lookups
    db.execute('CREATE INDEX IF NOT EXISTS idx_reservation_items_reservation ON reservation_items(reservation_id)')
