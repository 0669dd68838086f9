"""Database configuration and initialization."""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# Create SQLAlchemy base
Base = declarative_base()

# Global session and engine
engine = None
db_session = None


def _build_engine(app):
    """Create the engine, special-casing in-memory SQLite used by tests."""
    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    echo = app.config.get('SQLALCHEMY_ECHO', False)

    if database_uri.startswith('sqlite'):
        # One shared connection so every session sees the same in-memory database
        sqlite_engine = create_engine(
            database_uri,
            echo=echo,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
        )

        @event.listens_for(sqlite_engine, 'connect')
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute('PRAGMA foreign_keys=ON')
            cursor.close()

        return sqlite_engine

    return create_engine(
        database_uri,
        echo=echo,
        **app.config.get('SQLALCHEMY_ENGINE_OPTIONS', {})
    )


def init_db(app):
    """Initialize database connection."""
    global engine, db_session

    engine = _build_engine(app)

    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
    )

    Base.query = db_session.query_property()

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()


def create_all():
    """Create every table known to the models package."""
    import bizdesk.models  # noqa: F401  (registers mappers)
    Base.metadata.create_all(bind=engine)


def drop_all():
    """Drop every table (tests and `reset` tooling)."""
    import bizdesk.models  # noqa: F401
    Base.metadata.drop_all(bind=engine)


def get_session():
    """Get database session."""
    return db_session
