"""Database configuration and session management."""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from lims_reports.config import settings
from lims_reports.utils.logger import logger


def make_engine(database_url=None, echo=None):
    """
    Create an engine for ``database_url`` (the configured URL by default).

    SQLite connections may be shared across threads, wait up to
    ``database_busy_timeout`` seconds for a competing writer's lock and
    enforce foreign keys.
    """
    database_url = database_url or settings.database_url
    echo = settings.debug if echo is None else echo

    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    engine = create_engine(
        database_url,
        echo=echo,
        connect_args={"check_same_thread": False, "timeout": settings.database_busy_timeout},
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


# Create engine
engine = make_engine()

# Create session factory
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)

# Create base class for models
Base = declarative_base()


def init_db(bind=None):
    """Create every table of the report engine on ``bind`` (the default engine)."""
    import lims_reports.models  # noqa: F401 register all models with Base.metadata

    bind = bind or engine
    try:
        Base.metadata.create_all(bind=bind)
        logger.info(f"Database tables ready on {bind.url.render_as_string(hide_password=True)}")
    except Exception as e:
        logger.error(f"Error creating database tables: {e}")
        raise
