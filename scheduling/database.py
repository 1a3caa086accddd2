import logging
from datetime import datetime, timezone
from threading import Lock

from sqlalchemy import DateTime, create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.types import TypeDecorator

from scheduling.core import config

logger = logging.getLogger(__name__)


def build_engine(database_url: str, **kwargs) -> Engine:
    if database_url.startswith('sqlite'):
        connect_args = kwargs.pop('connect_args', {})
        connect_args.setdefault('check_same_thread', False)
        connect_args.setdefault('timeout', 30)
        return create_engine(database_url, connect_args=connect_args, **kwargs)
    return create_engine(database_url, pool_pre_ping=True, **kwargs)


engine = build_engine(config.DATABASE_URL, echo=config.DATABASE_ECHO)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_availability_schema_checked = False


class UTCDateTime(TypeDecorator):
    """Timezone-aware instant stored as UTC.

    Naive values are refused on the way in. Backends without a native
    timezone type (SQLite) hand back naive values, which are read as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError('Naive datetimes cannot be stored; attach a timezone.')
        value = value.astimezone(timezone.utc)
        if dialect.name == 'sqlite':
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_availability_schema(bind: Engine | None = None) -> None:
    """Add the storage-level overlap guard for availability slots.

    Every backend gets the unique (specialist_id, start_time) constraint from
    the model. PostgreSQL additionally gets an exclusion constraint so two
    generator runs can never persist intersecting ranges for one specialist.
    SQLite has no equivalent, so concurrent writers with different start
    times can both commit; a warning is logged for that backend.
    """
    global _availability_schema_checked

    if _availability_schema_checked and bind is None:
        return

    bind = bind or engine

    with _schema_lock:
        if bind.dialect.name == 'sqlite':
            logger.warning(
                'SQLite only guards slots by unique start time; concurrent writers can store '
                'overlapping slots. Use PostgreSQL for the range exclusion constraint.'
            )
        if bind.dialect.name != 'postgresql' or 'availability' not in inspect(bind).get_table_names():
            if bind is engine:
                _availability_schema_checked = True
            return

        with bind.begin() as connection:
            existing = connection.execute(
                text("SELECT 1 FROM pg_constraint WHERE conname = 'availability_no_overlap'")
            ).first()
            if existing is None:
                connection.execute(text('CREATE EXTENSION IF NOT EXISTS btree_gist'))
                connection.execute(
                    text(
                        'ALTER TABLE availability ADD CONSTRAINT availability_no_overlap '
                        "EXCLUDE USING gist (specialist_id WITH =, tstzrange(start_time, end_time, '[)') WITH &&)"
                    )
                )

        if bind is engine:
            _availability_schema_checked = True
