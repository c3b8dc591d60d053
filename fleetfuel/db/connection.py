# ============================================================
# Core DB connection
# ============================================================
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fleetfuel.config import get_settings
from fleetfuel.core.errors import StoreError

from .models import Base


def create_db_engine(url: str, *, timeout: float = 5.0) -> Engine:
    """Build an engine; SQLite gets foreign keys and a lock-wait timeout."""
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True, pool_timeout=timeout)

    kwargs = {"connect_args": {"check_same_thread": False, "timeout": timeout}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # A single shared connection, otherwise each session sees an empty database.
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    return engine


def init_db(engine: Engine, *, seed_vehicle_types: bool = True) -> None:
    """Create tables and, when empty, the default vehicle types."""
    Base.metadata.create_all(bind=engine)
    if seed_vehicle_types:
        from fleetfuel.domain.fleet.seed import seed_default_vehicle_types

        factory = sessionmaker(bind=engine, autoflush=False)
        with factory() as db:
            seed_default_vehicle_types(db)


@lru_cache
def get_session_factory() -> sessionmaker:
    settings = get_settings()
    engine = create_db_engine(settings.database_url, timeout=settings.db_timeout_seconds)
    init_db(engine, seed_vehicle_types=settings.seed_vehicle_types)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """Dependency to provide DB session."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit everything done inside the block, or nothing.

    Integrity errors are re-raised untouched so callers can map them onto
    domain errors; any other SQLAlchemy failure becomes a StoreError.
    """
    try:
        yield db
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError(f"Request store failure: {exc.__class__.__name__}") from exc
    except Exception:
        db.rollback()
        raise
