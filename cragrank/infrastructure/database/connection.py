"""Database engine and session factory.

The SQL record store receives ``dynamic_session_factory`` and uses it as a context
manager; sessions are rolled back on any exception and always closed.
"""
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

log = logging.getLogger("cragrank.database")

_engine = None
_SessionLocal = None


def _masked_host(url: str) -> str:
    if "@" not in url:
        return url.split("://", 1)[0] + "://<local>"
    return url.split("@")[-1].split("?")[0]


def build_engine(url: str):
    """Create an engine. In-memory SQLite shares one connection across threads."""
    if url.startswith("sqlite") and (url.endswith(":memory:") or url in ("sqlite://", "sqlite:///")):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=15,
        pool_recycle=1800,
        pool_pre_ping=True,
    )


def init_engine(url: str) -> None:
    """Initialise the process-wide engine from a SQLAlchemy URL."""
    global _engine, _SessionLocal
    if not url:
        raise RuntimeError("init_engine() needs a database URL.")
    log.info("Initialising database engine -> %s", _masked_host(url))
    _engine = build_engine(url)
    _SessionLocal = sessionmaker(bind=_engine, expire_on_commit=False)


def create_tables(engine=None) -> None:
    """Create all tables (idempotent)."""
    from cragrank.infrastructure.database.models import Base

    Base.metadata.create_all(bind=engine or _engine)


def check_health(engine=None) -> bool:
    """Lightweight connectivity probe."""
    engine = engine or _engine
    if engine is None:
        return False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as exc:
        log.warning("Database health probe failed: %s: %s", type(exc).__name__, exc)
        return False


class DynamicSessionFactory:
    """Callable proxy passed to the SQL store.

    Resolves the session maker at call time so the store can be built
    before init_engine() runs.

    Usage:
        with session_factory() as session:
            ...
    """

    def __init__(self, maker=None):
        self._maker = maker

    def __call__(self):
        return self._managed_session()

    @contextmanager
    def _managed_session(self):
        maker = self._maker or _SessionLocal
        if maker is None:
            raise RuntimeError("Database not initialised. Call init_engine() first.")
        session = maker()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def session_factory_for(engine) -> DynamicSessionFactory:
    """Session factory bound to a specific engine (tests, scripts)."""
    return DynamicSessionFactory(sessionmaker(bind=engine, expire_on_commit=False))


# Singleton bound to the process-wide engine.
dynamic_session_factory = DynamicSessionFactory()
