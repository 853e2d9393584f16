"""
Session factory and the per-request get_db dependency.
"""

from collections.abc import Generator

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from buysoft.db.engine import get_engine

_session_factory: sessionmaker[Session] | None = None
_factory_engine: Engine | None = None


def get_session_factory() -> sessionmaker[Session]:
    """Factory bound to the current engine; rebuilt after dispose_engine()."""
    global _session_factory, _factory_engine

    engine = get_engine()
    if _session_factory is None or _factory_engine is not engine:
        _factory_engine = engine
        # Route handlers read attributes after commit, so keep them loaded.
        _session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return _session_factory


def reset_session_factory() -> None:
    global _session_factory, _factory_engine
    _session_factory = None
    _factory_engine = None


def get_db() -> Generator[Session, None, None]:
    """Yield one session per request and close it afterwards."""
    with get_session_factory()() as session:
        yield session
