from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from commission_engine.core.config import DATABASE_URL

# ---------------------
# SQLAlchemy engine / session / Base
# ---------------------
Base = declarative_base()


def make_engine(url: str = DATABASE_URL, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)  # drops dead connections automatically
        kwargs.setdefault("pool_size", 5)
        kwargs.setdefault("max_overflow", 10)

    return create_engine(url, echo=False, future=True, **kwargs)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind,
    )


# created lazily so importing the package never opens a connection pool
_engine = None
_session_factory = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = make_engine()
    return _engine


def SessionLocal():
    global _session_factory
    if _session_factory is None:
        _session_factory = make_session_factory(get_engine())
    return _session_factory()


def init_db(bind: Engine = None) -> None:
    import commission_engine.models  # noqa: F401  ensure models are registered

    Base.metadata.create_all(bind=bind or get_engine())
