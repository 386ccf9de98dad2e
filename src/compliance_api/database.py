from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from compliance_api.config import settings

DATABASE_URL = settings.DATABASE_URL

_is_sqlite = DATABASE_URL.startswith("sqlite")
_is_memory = _is_sqlite and (DATABASE_URL in ("sqlite://", "sqlite:///:memory:"))

engine_kwargs = {}
if _is_sqlite:
    engine_kwargs["connect_args"] = {"check_same_thread": False}
if _is_memory:
    # one shared connection, otherwise every session sees an empty database
    engine_kwargs["poolclass"] = StaticPool
if not _is_sqlite:
    engine_kwargs["pool_pre_ping"] = True

engine = create_engine(DATABASE_URL, **engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(session: Session):
    """Commit everything done inside the block, or nothing."""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
