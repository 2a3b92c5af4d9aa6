"""
Database Engine & Session Management
SQLAlchemy engine/session factory built from Settings and injected per request.
"""
import os

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from members_api.config import Settings

Base = declarative_base()


def build_engine(settings: Settings, **kwargs) -> Engine:
    """Create the engine for the configured database."""
    url = settings.database_url
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # Required for SQLite
        path = make_url(url).database
        if path and path != ":memory:" and os.path.dirname(path):
            os.makedirs(os.path.dirname(path), exist_ok=True)
    else:
        kwargs.setdefault("pool_pre_ping", True)

    return create_engine(url, connect_args=connect_args, echo=settings.DEBUG, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    """FastAPI dependency: yields a database session, auto-closes on finish."""
    db: Session = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine):
    """Create all tables. Called once at application startup."""
    from members_api.models import member as _member_model              # noqa: F401
    from members_api.models import payment_request as _request_model    # noqa: F401
    from members_api.models import payment_event as _event_model        # noqa: F401

    Base.metadata.create_all(bind=engine)
