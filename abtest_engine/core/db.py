from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from abtest_engine.models.orm.base import Base


def build_engine(database_url: str) -> Engine:
    """
    Creates the SQLAlchemy engine backing the primary assignment store.

    In-memory SQLite gets a single shared connection so every session sees
    the same tables.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)

    return create_engine(database_url)


def build_session_factory(engine: Engine) -> sessionmaker:
    # One session per request, a unit of work.
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    # Import registers the table on Base.metadata.
    from abtest_engine.models.orm import storage  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db(request: Request):
    """
    Dependency that yields a database session for a single request,
    and ensures the session is closed afterward.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
