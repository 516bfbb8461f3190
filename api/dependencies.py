"""
FastAPI dependencies for database access and the task store.

The store is built once per application (see api.main.create_app) and kept on
``app.state``; handlers receive it through ``Depends(get_store)``.
"""

from pathlib import Path

from fastapi import HTTPException, Request, status
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .models import Base
from .store import TaskStore


def build_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine and make sure the schema exists."""
    if database_url.startswith("sqlite:///"):
        db_file = database_url[len("sqlite:///"):]
        if db_file and db_file != ":memory:":
            Path(db_file).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        database_url,
        pool_pre_ping=True,
        future=True,
        connect_args={"check_same_thread": False}  # Allow SQLite across threads
    )
    Base.metadata.create_all(engine)
    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def get_store(request: Request) -> TaskStore:
    """Dependency that provides the application's task store."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Task store is not initialized"
        )
    return store
