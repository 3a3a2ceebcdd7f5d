"""Database session management with tenant isolation."""

import datetime
import decimal
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool

from app.infra.config import config


# Create engine with connection pooling
engine = create_engine(
    config.DATABASE_URL,
    poolclass=QueuePool,
    pool_size=10,  # Number of connections to maintain
    max_overflow=20,  # Max connections beyond pool_size
    pool_timeout=30,  # Seconds to wait for connection from pool
    pool_recycle=3600,  # Recycle connections after 1 hour
    pool_pre_ping=True,  # Verify connections before using
    echo=config.DEBUG,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def set_tenant_scope(session: Session, tenant_id: str) -> None:
    """
    Set app.current_tenant_id on the connection for RLS enforcement.

    set_config() is used instead of SET because it accepts bind parameters.
    """
    session.execute(
        text("SELECT set_config('app.current_tenant_id', :tenant_id, false)"),
        {"tenant_id": tenant_id},
    )
    session.commit()


@contextmanager
def get_db_session(tenant_id: Optional[str] = None) -> Generator[Session, None, None]:
    """
    Get a database session with tenant isolation.

    Sets app.current_tenant_id for RLS enforcement.
    Must be called with tenant_id for tenant-scoped operations.
    """
    session = SessionLocal()
    try:
        if tenant_id:
            set_tenant_scope(session, tenant_id)

        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for FastAPI routes.
    Note: the tenant scope is applied by the tenant dependency before queries run.
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def to_json_value(value: Any) -> Any:
    """Convert driver values (UUID, Decimal, dates) to JSON-friendly values."""
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, decimal.Decimal):
        return float(value)
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return value


def row_to_dict(row) -> Dict[str, Any]:
    """Convert a SQLAlchemy result row into a plain dict."""
    return {key: to_json_value(value) for key, value in row._mapping.items()}


def call_rpc(session: Session, function_name: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Call a set-returning database function with named arguments.

    function_name must come from a module-level allow-list, never from user input.
    """
    arguments = ", ".join(f"{name} => :{name}" for name in params)
    result = session.execute(
        text(f"SELECT * FROM {function_name}({arguments})"),
        params,
    )
    return [row_to_dict(row) for row in result.fetchall()]
