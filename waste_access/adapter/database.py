"""
Engine construction.

SQLite's Python driver opens transactions lazily and would let a SAVEPOINT
start (and RELEASE end) the outer transaction. For SQLite the driver's own
transaction handling is switched off and SQLAlchemy emits BEGIN itself, so
audit savepoints nest inside the action's transaction.

timeout_seconds bounds how long a store call waits on the database: the
SQLite busy timeout, or the pool checkout plus asyncpg connect and command
timeouts elsewhere.
"""

from typing import Any, Dict, Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine


def _timeout_options(db_uri: str, timeout_seconds: Optional[float]) -> Dict[str, Any]:
    if timeout_seconds is None:
        return {}
    url = make_url(db_uri)
    if url.get_backend_name() == "sqlite":
        return {"connect_args": {"timeout": timeout_seconds}}
    options: Dict[str, Any] = {"pool_timeout": timeout_seconds}
    if url.get_driver_name() == "asyncpg":
        options["connect_args"] = {"timeout": timeout_seconds, "command_timeout": timeout_seconds}
    return options


def create_engine(
    db_uri: str, timeout_seconds: Optional[float] = None, echo: bool = False
) -> AsyncEngine:
    engine = create_async_engine(
        db_uri, echo=echo, future=True, **_timeout_options(db_uri, timeout_seconds)
    )
    if engine.dialect.name == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def _disable_driver_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def _emit_begin(conn):
            conn.exec_driver_sql("BEGIN")

    return engine
