# onestore/database.py
from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

# ---------------------------------------------------------
# Engine construction
#
# The engine is built once per application (see main.create_app)
# and kept on app.state.engine. Nothing here holds a module-level
# connection, so tests can hand their own engine to the app.
#
# Postgres (Supabase pooler):
#   - sslmode=require   : enforce SSL when running in the cloud
#   - pool_size=1       : keep only 1 connection to the pooler
#   - max_overflow=0    : do not open extra connections beyond the pool
#   - pool_pre_ping=True: validate connections before using them
#
# SQLite (local dev / tests):
#   - in-memory databases share one connection (StaticPool)
#   - foreign keys are switched on per connection so that
#     ON DELETE CASCADE behaves like Postgres
# ---------------------------------------------------------


def _with_sslmode(db_url: str) -> str:
    if "sslmode=" in db_url:
        return db_url
    if "?" in db_url:
        return db_url + "&sslmode=require"
    return db_url + "?sslmode=require"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(db_url: str, ssl_require: bool = False, echo: bool = False) -> Engine:
    """
    Create the SQLAlchemy engine for the given URL.

    Args:
        db_url: SQLAlchemy database URL.
        ssl_require: append sslmode=require (Postgres only).
        echo: log emitted SQL.
    """
    if db_url.startswith("sqlite"):
        engine = create_engine(
            db_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    if ssl_require:
        db_url = _with_sslmode(db_url)

    return create_engine(
        db_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=1,
        max_overflow=0,
    )


def create_db_and_tables(engine: Engine) -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session(request: Request):
    """
    FastAPI dependency that yields a SQLModel Session bound to the
    engine of the running application.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(request.app.state.engine) as session:
        yield session
