# downloadsubmissions/utils/db.py
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool
from downloadsubmissions.utils.config import settings

engine_options = {"echo": settings.database_echo}
if settings.database_url.startswith("sqlite"):
    # aiosqlite connections are bound to the event loop that opened them
    engine_options["poolclass"] = NullPool

engine = create_async_engine(settings.database_url, **engine_options)

if settings.database_url.startswith("sqlite"):
    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest inside the transaction.
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

async def get_db() -> AsyncSession:
    """
    Dependency to get a database session.
    Ensures the session is closed after the request.
    """
    async with AsyncSessionLocal() as session:
        yield session
