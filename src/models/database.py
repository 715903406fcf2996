import time
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from src.constants.env import DATABASE_URL
from src.utils.logger import log_error, logger


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 20,
        "max_overflow": 5,
        "pool_pre_ping": True,  # Check connection health
        "pool_recycle": 1800,
        "pool_timeout": 20,
        "pool_reset_on_return": "commit",
        "connect_args": {
            "server_settings": {
                "application_name": "document_analyzer",
                "jit": "off",
                "statement_timeout": "300000",
                "idle_in_transaction_session_timeout": "300000",
            }
        },
    }


class Database:
    _instance = None
    _engine = None
    _session_local = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._engine is None:
            try:
                self._engine = create_async_engine(
                    DATABASE_URL,
                    echo=False,
                    future=True,
                    **_engine_options(DATABASE_URL),
                )

                def before_cursor_execute(
                    conn, cursor, statement, parameters, context, executemany
                ):
                    context._query_start_time = time.perf_counter()

                def after_cursor_execute(
                    conn, cursor, statement, parameters, context, executemany
                ):
                    start = getattr(context, "_query_start_time", None)
                    if start is None:
                        return
                    duration_ms = (time.perf_counter() - start) * 1000.0
                    if duration_ms > 600.0:
                        # Parameters intentionally omitted, they carry document text
                        logger.warning(
                            f"Slow DB query: {duration_ms:.1f} ms | statement: {statement}",
                            component="slow_db_query",
                        )

                event.listen(
                    self._engine.sync_engine,
                    "before_cursor_execute",
                    before_cursor_execute,
                )
                event.listen(
                    self._engine.sync_engine,
                    "after_cursor_execute",
                    after_cursor_execute,
                )
            except Exception as e:
                log_error(
                    logger,
                    "Database engine creation failed",
                    e,
                    component="sqlalchemy_engine",
                )
                raise

            self._session_local = async_sessionmaker(
                self._engine,
                expire_on_commit=False,
                autoflush=False,
                autocommit=False,
            )

    @property
    def engine(self):
        return self._engine

    @property
    def session_local(self):
        return self._session_local

    @asynccontextmanager
    async def get_session_context(self):
        session = self.session_local()
        try:
            yield session
        except Exception:
            try:
                await session.rollback()
            except Exception as rb_e:
                log_error(
                    logger,
                    "Session rollback failed",
                    rb_e,
                    component="sqlalchemy_session_rollback",
                )
            raise
        finally:
            try:
                await session.close()
            except Exception as cl_e:
                log_error(
                    logger,
                    "Session close failed",
                    cl_e,
                    component="sqlalchemy_session_close",
                )

    async def create_tables(self):
        """Create missing tables for every registered SQLModel table"""
        # Register table models on SQLModel.metadata
        from src.models.sqlmodels import document, user  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def close_all_connections(self):
        """Close all database connections - useful for cleanup"""
        if self._engine:
            await self._engine.dispose()


# Create a global instance
db = Database()
