from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from src.models.database import db


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI session dependency.

    - Session rolls back on exceptions
    - Session is closed when the request finishes
    - CRUD functions commit their own writes
    """
    async with db.get_session_context() as session:
        yield session
