from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.constants.config import pwd_context

from src.models.sqlmodels.user import User

from src.utils.logger import logger


def normalize_email(email: str) -> str:
    return str(email).strip().lower()


class UserCRUD:
    @staticmethod
    def get_password_hash(password):
        return pwd_context.hash(password)

    @staticmethod
    async def create(
        name: str,
        email: str,
        password: str,
        db: AsyncSession,
    ) -> User:
        email = normalize_email(email)
        if await UserCRUD.get_by_email(email, db):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email is already registered.",
            )
        try:
            new_user = User(
                name=name.strip(),
                email=email,
                hashed_password=UserCRUD.get_password_hash(password),
            )
            db.add(new_user)
            await db.commit()
            await db.refresh(new_user)
            logger.info("User created", user_id=new_user.id)
            return new_user
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email
            await db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email is already registered.",
            )

    @staticmethod
    async def get_by_id(user_id: str, db: AsyncSession):
        query = select(User).where(User.id == user_id, User.disabled == False)  # noqa
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(email: str, db: AsyncSession):
        result = await db.execute(
            select(User).where(
                (User.email == normalize_email(email)),
                (User.disabled == False),  # noqa
            )
        )
        return result.scalar_one_or_none()
