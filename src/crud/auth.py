from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import Depends, HTTPException
from jose import JWTError, jwt
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from src.constants.config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ALGORITHM,
    oauth2_scheme,
    pwd_context,
)
from src.constants.env import SECRET_KEY
from src.crud.user import UserCRUD
from src.models.basemodels.user import (
    AccessToken,
    AuthResponse,
    TokenData,
    UserResponse,
)
from src.models.dependency import get_session
from src.models.sqlmodels.user import User
from src.utils.exceptions import Unauthorized

MIN_PASSWORD_LENGTH = 6


class AuthCRUD:
    @staticmethod
    def create_access_token(data: dict, expires_delta: timedelta | None = None):
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(minutes=15)
        to_encode.update({"exp": expire})
        encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
        return encoded_jwt

    @staticmethod
    def token_for(user: User) -> str:
        return AuthCRUD.create_access_token(
            data={"sub": user.id, "email": user.email, "name": user.name},
            expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
        )

    @staticmethod
    def verify_password(plain_password, hashed_password):
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    async def authenticate_user(email: str, password: str, db: AsyncSession):
        user = await UserCRUD.get_by_email(email, db)
        if not user:
            return False
        if not AuthCRUD.verify_password(password, user.hashed_password):
            return False
        return user

    @staticmethod
    async def signup(name: str, email: str, password: str, db: AsyncSession) -> AuthResponse:
        if not name.strip() or not email.strip() or not password:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Name, email, and password are required.",
            )
        if len(password) < MIN_PASSWORD_LENGTH:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
            )
        user = await UserCRUD.create(name, email, password, db)
        return AuthResponse(
            token=AuthCRUD.token_for(user),
            user=UserResponse(id=user.id, name=user.name, email=user.email),
        )

    @staticmethod
    async def signin(email: str, password: str, db: AsyncSession) -> AuthResponse:
        user = await AuthCRUD.authenticate_user(email, password, db)
        if not user:
            raise Unauthorized("Invalid credentials.")
        return AuthResponse(
            token=AuthCRUD.token_for(user),
            user=UserResponse(id=user.id, name=user.name, email=user.email),
        )

    @staticmethod
    async def login(email: str, password: str, db: AsyncSession) -> AccessToken:
        """OAuth2 password-form variant used by the interactive docs"""
        user = await AuthCRUD.authenticate_user(email, password, db)
        if not user:
            raise Unauthorized("Incorrect email or password")
        return AccessToken(access_token=AuthCRUD.token_for(user), token_type="Bearer")

    @staticmethod
    def get_current_user_with_access():
        async def dependency(
            token: Annotated[str, Depends(oauth2_scheme)],
            db: AsyncSession = Depends(get_session),
        ) -> User:
            return await AuthCRUD.get_current_user(
                token=token,
                db=db,
            )

        return dependency

    @staticmethod
    async def get_current_user(token: str, db: AsyncSession) -> User:
        credentials_exception = Unauthorized("Could not validate credentials")
        try:
            payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
            user_id: str = payload.get("sub")
            if user_id is None:
                raise credentials_exception
            token_data = TokenData(user_id=user_id)
        except (JWTError, ValidationError):
            raise credentials_exception
        user = await UserCRUD.get_by_id(token_data.user_id, db)
        if user is None:
            raise credentials_exception
        return user
