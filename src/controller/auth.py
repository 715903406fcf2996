from typing import Annotated

from fastapi import APIRouter, Depends, Security, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from src.crud.auth import AuthCRUD
from src.models.basemodels.user import (
    AccessToken,
    AuthResponse,
    MeResponse,
    SigninRequest,
    SignupRequest,
    UserResponse,
)
from src.models.dependency import get_session
from src.models.sqlmodels.user import User


class AuthController:
    tags = ["auth"]
    router = APIRouter(tags=tags)

    @staticmethod
    @router.post("/signup", status_code=status.HTTP_201_CREATED)
    async def signup(
        request: SignupRequest,
        db: AsyncSession = Depends(get_session),
    ) -> AuthResponse:
        return await AuthCRUD.signup(request.name, request.email, request.password, db)

    @staticmethod
    @router.post("/signin", status_code=status.HTTP_200_OK)
    async def signin(
        request: SigninRequest,
        db: AsyncSession = Depends(get_session),
    ) -> AuthResponse:
        return await AuthCRUD.signin(request.email, request.password, db)

    @staticmethod
    @router.post("/login", response_model=AccessToken, status_code=status.HTTP_200_OK)
    async def login_for_access_token(
        form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
        db: AsyncSession = Depends(get_session),
    ):
        return await AuthCRUD.login(form_data.username, form_data.password, db)

    @staticmethod
    @router.get("/me", status_code=status.HTTP_200_OK)
    async def read_user_me(
        current_user: Annotated[
            User,
            Security(
                AuthCRUD.get_current_user_with_access(),
            ),
        ],
    ) -> MeResponse:
        return MeResponse(
            user=UserResponse(
                id=current_user.id,
                name=current_user.name,
                email=current_user.email,
            )
        )
