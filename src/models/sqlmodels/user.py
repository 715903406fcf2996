from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from src.utils.timestamps import utc_now


class UserBase(SQLModel):
    name: str = Field(min_length=1, max_length=120)
    email: str = Field(max_length=254, unique=True, index=True)


class User(UserBase, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    disabled: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: Optional[datetime] = Field(
        default=None,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs=dict(onupdate=utc_now),
    )
    hashed_password: str = Field(..., exclude=True)
