from sqlalchemy import JSON, Column, DateTime, Text
from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid

from src.utils.timestamps import utc_now


class DocumentStatus:
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


class Document(SQLModel, table=True):
    __tablename__ = "document"

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()), primary_key=True, index=True
    )
    user_id: str = Field(foreign_key="user.id", index=True)
    filename: str = Field(...)
    r2_key: str = Field(...)
    content_type: str = Field(default="application/octet-stream")
    file_size: int = Field(default=0)

    content: str = Field(default="", sa_column=Column(Text, nullable=False))
    summary: str = Field(default="", sa_column=Column(Text, nullable=False))
    analysis: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    key_points: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    highlights: List[Dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSON)
    )

    status: str = Field(default=DocumentStatus.PROCESSING)  # processing, ready, error

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: Optional[datetime] = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs=dict(onupdate=utc_now),
    )
