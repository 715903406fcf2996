from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional
from datetime import datetime

from src.models.sqlmodels.document import Document


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Highlight(CamelModel):
    title: str
    severity: str
    snippet: str = ""
    note: str = ""


class DocumentResponse(CamelModel):
    id: str
    filename: str
    file_type: str
    file_size: int
    content: str
    summary: str
    analysis: Dict[str, Any]
    key_points: List[str]
    highlights: List[Highlight]
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Document) -> "DocumentResponse":
        return cls(
            id=doc.id,
            filename=doc.filename,
            file_type=doc.content_type,
            file_size=doc.file_size,
            content=doc.content or "",
            summary=doc.summary or "",
            analysis=doc.analysis or {},
            key_points=doc.key_points or [],
            highlights=[Highlight(**h) for h in doc.highlights or []],
            status=doc.status,
            created_at=doc.created_at,
            updated_at=doc.updated_at,
        )


class UploadedDocument(CamelModel):
    id: str
    filename: str
    uploaded_at: datetime
    status: str


class UploadResponse(CamelModel):
    message: str
    document: UploadedDocument


class DocumentMessageResponse(CamelModel):
    message: str
    document: DocumentResponse


class MessageResponse(BaseModel):
    message: str


class HighlightNoteRequest(BaseModel):
    note: Optional[str] = None
