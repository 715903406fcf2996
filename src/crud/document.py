from typing import Any, Dict, List, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.models.sqlmodels.document import Document, DocumentStatus
from src.utils.exceptions import InvalidIndex, NotFound
from src.utils.timestamps import utc_now


async def create_document(
    db: AsyncSession,
    user_id: str,
    filename: str,
    r2_key: str,
    content_type: str,
    file_size: int,
    content: str,
) -> Document:
    doc = Document(
        user_id=user_id,
        filename=filename,
        r2_key=r2_key,
        content_type=content_type,
        file_size=file_size,
        content=content,
        status=DocumentStatus.PROCESSING,
    )
    db.add(doc)
    await db.commit()
    await db.refresh(doc)
    return doc


async def get_document(db: AsyncSession, doc_id: str) -> Optional[Document]:
    result = await db.execute(select(Document).where(Document.id == doc_id))
    return result.scalar_one_or_none()


async def get_user_document(db: AsyncSession, doc_id: str, user_id: str) -> Document:
    """Owner-scoped lookup; foreign and missing ids are indistinguishable."""
    result = await db.execute(
        select(Document).where(Document.id == doc_id, Document.user_id == user_id)
    )
    doc = result.scalar_one_or_none()
    if doc is None:
        raise NotFound("Document not found")
    return doc


async def list_user_documents(db: AsyncSession, user_id: str) -> List[Document]:
    result = await db.execute(
        select(Document)
        .where(Document.user_id == user_id)
        .order_by(Document.created_at.desc())
    )
    return result.scalars().all()


async def update_document(
    db: AsyncSession,
    doc_id: str,
    **fields: Any,
) -> Optional[Document]:
    """Read-modify-write of one record; concurrent writers are last-write-wins."""
    doc = await get_document(db, doc_id)
    if not doc:
        return None
    for key, value in fields.items():
        setattr(doc, key, value)
    doc.updated_at = utc_now()
    await db.commit()
    await db.refresh(doc)
    return doc


async def mark_processing(db: AsyncSession, doc_id: str) -> Optional[Document]:
    return await update_document(db, doc_id, status=DocumentStatus.PROCESSING)


async def mark_ready(
    db: AsyncSession,
    doc_id: str,
    summary: str,
    analysis: Dict[str, Any],
    key_points: List[str],
    highlights: List[Dict[str, Any]],
    content: Optional[str] = None,
) -> Optional[Document]:
    fields: Dict[str, Any] = dict(
        status=DocumentStatus.READY,
        summary=summary,
        analysis=dict(analysis),
        key_points=list(key_points),
        highlights=[dict(h) for h in highlights],
    )
    if content is not None:
        fields["content"] = content
    return await update_document(db, doc_id, **fields)


async def mark_failed(
    db: AsyncSession,
    doc_id: str,
    error_message: str,
    content: Optional[str] = None,
) -> Optional[Document]:
    # summary is left untouched
    fields: Dict[str, Any] = dict(
        status=DocumentStatus.ERROR,
        analysis={"error": error_message},
    )
    if content is not None:
        fields["content"] = content
    return await update_document(db, doc_id, **fields)


async def set_highlight_note(
    db: AsyncSession,
    doc: Document,
    index: int,
    note: Optional[str],
) -> Document:
    highlights = [dict(h) for h in doc.highlights or []]
    if index < 0 or index >= len(highlights):
        raise InvalidIndex("Invalid highlight index")
    if note is None:
        return doc

    highlights[index]["note"] = note
    # Reassign so the JSON column is flagged dirty
    doc.highlights = highlights
    doc.updated_at = utc_now()
    await db.commit()
    await db.refresh(doc)
    return doc


async def delete_document(db: AsyncSession, doc_id: str) -> bool:
    doc = await get_document(db, doc_id)
    if not doc:
        return False
    await db.delete(doc)
    await db.commit()
    return True
