import asyncio
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Security, UploadFile
from sqlmodel.ext.asyncio.session import AsyncSession
from starlette import status

from src.constants.config import MAX_UPLOAD_BYTES
from src.crud.auth import AuthCRUD
from src.crud.document import (
    create_document,
    delete_document as delete_document_db,
    get_user_document,
    list_user_documents,
    set_highlight_note,
)
from src.models.basemodels.document import (
    DocumentMessageResponse,
    DocumentResponse,
    HighlightNoteRequest,
    MessageResponse,
    UploadedDocument,
    UploadResponse,
)
from src.models.dependency import get_session
from src.models.sqlmodels.document import DocumentStatus
from src.models.sqlmodels.user import User
from src.services.blob_store import blob_store
from src.services.document_processor import document_processor
from src.services.text_extractor import resolve_format, text_extractor
from src.tasks.document.analysis_task import process_document
from src.utils.exceptions import (
    BlobStoreError,
    MissingFile,
    PayloadTooLarge,
    UnsupportedFormat,
)
from src.utils.logger import logger

CurrentUser = Annotated[User, Security(AuthCRUD.get_current_user_with_access())]


async def _read_limited(file: UploadFile, limit: int = MAX_UPLOAD_BYTES) -> bytes:
    """Read at most limit + 1 bytes so oversize uploads are rejected without buffering them."""
    await file.seek(0)
    content = await file.read(limit + 1)
    if len(content) > limit:
        raise PayloadTooLarge(
            f"File too large. Maximum size is {limit // (1024 * 1024)}MB."
        )
    return content


class DocumentController:
    tags = ["document"]
    router = APIRouter(tags=tags)

    @router.post("/upload", status_code=status.HTTP_201_CREATED)
    async def upload_document(
        current_user: CurrentUser,
        db: AsyncSession = Depends(get_session),
        document: Optional[UploadFile] = File(None),
    ) -> UploadResponse:
        """Validate, extract text, store the blob and queue analysis"""
        if document is None or not document.filename:
            raise MissingFile("No file uploaded. Please select a file.")

        filename = document.filename
        content_type = document.content_type or ""
        if resolve_format(content_type, filename) is None:
            logger.info("Upload rejected", filename=filename, content_type=content_type)
            raise UnsupportedFormat(
                f"Invalid file type: {content_type or 'unknown'}. "
                "Only PDF, DOCX, DOC, TXT and MD files are allowed."
            )

        body = await _read_limited(document)
        logger.info(
            "File received",
            filename=filename,
            content_type=content_type,
            size=len(body),
        )

        # Extraction failures reject the upload before anything is stored
        text = await asyncio.to_thread(text_extractor.extract, body, content_type, filename)

        r2_key = blob_store.build_key(current_user.id, filename)
        await blob_store.put(r2_key, body, content_type)

        doc = await create_document(
            db=db,
            user_id=current_user.id,
            filename=filename,
            r2_key=r2_key,
            content_type=content_type,
            file_size=len(body),
            content=text,
        )

        # Analysis runs detached from this request; clients poll GET /documents/{id}
        await process_document.kiq(doc.id)
        logger.info("Document upload started", doc_id=doc.id, filename=filename)

        return UploadResponse(
            message="Document uploaded successfully",
            document=UploadedDocument(
                id=doc.id,
                filename=doc.filename,
                uploaded_at=doc.created_at,
                status=DocumentStatus.PROCESSING,
            ),
        )

    @router.get("")
    async def list_documents(
        current_user: CurrentUser,
        db: AsyncSession = Depends(get_session),
    ) -> List[DocumentResponse]:
        """Caller's documents, newest first"""
        docs = await list_user_documents(db, current_user.id)
        return [DocumentResponse.from_document(d) for d in docs]

    @router.get("/{doc_id}")
    async def get_document(
        doc_id: str,
        current_user: CurrentUser,
        db: AsyncSession = Depends(get_session),
    ) -> DocumentResponse:
        doc = await get_user_document(db, doc_id, current_user.id)
        return DocumentResponse.from_document(doc)

    @router.post("/{doc_id}/analyze")
    async def reanalyze_document(
        doc_id: str,
        current_user: CurrentUser,
        db: AsyncSession = Depends(get_session),
    ) -> DocumentMessageResponse:
        """Synchronous re-analysis; failures are recorded on the document and returned"""
        doc = await get_user_document(db, doc_id, current_user.id)
        updated = await document_processor.reanalyze(doc.id)
        return DocumentMessageResponse(
            message="Document analyzed successfully",
            document=DocumentResponse.from_document(updated),
        )

    @router.patch("/{doc_id}/highlights/{index}")
    async def annotate_highlight(
        doc_id: str,
        index: int,
        request: HighlightNoteRequest,
        current_user: CurrentUser,
        db: AsyncSession = Depends(get_session),
    ) -> DocumentMessageResponse:
        doc = await get_user_document(db, doc_id, current_user.id)
        doc = await set_highlight_note(db, doc, index, request.note)
        return DocumentMessageResponse(
            message="Highlight note updated",
            document=DocumentResponse.from_document(doc),
        )

    @router.delete("/{doc_id}")
    async def delete_document(
        doc_id: str,
        current_user: CurrentUser,
        db: AsyncSession = Depends(get_session),
    ) -> MessageResponse:
        """Delete the record; blob removal is best-effort"""
        doc = await get_user_document(db, doc_id, current_user.id)

        try:
            await blob_store.delete(doc.r2_key)
        except BlobStoreError:
            logger.warning("R2 delete failed, continuing", doc_id=doc_id)

        await delete_document_db(db, doc_id)
        return MessageResponse(message="Document deleted successfully")
