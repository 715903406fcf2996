"""
Document Processor - extraction, fan-out analysis and persistence of results.

Upload path:  process(doc_id)   background task, never raises
Re-analysis:  reanalyze(doc_id) request/response, records the error then raises AnalysisFailure

There is no per-document lock: two passes over the same id race and the last
write wins, including the highlight list (and the notes stored on it).
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.crud import document as document_crud
from src.models.database import db as database
from src.models.sqlmodels.document import Document
from src.services.analysis_service import AnalysisClient, analysis_client
from src.services.blob_store import BlobStore, blob_store
from src.services.highlight_normalizer import normalize_highlights
from src.services.text_extractor import TextExtractor, text_extractor
from src.utils.exceptions import AnalysisFailure, DocumentAnalyzerError, NotFound
from src.utils.logger import get_logger, log_error

logger = get_logger(__name__)


@dataclass
class AnalysisResult:
    summary: str
    analysis: Dict[str, Any]
    key_points: List[str]
    highlights: List[Dict[str, str]] = field(default_factory=list)


class ProcessingResultSink(ABC):
    """Where a processing pass reads its input record and writes its outcome."""

    @abstractmethod
    async def load(self, doc_id: str) -> Optional[Document]:
        ...

    @abstractmethod
    async def started(self, doc_id: str) -> None:
        ...

    @abstractmethod
    async def succeeded(
        self, doc_id: str, result: AnalysisResult, content: Optional[str] = None
    ) -> Optional[Document]:
        ...

    @abstractmethod
    async def failed(
        self, doc_id: str, message: str, content: Optional[str] = None
    ) -> Optional[Document]:
        ...


class DatabaseResultSink(ProcessingResultSink):
    """Writes outcomes to the document table, one short session per write"""

    async def load(self, doc_id: str) -> Optional[Document]:
        async with database.get_session_context() as session:
            return await document_crud.get_document(session, doc_id)

    async def started(self, doc_id: str) -> None:
        async with database.get_session_context() as session:
            await document_crud.mark_processing(session, doc_id)

    async def succeeded(
        self, doc_id: str, result: AnalysisResult, content: Optional[str] = None
    ) -> Optional[Document]:
        async with database.get_session_context() as session:
            return await document_crud.mark_ready(
                session,
                doc_id,
                summary=result.summary,
                analysis=result.analysis,
                key_points=result.key_points,
                highlights=result.highlights,
                content=content,
            )

    async def failed(
        self, doc_id: str, message: str, content: Optional[str] = None
    ) -> Optional[Document]:
        async with database.get_session_context() as session:
            return await document_crud.mark_failed(
                session, doc_id, error_message=message, content=content
            )


def _error_message(error: BaseException) -> str:
    if isinstance(error, DocumentAnalyzerError):
        return error.message
    return str(error) or type(error).__name__


class DocumentProcessor:
    def __init__(
        self,
        analysis: AnalysisClient,
        blobs: BlobStore,
        extractor: TextExtractor,
        sink: ProcessingResultSink,
    ):
        self.analysis = analysis
        self.blobs = blobs
        self.extractor = extractor
        self.sink = sink

    async def run_analysis(self, text: str) -> AnalysisResult:
        """All three model calls run concurrently; any failure fails the whole pass."""
        summary, analysis, key_points = await asyncio.gather(
            self.analysis.summarize(text),
            self.analysis.analyze(text),
            self.analysis.extract_key_points(text),
        )
        # A ready record must carry a summary
        if not (summary or "").strip():
            raise AnalysisFailure("Failed to generate summary: empty response")
        return AnalysisResult(
            summary=summary,
            analysis=analysis,
            key_points=key_points,
            highlights=normalize_highlights(analysis),
        )

    async def process(self, doc_id: str) -> None:
        """Fire-and-forget pass started after upload. Errors end up in analysis.error."""
        logger.info("Processing document", doc_id=doc_id)
        try:
            doc = await self.sink.load(doc_id)
            if doc is None:
                logger.error("Document not found", doc_id=doc_id)
                return
            result = await self.run_analysis(doc.content)
            await self.sink.succeeded(doc_id, result)
        except Exception as e:
            log_error(logger, "Document processing failed", e, doc_id=doc_id)
            try:
                await self.sink.failed(doc_id, _error_message(e))
            except Exception as sink_error:
                log_error(
                    logger,
                    "Recording processing failure failed",
                    sink_error,
                    doc_id=doc_id,
                )
            return

        logger.info(
            "Document processed",
            doc_id=doc_id,
            key_points=len(result.key_points),
            highlights=len(result.highlights),
        )

    async def _re_extract(self, doc: Document) -> Optional[str]:
        try:
            blob = await self.blobs.get(doc.r2_key)
            return await asyncio.to_thread(
                self.extractor.extract, blob, doc.content_type, doc.filename
            )
        except DocumentAnalyzerError as e:
            logger.warning(
                "Re-extraction failed, using stored text",
                doc_id=doc.id,
                error=e.message,
            )
            return None

    async def reanalyze(self, doc_id: str) -> Document:
        """Re-extract from the stored blob when possible, re-run analysis, return the record."""
        doc = await self.sink.load(doc_id)
        if doc is None:
            raise NotFound("Document not found")

        refreshed = await self._re_extract(doc)
        content = refreshed if refreshed is not None else doc.content

        await self.sink.started(doc_id)
        try:
            result = await self.run_analysis(content)
        except Exception as e:
            log_error(logger, "Document re-analysis failed", e, doc_id=doc_id)
            message = _error_message(e)
            try:
                await self.sink.failed(doc_id, message, content=refreshed)
            except Exception as sink_error:
                log_error(
                    logger,
                    "Recording re-analysis failure failed",
                    sink_error,
                    doc_id=doc_id,
                )
            if isinstance(e, DocumentAnalyzerError):
                raise
            raise AnalysisFailure(message) from e

        updated = await self.sink.succeeded(doc_id, result, content=refreshed)
        if updated is None:
            raise NotFound("Document not found")
        logger.info("Document re-analyzed", doc_id=doc_id)
        return updated


# Singleton wired to the process-wide collaborators
document_processor = DocumentProcessor(
    analysis=analysis_client,
    blobs=blob_store,
    extractor=text_extractor,
    sink=DatabaseResultSink(),
)
