"""
Text Extractor - turns an uploaded blob into plain text.
PDF via pypdf (text layer, line layout rebuilt from run coordinates),
DOCX via python-docx, TXT/MD decoded as UTF-8.
"""

import io
import os
import re
from typing import Optional

from docx import Document as DocxDocument
from pypdf import PdfReader

from src.constants.config import CONTENT_TYPE_FORMATS, EXTENSION_FORMATS
from src.utils.exceptions import (
    DocumentAnalyzerError,
    EmptyContent,
    ParseFailure,
    UnsupportedFormat,
)
from src.utils.logger import get_logger

logger = get_logger(__name__)

_MULTI_SPACE = re.compile(r" {2,}")


def resolve_format(content_type: Optional[str], filename: Optional[str]) -> Optional[str]:
    """Media type first, file extension as fallback. None when neither is known."""
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type in CONTENT_TYPE_FORMATS:
        return CONTENT_TYPE_FORMATS[media_type]

    extension = os.path.splitext((filename or "").lower())[1]
    return EXTENSION_FORMATS.get(extension)


def _pdf_page_text(page) -> str:
    lines: list[list[str]] = []
    last_y: Optional[float] = None

    def visitor(text, cm, tm, font_dict, font_size):
        nonlocal last_y
        run = text.replace("\n", " ").strip() if text else ""
        if not run:
            return
        # Baseline of the run in page space (text matrix applied to the CTM)
        y = round(cm[1] * tm[4] + cm[3] * tm[5] + cm[5], 2)
        if last_y is None or y != last_y:
            lines.append([])
            last_y = y
        lines[-1].append(run)

    page.extract_text(visitor_text=visitor)
    return "\n".join(_MULTI_SPACE.sub(" ", " ".join(runs)) for runs in lines)


def extract_pdf(blob: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(blob))
        pages = [_pdf_page_text(page) for page in reader.pages]
    except Exception as e:
        raise ParseFailure(f"Failed to parse PDF: {e}") from e

    text = "\n\n".join(pages).strip()
    if not text:
        raise EmptyContent(
            "PDF appears to be empty or contains only images. "
            "Please ensure the PDF contains selectable text."
        )
    return text


def extract_docx(blob: bytes) -> str:
    try:
        doc = DocxDocument(io.BytesIO(blob))
        parts = [para.text for para in doc.paragraphs]
        for table in doc.tables:
            for row in table.rows:
                parts.append("\t".join(cell.text for cell in row.cells))
    except Exception as e:
        raise ParseFailure(f"Failed to parse DOCX: {e}") from e

    text = "\n".join(parts).strip()
    if not text:
        raise EmptyContent("DOCX file appears to be empty or contains no extractable text.")
    return text


def extract_doc(blob: bytes) -> str:
    try:
        return extract_docx(blob)
    except ParseFailure as e:
        raise UnsupportedFormat(
            "Old .doc format detected. Please convert to .docx format or use PDF."
        ) from e


def extract_plain_text(blob: bytes) -> str:
    text = blob.decode("utf-8", errors="replace")
    if not text.strip():
        raise EmptyContent("Text file appears to be empty.")
    return text


class TextExtractor:
    """Pure blob -> text transform dispatched on media type / extension"""

    _handlers = {
        "pdf": extract_pdf,
        "docx": extract_docx,
        "doc": extract_doc,
        "text": extract_plain_text,
    }

    def extract(self, blob: bytes, content_type: Optional[str], filename: str = "") -> str:
        fmt = resolve_format(content_type, filename)
        if fmt is None:
            raise UnsupportedFormat(
                f"Unsupported file type: {content_type or 'unknown'}. "
                "Supported types: PDF, DOCX, DOC, TXT, MD"
            )
        if not blob:
            raise EmptyContent("File is empty")

        logger.info(
            "Extracting text",
            filename=filename,
            content_type=content_type,
            format=fmt,
            size=len(blob),
        )
        try:
            text = self._handlers[fmt](blob)
        except DocumentAnalyzerError as e:
            logger.warning("Text extraction failed", filename=filename, error=e.message)
            raise

        logger.info("Text extracted", filename=filename, chars=len(text))
        return text


# Singleton
text_extractor = TextExtractor()
