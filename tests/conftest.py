"""Pytest configuration and shared fixtures."""

import asyncio
import io
import os
import tempfile

# Must be set before anything under src/ reads its environment
_TEST_DIR = tempfile.mkdtemp(prefix="document-analyzer-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["TASK_BROKER"] = "memory"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LLM_API_KEY"] = "test-llm-key"

from typing import Any, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
from docx import Document as DocxDocument  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

from src import app  # noqa: E402
from src.models.database import db  # noqa: E402
from src.services.blob_store import BlobStore  # noqa: E402
from src.services.document_processor import document_processor  # noqa: E402
from src.tasks.taskiq_setup import broker  # noqa: E402
from src.utils.exceptions import AnalysisFailure, BlobStoreError  # noqa: E402


def make_pdf(content_streams: List[bytes]) -> bytes:
    """Build a minimal PDF with one Helvetica page per content stream."""
    page_count = len(content_streams)
    font_id = 3
    first_page_id = 4
    objects: List[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"",  # pages tree, filled below
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    kids = []
    for index, stream in enumerate(content_streams):
        page_id = first_page_id + index * 2
        content_id = page_id + 1
        kids.append(f"{page_id} 0 R")
        objects.append(
            (
                f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 {font_id} 0 R >> >> "
                f"/Contents {content_id} 0 R >>"
            ).encode()
        )
        objects.append(
            f"<< /Length {len(stream)} >>\nstream\n".encode() + stream + b"\nendstream"
        )
    objects[1] = f"<< /Type /Pages /Kids [{' '.join(kids)}] /Count {page_count} >>".encode()

    out = b"%PDF-1.4\n"
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"
    xref_pos = len(out)
    out += f"xref\n0 {len(objects) + 1}\n0000000000 65535 f \n".encode()
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_pos}\n%%EOF\n"
    ).encode()
    return out


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    return make_pdf(
        [
            b"BT /F1 12 Tf 72 720 Td (Hello) Tj (   world) Tj ET\n"
            b"BT /F1 12 Tf 72 690 Td (Second line) Tj ET"
        ]
    )


@pytest.fixture
def image_only_pdf_bytes() -> bytes:
    # A page with no text operators at all
    return make_pdf([b"0 0 1 rg 72 72 200 200 re f"])


@pytest.fixture
def sample_docx_bytes() -> bytes:
    doc = DocxDocument()
    doc.add_paragraph("This Agreement is made between Alpha LLC and Beta Inc.")
    doc.add_paragraph("Payment is due within 30 days.")
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


SAMPLE_ANALYSIS: Dict[str, Any] = {
    "documentType": "contract",
    "parties": ["Alpha LLC", "Beta Inc."],
    "highlightedRiskClauses": [
        {"title": "Unlimited liability", "severity": "high", "snippet": "Hello world"},
        {"snippet": "payment"},
    ],
}


class FakeAnalysisClient:
    """Stands in for the model; optionally blocks until `gate` is set."""

    def __init__(
        self,
        summary: str = "A short summary.",
        analysis: Optional[Dict[str, Any]] = None,
        key_points: Optional[List[str]] = None,
        error: Optional[Exception] = None,
    ):
        self.summary = summary
        self.analysis = analysis if analysis is not None else dict(SAMPLE_ANALYSIS)
        self.key_points = key_points if key_points is not None else ["Point one", "Point two"]
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.texts: List[str] = []

    async def _wait(self, text: str):
        self.texts.append(text)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error

    async def summarize(self, text: str) -> str:
        await self._wait(text)
        return self.summary

    async def analyze(self, text: str) -> Dict[str, Any]:
        await self._wait(text)
        return dict(self.analysis)

    async def extract_key_points(self, text: str) -> List[str]:
        await self._wait(text)
        return list(self.key_points)


class FakeBlobStore(BlobStore):
    def __init__(self):
        super().__init__(bucket="test-bucket")
        self.blobs: Dict[str, bytes] = {}
        self.fail_get = False
        self.fail_delete = False

    async def put(self, key: str, body: bytes, content_type: str) -> None:
        self.blobs[key] = body

    async def get(self, key: str) -> bytes:
        if self.fail_get or key not in self.blobs:
            raise BlobStoreError("Error getting object from S3")
        return self.blobs[key]

    async def delete(self, key: str) -> None:
        if self.fail_delete:
            raise BlobStoreError("Error deleting object from S3")
        self.blobs.pop(key, None)


@pytest.fixture
def fake_analysis(monkeypatch) -> FakeAnalysisClient:
    fake = FakeAnalysisClient()
    monkeypatch.setattr(document_processor, "analysis", fake)
    return fake


@pytest.fixture
def failing_analysis(monkeypatch) -> FakeAnalysisClient:
    fake = FakeAnalysisClient(error=AnalysisFailure("Failed to generate summary: upstream 503"))
    monkeypatch.setattr(document_processor, "analysis", fake)
    return fake


@pytest.fixture
def fake_blobs(monkeypatch) -> FakeBlobStore:
    fake = FakeBlobStore()
    monkeypatch.setattr(document_processor, "blobs", fake)
    monkeypatch.setattr("src.controller.document.blob_store", fake)
    return fake


@pytest.fixture
async def database():
    await db.create_tables()
    yield db
    async with db.engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await db.close_all_connections()


@pytest.fixture
async def client(database, fake_blobs):
    await broker.startup()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    await broker.wait_all()


async def signup(client: AsyncClient, email: str = "ada@example.com") -> Dict[str, str]:
    response = await client.post(
        "/auth/signup",
        json={"name": "Ada", "email": email, "password": "secret123"},
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
async def auth_headers(client) -> Dict[str, str]:
    return await signup(client)
