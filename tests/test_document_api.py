import asyncio

from conftest import signup
from src.tasks.taskiq_setup import broker

TXT = "text/plain"


async def upload(client, headers, body=b"Hello world", filename="hello.txt", content_type=TXT):
    return await client.post(
        "/documents/upload",
        headers=headers,
        files={"document": (filename, body, content_type)},
    )


async def test_upload_then_poll_until_ready(client, auth_headers, fake_analysis, fake_blobs):
    fake_analysis.gate = asyncio.Event()

    response = await upload(client, auth_headers)
    assert response.status_code == 201, response.text
    uploaded = response.json()
    assert uploaded["message"] == "Document uploaded successfully"
    assert uploaded["document"]["status"] == "processing"
    assert uploaded["document"]["filename"] == "hello.txt"
    doc_id = uploaded["document"]["id"]

    pending = (await client.get(f"/documents/{doc_id}", headers=auth_headers)).json()
    assert pending["status"] == "processing"
    assert pending["content"] == "Hello world"
    assert pending["summary"] == ""
    assert pending["fileType"] == TXT
    assert pending["fileSize"] == len(b"Hello world")

    fake_analysis.gate.set()
    await broker.wait_all()

    ready = (await client.get(f"/documents/{doc_id}", headers=auth_headers)).json()
    assert ready["status"] == "ready"
    assert ready["summary"] == "A short summary."
    assert ready["keyPoints"] == ["Point one", "Point two"]
    assert ready["highlights"][0] == {
        "title": "Unlimited liability",
        "severity": "high",
        "snippet": "Hello world",
        "note": "",
    }
    assert len(fake_blobs.blobs) == 1


async def test_background_failure_is_recorded(client, auth_headers, failing_analysis):
    doc_id = (await upload(client, auth_headers)).json()["document"]["id"]
    await broker.wait_all()

    doc = (await client.get(f"/documents/{doc_id}", headers=auth_headers)).json()
    assert doc["status"] == "error"
    assert doc["analysis"] == {"error": "Failed to generate summary: upstream 503"}
    assert doc["summary"] == ""


async def test_upload_without_file(client, auth_headers):
    response = await client.post("/documents/upload", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "No file uploaded. Please select a file."


async def test_upload_too_large(client, auth_headers, fake_blobs):
    response = await upload(client, auth_headers, body=b"a" * (15 * 1024 * 1024))
    assert response.status_code == 400
    assert "too large" in response.json()["detail"]
    assert fake_blobs.blobs == {}

    listing = await client.get("/documents", headers=auth_headers)
    assert listing.json() == []


async def test_upload_unsupported_type_stores_nothing(client, auth_headers, fake_blobs):
    response = await upload(
        client,
        auth_headers,
        body=b"\x00\x01",
        filename="data.xyz",
        content_type="application/octet-stream",
    )
    assert response.status_code == 400
    assert fake_blobs.blobs == {}

    listing = await client.get("/documents", headers=auth_headers)
    assert listing.json() == []


async def test_upload_empty_text_is_rejected(client, auth_headers, fake_blobs):
    response = await upload(client, auth_headers, body=b"   \n")
    assert response.status_code == 400
    assert fake_blobs.blobs == {}


async def test_upload_pdf(client, auth_headers, fake_analysis, sample_pdf_bytes):
    response = await upload(
        client,
        auth_headers,
        body=sample_pdf_bytes,
        filename="contract.pdf",
        content_type="application/pdf",
    )
    assert response.status_code == 201, response.text
    await broker.wait_all()

    doc_id = response.json()["document"]["id"]
    doc = (await client.get(f"/documents/{doc_id}", headers=auth_headers)).json()
    assert "Hello world" in doc["content"]
    assert doc["status"] == "ready"


async def test_list_is_newest_first_and_scoped(client, auth_headers, fake_analysis):
    first = (await upload(client, auth_headers, filename="first.txt")).json()["document"]["id"]
    second = (await upload(client, auth_headers, filename="second.txt")).json()["document"]["id"]
    await broker.wait_all()

    other_headers = await signup(client, email="grace@example.com")
    await upload(client, other_headers, filename="theirs.txt")
    await broker.wait_all()

    listing = (await client.get("/documents", headers=auth_headers)).json()
    assert [d["id"] for d in listing] == [second, first]


async def test_foreign_document_is_not_found(client, auth_headers, fake_analysis):
    doc_id = (await upload(client, auth_headers)).json()["document"]["id"]
    await broker.wait_all()

    other_headers = await signup(client, email="grace@example.com")
    for method, path in [
        ("GET", f"/documents/{doc_id}"),
        ("POST", f"/documents/{doc_id}/analyze"),
        ("DELETE", f"/documents/{doc_id}"),
    ]:
        response = await client.request(method, path, headers=other_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Document not found"


async def test_requires_authentication(client):
    response = await client.get("/documents")
    assert response.status_code == 401

    response = await client.get("/documents", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Could not validate credentials"


async def test_annotate_highlight(client, auth_headers, fake_analysis):
    doc_id = (await upload(client, auth_headers)).json()["document"]["id"]
    await broker.wait_all()

    response = await client.patch(
        f"/documents/{doc_id}/highlights/0",
        headers=auth_headers,
        json={"note": "Negotiate a cap"},
    )
    assert response.status_code == 200, response.text
    assert response.json()["message"] == "Highlight note updated"

    doc = (await client.get(f"/documents/{doc_id}", headers=auth_headers)).json()
    assert doc["highlights"][0]["note"] == "Negotiate a cap"
    assert doc["highlights"][1]["note"] == ""

    # No note in the body leaves the highlight alone
    response = await client.patch(
        f"/documents/{doc_id}/highlights/0", headers=auth_headers, json={}
    )
    assert response.status_code == 200
    assert response.json()["document"]["highlights"][0]["note"] == "Negotiate a cap"


async def test_annotate_out_of_range(client, auth_headers, fake_analysis):
    doc_id = (await upload(client, auth_headers)).json()["document"]["id"]
    await broker.wait_all()

    for index in (99, -1):
        response = await client.patch(
            f"/documents/{doc_id}/highlights/{index}",
            headers=auth_headers,
            json={"note": "x"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid highlight index"


async def test_reanalyze(client, auth_headers, fake_analysis):
    doc_id = (await upload(client, auth_headers)).json()["document"]["id"]
    await broker.wait_all()

    fake_analysis.summary = "Updated summary."
    response = await client.post(f"/documents/{doc_id}/analyze", headers=auth_headers)
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["message"] == "Document analyzed successfully"
    assert body["document"]["summary"] == "Updated summary."
    assert body["document"]["status"] == "ready"


async def test_reanalyze_failure_is_returned_and_recorded(client, auth_headers, fake_analysis):
    doc_id = (await upload(client, auth_headers)).json()["document"]["id"]
    await broker.wait_all()

    fake_analysis.error = ValueError("model said no")
    response = await client.post(f"/documents/{doc_id}/analyze", headers=auth_headers)
    assert response.status_code == 500
    assert response.json() == {"detail": "model said no"}

    doc = (await client.get(f"/documents/{doc_id}", headers=auth_headers)).json()
    assert doc["status"] == "error"
    assert doc["analysis"] == {"error": "model said no"}
    assert doc["summary"] == "A short summary."


async def test_delete(client, auth_headers, fake_analysis, fake_blobs):
    doc_id = (await upload(client, auth_headers)).json()["document"]["id"]
    await broker.wait_all()

    response = await client.delete(f"/documents/{doc_id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Document deleted successfully"}
    assert fake_blobs.blobs == {}

    response = await client.get(f"/documents/{doc_id}", headers=auth_headers)
    assert response.status_code == 404


async def test_delete_survives_blob_store_failure(client, auth_headers, fake_analysis, fake_blobs):
    doc_id = (await upload(client, auth_headers)).json()["document"]["id"]
    await broker.wait_all()
    fake_blobs.fail_delete = True

    response = await client.delete(f"/documents/{doc_id}", headers=auth_headers)
    assert response.status_code == 200

    response = await client.get(f"/documents/{doc_id}", headers=auth_headers)
    assert response.status_code == 404


async def test_api_prefix_alias(client, auth_headers):
    response = await client.get("/api/documents", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == []


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
