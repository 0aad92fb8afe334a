"""Tests for the document API endpoints."""

from io import BytesIO
from pathlib import Path

import pytest
import pytest_asyncio
from werkzeug.datastructures import FileStorage


def upload(data: bytes, filename: str, content_type: str = "text/plain") -> dict:
    return {"document": FileStorage(BytesIO(data), filename=filename, content_type=content_type)}


async def upload_document(client, data: bytes, filename: str, content_type: str = "text/plain"):
    response = await client.post("/api/documents/upload", files=upload(data, filename, content_type))
    return response, await response.get_json()


class TestUploadDocument:
    """POST /api/documents/upload."""

    @pytest.mark.asyncio
    async def test_text_document(self, client):
        text = "Birth certificate\nName: Sara Ahmed\nDate: 18/05/2018\nRegistry 2018051800".encode()
        response, data = await upload_document(client, text, "birth.txt")

        assert response.status_code == 201
        document = data["document"]
        assert document["document_type"] == "birth_certificate"
        assert document["confidence_score"] == 100.0
        assert document["original_filename"] == "birth.txt"
        assert document["tags"]["dates"] == ["18/05/2018"]
        assert document["tags"]["numbers"] == ["2018051800"]
        assert document["tags"]["language"] == "english"
        assert Path(document["file_path"]).exists()
        assert data["ocr"]["word_count"] > 0

    @pytest.mark.asyncio
    async def test_image_document_uses_ocr(self, client, ocr_processor):
        response, data = await upload_document(client, b"\x89PNG fake", "scan.png", "image/png")

        assert response.status_code == 201
        assert len(ocr_processor.calls) == 1
        assert data["document"]["confidence_score"] == 87.5
        assert data["document"]["document_type"] == "birth_certificate"

    @pytest.mark.asyncio
    async def test_ocr_failure_still_stores_document(self, client, ocr_processor, monkeypatch):
        def broken(doc_path):
            raise RuntimeError("tesseract is not installed")

        monkeypatch.setattr(ocr_processor, "process_document", broken)
        response, data = await upload_document(client, b"%PDF-1.4", "papers.pdf", "application/pdf")

        assert response.status_code == 201
        assert data["ocr"] is None
        assert data["document"]["document_type"] == "document"
        assert data["document"]["extracted_text"] is None

    @pytest.mark.asyncio
    async def test_rejects_unsupported_extension(self, client):
        response, data = await upload_document(client, b"#!/bin/sh", "run.sh")

        assert response.status_code == 400
        assert "File type not allowed" in data["error"]

    @pytest.mark.asyncio
    async def test_requires_file(self, client):
        response = await client.post("/api/documents/upload", form={"person_id": "x"})

        assert response.status_code == 400


class TestManageDocuments:
    """List, search, update, reprocess and delete documents."""

    @pytest_asyncio.fixture
    async def document(self, client):
        _, data = await upload_document(client, "Passport of Ahmed Ali, number 99887766".encode(), "passport.txt")
        return data["document"]

    @pytest.mark.asyncio
    async def test_get_and_list(self, client, document):
        data = await (await client.get(f"/api/documents/{document['document_id']}")).get_json()
        assert data["document"]["document_type"] == "identity"

        listing = await (await client.get("/api/documents")).get_json()
        assert listing["pagination"]["total"] == 1
        assert listing["documents"][0]["person_name"] is None

    @pytest.mark.asyncio
    async def test_search_by_text_and_type(self, client, document):
        by_text = await (await client.get("/api/documents/search?q=passport")).get_json()
        by_type = await (await client.get("/api/documents/search?type=identity")).get_json()
        none = await (await client.get("/api/documents/search?type=photo")).get_json()

        assert by_text["count"] == 1
        assert by_type["count"] == 1
        assert none["count"] == 0

    @pytest.mark.asyncio
    async def test_search_requires_criteria(self, client):
        response = await client.get("/api/documents/search")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_link_to_person(self, client, document, family):
        father = family["father"].id
        response = await client.put(f"/api/documents/{document['document_id']}", json={"person_id": father})
        assert response.status_code == 200

        data = await (await client.get(f"/api/documents/person/{father}")).get_json()
        assert [d["document_id"] for d in data["documents"]] == [document["document_id"]]

    @pytest.mark.asyncio
    async def test_link_to_unknown_person(self, client, document):
        response = await client.put(
            f"/api/documents/{document['document_id']}", json={"person_id": "ghost"}
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_reprocess(self, client, document):
        Path(document["file_path"]).write_text("عقد زواج 2012/06/01", encoding="utf-8")

        response = await client.post(f"/api/documents/{document['document_id']}/reprocess")
        data = await response.get_json()

        assert response.status_code == 200
        assert data["document"]["document_type"] == "marriage_certificate"
        assert data["ocr"]["language"] == "arabic"

    @pytest.mark.asyncio
    async def test_delete_removes_file(self, client, document):
        response = await client.delete(f"/api/documents/{document['document_id']}")

        assert response.status_code == 200
        assert not Path(document["file_path"]).exists()
        assert (await client.get(f"/api/documents/{document['document_id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_with_missing_file(self, client, document):
        Path(document["file_path"]).unlink()

        response = await client.delete(f"/api/documents/{document['document_id']}")

        assert response.status_code == 200
