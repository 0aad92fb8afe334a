"""Tests for the photo API endpoints."""

from io import BytesIO
from pathlib import Path

import pytest
import pytest_asyncio
from PIL import Image
from werkzeug.datastructures import FileStorage


def png_bytes(width: int = 32, height: int = 24) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), color=(200, 120, 40)).save(buffer, format="PNG")
    return buffer.getvalue()


async def upload_photo(client, data: bytes, filename: str = "family.png"):
    files = {"photos": FileStorage(BytesIO(data), filename=filename, content_type="image/png")}
    response = await client.post("/api/photos/upload", files=files)
    return response, await response.get_json()


class TestUploadPhotos:
    """POST /api/photos/upload."""

    @pytest.mark.asyncio
    async def test_upload_reads_dimensions(self, client):
        response, data = await upload_photo(client, png_bytes(64, 48))

        assert response.status_code == 201
        photo = data["photos"][0]
        assert (photo["width"], photo["height"]) == (64, 48)
        assert photo["original_filename"] == "family.png"
        assert Path(photo["file_path"]).exists()

    @pytest.mark.asyncio
    async def test_rejects_non_images(self, client):
        response, data = await upload_photo(client, b"hello", "notes.txt")

        assert response.status_code == 400
        assert data["details"] == {"rejected": ["notes.txt"]}

    @pytest.mark.asyncio
    async def test_rejects_unreadable_image(self, client, app):
        response, _ = await upload_photo(client, b"not a png", "broken.png")

        assert response.status_code == 400
        assert list((Path(app.config["UPLOAD_FOLDER"]) / "photos").iterdir()) == []

    @pytest.mark.asyncio
    async def test_requires_photos(self, client):
        response = await client.post("/api/photos/upload", form={"event_name": "Eid"})

        assert response.status_code == 400


class TestManagePhotos:
    """List, search, update, stats and delete photos."""

    @pytest_asyncio.fixture
    async def photo(self, client):
        _, data = await upload_photo(client, png_bytes(), "eid_2020.png")
        return data["photos"][0]

    @pytest.mark.asyncio
    async def test_list_and_get(self, client, photo):
        listing = await (await client.get("/api/photos")).get_json()
        assert listing["pagination"]["total"] == 1

        data = await (await client.get(f"/api/photos/{photo['photo_id']}")).get_json()
        assert data["photo"]["original_filename"] == "eid_2020.png"

    @pytest.mark.asyncio
    async def test_update_and_search_by_person(self, client, photo, family):
        daughter = family["daughter"]
        response = await client.put(
            f"/api/photos/{photo['photo_id']}",
            json={"person_id": daughter.id, "event_name": "Graduation", "date_taken": "2024-06-30"},
        )
        data = await response.get_json()

        assert response.status_code == 200
        assert data["photo"]["date_taken"] == "2024-06-30"

        by_person = await (await client.get("/api/photos/search?q=Sara")).get_json()
        by_event = await (await client.get("/api/photos/search?q=gradu")).get_json()
        assert by_person["photos"][0]["person_name"] == daughter.full_name
        assert by_event["pagination"]["total"] == 1

        mine = await (await client.get(f"/api/photos/person/{daughter.id}")).get_json()
        assert [p["photo_id"] for p in mine["photos"]] == [photo["photo_id"]]

    @pytest.mark.asyncio
    async def test_invalid_update(self, client, photo):
        response = await client.put(f"/api/photos/{photo['photo_id']}", json={"width": 0})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_stats(self, client, photo):
        data = await (await client.get("/api/photos/stats")).get_json()

        assert data["stats"]["total_photos"] == 1
        assert data["stats"]["photos_without_person"] == 1
        assert len(data["stats"]["recent_photos"]) == 1

    @pytest.mark.asyncio
    async def test_delete(self, client, photo):
        response = await client.delete(f"/api/photos/{photo['photo_id']}")

        assert response.status_code == 200
        assert not Path(photo["file_path"]).exists()
        assert (await client.get(f"/api/photos/{photo['photo_id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_photo(self, client):
        response = await client.delete("/api/photos/missing")

        assert response.status_code == 404
