# tests/test_documents.py
from pathlib import Path

import pytest

from docvault.main import create_app

from conftest import bearer, client_for, make_settings, register_token

MB = 1024 * 1024
PDF_2MB = b"%PDF-1.4\n" + b"0" * (2 * MB)


async def upload(ac, token, name="cv.pdf", data=PDF_2MB, category="resume", content_type="application/pdf"):
    files = {"file": (name, data, content_type)}
    return await ac.post("/documents/upload", files=files, data={"category": category}, headers=bearer(token))


@pytest.mark.asyncio
async def test_upload_is_private_to_owner(app, blob_storage):
    async with client_for(app) as ac:
        token_a = await register_token(ac, "a@x.com")
        token_b = await register_token(ac, "b@x.com")

        r = await upload(ac, token_a)
        assert r.status_code == 201, r.text
        doc = r.json()["document"]
        assert r.json()["message"] == "File uploaded successfully"
        assert doc["fileSize"] == len(PDF_2MB)
        assert doc["mimeType"] == "application/pdf"
        assert doc["category"] == "resume"
        assert doc["originalName"] == "cv.pdf"

        listed_a = (await ac.get("/documents", headers=bearer(token_a))).json()["documents"]
        listed_b = (await ac.get("/documents", headers=bearer(token_b))).json()["documents"]
        assert [d["id"] for d in listed_a] == [doc["id"]]
        assert listed_b == []


@pytest.mark.asyncio
async def test_blob_is_stored_under_owner_prefix(app, document_store):
    async with client_for(app) as ac:
        token = await register_token(ac, "a@x.com")
        me = (await ac.get("/auth/verify", headers=bearer(token))).json()["user"]
        doc = (await upload(ac, token)).json()["document"]

    stored = await document_store.find_by_id(doc["id"])
    assert stored.storage_key.startswith(f"{me['id']}/")
    assert stored.user_id == me["id"]
    path = Path(stored.file_url.replace("file://", ""))
    assert path.read_bytes() == PDF_2MB


@pytest.mark.asyncio
async def test_filename_is_sanitized_but_original_kept(app):
    async with client_for(app) as ac:
        token = await register_token(ac, "a@x.com")
        r = await upload(ac, token, name="..my:cv?.pdf")
        doc = r.json()["document"]
        assert doc["fileName"] == "my_cv_.pdf"
        assert doc["originalName"] == "..my:cv?.pdf"


@pytest.mark.asyncio
async def test_upload_rejections(app):
    async with client_for(app) as ac:
        token = await register_token(ac, "a@x.com")

        r = await upload(ac, token, data=b"")
        assert r.status_code == 400
        assert r.json() == {"success": False, "message": "File is empty"}

        r = await upload(ac, token, name="virus.exe")
        assert r.status_code == 400
        assert r.json()["message"].startswith("File type not supported")

        r = await upload(ac, token, category="selfies")
        assert r.status_code == 400
        assert r.json()["message"] == "Invalid category"

        r = await ac.post("/documents/upload", data={"category": "resume"}, headers=bearer(token))
        assert r.status_code == 400
        assert r.json()["message"] == "No file provided"

        r = await ac.post("/documents/upload", data={"file": "cv.pdf", "category": "resume"}, headers=bearer(token))
        assert r.status_code == 400
        assert r.json() == {"success": False, "message": "No file provided"}

        assert (await ac.get("/documents", headers=bearer(token))).json()["documents"] == []


@pytest.mark.asyncio
async def test_oversized_upload_rejected(user_store, document_store, blob_storage):
    app = create_app(make_settings(MAX_FILE_SIZE=1 * MB), users=user_store, documents=document_store, blobs=blob_storage)
    async with client_for(app) as ac:
        token = await register_token(ac, "a@x.com")
        r = await upload(ac, token)
        assert r.status_code == 400
        assert r.json()["message"] == "File size must be less than 1MB"


@pytest.mark.asyncio
async def test_document_routes_require_auth(app):
    async with client_for(app) as ac:
        assert (await ac.get("/documents")).status_code == 401
        assert (await ac.delete("/documents", params={"id": "x"})).status_code == 401
        files = {"file": ("cv.pdf", PDF_2MB, "application/pdf")}
        r = await ac.post("/documents/upload", files=files, data={"category": "resume"})
        assert r.status_code == 401
        assert r.json()["message"] == "No token provided"


@pytest.mark.asyncio
async def test_list_filters_by_category(app):
    async with client_for(app) as ac:
        token = await register_token(ac, "a@x.com")
        await upload(ac, token, name="cv.pdf", category="resume")
        await upload(ac, token, name="degree.pdf", category="degrees")

        r = await ac.get("/documents", params={"category": "degrees"}, headers=bearer(token))
        assert [d["originalName"] for d in r.json()["documents"]] == ["degree.pdf"]

        everything = (await ac.get("/documents", headers=bearer(token))).json()["documents"]
        # newest first
        assert [d["originalName"] for d in everything] == ["degree.pdf", "cv.pdf"]

        r = await ac.get("/documents", params={"category": "bogus"}, headers=bearer(token))
        assert r.status_code == 400


@pytest.mark.asyncio
async def test_delete_own_document(app, document_store):
    async with client_for(app) as ac:
        token = await register_token(ac, "a@x.com")
        doc = (await upload(ac, token)).json()["document"]
        stored = await document_store.find_by_id(doc["id"])
        path = Path(stored.file_url.replace("file://", ""))
        assert path.exists()

        r = await ac.delete("/documents", params={"id": doc["id"]}, headers=bearer(token))
        assert r.status_code == 200
        assert r.json() == {"success": True, "message": "Document deleted successfully"}
        assert not path.exists()
        assert await document_store.find_by_id(doc["id"]) is None

        r = await ac.delete("/documents", params={"id": doc["id"]}, headers=bearer(token))
        assert r.status_code == 404


@pytest.mark.asyncio
async def test_foreign_delete_looks_like_missing(app, document_store):
    async with client_for(app) as ac:
        token_a = await register_token(ac, "a@x.com")
        token_b = await register_token(ac, "b@x.com")
        doc = (await upload(ac, token_a)).json()["document"]

        foreign = await ac.delete("/documents", params={"id": doc["id"]}, headers=bearer(token_b))
        missing = await ac.delete("/documents", params={"id": "no-such-document"}, headers=bearer(token_b))
        assert foreign.status_code == missing.status_code == 404
        assert foreign.json() == missing.json() == {"success": False, "message": "Document not found"}
        assert await document_store.find_by_id(doc["id"]) is not None


@pytest.mark.asyncio
async def test_delete_requires_id(app):
    async with client_for(app) as ac:
        token = await register_token(ac, "a@x.com")
        r = await ac.delete("/documents", headers=bearer(token))
        assert r.status_code == 400
        assert r.json()["message"] == "Document ID is required"


class FlakyBlobStorage:
    """Writes succeed, deletes always fail."""

    def __init__(self):
        self.objects = {}

    async def put(self, path, data, content_type):
        self.objects[path] = data
        return f"https://cdn.test/{path}"

    async def delete(self, path):
        raise ConnectionError("storage unavailable")


@pytest.mark.asyncio
async def test_storage_delete_failure_does_not_block_metadata_cleanup(user_store, document_store):
    app = create_app(make_settings(), users=user_store, documents=document_store, blobs=FlakyBlobStorage())
    async with client_for(app) as ac:
        token = await register_token(ac, "a@x.com")
        doc = (await upload(ac, token)).json()["document"]
        assert doc["fileUrl"].startswith("https://cdn.test/")

        r = await ac.delete("/documents", params={"id": doc["id"]}, headers=bearer(token))
        assert r.status_code == 200
        assert await document_store.find_by_id(doc["id"]) is None


class BrokenBlobStorage:
    async def put(self, path, data, content_type):
        raise ConnectionError("storage unavailable")

    async def delete(self, path):
        raise ConnectionError("storage unavailable")


@pytest.mark.asyncio
async def test_storage_write_failure_is_500_without_record(user_store, document_store):
    app = create_app(make_settings(), users=user_store, documents=document_store, blobs=BrokenBlobStorage())
    async with client_for(app) as ac:
        token = await register_token(ac, "a@x.com")
        r = await upload(ac, token)
        assert r.status_code == 500
        assert r.json() == {"success": False, "message": "Failed to upload file"}
        assert (await ac.get("/documents", headers=bearer(token))).json()["documents"] == []
