# tests/conftest.py
import pytest
from httpx import ASGITransport, AsyncClient

from docvault.core.config import Settings
from docvault.db.stores import InMemoryDocumentStore, InMemoryUserStore
from docvault.main import create_app
from docvault.services.storage import LocalBlobStorage

TEST_SECRET = "test-secret-key-for-the-document-vault"
STRONG_PASSWORD = "Abc12345"


def make_settings(**overrides) -> Settings:
    values = {
        "JWT_SECRET": TEST_SECRET,
        # lowest cost bcrypt accepts; keeps the suite fast
        "BCRYPT_ROUNDS": 4,
        "DATABASE_BACKEND": "memory",
        "MAX_FILE_SIZE": 10 * 1024 * 1024,
        "ALLOWED_FILE_TYPES": "pdf,docx,doc,jpg,jpeg,png,webp",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def document_store():
    return InMemoryDocumentStore()


@pytest.fixture
def blob_storage(tmp_path):
    return LocalBlobStorage(tmp_path / "blobs")


@pytest.fixture
def app(settings, user_store, document_store, blob_storage):
    return create_app(settings, users=user_store, documents=document_store, blobs=blob_storage)


def client_for(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")


async def register(ac: AsyncClient, email: str, password: str = STRONG_PASSWORD, full_name: str = "Test User"):
    return await ac.post("/auth/register", json={"email": email, "password": password, "fullName": full_name})


async def register_token(ac: AsyncClient, email: str) -> str:
    r = await register(ac, email)
    assert r.status_code == 201, r.text
    return r.json()["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
