# docvault/db/documents.py
"""Beanie document models backing the MongoDB stores."""
from datetime import datetime
from beanie import Document, Indexed
from pydantic import Field

from docvault.models.document import DocumentCategory
from docvault.models.user import utcnow


class UserDocument(Document):
    email: Indexed(str, unique=True)
    hashed_password: str
    full_name: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "users"


class DocumentRecord(Document):
    file_name: str
    original_name: str
    file_size: int
    mime_type: str
    category: DocumentCategory
    storage_key: str
    file_url: str
    user_id: Indexed(str)
    uploaded_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "documents"
