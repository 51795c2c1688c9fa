# docvault/models/document.py
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from docvault.models.user import utcnow


class DocumentCategory(str, Enum):
    RESUME = "resume"
    DEGREES = "degrees"
    CERTIFICATES = "certificates"
    TRANSCRIPTS = "transcripts"
    HEADSHOTS = "headshots"
    OTHERS = "others"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["DocumentCategory"]:
        try:
            return cls(value)
        except ValueError:
            return None


class NewDocument(BaseModel):
    file_name: str
    original_name: str
    file_size: int
    mime_type: str
    category: DocumentCategory
    storage_key: str
    file_url: str
    user_id: str


class Document(NewDocument):
    """Metadata for one stored file. ``user_id`` is fixed at upload time."""
    model_config = ConfigDict(frozen=True)

    id: str
    uploaded_at: datetime = Field(default_factory=utcnow)

    def public(self) -> "DocumentPublic":
        return DocumentPublic(
            id=self.id,
            file_name=self.file_name,
            original_name=self.original_name,
            file_size=self.file_size,
            mime_type=self.mime_type,
            category=self.category,
            file_url=self.file_url,
            uploaded_at=self.uploaded_at,
            user_id=self.user_id,
        )


class DocumentPublic(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    file_name: str
    original_name: str
    file_size: int
    mime_type: str
    category: DocumentCategory
    file_url: str
    uploaded_at: datetime
    user_id: str

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
