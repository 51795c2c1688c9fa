# docvault/services/access_policy.py
from typing import Optional
from uuid import uuid4

from docvault.core.errors import NotFoundError
from docvault.db.stores import DocumentStore
from docvault.models.document import Document
from docvault.models.user import User

DOCUMENT_NOT_FOUND = "Document not found"


class DocumentAccessPolicy:
    """
    Ownership rules for documents.

    A user only ever sees their own documents. Someone else's document is
    reported exactly like a missing one so its existence is not disclosed.
    """

    def __init__(self, documents: DocumentStore) -> None:
        self._documents = documents

    @staticmethod
    def storage_key_for(user_id: str) -> str:
        # prefix scoping keeps a user's blobs together and keys unique
        return f"{user_id}/{uuid4()}"

    @staticmethod
    def can_access(user: User, document: Optional[Document]) -> bool:
        return document is not None and document.user_id == user.id

    async def get_owned(self, document_id: str, user: User) -> Document:
        document = await self._documents.find_by_id(document_id)
        if not self.can_access(user, document):
            raise NotFoundError(DOCUMENT_NOT_FOUND)
        return document
