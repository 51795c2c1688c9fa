# docvault/db/stores.py
"""
Persistence contracts for users and document metadata, plus the in-memory
implementations used for local development and tests.

The beanie/MongoDB implementations live in docvault/db/mongo.py.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol
from uuid import uuid4

from docvault.models.document import Document, DocumentCategory, NewDocument
from docvault.models.user import NewUser, User, utcnow


class UniqueConstraintViolation(Exception):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"unique constraint violated on {field}")


@dataclass(frozen=True)
class DocumentQuery:
    owner_id: str
    category: Optional[DocumentCategory] = None


class UserStore(Protocol):
    async def find_by_email(self, email: str) -> Optional[User]: ...

    async def find_by_id(self, user_id: str) -> Optional[User]: ...

    async def create(self, new_user: NewUser) -> User:
        """Raises UniqueConstraintViolation when the email is taken."""
        ...


class DocumentStore(Protocol):
    async def create(self, new_document: NewDocument) -> Document: ...

    async def find_by_id(self, document_id: str) -> Optional[Document]: ...

    async def list_by_user(self, query: DocumentQuery) -> List[Document]:
        """Newest first."""
        ...

    async def delete(self, document_id: str) -> bool: ...


class InMemoryUserStore:
    def __init__(self) -> None:
        self._users: Dict[str, User] = {}

    async def find_by_email(self, email: str) -> Optional[User]:
        for u in self._users.values():
            if u.email == email:
                return u
        return None

    async def find_by_id(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    async def create(self, new_user: NewUser) -> User:
        if await self.find_by_email(new_user.email):
            raise UniqueConstraintViolation("email")
        uid = str(uuid4())
        now = utcnow()
        user = User(id=uid, created_at=now, updated_at=now, **new_user.model_dump())
        self._users[uid] = user
        return user


class InMemoryDocumentStore:
    def __init__(self) -> None:
        self._documents: Dict[str, Document] = {}
        # insertion order breaks uploaded_at ties
        self._order: Dict[str, int] = {}

    async def create(self, new_document: NewDocument) -> Document:
        did = str(uuid4())
        doc = Document(id=did, uploaded_at=utcnow(), **new_document.model_dump())
        self._documents[did] = doc
        self._order[did] = len(self._order)
        return doc

    async def find_by_id(self, document_id: str) -> Optional[Document]:
        return self._documents.get(document_id)

    async def list_by_user(self, query: DocumentQuery) -> List[Document]:
        docs = [
            d for d in self._documents.values()
            if d.user_id == query.owner_id and (query.category is None or d.category == query.category)
        ]
        return sorted(docs, key=lambda d: (d.uploaded_at, self._order[d.id]), reverse=True)

    async def delete(self, document_id: str) -> bool:
        return self._documents.pop(document_id, None) is not None
