# docvault/db/mongo.py
import logging
from typing import List, Optional

from beanie import PydanticObjectId, init_beanie
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import DuplicateKeyError

from docvault.core.config import Settings
from docvault.db.documents import DocumentRecord, UserDocument
from docvault.db.stores import DocumentQuery, UniqueConstraintViolation
from docvault.models.document import Document, NewDocument
from docvault.models.user import NewUser, User

logger = logging.getLogger(__name__)

_mongo_client: Optional[AsyncIOMotorClient] = None


async def init_db(settings: Settings) -> AsyncIOMotorClient:
    """Connect Motor and register the beanie models (creates indexes)."""
    global _mongo_client
    if _mongo_client is None:
        _mongo_client = AsyncIOMotorClient(settings.MONGODB_URI)
        await init_beanie(
            database=_mongo_client[settings.MONGODB_DB],
            document_models=[UserDocument, DocumentRecord],
        )
        logger.info("MongoDB initialised (db=%s)", settings.MONGODB_DB)
    return _mongo_client


def close_db() -> None:
    global _mongo_client
    if _mongo_client is not None:
        _mongo_client.close()
        _mongo_client = None


def _object_id(value: str) -> Optional[PydanticObjectId]:
    if not value or not ObjectId.is_valid(value):
        return None
    return PydanticObjectId(value)


def _to_user(doc: UserDocument) -> User:
    return User(
        id=str(doc.id),
        email=doc.email,
        hashed_password=doc.hashed_password,
        full_name=doc.full_name,
        created_at=doc.created_at,
        updated_at=doc.updated_at,
    )


def _to_document(rec: DocumentRecord) -> Document:
    return Document(
        id=str(rec.id),
        file_name=rec.file_name,
        original_name=rec.original_name,
        file_size=rec.file_size,
        mime_type=rec.mime_type,
        category=rec.category,
        storage_key=rec.storage_key,
        file_url=rec.file_url,
        user_id=rec.user_id,
        uploaded_at=rec.uploaded_at,
    )


class BeanieUserStore:
    async def find_by_email(self, email: str) -> Optional[User]:
        doc = await UserDocument.find_one(UserDocument.email == email)
        return _to_user(doc) if doc else None

    async def find_by_id(self, user_id: str) -> Optional[User]:
        oid = _object_id(user_id)
        if oid is None:
            return None
        doc = await UserDocument.get(oid)
        return _to_user(doc) if doc else None

    async def create(self, new_user: NewUser) -> User:
        doc = UserDocument(**new_user.model_dump())
        try:
            await doc.insert()
        except DuplicateKeyError as exc:
            raise UniqueConstraintViolation("email") from exc
        return _to_user(doc)


class BeanieDocumentStore:
    async def create(self, new_document: NewDocument) -> Document:
        rec = DocumentRecord(**new_document.model_dump())
        await rec.insert()
        return _to_document(rec)

    async def find_by_id(self, document_id: str) -> Optional[Document]:
        oid = _object_id(document_id)
        if oid is None:
            return None
        rec = await DocumentRecord.get(oid)
        return _to_document(rec) if rec else None

    async def list_by_user(self, query: DocumentQuery) -> List[Document]:
        criteria = [DocumentRecord.user_id == query.owner_id]
        if query.category is not None:
            criteria.append(DocumentRecord.category == query.category.value)
        records = await DocumentRecord.find(*criteria).sort(-DocumentRecord.uploaded_at).to_list()
        return [_to_document(r) for r in records]

    async def delete(self, document_id: str) -> bool:
        oid = _object_id(document_id)
        if oid is None:
            return False
        rec = await DocumentRecord.get(oid)
        if rec is None:
            return False
        await rec.delete()
        return True
