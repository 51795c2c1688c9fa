# docvault/services/documents.py
import logging
from typing import List, Optional

from docvault.core.errors import DependencyError, NotFoundError, ValidationError
from docvault.db.stores import DocumentQuery, DocumentStore
from docvault.models.document import Document, DocumentCategory, NewDocument
from docvault.models.user import User
from docvault.services.access_policy import DOCUMENT_NOT_FOUND, DocumentAccessPolicy
from docvault.services.storage import BlobStorage
from docvault.services.uploads import FileCandidate, UploadValidator, sanitize_filename

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class DocumentService:
    """
    Upload, list and delete for an already authenticated user.

    Upload runs validate -> storage write -> metadata write and stops at the
    first failure. Storage and metadata are not transactional: a metadata
    failure after a successful write leaves an orphaned blob.
    """

    def __init__(
        self,
        documents: DocumentStore,
        blobs: BlobStorage,
        validator: UploadValidator,
        policy: DocumentAccessPolicy,
    ) -> None:
        self._documents = documents
        self._blobs = blobs
        self._validator = validator
        self._policy = policy

    def check(self, candidate: FileCandidate) -> None:
        result = self._validator.validate(candidate)
        if not result.valid:
            raise ValidationError(result.error)

    async def upload(
        self,
        user: User,
        filename: str,
        data: bytes,
        content_type: Optional[str],
        category: DocumentCategory,
    ) -> Document:
        candidate = FileCandidate(filename=filename, size=len(data), content_type=content_type)
        self.check(candidate)

        safe_name = sanitize_filename(filename)
        key = self._policy.storage_key_for(user.id)
        mime_type = content_type or DEFAULT_CONTENT_TYPE
        logger.info("Uploading %s bytes for user %s to %s", candidate.size, user.id, key)
        try:
            locator = await self._blobs.put(key, data, mime_type)
        except Exception as exc:
            logger.exception("Storage write failed for %s", key)
            raise DependencyError("Failed to upload file") from exc

        try:
            return await self._documents.create(
                NewDocument(
                    file_name=safe_name,
                    original_name=filename,
                    file_size=candidate.size,
                    mime_type=mime_type,
                    category=category,
                    storage_key=key,
                    file_url=locator,
                    user_id=user.id,
                )
            )
        except Exception as exc:
            logger.exception("Metadata write failed for %s; blob left orphaned", key)
            raise DependencyError("Failed to upload file") from exc

    async def list(self, user: User, category: Optional[DocumentCategory] = None) -> List[Document]:
        try:
            return await self._documents.list_by_user(DocumentQuery(owner_id=user.id, category=category))
        except Exception as exc:
            logger.exception("Listing documents failed for user %s", user.id)
            raise DependencyError("Failed to fetch documents") from exc

    async def delete(self, user: User, document_id: str) -> None:
        try:
            document = await self._policy.get_owned(document_id, user)
        except NotFoundError:
            raise
        except Exception as exc:
            logger.exception("Document lookup failed for %s", document_id)
            raise DependencyError("Failed to delete document") from exc

        # an orphaned blob is cheaper than a record that can never be deleted
        try:
            await self._blobs.delete(document.storage_key)
        except Exception as exc:
            logger.warning("Failed to delete %s from storage: %r", document.storage_key, exc)

        try:
            deleted = await self._documents.delete(document.id)
        except Exception as exc:
            logger.exception("Metadata delete failed for %s", document.id)
            raise DependencyError("Failed to delete document") from exc
        if not deleted:
            # raced with another delete of the same document
            raise NotFoundError(DOCUMENT_NOT_FOUND)
        logger.info("Deleted document %s for user %s", document.id, user.id)
