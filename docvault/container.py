# docvault/container.py
"""
Builds every long-lived service once at process start. Nothing here is a
module-level singleton: tests build a fresh container per app.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from docvault.core.config import Settings
from docvault.core.errors import ConfigurationError
from docvault.core.security import PasswordHasher, TokenService
from docvault.db.stores import DocumentStore, InMemoryDocumentStore, InMemoryUserStore, UserStore
from docvault.services.access_policy import DocumentAccessPolicy
from docvault.services.auth import AccountService, AuthGuard
from docvault.services.documents import DocumentService
from docvault.services.rate_limit import RateLimiter, RateLimiters
from docvault.services.storage import BlobStorage, build_blob_storage
from docvault.services.uploads import UploadValidator


@dataclass
class Container:
    settings: Settings
    hasher: PasswordHasher
    tokens: TokenService
    users: UserStore
    documents: DocumentStore
    blobs: BlobStorage
    guard: AuthGuard
    accounts: AccountService
    document_service: DocumentService
    rate_limiters: RateLimiters
    uses_mongo: bool = False
    background_tasks: List = field(default_factory=list)


def _default_stores(settings: Settings):
    backend = settings.DATABASE_BACKEND.lower()
    if backend == "memory":
        return InMemoryUserStore(), InMemoryDocumentStore(), False
    if backend == "mongo":
        from docvault.db.mongo import BeanieDocumentStore, BeanieUserStore

        return BeanieUserStore(), BeanieDocumentStore(), True
    raise ConfigurationError(f"Unknown DATABASE_BACKEND: {settings.DATABASE_BACKEND}")


def build_container(
    settings: Settings,
    users: Optional[UserStore] = None,
    documents: Optional[DocumentStore] = None,
    blobs: Optional[BlobStorage] = None,
) -> Container:
    hasher = PasswordHasher(settings.BCRYPT_ROUNDS, production=settings.is_production)
    tokens = TokenService.from_settings(settings)

    uses_mongo = False
    if users is None or documents is None:
        default_users, default_documents, uses_mongo = _default_stores(settings)
        users = users or default_users
        documents = documents or default_documents
    blobs = blobs or build_blob_storage(settings)

    validator = UploadValidator(settings.MAX_FILE_SIZE, settings.allowed_file_types)
    policy = DocumentAccessPolicy(documents)
    limiters = RateLimiters(
        general=RateLimiter(settings.GLOBAL_RATE_LIMIT, settings.GLOBAL_RATE_WINDOW_SEC),
        auth=RateLimiter(settings.AUTH_RATE_LIMIT, settings.AUTH_RATE_WINDOW_SEC),
        upload=RateLimiter(settings.UPLOAD_RATE_LIMIT, settings.UPLOAD_RATE_WINDOW_SEC),
    )
    return Container(
        settings=settings,
        hasher=hasher,
        tokens=tokens,
        users=users,
        documents=documents,
        blobs=blobs,
        guard=AuthGuard(tokens, users),
        accounts=AccountService(users, hasher, tokens),
        document_service=DocumentService(documents, blobs, validator, policy),
        rate_limiters=limiters,
        uses_mongo=uses_mongo,
    )
