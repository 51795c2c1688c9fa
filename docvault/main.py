# docvault/main.py
"""
Application factory. Run with:

    uvicorn docvault.main:create_app --factory
"""
import asyncio
import logging
from typing import Optional

from fastapi import FastAPI

from docvault.api.auth import router as auth_router
from docvault.api.documents import router as documents_router
from docvault.api.middleware import GuardMiddleware
from docvault.container import Container, build_container
from docvault.core.config import Settings, get_settings
from docvault.core.errors import register_exception_handlers
from docvault.core.logging import configure_logging
from docvault.db.stores import DocumentStore, UserStore
from docvault.services.storage import BlobStorage

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    users: Optional[UserStore] = None,
    documents: Optional[DocumentStore] = None,
    blobs: Optional[BlobStorage] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)
    # raises ConfigurationError (missing secret, weak cost factor) before serving anything
    container = build_container(settings, users=users, documents=documents, blobs=blobs)

    app = FastAPI(title="Student Document Vault API")
    app.state.container = container
    register_exception_handlers(app)
    app.add_middleware(GuardMiddleware)

    app.include_router(auth_router)
    app.include_router(documents_router)

    @app.on_event("startup")
    async def startup_event():
        await _startup(container)

    @app.on_event("shutdown")
    async def shutdown_event():
        await _shutdown(container)

    return app


async def _startup(container: Container) -> None:
    if container.uses_mongo:
        from docvault.db.mongo import init_db

        await init_db(container.settings)
    for limiter in container.rate_limiters.all():
        container.background_tasks.append(asyncio.create_task(limiter.run_sweeper()))
    logger.info("Document vault started (env=%s)", container.settings.APP_ENV)


async def _shutdown(container: Container) -> None:
    for task in container.background_tasks:
        task.cancel()
    if container.background_tasks:
        await asyncio.gather(*container.background_tasks, return_exceptions=True)
    container.background_tasks.clear()
    if container.uses_mongo:
        from docvault.db.mongo import close_db

        close_db()
