# docvault/api/documents.py
from typing import Optional, Union

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile as StarletteUploadFile

from docvault.api.deps import get_container, get_current_user
from docvault.container import Container
from docvault.core.errors import ValidationError, success_envelope
from docvault.models.document import DocumentCategory
from docvault.models.user import User
from docvault.services.uploads import FileCandidate

router = APIRouter(prefix="/documents", tags=["documents"])


def _parse_category(raw: Optional[str]) -> DocumentCategory:
    category = DocumentCategory.parse(raw)
    if category is None:
        raise ValidationError("Invalid category")
    return category


@router.get("")
async def list_documents(
    category: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    selected = _parse_category(category) if category else None
    documents = await container.document_service.list(user, selected)
    return success_envelope(documents=[d.public().to_json() for d in documents])


@router.post("/upload", status_code=201)
async def upload_document(
    file: Union[UploadFile, str, None] = File(None),
    category: Optional[str] = Form(None),
    user: User = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    # a plain text field named "file" counts as no file
    if not isinstance(file, StarletteUploadFile) or not file.filename:
        raise ValidationError("No file provided")
    selected = _parse_category(category)

    # reject on the declared size before pulling the body into memory
    if file.size is not None:
        container.document_service.check(FileCandidate(file.filename, file.size, file.content_type))
    data = await file.read()

    document = await container.document_service.upload(
        user, file.filename, data, file.content_type, selected
    )
    return JSONResponse(
        status_code=201,
        content=success_envelope(document=document.public().to_json(), message="File uploaded successfully"),
    )


@router.delete("")
async def delete_document(
    id: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    container: Container = Depends(get_container),
):
    if not id:
        raise ValidationError("Document ID is required")
    await container.document_service.delete(user, id)
    return success_envelope(message="Document deleted successfully")
