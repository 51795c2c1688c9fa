# docvault/api/auth.py
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from docvault.api.deps import get_container, get_current_user
from docvault.api.schemas import LoginIn, RegisterIn
from docvault.container import Container
from docvault.core.errors import AuthenticationError, ValidationError, success_envelope
from docvault.models.user import User
from docvault.services.auth import INVALID_CREDENTIALS

router = APIRouter(prefix="/auth", tags=["auth"])


async def _read_json(request: Request) -> Any:
    """Parsed body, or None when it is not JSON; schema validation rejects both."""
    try:
        return await request.json()
    except ValueError:
        return None


@router.post("/register", status_code=201)
async def register(request: Request, container: Container = Depends(get_container)):
    try:
        payload = RegisterIn.model_validate(await _read_json(request))
    except PydanticValidationError:
        raise ValidationError("Validation failed")
    session = await container.accounts.register(payload.email, payload.password, payload.full_name)
    return JSONResponse(
        status_code=201,
        content=success_envelope(
            user=session.user.public().to_json(),
            token=session.token,
            message="Account created successfully",
        ),
    )


@router.post("/login")
async def login(request: Request, container: Container = Depends(get_container)):
    # any malformed body reads as bad credentials
    try:
        payload = LoginIn.model_validate(await _read_json(request))
    except PydanticValidationError:
        raise ValidationError(INVALID_CREDENTIALS)
    result = await container.accounts.login(payload.email, payload.password)
    if not result.ok:
        raise AuthenticationError(result.error)
    return success_envelope(
        user=result.session.user.public().to_json(),
        token=result.session.token,
        message="Login successful",
    )


@router.get("/verify")
async def verify(user: User = Depends(get_current_user)):
    return success_envelope(user=user.public().to_json(), message="Token valid")
