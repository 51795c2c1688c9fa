# docvault/api/deps.py
from fastapi import Request

from docvault.container import Container
from docvault.core.errors import AuthenticationError
from docvault.models.user import User


def get_container(request: Request) -> Container:
    return request.app.state.container


async def get_current_user(request: Request) -> User:
    """Resolve the bearer token to a live user or answer 401."""
    container = get_container(request)
    result = await container.guard.authenticate(request.headers.get("authorization"))
    if not result.authenticated:
        raise AuthenticationError(result.error)
    return result.user
