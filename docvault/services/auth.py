# docvault/services/auth.py
"""
Account registration, credential login and bearer-token authentication.

Expected failures (bad token, wrong password) come back as result objects;
only genuinely exceptional conditions raise.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from docvault.core.errors import ConflictError, DependencyError
from docvault.core.security import PasswordHasher, TokenService
from docvault.db.stores import UniqueConstraintViolation, UserStore
from docvault.models.user import NewUser, User

logger = logging.getLogger(__name__)

NO_TOKEN = "No token provided"
INVALID_TOKEN = "Invalid token"
USER_NOT_FOUND = "User not found"
INVALID_CREDENTIALS = "Invalid email or password"
EMAIL_EXISTS = "Email already exists"


@dataclass(frozen=True)
class AuthResult:
    authenticated: bool
    user: Optional[User] = None
    token: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, user: User, token: str) -> "AuthResult":
        return cls(True, user=user, token=token)

    @classmethod
    def fail(cls, error: str) -> "AuthResult":
        return cls(False, error=error)


@dataclass(frozen=True)
class Session:
    user: User
    token: str


@dataclass(frozen=True)
class LoginResult:
    session: Optional[Session] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.session is not None


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthGuard:
    """Single choke point for protected operations."""

    def __init__(self, tokens: TokenService, users: UserStore) -> None:
        self._tokens = tokens
        self._users = users

    async def authenticate(self, authorization: Optional[str]) -> AuthResult:
        token = self._tokens.extract_from_header(authorization)
        if not token:
            return AuthResult.fail(NO_TOKEN)
        payload = self._tokens.verify(token)
        if payload is None:
            return AuthResult.fail(INVALID_TOKEN)
        try:
            user = await self._users.find_by_id(payload.user_id)
        except Exception as exc:
            logger.exception("User lookup failed during authentication")
            raise DependencyError() from exc
        if user is None:
            return AuthResult.fail(USER_NOT_FOUND)
        return AuthResult.ok(user, token)


class AccountService:
    def __init__(self, users: UserStore, hasher: PasswordHasher, tokens: TokenService) -> None:
        self._users = users
        self._hasher = hasher
        self._tokens = tokens
        # compared against on unknown-email logins
        self._dummy = hasher.hash("dummy-password-for-timing")

    def _session_for(self, user: User) -> Session:
        return Session(user=user, token=self._tokens.issue(user.id, user.email))

    async def register(self, email: str, password: str, full_name: str) -> Session:
        email = normalize_email(email)
        hashed = await self._hasher.hash_async(password)
        try:
            user = await self._users.create(NewUser(email=email, hashed_password=hashed, full_name=full_name))
        except UniqueConstraintViolation as exc:
            logger.info("Registration rejected: duplicate email")
            raise ConflictError(EMAIL_EXISTS) from exc
        except Exception as exc:
            logger.exception("User creation failed")
            raise DependencyError() from exc
        logger.info("Registered user %s", user.id)
        # registration logs the user straight in
        return self._session_for(user)

    async def login(self, email: str, password: str) -> LoginResult:
        try:
            user = await self._users.find_by_email(normalize_email(email))
        except Exception as exc:
            logger.exception("User lookup failed during login")
            raise DependencyError() from exc
        # unknown email and wrong password must be indistinguishable, in timing too
        if user is None:
            await self._hasher.verify_async(password, self._dummy)
            return LoginResult(error=INVALID_CREDENTIALS)
        if not await self._hasher.verify_async(password, user.hashed_password):
            return LoginResult(error=INVALID_CREDENTIALS)
        return LoginResult(session=self._session_for(user))
