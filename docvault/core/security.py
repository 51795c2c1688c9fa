# docvault/core/security.py
import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from docvault.core.config import Settings
from docvault.core.errors import ConfigurationError

# bcrypt refuses anything below 4; production deployments need real cost
MIN_BCRYPT_ROUNDS = 4
MIN_PRODUCTION_BCRYPT_ROUNDS = 10

TOKEN_TTL = timedelta(days=7)
MIN_PRODUCTION_SECRET_LENGTH = 32
_PLACEHOLDER_SECRETS = {"change-me", "fallback-secret-key", "secret"}


class PasswordHasher:
    """Salted bcrypt hashing through passlib."""

    def __init__(self, rounds: int, production: bool = False) -> None:
        if rounds is None:
            raise ConfigurationError("BCRYPT_ROUNDS is not configured")
        floor = MIN_PRODUCTION_BCRYPT_ROUNDS if production else MIN_BCRYPT_ROUNDS
        if rounds < floor:
            raise ConfigurationError(f"BCRYPT_ROUNDS must be at least {floor}, got {rounds}")
        self.rounds = rounds
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        if not password or not hashed:
            return False
        try:
            return self._context.verify(password, hashed)
        except (ValueError, TypeError):
            # unrecognised or corrupt hash
            return False

    # bcrypt is CPU bound; keep it off the event loop
    async def hash_async(self, password: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.hash, password)

    async def verify_async(self, password: str, hashed: str) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.verify, password, hashed)


@dataclass(frozen=True)
class TokenPayload:
    user_id: str
    email: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """
    Issues and verifies stateless HS256 session tokens.

    Claims: ``sub`` (user id), ``email``, ``iat`` and ``exp`` as unix
    seconds. A token is valid iff the signature matches and the current
    time is strictly before ``exp``. There is no revocation list.
    """

    def __init__(
        self,
        secret: Optional[str],
        algorithm: str = "HS256",
        ttl: timedelta = TOKEN_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ConfigurationError("JWT_SECRET is not configured")
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = ttl
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        secret = settings.JWT_SECRET
        if settings.is_production and secret:
            if secret in _PLACEHOLDER_SECRETS or len(secret) < MIN_PRODUCTION_SECRET_LENGTH:
                raise ConfigurationError(
                    f"JWT_SECRET must be a non-placeholder value of at least {MIN_PRODUCTION_SECRET_LENGTH} characters"
                )
        return cls(secret, algorithm=settings.JWT_ALGORITHM)

    def issue(self, user_id: str, email: str) -> str:
        now = int(self._clock())
        claims = {
            "sub": str(user_id),
            "email": email,
            "iat": now,
            "exp": now + int(self._ttl.total_seconds()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: Optional[str]) -> Optional[TokenPayload]:
        if not token:
            return None
        try:
            # expiry is checked below against the injected clock
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm], options={"verify_exp": False})
        except JWTError:
            return None
        user_id = claims.get("sub")
        email = claims.get("email")
        iat = claims.get("iat")
        exp = claims.get("exp")
        if not user_id or not email or not isinstance(exp, (int, float)) or not isinstance(iat, (int, float)):
            return None
        if not self._clock() < exp:
            return None
        return TokenPayload(
            user_id=str(user_id),
            email=email,
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )

    @staticmethod
    def extract_from_header(header_value: Optional[str]) -> Optional[str]:
        return extract_bearer_token(header_value)


def extract_bearer_token(header_value: Optional[str]) -> Optional[str]:
    """Return the token from a ``Bearer <token>`` header, else None."""
    if not header_value or not header_value.startswith("Bearer "):
        return None
    token = header_value[len("Bearer "):].strip()
    return token or None
