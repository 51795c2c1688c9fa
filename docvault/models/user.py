# docvault/models/user.py
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(BaseModel):
    """Stored identity record. ``hashed_password`` never leaves the server."""
    id: str
    email: str
    hashed_password: str
    full_name: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def public(self) -> "UserPublic":
        return UserPublic(
            id=self.id,
            email=self.email,
            full_name=self.full_name,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class NewUser(BaseModel):
    email: str
    hashed_password: str
    full_name: str


class UserPublic(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    email: str
    full_name: str
    created_at: datetime
    updated_at: datetime

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
