# docvault/api/schemas.py
import re
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from docvault.services.uploads import sanitize_text

_PASSWORD_CLASSES = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


class RegisterIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str = Field(alias="fullName")

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if "\x00" in v:
            raise ValueError("Password must not contain NUL characters")
        if not _PASSWORD_CLASSES.match(v):
            raise ValueError("Password must contain at least one lowercase letter, one uppercase letter, and one number")
        return v

    @field_validator("full_name")
    @classmethod
    def clean_full_name(cls, v: str) -> str:
        v = sanitize_text(v)
        if not 2 <= len(v) <= 100:
            raise ValueError("Full name must be between 2 and 100 characters")
        return v


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
