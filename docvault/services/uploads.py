# docvault/services/uploads.py
import math
import re
from dataclasses import dataclass
from typing import Iterable, Optional

MAX_FILENAME_LENGTH = 255

_FORBIDDEN_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_RESERVED_NAMES = re.compile(r"^(CON|PRN|AUX|NUL|COM[1-9]|LPT[1-9])$", re.IGNORECASE)
_LEADING_DOTS = re.compile(r"^\.+")


@dataclass(frozen=True)
class FileCandidate:
    filename: str
    size: int
    content_type: Optional[str] = None

    @property
    def extension(self) -> Optional[str]:
        if "." not in self.filename:
            return None
        ext = self.filename.rsplit(".", 1)[-1].lower()
        return ext or None


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None


class UploadValidator:
    def __init__(self, max_file_size: int, allowed_types: Iterable[str]) -> None:
        self.max_file_size = max_file_size
        self.allowed_types = [t.lower().lstrip(".") for t in allowed_types]

    def validate(self, file: FileCandidate) -> ValidationResult:
        # order matters: first failing check wins
        if file.size > self.max_file_size:
            max_mb = math.floor(self.max_file_size / 1024 / 1024 + 0.5)
            return ValidationResult(False, f"File size must be less than {max_mb}MB")
        if file.size == 0:
            return ValidationResult(False, "File is empty")
        if file.extension not in self.allowed_types:
            return ValidationResult(
                False, f"File type not supported. Allowed types: {', '.join(self.allowed_types)}"
            )
        if len(file.filename) > MAX_FILENAME_LENGTH:
            return ValidationResult(False, "Filename is too long")
        return ValidationResult(True)


def sanitize_filename(filename: str) -> str:
    name = _FORBIDDEN_CHARS.sub("_", filename)
    name = _RESERVED_NAMES.sub(r"_\1", name)
    name = _LEADING_DOTS.sub("", name)
    return name[:MAX_FILENAME_LENGTH]


def sanitize_text(value: str, max_length: int = 1000) -> str:
    """Trim and drop characters that could break out of HTML attributes."""
    return re.sub(r"[<>'\"]", "", value.strip())[:max_length]
