"""ORM models package."""
from .base import Base
from .report import GeneratedReport
from .uploaded_file import UploadedFile

__all__ = [
    "Base",
    "GeneratedReport",
    "UploadedFile",
]
