# instabids/core/exceptions.py
# Typed errors raised by the service layer and translated to HTTP in main.py
from typing import List, Optional, Sequence

from pydantic import BaseModel


class FieldError(BaseModel):
    field: str
    message: str


class InstaBidsError(Exception):
    """Base class for every error this application raises on purpose."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(InstaBidsError):
    """Required connection settings are missing; the process must not start."""


class FieldValidationError(InstaBidsError):
    """One or more field-scoped validation failures."""

    def __init__(self, errors: Sequence[FieldError], message: str = "Validation failed"):
        super().__init__(message)
        self.errors: List[FieldError] = list(errors)

    @property
    def fields(self) -> List[str]:
        return [e.field for e in self.errors]


class NotFoundError(InstaBidsError):
    pass


class PermissionDeniedError(InstaBidsError):
    pass


class PersistenceError(InstaBidsError):
    """
    Network or collaborator-side failure. `stage` tells the caller which part
    to retry; `uploaded_urls` lists media already stored before the failure.
    """

    stage = "persistence"

    def __init__(self, message: str, uploaded_urls: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.uploaded_urls: List[str] = list(uploaded_urls or [])

    @property
    def partial_media_uploaded(self) -> bool:
        return bool(self.uploaded_urls)


class MediaUploadError(PersistenceError):
    stage = "upload"


class RecordWriteError(PersistenceError):
    stage = "record_write"
