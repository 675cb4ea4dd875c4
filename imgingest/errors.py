"""
Exception hierarchy for the ingestion pipeline.
"""

from enum import Enum
from typing import Optional


class IngestError(Exception):
    """Base class for all ingestion errors."""


class ConfigError(IngestError, ValueError):
    """Configuration value out of range or missing."""


class ValidationReason(Enum):
    TYPE_MISMATCH = 'type_mismatch'
    FILE_TOO_LARGE = 'file_too_large'
    CAPACITY = 'capacity'


class ValidationError(IngestError):
    """
    A file was rejected before decoding.

    Attributes:
        reason: Which rule failed
        message: Human-readable message for the user
        file_name: Name of the offending file, if known
    """

    def __init__(
        self,
        reason: ValidationReason,
        message: str,
        file_name: Optional[str] = None
    ):
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.file_name = file_name


class DecodeError(IngestError):
    """Neither decode path could read the image."""


class EncodeError(IngestError):
    """The encoder produced no payload."""


class TransportError(IngestError):
    """The upload transport failed."""


class InvalidTransitionError(IngestError):
    """An item was asked to move to a state it cannot reach."""


class HandleRevokedError(IngestError, KeyError):
    """A derived handle was used after being revoked (or never existed)."""

    def __str__(self) -> str:
        return Exception.__str__(self)
