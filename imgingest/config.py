"""
IngestConfig - Validated settings for an image upload collection.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List

from .errors import ConfigError


class TargetFormat(Enum):
    """Output container formats the encoder can produce."""

    WEBP = ('image/webp', '.webp', 'WEBP', False)
    JPEG = ('image/jpeg', '.jpg', 'JPEG', False)
    PNG = ('image/png', '.png', 'PNG', True)

    def __init__(self, content_type: str, extension: str, pil_format: str, lossless: bool):
        self.content_type = content_type
        self.extension = extension
        self.pil_format = pil_format
        self.lossless = lossless

    @classmethod
    def parse(cls, value) -> 'TargetFormat':
        """
        Resolve a format from a member name, extension or content type.

        Examples: 'webp', 'JPEG', '.jpg', 'jpg', 'image/png'
        """
        if isinstance(value, cls):
            return value

        text = str(value).strip().lower()
        for member in cls:
            if text in (
                member.name.lower(),
                member.content_type,
                member.extension,
                member.extension.lstrip('.'),
            ):
                return member
        if text in ('jpeg', '.jpeg', 'image/jpg'):
            return cls.JPEG

        raise ConfigError(f"Unsupported target format: {value!r}")


DEFAULT_ACCEPTED_TYPES = frozenset({'image/jpeg', 'image/png', 'image/webp'})


@dataclass
class IngestConfig:
    """
    Settings for one image collection.

    Attributes:
        max_items: Maximum number of images in the collection
        max_file_size_mb: Per-file size ceiling in megabytes
        accepted_media_types: Declared media types accepted at validation
        target_format: Output format for every processed image
        default_quality: Encoder quality in [0, 1] for lossy formats
        max_width: Maximum output width in pixels (never upscales)
        default_square_crop: Whether new items start with a centered square crop
    """
    max_items: int = 10
    max_file_size_mb: float = 5
    accepted_media_types: FrozenSet[str] = field(default_factory=lambda: DEFAULT_ACCEPTED_TYPES)
    target_format: TargetFormat = TargetFormat.WEBP
    default_quality: float = 0.8
    max_width: int = 1280
    default_square_crop: bool = False

    def __post_init__(self):
        if not isinstance(self.target_format, TargetFormat):
            self.target_format = TargetFormat.parse(self.target_format)
        self.accepted_media_types = frozenset(self.accepted_media_types)

        errors = self.validate()
        if errors:
            raise ConfigError('; '.join(errors))

    def validate(self) -> List[str]:
        """Return a list of problems with this configuration."""
        errors = []

        if isinstance(self.max_items, bool) or not isinstance(self.max_items, int) or self.max_items <= 0:
            errors.append(f"max_items must be a positive integer (got {self.max_items!r})")
        size = self.max_file_size_mb
        if isinstance(size, bool) or not isinstance(size, (int, float)) or size <= 0:
            errors.append(f"max_file_size_mb must be positive (got {self.max_file_size_mb!r})")
        if not self.accepted_media_types:
            errors.append("accepted_media_types must not be empty")
        quality = self.default_quality
        if isinstance(quality, bool) or not isinstance(quality, (int, float)) or not 0 <= quality <= 1:
            errors.append(f"default_quality must be within [0, 1] (got {self.default_quality!r})")
        if isinstance(self.max_width, bool) or not isinstance(self.max_width, int) or self.max_width <= 0:
            errors.append(f"max_width must be a positive integer (got {self.max_width!r})")

        return errors

    @property
    def max_file_size_bytes(self) -> int:
        """Per-file ceiling in bytes."""
        return int(self.max_file_size_mb * 1024 * 1024)

    @classmethod
    def from_env(cls) -> 'IngestConfig':
        """
        Build configuration from INGEST_* environment variables.

        Unset variables fall back to the dataclass defaults.
        """
        kwargs = {}

        if os.getenv('INGEST_MAX_ITEMS'):
            kwargs['max_items'] = int(os.environ['INGEST_MAX_ITEMS'])
        if os.getenv('INGEST_MAX_FILE_SIZE_MB'):
            kwargs['max_file_size_mb'] = float(os.environ['INGEST_MAX_FILE_SIZE_MB'])
        if os.getenv('INGEST_ACCEPTED_TYPES'):
            kwargs['accepted_media_types'] = frozenset(
                t.strip() for t in os.environ['INGEST_ACCEPTED_TYPES'].split(',') if t.strip()
            )
        if os.getenv('INGEST_TARGET_FORMAT'):
            kwargs['target_format'] = TargetFormat.parse(os.environ['INGEST_TARGET_FORMAT'])
        if os.getenv('INGEST_QUALITY'):
            kwargs['default_quality'] = float(os.environ['INGEST_QUALITY'])
        if os.getenv('INGEST_MAX_WIDTH'):
            kwargs['max_width'] = int(os.environ['INGEST_MAX_WIDTH'])
        if os.getenv('INGEST_SQUARE_CROP'):
            kwargs['default_square_crop'] = os.environ['INGEST_SQUARE_CROP'].lower() in ('1', 'true', 'yes', 'y')

        return cls(**kwargs)
