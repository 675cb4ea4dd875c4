"""
SourceFile - An uploaded file exactly as it was received.
"""

import os
from dataclasses import dataclass, field
from mimetypes import guess_type


@dataclass(frozen=True)
class SourceFile:
    """
    Raw upload, kept untouched so re-transforms always start from the original.

    Attributes:
        data: Raw file bytes
        media_type: Declared media type (e.g., 'image/jpeg')
        name: Original file name
        size: Declared byte length (defaults to len(data))
    """
    data: bytes = field(repr=False)
    media_type: str
    name: str
    size: int = -1

    def __post_init__(self):
        if self.size < 0:
            object.__setattr__(self, 'size', len(self.data))

    @classmethod
    def from_path(cls, filepath: str) -> 'SourceFile':
        """Read a file from disk, guessing its media type from the extension."""
        with open(filepath, 'rb') as f:
            data = f.read()
        media_type, _ = guess_type(filepath)
        return cls(
            data=data,
            media_type=media_type or 'application/octet-stream',
            name=os.path.basename(filepath),
        )
