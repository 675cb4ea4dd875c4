"""
Validator - Checks incoming files before anything is decoded.
"""

import logging
from typing import Optional, Sequence

from .config import IngestConfig
from .errors import ValidationError, ValidationReason
from .source_file import SourceFile


class Validator:
    """
    Applies the accepted-type, per-file size and capacity rules, in that order.
    """

    def __init__(self, config: IngestConfig, logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

    def validate(self, file: SourceFile, current_collection_size: int) -> None:
        """
        Validate a single file.

        Args:
            file: The incoming file
            current_collection_size: Items already in (or reserved for) the collection

        Raises:
            ValidationError: On the first rule that fails
        """
        accepted = self.config.accepted_media_types
        if file.media_type not in accepted:
            raise ValidationError(
                ValidationReason.TYPE_MISMATCH,
                f"Invalid file type. Accepted types: {', '.join(sorted(accepted))}",
                file.name,
            )

        if file.size > self.config.max_file_size_bytes:
            raise ValidationError(
                ValidationReason.FILE_TOO_LARGE,
                f"File is too large. Maximum {self.config.max_file_size_mb:g}MB",
                file.name,
            )

        if current_collection_size >= self.config.max_items:
            raise ValidationError(
                ValidationReason.CAPACITY,
                f"Maximum {self.config.max_items} images allowed",
                file.name,
            )

    def validate_batch(self, files: Sequence[SourceFile], current_collection_size: int) -> None:
        """
        Validate a batch all-or-nothing.

        Each file is checked as if the files before it were already added,
        so a batch can never push the collection past ``max_items``.

        Raises:
            ValidationError: For the first failing file; the whole batch is rejected
        """
        for index, file in enumerate(files):
            try:
                self.validate(file, current_collection_size + index)
            except ValidationError as e:
                self.logger.warning(f"Rejected batch of {len(files)} at {file.name}: {e.message}")
                raise
