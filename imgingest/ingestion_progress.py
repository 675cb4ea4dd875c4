"""
IngestionProgress - Reports per-item progress while a batch is ingested.
"""

import logging
from typing import Optional

from .item import Item
from .reporter import format_file_size


class IngestionProgress:
    """
    Tracks and displays ingestion progress with optional per-file output.
    """

    def __init__(
        self,
        show_files: bool = False,
        log_interval: int = 25,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize progress tracker.

        Args:
            show_files: If True, print each file as it's processed
            log_interval: Log upload progress every N percent (when not show_files)
            logger: Optional logger instance
        """
        self.show_files = show_files
        self.log_interval = log_interval
        self.logger = logger or logging.getLogger(__name__)
        self.last_logged = {}

    def on_batch_rejected(self, message: str) -> None:
        if self.show_files:
            print(f"  [REJECTED] {message}")
        else:
            self.logger.warning(f"Batch rejected: {message}")

    def on_item_processed(self, item: Item, success: bool) -> None:
        """Called when an item finishes its first decode/transform/encode pass."""
        if self.show_files and success and item.result is not None:
            size_str = format_file_size(item.result.size)
            print(
                f"  [OK] {item.source.name} -> {item.display_name} "
                f"{item.result.width}x{item.result.height} ({size_str})"
            )

    def on_item_failed(self, item: Item, error: str) -> None:
        if self.show_files:
            print(f"  [ERROR] {item.source.name} -> {error or 'failed'}")

    def on_upload_progress(self, item: Item) -> None:
        """Called whenever an item's upload percentage advances."""
        last = self.last_logged.get(item.id, 0)
        if not self.show_files and item.progress - last >= self.log_interval:
            self.last_logged[item.id] = item.progress
            self.logger.info(f"Uploading {item.display_name}: {item.progress}%")

    def on_item_uploaded(self, item: Item, success: bool) -> None:
        self.last_logged.pop(item.id, None)
        if self.show_files and success:
            print(f"  [DONE] {item.display_name} uploaded")
