"""
BatchOrchestrator - Ingests a batch of files into the item collection.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from .config import IngestConfig
from .errors import ValidationError
from .ingestion_stats import IngestionStats
from .item import Item, ItemStatus
from .lifecycle import LifecycleManager
from .source_file import SourceFile
from .transform_spec import TransformSpec
from .validator import Validator


class BatchOrchestrator:
    """
    Runs a batch through validation, processing and upload.

    1. Validate every file; the first failure rejects the whole batch.
    2. Insert PENDING items in batch order.
    3. Process the items one at a time, so only one raster is in memory.
    4. Publish the new handles once.
    5. Upload every processed item concurrently.
    """

    def __init__(
        self,
        config: IngestConfig,
        lifecycle: LifecycleManager,
        validator: Optional[Validator] = None,
        on_error: Optional[Callable[[str], None]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize orchestrator.

        Args:
            config: Ingestion settings
            lifecycle: Lifecycle manager owning the shared collection
            validator: Batch validator (default: Validator(config))
            on_error: Called with the user-facing message of a rejected batch
            logger: Optional logger instance
        """
        self.config = config
        self.lifecycle = lifecycle
        self.logger = logger or logging.getLogger(__name__)
        self.validator = validator or Validator(config, logger=self.logger)
        self.on_error = on_error
        self.last_error: Optional[str] = None

    async def ingest(self, files: Sequence[SourceFile]) -> IngestionStats:
        """
        Ingest ``files``.

        Never raises for per-file problems: validation failures reject the
        batch and are reported through ``stats.rejected_reason``,
        ``last_error`` and ``on_error``; processing and upload failures
        leave the affected item FAILED.

        Returns:
            IngestionStats with results
        """
        stats = IngestionStats(total_files=len(files), bytes_in=sum(f.size for f in files))
        collection = self.lifecycle.collection

        try:
            self.validator.validate_batch(files, collection.total)
        except ValidationError as e:
            self.last_error = e.message
            stats.rejected_reason = e.message
            stats.error_details.append(e.message)
            if self.lifecycle.progress:
                self.lifecycle.progress.on_batch_rejected(e.message)
            if self.on_error:
                self.on_error(e.message)
            return stats

        self.last_error = None
        if not files:
            return stats

        items = self._create_items(files)
        collection.append(items)
        stats.item_ids = [item.id for item in items]
        self.logger.info(f"Starting ingestion: {len(items)} files")

        ready: List[str] = []
        for item in items:
            if await self.lifecycle.process(item.id):
                ready.append(item.id)
                processed = collection.get(item.id)
                stats.processed += 1
                stats.bytes_out += processed.result.size

        self.lifecycle.notify()

        await asyncio.gather(*(self.lifecycle.upload(item_id) for item_id in ready))

        self._collect_results(stats)
        self.logger.info(
            f"Ingestion complete: {stats.processed} processed, {stats.uploaded} uploaded, "
            f"{stats.failed} failed ({stats.elapsed_seconds:.1f}s)"
        )
        return stats

    def _create_items(self, files: Sequence[SourceFile]) -> List[Item]:
        spec = TransformSpec.from_config(self.config)
        return [Item.create(f, spec) for f in files]

    def _collect_results(self, stats: IngestionStats) -> None:
        collection = self.lifecycle.collection
        for item_id in stats.item_ids:
            item = collection.get(item_id)
            if item is None:
                continue
            if item.status is ItemStatus.COMPLETED:
                stats.uploaded += 1
            elif item.status is ItemStatus.FAILED:
                stats.failed += 1
                stats.error_details.append(f"{item.source.name}: {item.error}")
