"""
ImageUploader - Product image collection with its ingestion pipeline wired up.
"""

import logging
import os
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from .collection import ItemCollection
from .config import IngestConfig
from .decoder import Decoder
from .encoder import Encoder
from .handles import HandleRegistry
from .ingestion_progress import IngestionProgress
from .ingestion_stats import IngestionStats
from .item import Item
from .lifecycle import CollectionCallback, LifecycleManager
from .orchestrator import BatchOrchestrator
from .source_file import SourceFile
from .transformer import Transformer
from .transport import Transport


class ImageUploader:
    """
    One product's image collection.

    This is the object a form or CLI talks to: it ingests batches, applies
    user actions (rotate, crop toggle, set main, reorder, remove) and serves
    downloads from the derived handles.
    """

    def __init__(
        self,
        config: Optional[IngestConfig] = None,
        transport: Optional[Transport] = None,
        on_collection_change: Optional[CollectionCallback] = None,
        on_error: Optional[Callable[[str], None]] = None,
        progress: Optional[IngestionProgress] = None,
        decoder: Optional[Decoder] = None,
        initial_handles: Sequence[str] = (),
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize uploader.

        Args:
            config: Ingestion settings (default: IngestConfig())
            transport: Upload transport (default: SimulatedTransport())
            on_collection_change: Receives the live handles after each change
            on_error: Receives the message of each rejected batch
            progress: Optional progress reporter
            decoder: Optional decoder override
            initial_handles: Handles of images already stored for the product
            logger: Optional logger instance
        """
        self.config = config or IngestConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.collection = ItemCollection(initial_handles=initial_handles)
        self.registry = HandleRegistry(logger=self.logger)
        self.lifecycle = LifecycleManager(
            collection=self.collection,
            registry=self.registry,
            decoder=decoder or Decoder(logger=self.logger),
            transformer=Transformer(logger=self.logger),
            encoder=Encoder(logger=self.logger),
            transport=transport,
            on_collection_change=on_collection_change,
            progress=progress,
            logger=self.logger,
        )
        self.orchestrator = BatchOrchestrator(
            self.config,
            self.lifecycle,
            on_error=on_error,
            logger=self.logger,
        )

    @property
    def items(self) -> Tuple[Item, ...]:
        return self.collection.items

    @property
    def main_item(self) -> Optional[Item]:
        return self.collection.main_item

    @property
    def main_handle(self) -> Optional[str]:
        return self.collection.main_handle

    @property
    def handles(self) -> List[str]:
        return self.collection.handles()

    @property
    def error(self) -> Optional[str]:
        """Message of the last rejected batch, cleared by the next accepted one."""
        return self.orchestrator.last_error

    def get(self, item_id: str) -> Optional[Item]:
        return self.collection.get(item_id)

    async def ingest(self, files: Sequence[SourceFile]) -> IngestionStats:
        return await self.orchestrator.ingest(files)

    async def ingest_paths(self, paths: Sequence[str]) -> IngestionStats:
        """Read files from disk and ingest them as one batch."""
        return await self.ingest([SourceFile.from_path(p) for p in paths])

    async def rotate(self, item_id: str, degrees: int = 90) -> bool:
        return await self.lifecycle.rotate(item_id, degrees)

    async def toggle_square_crop(self, item_id: str) -> bool:
        return await self.lifecycle.toggle_square_crop(item_id)

    def set_main(self, item_id: str) -> Item:
        return self.lifecycle.set_main(item_id)

    def move(self, item_id: str, index: int) -> Item:
        return self.lifecycle.move(item_id, index)

    def remove(self, item_id: str) -> bool:
        return self.lifecycle.remove(item_id)

    def download(self, item_id: Optional[str] = None) -> Tuple[str, bytes]:
        """
        Return ``(display_name, payload)`` for an item, or the main image.

        Raises:
            KeyError: If the item is absent or has no live handle
        """
        item = self.collection.get(item_id) if item_id else self.main_item
        if item is None:
            raise KeyError(item_id or 'main image')
        if item.handle is None:
            raise KeyError(f"{item.display_name} has no payload")
        return item.display_name, self.registry.resolve(item.handle)

    def save_as(self, directory: str, item_id: Optional[str] = None) -> Path:
        """Write an item's payload into ``directory`` under its display name."""
        name, payload = self.download(item_id)
        os.makedirs(directory, exist_ok=True)
        path = Path(directory, name)
        with open(path, 'wb') as f:
            f.write(payload)
        self.logger.info(f"Saved {path}")
        return path
