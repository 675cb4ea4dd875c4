"""
LifecycleManager - Drives items through processing, upload and re-transforms.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from PIL import Image

from .collection import ItemCollection
from .decoder import Decoder
from .encoder import Encoder
from .errors import InvalidTransitionError
from .handles import HandleRegistry
from .ingestion_progress import IngestionProgress
from .item import Item, ItemStatus
from .source_file import SourceFile
from .transform_spec import TransformResult, TransformSpec
from .transformer import Transformer
from .transport import SimulatedTransport, Transport

CollectionCallback = Callable[[List[str]], None]


class LifecycleManager:
    """
    Owns the per-item state machine.

    All collection mutations happen synchronously on the event loop thread;
    the only suspension points are decode/transform, encode and the
    transport. After each of them the item is looked up again, so work
    finishing for a removed or superseded item is dropped without touching
    the collection or creating a handle.
    """

    def __init__(
        self,
        collection: ItemCollection,
        registry: HandleRegistry,
        decoder: Optional[Decoder] = None,
        transformer: Optional[Transformer] = None,
        encoder: Optional[Encoder] = None,
        transport: Optional[Transport] = None,
        on_collection_change: Optional[CollectionCallback] = None,
        progress: Optional[IngestionProgress] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize lifecycle manager.

        Args:
            collection: Shared item collection
            registry: Derived handle registry
            decoder: Image decoder (default: Decoder())
            transformer: Geometry transformer (default: Transformer())
            encoder: Image encoder (default: Encoder())
            transport: Upload transport (default: SimulatedTransport())
            on_collection_change: Called with the live handles after insertions,
                removals, reorders, committed re-transforms and main-image changes
            progress: Optional progress reporter
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.collection = collection
        self.registry = registry
        self.decoder = decoder or Decoder(logger=self.logger)
        self.transformer = transformer or Transformer(logger=self.logger)
        self.encoder = encoder or Encoder(logger=self.logger)
        self.transport = transport or SimulatedTransport(logger=self.logger)
        self.on_collection_change = on_collection_change
        self.progress = progress

    def notify(self) -> None:
        """Publish the current live handles."""
        if self.on_collection_change:
            self.on_collection_change(self.collection.handles())

    # --- Pipeline ---------------------------------------------------------------

    def _decode_and_transform(self, data: bytes, spec: TransformSpec) -> Image.Image:
        raster = self.decoder.decode(data)
        return self.transformer.transform(raster, spec)

    async def run_pipeline(self, source: SourceFile, spec: TransformSpec) -> TransformResult:
        """
        Decode, transform and encode ``source`` from its original bytes.

        Raises:
            DecodeError: If the source cannot be decoded
            EncodeError: If the encoder produces nothing
        """
        dest = await asyncio.to_thread(self._decode_and_transform, source.data, spec)
        payload = await asyncio.to_thread(
            self.encoder.encode, dest, spec.target_format, spec.quality
        )
        return TransformResult(
            payload=payload,
            width=dest.width,
            height=dest.height,
            content_type=spec.target_format.content_type,
        )

    # --- State transitions ------------------------------------------------------

    async def process(self, item_id: str) -> bool:
        """
        Run the first pipeline pass: PENDING -> PROCESSING -> UPLOADING | FAILED.

        Returns:
            True if the item is ready to upload
        """
        item = self.collection.update(item_id, lambda i: i.transition(ItemStatus.PROCESSING))
        if item is None:
            return False

        self.logger.debug(f"Processing: {item.source.name}")
        try:
            result = await self.run_pipeline(item.source, item.spec)
        except Exception as e:
            self._fail(item_id, item.generation, e)
            return False

        committed = self._commit_result(item_id, item.generation, result, ItemStatus.UPLOADING, progress=0)
        if committed is None:
            return False

        self.logger.debug(
            f"Processed: {item.source.name} -> {committed.display_name} "
            f"{result.width}x{result.height} ({result.size} bytes)"
        )
        if self.progress:
            self.progress.on_item_processed(committed, success=True)
        return True

    async def upload(self, item_id: str) -> bool:
        """
        Hand an UPLOADING item to the transport: UPLOADING -> COMPLETED | FAILED.

        Returns:
            True if the item reached COMPLETED
        """
        item = self.collection.get(item_id)
        if item is None or item.status is not ItemStatus.UPLOADING:
            return False

        def on_progress(percent: int) -> None:
            current = self.collection.get(item_id)
            if current is None or current.status is not ItemStatus.UPLOADING:
                return
            percent = min(100, max(0, int(percent)))
            if percent <= current.progress:
                return
            updated = self.collection.update(item_id, lambda i: i.evolve(progress=percent))
            if self.progress and updated is not None:
                self.progress.on_upload_progress(updated)

        try:
            await self.transport.upload(item, on_progress)
        except Exception as e:
            current = self.collection.get(item_id)
            if current is not None and current.status is ItemStatus.UPLOADING:
                self._fail(item_id, current.generation, e)
            return False

        current = self.collection.get(item_id)
        if current is None or current.status is not ItemStatus.UPLOADING:
            return False

        completed = self.collection.update(
            item_id, lambda i: i.transition(ItemStatus.COMPLETED, progress=100)
        )
        self.logger.info(f"Uploaded: {completed.display_name}")
        if self.progress:
            self.progress.on_item_uploaded(completed, success=True)
        return True

    async def retransform(self, item_id: str, rotate_by: int = 0, toggle_square_crop: bool = False) -> bool:
        """
        Re-derive an item's payload from its source with an updated spec.

        The new spec builds on the latest *requested* spec, and a later
        request supersedes an earlier one still in flight: only the newest
        request's result is committed.

        Returns:
            True if this request's result was committed

        Raises:
            KeyError: If the item is not in the collection
            InvalidTransitionError: If the item has not finished uploading
        """
        current = self.collection.get(item_id)
        if current is None:
            raise KeyError(item_id)

        if current.is_terminal:
            raise InvalidTransitionError(f"Item {item_id} failed; remove it and add the file again")

        reprocessing = current.status is ItemStatus.PROCESSING and current.result is not None
        if current.status is not ItemStatus.COMPLETED and not reprocessing:
            raise InvalidTransitionError(
                f"Item {item_id} cannot be re-transformed while {current.status.value}"
            )

        spec = current.spec.rotated(rotate_by)
        if toggle_square_crop:
            spec = spec.with_square_crop(not spec.square_crop)

        item = self.collection.update(
            item_id,
            lambda i: i.transition(ItemStatus.PROCESSING, spec=spec, generation=i.generation + 1),
        )
        generation = item.generation

        try:
            result = await self.run_pipeline(item.source, spec)
        except Exception as e:
            self._fail(item_id, generation, e)
            return False

        committed = self._commit_result(item_id, generation, result, ItemStatus.COMPLETED, progress=100)
        if committed is None:
            return False

        self.logger.info(
            f"Re-transformed: {committed.display_name} "
            f"(rotation {spec.rotation_degrees}, square {spec.square_crop})"
        )
        self.notify()
        return True

    async def rotate(self, item_id: str, degrees: int = 90) -> bool:
        return await self.retransform(item_id, rotate_by=degrees)

    async def toggle_square_crop(self, item_id: str) -> bool:
        return await self.retransform(item_id, toggle_square_crop=True)

    def set_main(self, item_id: str) -> Item:
        """
        Make ``item_id`` the main image.

        Raises:
            KeyError: If the item is not in the collection
        """
        item = self.collection.set_main(item_id)
        self.notify()
        return item

    def move(self, item_id: str, index: int) -> Item:
        """
        Reorder ``item_id`` to ``index`` and publish the new order.

        Raises:
            KeyError: If the item is not in the collection
        """
        item = self.collection.move(item_id, index)
        self.notify()
        return item

    def remove(self, item_id: str) -> bool:
        """
        Revoke the item's handle, then drop it from the collection.

        Returns:
            False if the item was already gone
        """
        current = self.collection.get(item_id)
        if current is None:
            return False

        self.registry.revoke(current.handle)
        self.collection.remove(item_id)
        self.logger.debug(f"Removed: {current.display_name}")
        self.notify()
        return True

    # --- Helpers ----------------------------------------------------------------

    def _commit_result(
        self,
        item_id: str,
        generation: int,
        result: TransformResult,
        status: ItemStatus,
        progress: int
    ) -> Optional[Item]:
        """Swap in ``result`` and a fresh handle, unless the request is stale."""
        current = self.collection.get(item_id)
        if current is None:
            self.logger.debug(f"Item {item_id} removed while processing; discarding result")
            return None
        if current.generation != generation:
            self.logger.debug(f"Item {item_id} request {generation} superseded; discarding result")
            return None

        handle = self.registry.replace(current.handle, result.payload, result.content_type)
        return self.collection.update(
            item_id,
            lambda i: i.transition(status, result=result, handle=handle, error=None, progress=progress),
        )

    def _fail(self, item_id: str, generation: int, error: Exception) -> None:
        """Move the item to FAILED, unless it is gone or a newer request owns it."""
        current = self.collection.get(item_id)
        if current is None or current.generation != generation:
            return

        message = str(error) or error.__class__.__name__
        self.logger.error(f"Error processing {current.source.name}: {message}")

        had_handle = self.registry.revoke(current.handle)
        failed = self.collection.update(
            item_id,
            lambda i: i.transition(ItemStatus.FAILED, result=None, handle=None, error=message),
        )
        if self.progress:
            self.progress.on_item_failed(failed, message)
        if had_handle:
            self.notify()
