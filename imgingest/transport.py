"""
Upload transports - Move an encoded item to its destination and report progress.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Optional

from .errors import TransportError
from .item import Item
from .s3_client import S3Client

ProgressCallback = Callable[[int], None]


class Transport:
    """
    Base class for upload transports.

    ``upload`` reports integer percentages through ``on_progress`` and
    returns once the payload is stored. Any exception it raises fails the
    item; transports that retry do so internally.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    async def upload(self, item: Item, on_progress: ProgressCallback) -> None:
        raise NotImplementedError

    def object_name(self, item: Item) -> str:
        return f"{item.id}/{item.display_name}"


class SimulatedTransport(Transport):
    """
    Stand-in transport that stores nothing and advances progress on a timer.

    Emits 0, step, 2*step, ... up to 100 with ``interval`` seconds between.
    """

    def __init__(self, step: int = 10, interval: float = 0.1, logger: Optional[logging.Logger] = None):
        super().__init__(logger)
        if not 0 < step <= 100:
            raise ValueError(f"step must be within (0, 100] (got {step})")
        self.step = step
        self.interval = interval

    async def upload(self, item: Item, on_progress: ProgressCallback) -> None:
        progress = 0
        while True:
            on_progress(progress)
            if progress >= 100:
                break
            await asyncio.sleep(self.interval)
            progress = min(100, progress + self.step)


class LocalTransport(Transport):
    """
    Writes payloads under ``root_path/prefix/<item id>/<display name>``.
    """

    def __init__(self, root_path: str, prefix: str = 'products', logger: Optional[logging.Logger] = None):
        super().__init__(logger)
        self.root_path = root_path
        self.prefix = prefix

    def destination(self, item: Item) -> Path:
        return Path(self.root_path, self.prefix, self.object_name(item))

    async def upload(self, item: Item, on_progress: ProgressCallback) -> None:
        if item.result is None:
            raise TransportError(f"Item {item.id} has no payload to upload")

        on_progress(0)
        path = self.destination(item)
        try:
            await asyncio.to_thread(self._write, path, item.result.payload)
        except OSError as e:
            raise TransportError(f"Could not write {path}: {e}") from e
        self.logger.debug(f"Stored {path}")
        on_progress(100)

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        os.makedirs(path.parent, exist_ok=True)
        with open(path, 'wb') as f:
            f.write(data)


class S3Transport(Transport):
    """
    Uploads payloads to S3, converting transfer callbacks into percentages.

    boto3 transfers block, so the upload runs in a worker thread and the
    byte counts are handed back to the event loop thread.
    """

    def __init__(self, s3_client: S3Client, logger: Optional[logging.Logger] = None):
        super().__init__(logger)
        self.s3 = s3_client

    def key_for(self, item: Item) -> str:
        return self.s3.object_key(self.object_name(item))

    async def upload(self, item: Item, on_progress: ProgressCallback) -> None:
        if item.result is None:
            raise TransportError(f"Item {item.id} has no payload to upload")

        loop = asyncio.get_running_loop()
        total = max(1, item.result.size)
        sent = 0

        def on_bytes(count: int) -> None:
            nonlocal sent
            sent += count
            percent = min(100, sent * 100 // total)
            loop.call_soon_threadsafe(on_progress, percent)

        on_progress(0)
        key = self.key_for(item)
        try:
            await asyncio.to_thread(
                self.s3.upload_object,
                key,
                item.result.payload,
                item.result.content_type,
                on_bytes,
            )
        except Exception as e:
            raise TransportError(f"Upload of {key} failed: {e}") from e
        on_progress(100)
