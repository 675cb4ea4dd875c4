"""
Pytest fixtures for imgingest tests.
"""

import asyncio
import io

import pytest


@pytest.fixture
def make_image_bytes():
    """Factory fixture encoding a solid-color test image."""
    from PIL import Image

    def _make(width, height, fmt='JPEG', mode='RGB', color='red'):
        img = Image.new(mode, (width, height), color=color)
        buffer = io.BytesIO()
        img.save(buffer, format=fmt)
        return buffer.getvalue()

    return _make


@pytest.fixture
def make_source(make_image_bytes):
    """Factory fixture providing SourceFile instances backed by real JPEG bytes."""
    from imgingest.source_file import SourceFile

    def _make(width=100, height=80, name='photo.jpg', media_type='image/jpeg', size=None):
        data = make_image_bytes(width, height)
        return SourceFile(
            data=data,
            media_type=media_type,
            name=name,
            size=len(data) if size is None else size,
        )

    return _make


@pytest.fixture
def corrupt_source():
    """Fixture providing a file that claims to be a JPEG but is not."""
    from imgingest.source_file import SourceFile

    return SourceFile(data=b'definitely not an image', media_type='image/jpeg', name='broken.jpg')


@pytest.fixture
def config():
    """Fixture providing a small ingestion configuration."""
    from imgingest.config import IngestConfig

    return IngestConfig(max_items=5, max_file_size_mb=1, max_width=1280)


@pytest.fixture
def instant_transport():
    """Fixture providing a simulated transport that does not wait."""
    from imgingest.transport import SimulatedTransport

    return SimulatedTransport(interval=0)


@pytest.fixture
def handle_log():
    """Fixture recording every collection-change callback."""
    calls = []

    def _record(handles):
        calls.append(list(handles))

    _record.calls = calls
    return _record


@pytest.fixture
def uploader(config, instant_transport, handle_log, logger):
    """Fixture providing an ImageUploader with an instant transport."""
    from imgingest.uploader import ImageUploader

    return ImageUploader(
        config,
        transport=instant_transport,
        on_collection_change=handle_log,
        logger=logger,
    )


@pytest.fixture
def run():
    """Fixture running a coroutine to completion."""
    return asyncio.run


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    import logging
    return logging.getLogger('test')
