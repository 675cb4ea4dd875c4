"""
Decoder - Turns raw upload bytes into a Pillow raster.
"""

import io
import logging
from typing import Callable, Optional

from PIL import Image, ImageFile, ImageOps

from .errors import DecodeError

DecodePath = Callable[[bytes], Optional[Image.Image]]


def open_and_load(data: bytes) -> Image.Image:
    """Fast path: let Pillow sniff the container and decode in one go."""
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


def parse_incrementally(data: bytes) -> Image.Image:
    """Fallback path: feed the bytes through Pillow's incremental parser."""
    parser = ImageFile.Parser()
    parser.feed(data)
    return parser.close()


class Decoder:
    """
    Decodes image bytes, falling back to a slower path if the fast one fails.

    The raster handed back is always RGB or RGBA with EXIF orientation
    applied; its ``size`` is the authoritative natural size.
    """

    def __init__(
        self,
        fast_path: Optional[DecodePath] = None,
        fallback_path: Optional[DecodePath] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize decoder.

        Args:
            fast_path: Primary decode function (default: Image.open + load)
            fallback_path: Used when the fast path raises or returns None
            logger: Optional logger instance
        """
        self.fast_path = fast_path or open_and_load
        self.fallback_path = fallback_path or parse_incrementally
        self.logger = logger or logging.getLogger(__name__)

    def decode(self, data: bytes) -> Image.Image:
        """
        Decode ``data`` into a raster.

        Raises:
            DecodeError: If both paths fail
        """
        img = None
        try:
            img = self.fast_path(data)
        except Exception as e:
            self.logger.debug(f"Fast decode failed, falling back: {e}")

        if img is None:
            try:
                img = self.fallback_path(data)
            except Exception as e:
                self.logger.error(f"Error decoding image: {e}")
                raise DecodeError(f"Could not decode image: {e}") from e

        if img is None:
            raise DecodeError("Could not decode image: no decoder produced a raster")

        img = ImageOps.exif_transpose(img) or img
        return self._normalize_mode(img)

    def _normalize_mode(self, img: Image.Image) -> Image.Image:
        """Convert to RGB, or RGBA when the source carries transparency."""
        if img.mode in ('RGB', 'RGBA'):
            return img
        if img.mode in ('LA', 'PA') or (img.mode == 'P' and 'transparency' in img.info):
            return img.convert('RGBA')
        return img.convert('RGB')
