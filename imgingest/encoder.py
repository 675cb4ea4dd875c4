"""
Encoder - Serializes a raster to the configured output format.
"""

import io
import logging
from typing import Optional

from PIL import Image

from .config import TargetFormat
from .errors import EncodeError

MIN_QUALITY = 0.1
MAX_QUALITY = 1.0


def clamp_quality(quality: float) -> float:
    """Clamp a lossy quality into [0.1, 1.0]."""
    return min(max(quality, MIN_QUALITY), MAX_QUALITY)


class Encoder:
    """
    Encodes rasters with Pillow.

    PNG is lossless and ignores quality; WEBP and JPEG use the clamped
    quality mapped onto Pillow's 1-100 scale.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def encode(self, raster: Image.Image, target_format: TargetFormat, quality: float) -> bytes:
        """
        Encode ``raster``.

        Raises:
            EncodeError: If Pillow fails or produces an empty payload
        """
        output = io.BytesIO()
        try:
            if target_format is TargetFormat.PNG:
                raster.save(output, format='PNG', optimize=True)
            elif target_format is TargetFormat.JPEG:
                img = self._convert_color_mode(raster)
                img.save(output, format='JPEG', quality=self._pil_quality(quality), optimize=True)
            else:
                raster.save(output, format=target_format.pil_format, quality=self._pil_quality(quality))
        except Exception as e:
            self.logger.error(f"Error encoding {target_format.name}: {e}")
            raise EncodeError(f"Could not encode image as {target_format.name}: {e}") from e

        payload = output.getvalue()
        if not payload:
            raise EncodeError(f"Encoder produced no payload for {target_format.name}")
        return payload

    @staticmethod
    def _pil_quality(quality: float) -> int:
        return max(1, int(round(clamp_quality(quality) * 100)))

    def _convert_color_mode(self, img: Image.Image) -> Image.Image:
        """Flatten transparency onto white for formats without alpha."""
        if img.mode in ('RGBA', 'LA'):
            background = Image.new('RGB', img.size, (255, 255, 255))
            if img.mode == 'LA':
                img = img.convert('RGBA')
            background.paste(img, mask=img.split()[-1])
            return background
        elif img.mode != 'RGB':
            return img.convert('RGB')
        return img
