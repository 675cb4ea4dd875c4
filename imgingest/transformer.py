"""
Transformer - Crop, downscale and rotate a raster according to a TransformSpec.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image

from .transform_spec import TransformSpec

# Clockwise rotation (canvas semantics, y axis pointing down) expressed as
# Pillow transposes, which rotate counter-clockwise.
CLOCKWISE_TRANSPOSE = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class TransformPlan:
    """
    Geometry for one transform.

    Attributes:
        source_box: (x, y, width, height) of the region read from the source
        target_size: (width, height) the region is scaled to, before rotation
        rotation: Normalized clockwise rotation
        output_size: (width, height) of the final raster
    """
    source_box: Tuple[int, int, int, int]
    target_size: Tuple[int, int]
    rotation: int
    output_size: Tuple[int, int]

    @property
    def crop_box(self) -> Tuple[int, int, int, int]:
        """Source region as a Pillow (left, upper, right, lower) box."""
        x, y, w, h = self.source_box
        return (x, y, x + w, y + h)


def plan_transform(src_width: int, src_height: int, spec: TransformSpec) -> TransformPlan:
    """
    Compute source and destination rectangles for ``spec``.

    The crop is centered and square when requested, the target width is
    capped at both ``max_width`` and the crop width (no upscaling), and the
    output box is transposed for 90/270 degree rotations.
    """
    if src_width <= 0 or src_height <= 0:
        raise ValueError(f"Cannot transform an empty raster ({src_width}x{src_height})")

    if spec.square_crop:
        side = min(src_width, src_height)
        sx = (src_width - side) // 2
        sy = (src_height - side) // 2
        source_box = (sx, sy, side, side)
    else:
        source_box = (0, 0, src_width, src_height)

    crop_w, crop_h = source_box[2], source_box[3]
    target_w = min(spec.max_width, crop_w)
    if spec.square_crop:
        target_h = target_w
    else:
        target_h = max(1, round_half_up(target_w * crop_h / crop_w))

    rotation = spec.rotation_degrees
    if spec.swaps_axes:
        output_size = (target_h, target_w)
    else:
        output_size = (target_w, target_h)

    return TransformPlan(
        source_box=source_box,
        target_size=(target_w, target_h),
        rotation=rotation,
        output_size=output_size,
    )


class Transformer:
    """
    Applies a TransformPlan to a Pillow raster.
    """

    def __init__(
        self,
        resample: Image.Resampling = Image.Resampling.LANCZOS,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize transformer.

        Args:
            resample: Resampling filter for scaling (default: LANCZOS)
            logger: Optional logger instance
        """
        self.resample = resample
        self.logger = logger or logging.getLogger(__name__)

    def transform(self, raster: Image.Image, spec: TransformSpec) -> Image.Image:
        """
        Produce a new raster; ``raster`` itself is left untouched.

        Returns:
            The destination raster; its size equals ``plan.output_size``
        """
        plan = plan_transform(raster.width, raster.height, spec)
        self.logger.debug(
            f"Transform {raster.width}x{raster.height} -> box {plan.source_box}, "
            f"target {plan.target_size}, rotate {plan.rotation}"
        )

        if plan.target_size == (plan.source_box[2], plan.source_box[3]):
            dest = raster.crop(plan.crop_box)
        else:
            dest = raster.resize(plan.target_size, self.resample, box=plan.crop_box)

        if plan.rotation:
            dest = dest.transpose(CLOCKWISE_TRANSPOSE[plan.rotation])

        return dest
