"""
Item - Per-image aggregate tracked through the upload lifecycle.
"""

import re
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from .errors import InvalidTransitionError
from .source_file import SourceFile
from .transform_spec import TransformResult, TransformSpec


class ItemStatus(Enum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    UPLOADING = 'uploading'
    COMPLETED = 'completed'
    FAILED = 'failed'


# PROCESSING -> COMPLETED only happens when a re-transform finishes on an
# item that was already uploaded; PROCESSING -> PROCESSING is a superseding
# re-transform request.
TRANSITIONS = {
    ItemStatus.PENDING: {ItemStatus.PROCESSING},
    ItemStatus.PROCESSING: {
        ItemStatus.PROCESSING,
        ItemStatus.UPLOADING,
        ItemStatus.COMPLETED,
        ItemStatus.FAILED,
    },
    ItemStatus.UPLOADING: {ItemStatus.COMPLETED, ItemStatus.FAILED},
    ItemStatus.COMPLETED: {ItemStatus.PROCESSING},
    ItemStatus.FAILED: set(),
}

_REPLACEABLE_EXTENSION = re.compile(r'\.(jpe?g|png|webp)$', re.IGNORECASE)


def make_display_name(original_name: str, extension: str) -> str:
    """Rewrite a file name's image extension to ``extension``."""
    return _REPLACEABLE_EXTENSION.sub('', original_name) + extension


def new_item_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Item:
    """
    Immutable snapshot of one image in a collection.

    Every change goes through ``evolve`` or ``transition`` and produces a new
    Item, so a reader holding an older snapshot never sees a half-written one.

    Attributes:
        id: Stable identifier assigned at ingestion
        source: The untouched uploaded file
        spec: Latest requested transform
        display_name: File name with extension matching the target format
        status: Lifecycle state
        is_main: Whether this is the collection's main image
        progress: Upload percentage, meaningful while UPLOADING
        result: Latest encoded output, if any
        handle: Live derived handle for ``result``, if any
        error: Failure message when FAILED
        generation: Counter of transform requests; the latest one wins
    """
    id: str
    source: SourceFile
    spec: TransformSpec
    display_name: str
    status: ItemStatus = ItemStatus.PENDING
    is_main: bool = False
    progress: int = 0
    result: Optional[TransformResult] = None
    handle: Optional[str] = None
    error: Optional[str] = None
    generation: int = 0

    @classmethod
    def create(cls, source: SourceFile, spec: TransformSpec) -> 'Item':
        return cls(
            id=new_item_id(),
            source=source,
            spec=spec,
            display_name=make_display_name(source.name, spec.target_format.extension),
        )

    @property
    def rotation_degrees(self) -> int:
        return self.spec.rotation_degrees

    @property
    def square_crop(self) -> bool:
        return self.spec.square_crop

    @property
    def width(self) -> Optional[int]:
        return self.result.width if self.result else None

    @property
    def height(self) -> Optional[int]:
        return self.result.height if self.result else None

    @property
    def is_terminal(self) -> bool:
        return self.status is ItemStatus.FAILED

    def can_transition(self, status: ItemStatus) -> bool:
        return status in TRANSITIONS[self.status]

    def evolve(self, **changes) -> 'Item':
        """Return a copy with ``changes`` applied, without touching status."""
        return replace(self, **changes)

    def transition(self, status: ItemStatus, **changes) -> 'Item':
        """
        Return a copy moved to ``status``.

        Raises:
            InvalidTransitionError: If the state machine forbids the move
        """
        if not self.can_transition(status):
            raise InvalidTransitionError(
                f"Item {self.id} cannot move from {self.status.value} to {status.value}"
            )
        return replace(self, status=status, **changes)
