"""
IngestionStats - Statistics for one ingested batch.
"""

import time
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class IngestionStats:
    """
    Statistics for one batch.

    Attributes:
        total_files: Files submitted in the batch
        processed: Files decoded, transformed and encoded
        failed: Items that ended FAILED
        uploaded: Items that reached COMPLETED
        bytes_in: Total size of the submitted files
        bytes_out: Total size of encoded payloads
        item_ids: Ids of the items created, in batch order
        rejected_reason: Validation message when the batch was rejected
        start_time: Start timestamp
        error_details: List of error messages
    """
    total_files: int = 0
    processed: int = 0
    failed: int = 0
    uploaded: int = 0
    bytes_in: int = 0
    bytes_out: int = 0
    item_ids: List[str] = field(default_factory=list)
    rejected_reason: Optional[str] = None
    start_time: float = field(default_factory=time.time)
    error_details: List[str] = field(default_factory=list)

    @property
    def rejected(self) -> bool:
        return self.rejected_reason is not None

    @property
    def elapsed_seconds(self) -> float:
        """Elapsed time in seconds."""
        return time.time() - self.start_time

    @property
    def rate_per_second(self) -> float:
        """Processing rate in images per second."""
        if self.elapsed_seconds > 0:
            return self.processed / self.elapsed_seconds
        return 0.0

    @property
    def compression_ratio(self) -> float:
        """Output bytes as a fraction of input bytes."""
        if self.bytes_in == 0:
            return 0.0
        return self.bytes_out / self.bytes_in
