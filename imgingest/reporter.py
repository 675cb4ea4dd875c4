"""
Reporter - Human-readable reports for collections, batches and transform plans.
"""

import sys
from typing import Iterable, Optional, TextIO, Tuple

from .collection import ItemCollection
from .ingestion_stats import IngestionStats
from .transform_spec import TransformSpec
from .transformer import TransformPlan

SIZE_UNITS = ['Bytes', 'KB', 'MB', 'GB']


def format_file_size(num_bytes: int) -> str:
    """Format a byte count, e.g. 0 -> '0 Bytes', 1536 -> '1.5 KB'."""
    if num_bytes <= 0:
        return '0 Bytes'
    i = 0
    while i < len(SIZE_UNITS) - 1 and num_bytes >= 1024 ** (i + 1):
        i += 1
    value = round(num_bytes / 1024 ** i, 2)
    return f"{value:g} {SIZE_UNITS[i]}"


class Reporter:
    """
    Generates human-readable reports.
    """

    def __init__(
        self,
        output: Optional[TextIO] = None
    ):
        """
        Initialize reporter.

        Args:
            output: Output stream (default: stdout)
        """
        self.output = output or sys.stdout

    def _print(self, text: str = "") -> None:
        """Print to output stream."""
        print(text, file=self.output)

    def report_batch(self, stats: IngestionStats) -> None:
        """Print the outcome of one ingested batch."""
        self._print("=" * 60)
        self._print("BATCH SUMMARY")
        self._print("=" * 60)

        if stats.rejected:
            self._print(f"  Rejected:    {stats.rejected_reason}")
            self._print(f"  Files:       {stats.total_files} (none ingested)")
            return

        self._print(f"  Files:       {stats.total_files}")
        self._print(f"  Processed:   {stats.processed}")
        self._print(f"  Uploaded:    {stats.uploaded}")
        self._print(f"  Failed:      {stats.failed}")
        self._print(f"  Input:       {format_file_size(stats.bytes_in)}")
        self._print(f"  Output:      {format_file_size(stats.bytes_out)}")
        if stats.bytes_in:
            self._print(f"  Ratio:       {stats.compression_ratio:.1%}")
        self._print(f"  Time:        {stats.elapsed_seconds:.1f}s")
        if stats.processed:
            self._print(f"  Rate:        {stats.rate_per_second:.1f} images/s")

        for detail in stats.error_details:
            self._print(f"  ! {detail}")

    def report_collection(self, collection: ItemCollection, max_items: Optional[int] = None) -> None:
        """Print one line per item in collection order."""
        self._print("=" * 60)
        self._print("COLLECTION")
        self._print("=" * 60)

        if not collection.total:
            self._print("  (empty)")
            return

        stored_main = collection.main_item is None
        for index, handle in enumerate(collection.initial_handles, start=1):
            marker = '*' if stored_main and index == 1 else ' '
            self._print(f" {marker}{index:>2}. {handle:<32} stored")

        offset = len(collection.initial_handles)
        for index, item in enumerate(collection, start=offset + 1):
            marker = '*' if item.is_main else ' '
            if item.result is not None:
                detail = (
                    f"{item.result.width}x{item.result.height} "
                    f"{format_file_size(item.result.size)}"
                )
            else:
                detail = item.error or '-'
            self._print(
                f" {marker}{index:>2}. {item.display_name:<32} "
                f"{item.status.value:<10} {detail}"
            )

        count = f"{collection.total} of {max_items}" if max_items else f"{collection.total}"
        self._print()
        self._print(f"  {count} images (* = main image)")

    def report_plans(self, plans: Iterable[Tuple[str, Tuple[int, int], TransformPlan]], spec: TransformSpec) -> None:
        """Print transform geometry for each (name, source size, plan)."""
        self._print("=" * 60)
        self._print(
            f"TRANSFORM PLAN (max width {spec.max_width}, "
            f"rotation {spec.rotation_degrees}, square {'yes' if spec.square_crop else 'no'})"
        )
        self._print("=" * 60)

        for name, (src_w, src_h), plan in plans:
            x, y, w, h = plan.source_box
            out_w, out_h = plan.output_size
            self._print(f"  {name}")
            self._print(f"    source:  {src_w}x{src_h}  crop ({x}, {y}) {w}x{h}")
            self._print(f"    output:  {out_w}x{out_h}")
