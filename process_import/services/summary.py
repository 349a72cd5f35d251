from __future__ import annotations

from ..models.processing_result import ProcessingResult

"""SUMMARY line rendering for an import run.

Format:
SUMMARY batches={n} imported={i} failed={f} rows={r} error_rows={e}
elapsed_sec={elapsed} throughput_rps={throughput}
"""

__all__ = [
    "format_number",
    "render_summary_line",
]


def format_number(value: float) -> str:
    """Integers without decimals, tiny values without scientific notation."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(value)


def render_summary_line(result: ProcessingResult) -> str:
    """Render the SUMMARY line of a run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     imported_batches=1, failed_batches=0, total_imported_rows=90,
        ...     total_error_rows=10, start_time=start, end_time=end,
        ...     elapsed_seconds=2.0, throughput_rows_per_sec=50.0
        ... )
        >>> render_summary_line(result)
        'SUMMARY batches=1 imported=1 failed=0 rows=90 error_rows=10 elapsed_sec=2 throughput_rps=50'
    """
    return (
        f"SUMMARY batches={result.total_batches} "
        f"imported={result.imported_batches} "
        f"failed={result.failed_batches} "
        f"rows={result.total_imported_rows} "
        f"error_rows={result.total_error_rows} "
        f"elapsed_sec={format_number(result.elapsed_seconds)} "
        f"throughput_rps={format_number(result.throughput_rows_per_sec)}"
    )
