from __future__ import annotations

from datetime import UTC, datetime

import pytest

from process_import.models.processing_result import ProcessingResult
from process_import.services.summary import format_number, render_summary_line


def _result(**overrides) -> ProcessingResult:
    values = dict(
        imported_batches=2,
        failed_batches=1,
        total_imported_rows=120,
        total_error_rows=3,
        start_time=datetime(2024, 1, 1, tzinfo=UTC),
        end_time=datetime(2024, 1, 1, 0, 0, 2, tzinfo=UTC),
        elapsed_seconds=1.5,
        throughput_rows_per_sec=82.0,
    )
    values.update(overrides)
    return ProcessingResult(**values)


def test_render_summary_line():
    assert render_summary_line(_result()) == (
        "SUMMARY batches=3 imported=2 failed=1 rows=120 error_rows=3 "
        "elapsed_sec=1.5 throughput_rps=82"
    )


def test_render_summary_empty_run():
    line = render_summary_line(
        _result(imported_batches=0, failed_batches=0, total_imported_rows=0, total_error_rows=0,
                elapsed_seconds=0.0, throughput_rows_per_sec=0.0)
    )
    assert line == "SUMMARY batches=0 imported=0 failed=0 rows=0 error_rows=0 elapsed_sec=0 throughput_rps=0"


@pytest.mark.parametrize(
    "value,expected",
    [(0, "0"), (3.0, "3"), (0.25, "0.25"), (0.000123, "0.000123"), (0.0000001, "0")],
)
def test_format_number(value, expected):
    assert format_number(value) == expected
