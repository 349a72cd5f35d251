from __future__ import annotations

from process_import.cli.__main__ import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL

"""Exit code contract: 0 all batches imported, 1 fatal, 2 at least one batch failed."""


def test_exit_codes():
    assert (EXIT_SUCCESS_ALL, EXIT_FATAL, EXIT_PARTIAL_FAILURE) == (0, 1, 2)
