from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm

"""Progress display with tqdm (TTY only).

In non-TTY environments (CI, cron) no bar is created so the log output stays
free of control sequences.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress bar over the batches claimed in one run."""

    def __init__(self, total_batches: int, *, description: str = "Importing batches") -> None:
        self.total_batches = total_batches
        self.description = description
        self.current_batch = 0

        self.enabled = is_tty_enabled() and total_batches > 0
        self.pbar: Any | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_batches,
                desc=description,
                unit="batch",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_batch(self, batch_id: int, file_name: str) -> None:
        self.current_batch += 1
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({batch_id}-{file_name})")

    def finish_batch(self) -> None:
        if self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)

    def set_postfix(self, **kwargs: Any) -> None:
        if self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
