from __future__ import annotations

import logging
from typing import Any

from ..models.batch import BatchStatus, ImportBatch
from .tables import BATCH_TABLE

"""Claim queue.

A single conditional UPDATE flips up to ``max_count`` waiting batches to
inProgress and returns them. Rows locked by a concurrent claimer are skipped,
and the ``status = 'waiting'`` predicate on the outer UPDATE guarantees that
a batch is never handed to two workers.
"""

__all__ = [
    "claim_batches",
]

logger = logging.getLogger(__name__)

CLAIM_SQL = f"""
UPDATE {BATCH_TABLE} AS pf
   SET status = %(in_progress)s
 WHERE pf.id_processes_file IN (
        SELECT id_processes_file
          FROM {BATCH_TABLE}
         WHERE status = %(waiting)s
         ORDER BY id_processes_file ASC
         LIMIT %(limit)s
         FOR UPDATE SKIP LOCKED
       )
   AND pf.status = %(waiting)s
RETURNING pf.id_processes_file, pf.file_name, pf.data_original_file, pf.imported_by, pf.name
"""


def claim_batches(cursor: Any, max_count: int) -> list[ImportBatch]:
    """Atomically move up to ``max_count`` waiting batches to inProgress, oldest first."""
    if max_count < 1:
        return []
    cursor.execute(
        CLAIM_SQL,
        {
            "in_progress": BatchStatus.IN_PROGRESS.value,
            "waiting": BatchStatus.WAITING.value,
            "limit": max_count,
        },
    )
    claimed = [
        ImportBatch(
            id=row[0],
            file_name=row[1],
            data=bytes(row[2]) if row[2] is not None else None,
            imported_by=row[3],
            name=row[4],
            status=BatchStatus.IN_PROGRESS,
        )
        for row in cursor.fetchall()
    ]
    # RETURNING order is unspecified
    claimed.sort(key=lambda b: b.id)
    logger.debug("claimed batches=%s", [b.id for b in claimed])
    return claimed
