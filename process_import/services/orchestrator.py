from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..db.persist import mark_batch_error, persist_batch
from ..db.queue import claim_batches
from ..db.reference import find_flows_by_names
from ..errors import ImportPipelineError, MissingHeaderError, ProcessingError
from ..excel.headers import MISSING_HEADER_MESSAGE, resolve_headers
from ..excel.reader import ingest
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.batch import BatchStatus, ImportBatch
from ..models.config_models import ImportConfig
from ..models.processing_result import BatchStat, ProcessingResult
from ..models.row import ImportRow
from .progress import ProgressTracker
from .validation import distinct_flow_names, extract_raw_rows, validate_raw_rows

"""Import run orchestration.

One run claims up to ``max_batches_per_run`` waiting batches and processes
them one after the other:

    ingest -> resolve headers -> validate rows (flow lookup) -> persist

Each batch is its own transaction. A batch that fails (parse, header or
persistence error) is marked ``error`` with the cause and the run moves on to
the next one; batches already committed stay ``imported``.
"""

logger = logging.getLogger(__name__)


def process_batch(cursor: Any, batch: ImportBatch, config: ImportConfig) -> list[ImportRow]:
    """Validate and persist one claimed batch; returns the persisted rows.

    The header map is resolved on the first worksheet and applied to every
    worksheet of the workbook. Flows are looked up once per worksheet.
    """
    grids = ingest(batch.data or b"", batch.file_name, config.csv)
    if not grids:
        raise MissingHeaderError(MISSING_HEADER_MESSAGE)
    logger.info("batch=%s parsed file=%s sheets=%d", batch.id, batch.file_name, len(grids))

    header_map = resolve_headers(grids[0])

    rows: list[ImportRow] = []
    for grid in grids:
        raw_rows = extract_raw_rows(grid, header_map)
        flows = find_flows_by_names(cursor, distinct_flow_names(raw_rows))
        rows.extend(validate_raw_rows(raw_rows, flows))
        logger.debug(
            "batch=%s sheet=%s rows=%d flows_resolved=%d",
            batch.id,
            grid.sheet_name,
            len(raw_rows),
            len(flows),
        )

    return persist_batch(
        cursor, batch.id, batch.imported_by, rows, page_size=config.page_size
    )


def _fail_batch(
    cursor: Any,
    batch: ImportBatch,
    error_type: str,
    message: str,
    error_log: ErrorLogBuffer,
) -> None:
    error_log.append(
        ErrorRecord.create(
            batch_id=batch.id,
            file=batch.file_name,
            error_type=error_type,
            message=message,
        )
    )
    try:
        mark_batch_error(cursor, batch.id, message)
    except Exception:
        # batch stays inProgress; an operator has to reset it
        logger.exception("batch=%s could not be marked as error", batch.id)


def _run_batch(
    cursor: Any,
    batch: ImportBatch,
    config: ImportConfig,
    error_log: ErrorLogBuffer,
) -> BatchStat:
    start = datetime.now(UTC)
    logger.info("batch=%s processing file=%s", batch.id, batch.file_name)
    try:
        rows = process_batch(cursor, batch, config)
    except ImportPipelineError as e:
        message = str(e)
        logger.error("batch=%s failed: %s", batch.id, message)
        _fail_batch(cursor, batch, e.error_type, message, error_log)
        status, imported, errored = BatchStatus.ERROR, 0, 0
    except Exception as e:
        message = str(e) or e.__class__.__name__
        logger.exception("batch=%s unexpected failure", batch.id)
        _fail_batch(cursor, batch, "UNEXPECTED_ERROR", message, error_log)
        status, imported, errored = BatchStatus.ERROR, 0, 0
    else:
        message = None
        errored = sum(1 for r in rows if r.is_error)
        imported = len(rows) - errored
        status = BatchStatus.IMPORTED
        logger.info(
            "batch=%s imported rows=%d error_rows=%d", batch.id, imported, errored
        )

    return BatchStat(
        batch_id=batch.id,
        file_name=batch.file_name,
        status=status.value,
        imported_rows=imported,
        error_rows=errored,
        elapsed_seconds=(datetime.now(UTC) - start).total_seconds(),
        message=message,
    )


def process_all(
    config: ImportConfig,
    cursor: Any,
    error_log: ErrorLogBuffer | None = None,
) -> ProcessingResult:
    """Claim waiting batches and import them sequentially.

    Raises:
        ProcessingError: if the batches could not be claimed
    """
    start_time = datetime.now(UTC)
    error_log = error_log or ErrorLogBuffer(Path(config.error_log_dir))

    try:
        batches = claim_batches(cursor, config.max_batches_per_run)
    except Exception as e:
        raise ProcessingError(f"could not claim batches: {e}") from e

    if not batches:
        logger.info("no waiting batches")

    batch_stats: list[BatchStat] = []
    with ProgressTracker(len(batches)) as progress:
        for batch in batches:
            progress.start_batch(batch.id, batch.file_name)
            stat = _run_batch(cursor, batch, config, error_log)
            batch_stats.append(stat)
            progress.set_postfix(
                imported=sum(1 for s in batch_stats if s.status == BatchStatus.IMPORTED.value),
                failed=sum(1 for s in batch_stats if s.status == BatchStatus.ERROR.value),
            )
            progress.finish_batch()

    try:
        log_path = error_log.flush()
        if log_path is not None:
            logger.warning("file-level errors written to %s", log_path)
    except OSError:
        logger.warning("could not write error log", exc_info=True)

    end_time = datetime.now(UTC)
    elapsed_seconds = (end_time - start_time).total_seconds()
    imported_batches = [s for s in batch_stats if s.status == BatchStatus.IMPORTED.value]
    total_imported = sum(s.imported_rows for s in batch_stats)
    total_errors = sum(s.error_rows for s in batch_stats)
    throughput = (total_imported + total_errors) / elapsed_seconds if elapsed_seconds > 0 else 0.0

    return ProcessingResult(
        imported_batches=len(imported_batches),
        failed_batches=len(batch_stats) - len(imported_batches),
        total_imported_rows=total_imported,
        total_error_rows=total_errors,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_seconds,
        throughput_rows_per_sec=throughput,
        batch_stats=batch_stats,
    )
