from __future__ import annotations

import argparse
import sys
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from ..config.loader import ConfigError, load_config
from ..db.batches import delete_batch, list_batches
from ..db.connection import db_connection
from ..errors import ImportPipelineError, IntakeError
from ..excel.headers import resolve_headers
from ..excel.reader import ingest
from ..logging.init import log_summary, setup_logging
from ..services.intake import guess_mime_type, register_upload
from ..services.orchestrator import ProcessingError, process_all
from ..services.retrieval import fetch_batch_file
from ..services.summary import render_summary_line

"""CLI entrypoint.

Default action runs the import job (claim waiting batches, import them, print
the SUMMARY line). Other actions register an upload, download the original
file or the result report, list or delete batches, or inspect a local file
without touching the database.
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

DEFAULT_CONFIG_PATH = Path("config/import.yml")


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; its values win over variables already set in the process."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Legal-process spreadsheet batch importer")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    action = p.add_mutually_exclusive_group()
    action.add_argument("--enqueue", type=Path, metavar="PATH", help="Register a spreadsheet as a waiting batch")
    action.add_argument("--report", type=int, metavar="BATCH_ID", help="Write the result report of a batch")
    action.add_argument("--export", type=int, metavar="BATCH_ID", help="Write the original upload of a batch")
    action.add_argument("--list", action="store_true", help="List recent batches with row counts")
    action.add_argument("--delete", type=int, metavar="BATCH_ID", help="Delete a batch and its rows")
    action.add_argument("--inspect-data", type=Path, metavar="PATH", help="Print resolved headers & first rows then exit")
    p.add_argument("--name", help="Display name of the enqueued batch (default: file name)")
    p.add_argument("--imported-by", help="Operator identifier stored with the enqueued batch")
    p.add_argument("--format", choices=["xlsx", "csv"], default="xlsx", help="Download format")
    p.add_argument("--output", type=Path, help="Output path for --report/--export")
    p.add_argument("--limit", type=int, default=20, help="Number of batches shown by --list")
    return p.parse_args(argv)


def _inspect_data(path: Path, cfg) -> int:
    if not path.exists():
        print(f"inspect: file not found: {path}")
        return EXIT_FATAL
    try:
        grids = ingest(path.read_bytes(), path.name, cfg.csv)
        header_map = resolve_headers(grids[0]) if grids else None
    except ImportPipelineError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {path.name} headers={header_map}")
    for grid in grids:
        print(f"  SHEET: {grid.sheet_name} rows={len(grid)}")
        print("    sample_rows=", grid.rows[:4])
    return EXIT_SUCCESS_ALL


def _write_output(default_name: str, content: bytes, output: Path | None) -> Path:
    target = output or Path(default_name)
    target.write_bytes(content)
    return target


def _run_import(cur, cfg, logger) -> int:
    try:
        result = process_all(cfg, cursor=cur)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    log_summary(render_summary_line(result)[len("SUMMARY "):])
    if result.failed_batches > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _run_action(args: argparse.Namespace, cur, cfg, logger) -> int:
    if args.enqueue is not None:
        path: Path = args.enqueue
        if not path.exists():
            logger.error(f"file not found: {path}")
            return EXIT_FATAL
        try:
            batch = register_upload(
                cur,
                name=args.name or path.stem,
                original_file_name=path.name,
                data=path.read_bytes(),
                mime_type=guess_mime_type(path.name),
                imported_by=args.imported_by,
            )
        except IntakeError as e:
            logger.error(f"upload rejected: {e}")
            return EXIT_FATAL
        logger.info(f"batch={batch.id} status={batch.status.value} file={batch.file_name}")
        return EXIT_SUCCESS_ALL

    if args.report is not None or args.export is not None:
        original = args.export is not None
        batch_id = args.export if original else args.report
        try:
            file_name, content = fetch_batch_file(
                cur, batch_id, original=original, fmt=args.format, tz=cfg.timezone
            )
        except ImportPipelineError as e:
            logger.error(str(e))
            return EXIT_FATAL
        target = _write_output(file_name, content, args.output)
        logger.info(f"batch={batch_id} written to {target}")
        return EXIT_SUCCESS_ALL

    if args.list:
        for s in list_batches(cur, args.limit):
            print(
                f"{s.id}\t{s.status.value}\t{s.file_name}\tall={s.all_items_count} "
                f"imported={s.imported_items_count} error={s.error_items_count}"
                + (f"\t{s.message}" if s.message else "")
            )
        return EXIT_SUCCESS_ALL

    if args.delete is not None:
        if not delete_batch(cur, args.delete):
            logger.error(f"batch={args.delete} not found")
            return EXIT_FATAL
        logger.info(f"batch={args.delete} deleted")
        return EXIT_SUCCESS_ALL

    return _run_import(cur, cfg, logger)


def main(argv: list[str] | None = None) -> int:
    # sys.argv only when argv is None (tests call main([]))
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    # .env values take precedence for the DB connection parameters
    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.inspect_data is not None:
        return _inspect_data(args.inspect_data, cfg)

    try:
        with db_connection(cfg.database) as cur:
            return _run_action(args, cur, cfg, logger)
    except psycopg2.Error as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
