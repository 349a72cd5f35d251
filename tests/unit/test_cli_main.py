from __future__ import annotations

from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

import psycopg2
import pytest

import process_import.cli.__main__ as cli
from process_import.cli import main
from process_import.logging.init import reset_logging
from process_import.models.batch import BatchStatus, BatchSummary, ImportBatch
from process_import.models.processing_result import ProcessingResult


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def fake_db(monkeypatch):
    cursors: list[object] = []

    @contextmanager
    def fake_connection(db_cfg):
        cur = object()
        cursors.append(cur)
        yield cur

    monkeypatch.setattr(cli, "db_connection", fake_connection)
    return cursors


def _result(failed: int = 0) -> ProcessingResult:
    now = datetime(2024, 1, 1, tzinfo=UTC)
    return ProcessingResult(
        imported_batches=1,
        failed_batches=failed,
        total_imported_rows=10,
        total_error_rows=2,
        start_time=now,
        end_time=now,
        elapsed_seconds=2.0,
        throughput_rows_per_sec=6.0,
    )


def test_missing_config_is_fatal(temp_workdir, capsys):
    assert main(["--config", "config/missing.yml"]) == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_import_run_success(write_config, fake_db, monkeypatch, capsys):
    monkeypatch.setattr(cli, "process_all", lambda cfg, cursor: _result())
    assert main(["--config", str(write_config)]) == 0
    out = capsys.readouterr().out
    assert "SUMMARY batches=1 imported=1 failed=0 rows=10 error_rows=2 elapsed_sec=2 throughput_rps=6" in out
    assert len(fake_db) == 1


def test_import_run_partial_failure(write_config, fake_db, monkeypatch):
    monkeypatch.setattr(cli, "process_all", lambda cfg, cursor: _result(failed=1))
    assert main(["--config", str(write_config)]) == 2


def test_import_run_fatal(write_config, fake_db, monkeypatch):
    def failing(cfg, cursor):
        raise cli.ProcessingError("could not claim batches")

    monkeypatch.setattr(cli, "process_all", failing)
    assert main(["--config", str(write_config)]) == 1


def test_database_error_is_fatal(write_config, monkeypatch, capsys):
    @contextmanager
    def refused(db_cfg):
        raise psycopg2.OperationalError("connection refused")
        yield  # pragma: no cover

    monkeypatch.setattr(cli, "db_connection", refused)
    assert main(["--config", str(write_config)]) == 1
    assert "ERROR database: connection refused" in capsys.readouterr().out


def test_enqueue(write_config, fake_db, monkeypatch, temp_workdir: Path):
    upload = temp_workdir / "Lote Maio.csv"
    upload.write_text("Número processo,Fluxo\n", encoding="utf-8")
    seen = {}

    def fake_register(cur, **kwargs):
        seen.update(kwargs)
        return ImportBatch(id=9, file_name="Lote_Maio.csv", status=BatchStatus.WAITING)

    monkeypatch.setattr(cli, "register_upload", fake_register)
    assert main(["--config", str(write_config), "--enqueue", str(upload), "--imported-by", "op"]) == 0
    assert seen["name"] == "Lote Maio"
    assert seen["mime_type"] == "text/csv"
    assert seen["imported_by"] == "op"


def test_enqueue_missing_file(write_config, fake_db):
    assert main(["--config", str(write_config), "--enqueue", "nope.xlsx"]) == 1


def test_report_written(write_config, fake_db, monkeypatch, temp_workdir: Path):
    calls = {}

    def fake_fetch(cur, batch_id, *, original, fmt, tz):
        calls.update(batch_id=batch_id, original=original, fmt=fmt, tz=tz)
        return "resultado_lote.xlsx", b"REPORT"

    monkeypatch.setattr(cli, "fetch_batch_file", fake_fetch)
    assert main(["--config", str(write_config), "--report", "3"]) == 0
    assert (temp_workdir / "resultado_lote.xlsx").read_bytes() == b"REPORT"
    assert calls == {"batch_id": 3, "original": False, "fmt": "xlsx", "tz": "America/Sao_Paulo"}


def test_export_to_output(write_config, fake_db, monkeypatch, temp_workdir: Path):
    monkeypatch.setattr(cli, "fetch_batch_file", lambda cur, batch_id, **kw: ("lote.csv", b"a,b\n"))
    target = temp_workdir / "out.csv"
    assert main(["--config", str(write_config), "--export", "3", "--format", "csv", "--output", str(target)]) == 0
    assert target.read_bytes() == b"a,b\n"


def test_list(write_config, fake_db, monkeypatch, capsys):
    summaries = [BatchSummary(4, "Lote", "lote.xlsx", BatchStatus.ERROR, "Coluna Fluxo não encontrada", None)]
    monkeypatch.setattr(cli, "list_batches", lambda cur, limit: summaries)
    assert main(["--config", str(write_config), "--list"]) == 0
    line = capsys.readouterr().out.strip().splitlines()[-1]
    assert line.startswith("4\terror\tlote.xlsx\tall=0")
    assert line.endswith("Coluna Fluxo não encontrada")


def test_delete(write_config, fake_db, monkeypatch):
    monkeypatch.setattr(cli, "delete_batch", lambda cur, batch_id: batch_id == 4)
    assert main(["--config", str(write_config), "--delete", "4"]) == 0
    assert main(["--config", str(write_config), "--delete", "5"]) == 1


def test_inspect_data_without_database(write_config, make_xlsx, monkeypatch, temp_workdir: Path, capsys):
    def no_db(db_cfg):
        raise AssertionError("database must not be opened")

    monkeypatch.setattr(cli, "db_connection", no_db)
    path = temp_workdir / "lote.xlsx"
    path.write_bytes(make_xlsx({"S": [["Número processo", "Fluxo"], ["1", "Civil"]]}))
    assert main(["--config", str(write_config), "--inspect-data", str(path)]) == 0
    out = capsys.readouterr().out
    assert "SHEET: S rows=2" in out


def test_debug_flag(write_config, fake_db, monkeypatch, capsys):
    monkeypatch.setattr(cli, "process_all", lambda cfg, cursor: _result())
    assert main(["--config", str(write_config), "--debug"]) == 0
    assert "DEBUG debug mode enabled" in capsys.readouterr().out
