# Shared pytest fixtures
from __future__ import annotations

import io
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from process_import.models.batch import BatchStatus, ImportBatch
from process_import.models.reference import Flow
from process_import.models.row import ImportRow


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """max_batches_per_run: 5
page_size: 500
timezone: America/Sao_Paulo
error_log_dir: ./logs
csv:
  encoding: utf-8-sig
  delimiter: ","
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def _xlsx_bytes(sheets: dict[str, list[list[object]]]) -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return buf.getvalue()


@pytest.fixture()
def make_xlsx():
    """Build workbook bytes from {sheet_name: rows}."""
    return _xlsx_bytes


class DummyCursor:
    """Records executed statements and replays queued fetch results."""

    def __init__(
        self,
        fetchall: list[list[tuple]] | None = None,
        fetchone: list[tuple | None] | None = None,
        rowcount: int = 1,
    ) -> None:
        self.executed: list[tuple[str, Any]] = []
        self._fetchall = list(fetchall or [])
        self._fetchone = list(fetchone or [])
        self.rowcount = rowcount

    def execute(self, sql: str, params: Any = None) -> None:
        self.executed.append((sql, params))

    def fetchall(self) -> list[tuple]:
        return self._fetchall.pop(0) if self._fetchall else []

    def fetchone(self) -> tuple | None:
        return self._fetchone.pop(0) if self._fetchone else None

    @property
    def statements(self) -> list[str]:
        return [" ".join(sql.split()) for sql, _ in self.executed]


@pytest.fixture()
def make_cursor():
    return DummyCursor


class FakeStore:
    """In-memory stand-in for the database functions used by the orchestrator."""

    def __init__(self, batches: list[ImportBatch], flows: list[Flow]) -> None:
        self.batches = {b.id: b for b in batches}
        self.flows = flows
        self.rows: dict[int, list[ImportRow]] = {}
        self.processes: list[dict[str, Any]] = []
        self.flow_queries: list[list[str]] = []
        self.fail_persist_for: set[int] = set()

    def claim(self, cursor: Any, max_count: int) -> list[ImportBatch]:
        waiting = sorted(
            (b for b in self.batches.values() if b.status is BatchStatus.WAITING),
            key=lambda b: b.id,
        )[:max_count]
        for b in waiting:
            self.batches[b.id] = replace(b, status=BatchStatus.IN_PROGRESS)
        return [self.batches[b.id] for b in waiting]

    def find_flows(self, cursor: Any, names) -> list[Flow]:
        names = list(names)
        self.flow_queries.append(names)
        return [f for f in self.flows if f.name in set(names)]

    def persist(self, cursor: Any, batch_id: int, imported_by, rows, *, page_size=1000, now=None):
        from process_import.errors import PersistenceError

        if batch_id in self.fail_persist_for:
            raise PersistenceError("duplicate key value violates unique constraint")
        persisted = []
        for r in rows:
            if r.is_error:
                persisted.append(r)
                continue
            id_process = len(self.processes) + 1
            self.processes.append({"id_process": id_process, "imported_by": imported_by, **vars(r.payload)})
            persisted.append(r.with_process_id(id_process))
        self.rows[batch_id] = persisted
        self.batches[batch_id] = replace(
            self.batches[batch_id], status=BatchStatus.IMPORTED, message=None
        )
        return persisted

    def mark_error(self, cursor: Any, batch_id: int, message: str) -> None:
        self.batches[batch_id] = replace(
            self.batches[batch_id], status=BatchStatus.ERROR, message=message, imported_at=None
        )


@pytest.fixture()
def install_store(monkeypatch):
    """Patch the orchestrator's database functions with a FakeStore."""
    import process_import.services.orchestrator as orch

    def _install(batches: list[ImportBatch], flows: list[Flow]) -> FakeStore:
        store = FakeStore(batches, flows)
        monkeypatch.setattr(orch, "claim_batches", store.claim)
        monkeypatch.setattr(orch, "find_flows_by_names", store.find_flows)
        monkeypatch.setattr(orch, "persist_batch", store.persist)
        monkeypatch.setattr(orch, "mark_batch_error", store.mark_error)
        return store

    return _install
