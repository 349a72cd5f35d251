from __future__ import annotations

import json

from process_import.logging.error_log import ErrorLogBuffer, ErrorRecord


def test_flush_writes_json_lines(tmp_path):
    buf = ErrorLogBuffer(tmp_path / "logs")
    buf.append(ErrorRecord.create(batch_id=3, file="a.xlsx", error_type="HEADER_ERROR", message="Coluna Fluxo não encontrada"))
    buf.append(ErrorRecord.create(batch_id=4, file="b.csv", error_type="PARSE_ERROR", message="CSV inválido"))
    assert len(buf) == 2

    path = buf.flush()
    assert path is not None and path.parent == tmp_path / "logs"
    assert path.name.startswith("errors-") and path.suffix == ".log"
    lines = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [r["batch_id"] for r in lines] == [3, 4]
    assert lines[0]["message"] == "Coluna Fluxo não encontrada"
    assert len(buf) == 0


def test_flush_empty_creates_nothing(tmp_path):
    buf = ErrorLogBuffer(tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()


def test_flush_twice_appends_to_same_file(tmp_path):
    buf = ErrorLogBuffer(tmp_path)
    buf.append(ErrorRecord.create(1, "a.xlsx", "PARSE_ERROR", "x"))
    first = buf.flush()
    buf.append(ErrorRecord.create(2, "b.xlsx", "PARSE_ERROR", "y"))
    second = buf.flush()
    assert first == second
    assert len(first.read_text(encoding="utf-8").splitlines()) == 2


def test_error_record_timestamp_and_unicode():
    rec = ErrorRecord.create(batch_id=-1, file="x", error_type="UNEXPECTED_ERROR", message="Não")
    assert rec.timestamp.endswith("Z")
    assert '"Não"' in rec.to_json_line()
