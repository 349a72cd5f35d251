from __future__ import annotations

import pytest

import process_import.services.retrieval as retrieval
from process_import.models.batch import BatchStatus, ImportBatch
from process_import.services.retrieval import fetch_batch_file


@pytest.fixture()
def stored(monkeypatch):
    batches = {
        1: ImportBatch(id=1, file_name="Lote_Maio.xlsx", data=b"XLSX", status=BatchStatus.IMPORTED),
        2: ImportBatch(id=2, file_name="lote.csv", data=b"a,b\n", status=BatchStatus.IMPORTED),
    }
    calls: dict[str, int] = {"csv": 0, "report": 0}

    def fake_get_batch(cursor, batch_id, *, with_data=False):
        b = batches[batch_id]
        return b if with_data else ImportBatch(id=b.id, file_name=b.file_name, status=b.status)

    def fake_to_csv(binary):
        calls["csv"] += 1
        return b"CSV:" + binary

    def fake_report(cursor, batch_id, *, tz="UTC"):
        calls["report"] += 1
        return b"REPORT"

    monkeypatch.setattr(retrieval, "get_batch", fake_get_batch)
    monkeypatch.setattr(retrieval, "workbook_to_csv", fake_to_csv)
    monkeypatch.setattr(retrieval, "generate_report", fake_report)
    return calls


def test_original_as_stored(stored):
    assert fetch_batch_file(object(), 1) == ("Lote_Maio.xlsx", b"XLSX")
    assert stored["csv"] == 0


def test_original_converted_to_csv_once(stored):
    name, content = fetch_batch_file(object(), 1, fmt="csv")
    assert name == "Lote_Maio.csv"
    assert content == b"CSV:XLSX"
    assert stored["csv"] == 1


def test_csv_original_not_converted(stored):
    assert fetch_batch_file(object(), 2, fmt="csv") == ("lote.csv", b"a,b\n")
    assert stored["csv"] == 0


def test_report_file_name(stored):
    name, content = fetch_batch_file(object(), 2, original=False)
    assert name == "resultado_lote.xlsx"
    assert content == b"REPORT"


def test_report_as_csv(stored):
    name, content = fetch_batch_file(object(), 1, original=False, fmt="csv")
    assert name == "resultado_Lote_Maio.csv"
    assert content == b"CSV:REPORT"
    assert stored == {"csv": 1, "report": 1}


def test_unsupported_format(stored):
    with pytest.raises(ValueError):
        fetch_batch_file(object(), 1, fmt="pdf")
