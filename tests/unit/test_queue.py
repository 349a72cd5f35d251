from __future__ import annotations

from process_import.db.queue import CLAIM_SQL, claim_batches
from process_import.models.batch import BatchStatus


def test_claim_batches_returns_sorted_in_progress(make_cursor):
    cur = make_cursor(fetchall=[[
        (12, "b.xlsx", memoryview(b"B"), "op", "Lote B"),
        (10, "a.csv", b"A", None, None),
    ]])
    batches = claim_batches(cur, 5)
    assert [b.id for b in batches] == [10, 12]
    assert all(b.status is BatchStatus.IN_PROGRESS for b in batches)
    assert batches[1].data == b"B"
    assert batches[1].imported_by == "op"
    assert batches[1].name == "Lote B"
    assert cur.executed[0][1] == {"in_progress": "inProgress", "waiting": "waiting", "limit": 5}


def test_claim_sql_is_conditional():
    sql = " ".join(CLAIM_SQL.split())
    assert "FOR UPDATE SKIP LOCKED" in sql
    assert "AND pf.status = %(waiting)s" in sql
    assert "ORDER BY id_processes_file ASC" in sql


def test_claim_nothing_when_limit_below_one(make_cursor):
    cur = make_cursor()
    assert claim_batches(cur, 0) == []
    assert cur.executed == []


def test_claim_empty_queue(make_cursor):
    assert claim_batches(make_cursor(), 3) == []
