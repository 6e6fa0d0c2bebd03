# tests/test_merge.py

from __future__ import annotations

from gist_planner.planner.merge import merge_tasks

from .fakes import make_task


def test_remote_only_task_is_dropped_and_newer_remote_wins() -> None:
    local = [make_task("A", title="local A", updated_at=10)]
    remote = [make_task("A", title="remote A", updated_at=20), make_task("B", updated_at=5)]

    merged = merge_tasks(local, remote)

    assert [(t.id, t.updated_at, t.title) for t in merged] == [("A", 20, "remote A")]


def test_local_wins_ties_and_newer_local_wins() -> None:
    local = [make_task("A", title="local", updated_at=20), make_task("B", title="local", updated_at=7)]
    remote = [make_task("A", title="remote", updated_at=20), make_task("B", title="remote", updated_at=3)]

    merged = {t.id: t for t in merge_tasks(local, remote)}

    assert merged["A"].title == "local"
    assert merged["B"].title == "local"


def test_merge_is_idempotent() -> None:
    tasks = [make_task("A", created_at=3), make_task("B", created_at=1), make_task("C", created_at=2)]

    merged = merge_tasks(tasks, tasks)

    assert sorted(merged, key=lambda t: t.id) == sorted(tasks, key=lambda t: t.id)
    assert merge_tasks(merged, merged) == merged


def test_local_only_tasks_are_kept_and_result_sorted_by_created_at() -> None:
    local = [
        make_task("new", created_at=300),
        make_task("old", created_at=100),
        make_task("mid", created_at=200, updated_at=250),
    ]
    remote = [make_task("mid", created_at=200, updated_at=260), make_task("gone", created_at=50)]

    merged = merge_tasks(local, remote)

    assert [t.id for t in merged] == ["old", "mid", "new"]
    assert merged[1].updated_at == 260
    assert {t.id for t in merged} <= {t.id for t in local}


def test_empty_local_means_empty_result() -> None:
    assert merge_tasks([], [make_task("A"), make_task("B")]) == []
