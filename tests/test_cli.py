# tests/test_cli.py

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from mdplanner.cli import cli


@pytest.fixture()
def run(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PLANNER_LOG_LEVEL", "ERROR")
    runner = CliRunner()

    def _run(*args: str):
        return runner.invoke(cli, ["--root", str(tmp_path), "--project", "demo", *args])

    return _run


def test_task_lifecycle(run, tmp_path: Path) -> None:
    assert run("new-project", "demo").exit_code == 0

    result = run("add", "Write", "report", "--start", "2024-03-01", "--end", "2024-03-05",
                 "--tags", "docs, q1", "--priority", "P1")
    assert result.exit_code == 0, result.output
    assert "Created write-report" in result.output
    assert (tmp_path / "demo" / "write-report.md").exists()

    result = run("list", "--tag", "docs")
    assert result.exit_code == 0
    assert "write-report" in result.output
    assert "P1 High" in result.output

    result = run("move", "write-report", "ip")
    assert result.exit_code == 0
    assert "now in-progress" in result.output

    result = run("move", "write-report", "done")
    assert result.exit_code == 1
    assert "Allowed: archived, review" in result.output

    result = run("edit", "write-report", "--title", "Write final report")
    assert result.exit_code == 0
    assert "Updated write-final-report" in result.output

    assert run("tags").output.split() == ["docs", "q1"]

    result = run("rm", "write-final-report")
    assert result.exit_code == 0
    assert not list((tmp_path / "demo").glob("*.md"))


def test_views_render(run) -> None:
    run("new-project", "demo")
    run("add", "Design", "--start", "2024-03-01", "--end", "2024-03-10")
    run("add", "Build", "--start", "2024-03-05")

    board = run("board")
    assert board.exit_code == 0
    assert "BACKLOG" in board.output and "IN PROGRESS" in board.output
    assert "Design" in board.output

    gantt = run("gantt", "--zoom", "week", "--unit-width", "8")
    assert gantt.exit_code == 0
    assert "Mar 1" in gantt.output
    assert "█" in gantt.output

    listing = run("list", "--sort", "title", "--desc")
    lines = listing.output.splitlines()
    assert lines[1].startswith("design") and lines[2].startswith("build")


def test_broken_records_are_warnings(run, tmp_path: Path) -> None:
    run("new-project", "demo")
    (tmp_path / "demo" / "broken.md").write_text("---\nstatus: done\n---\n", encoding="utf-8")
    result = run("list")
    assert result.exit_code == 0
    assert "warning: broken.md: title is required" in result.output


def test_unknown_task_is_reported(run) -> None:
    run("new-project", "demo")
    result = run("rm", "ghost")
    assert result.exit_code == 1
    assert "Task not found: ghost" in result.output


def test_reorder_accepts_negative_order(run) -> None:
    run("new-project", "demo")
    run("add", "One", "--start", "2024-03-01")
    result = run("reorder", "one", "--", "-1")
    assert result.exit_code == 0
    assert "one order = -1" in result.output
