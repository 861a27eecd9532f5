from __future__ import annotations

import json
from datetime import date

import pytest

from taskbook.cli import has_command, parse_args, run_command
from taskbook.domain.errors import ValidationError
from taskbook.main import main


def test_has_command():
    assert not has_command(parse_args([]))
    assert not has_command(parse_args(["--verbose", "--config", "x.json"]))
    assert has_command(parse_args(["--add", "x"]))
    assert has_command(parse_args(["--export", "out.json"]))


def test_add_uses_date_flag(db_service, capsys):
    run_command(parse_args(["--add", "Pay rent +bills @home", "--date", "2024-03-05"]), db_service)

    (task,) = db_service.list_all()
    assert task.title == "Pay rent"
    assert task.due_date == date(2024, 3, 5)
    assert "Added task" in capsys.readouterr().out


def test_add_rejects_bad_date(db_service):
    with pytest.raises(ValidationError):
        run_command(parse_args(["--add", "x", "--date", "2024-13-01"]), db_service)


def test_purge_asks_before_deleting(db_service, capsys):
    db_service.add_from_text("a")

    run_command(parse_args(["--database", "purge"]), db_service, prompt=lambda _: "n")

    assert len(db_service.list_all()) == 1
    assert "Operation cancelled." in capsys.readouterr().out


def test_purge_with_filters(db_service, capsys):
    db_service.add_from_text("w1 +work", status=True)
    db_service.add_from_text("w2 +work", status=True)
    db_service.add_from_text("w3 +work")
    db_service.add_from_text("h1 +home", status=True)

    args = parse_args(["--database", "purge", "--project", "work", "--done"])
    run_command(args, db_service, prompt=lambda _: "YES")

    assert "Successfully deleted 2 task(s)" in capsys.readouterr().out
    assert sorted(t.title for t in db_service.list_all()) == ["h1", "w3"]


def test_purge_by_date_skips_prompt_with_yes(db_service):
    db_service.add_from_text("old", due_date=date(2024, 1, 1))
    db_service.add_from_text("new", due_date=date(2024, 1, 2))

    def refuse(_):
        raise AssertionError("prompted")

    run_command(parse_args(["--database", "purge", "--date", "2024-01-01", "--yes"]), db_service, prompt=refuse)

    assert [t.title for t in db_service.list_all()] == ["new"]


def test_purge_rejects_conflicts_and_unknown_commands(db_service):
    with pytest.raises(ValidationError):
        run_command(parse_args(["--database", "purge", "--done", "--undone", "--yes"]), db_service)
    with pytest.raises(ValidationError):
        run_command(parse_args(["--database", "vacuum"]), db_service)


def test_import_and_export(db_service, tmp_path, capsys):
    source = tmp_path / "in.txt"
    source.write_text("01.01.2024:\n- [x] Renew passport +admin\n- Buy milk\n", encoding="utf-8")
    target = tmp_path / "out.txt"

    run_command(parse_args(["--import", str(source)]), db_service)
    run_command(parse_args(["--export", str(target), "--type", "txt"]), db_service)

    out = capsys.readouterr().out
    assert f"Successfully imported 2 task(s) from {source}" in out
    assert f"Successfully exported 2 task(s) to {target}" in out
    assert target.read_text(encoding="utf-8").startswith("2024-01-01:\n- [x] Renew passport +admin\n")


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    for name in ("DATABASE_URL", "LOG_DIR", "LOG_LEVEL", "TASKBOOK_CONFIG", "TASKBOOK_ENV"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path / "config.json"


def test_main_runs_one_shot_commands(config_file, tmp_path, capsys):
    export_path = tmp_path / "tasks.json"

    assert main(["--config", str(config_file), "--add", "Pay rent +bills", "--date", "2024-03-01"]) == 0
    assert main(["--config", str(config_file), "--export", str(export_path)]) == 0

    (record,) = json.loads(export_path.read_text(encoding="utf-8"))
    assert record["projects"] == ["bills"]
    assert (tmp_path / "todo.db").exists()
    assert (tmp_path / "logs" / "taskbook.log").exists()


def test_main_reports_errors_on_stderr(config_file, capsys):
    code = main(["--config", str(config_file), "--export", "x.xml", "--type", "xml"])

    assert code == 1
    assert "Unknown export type: xml" in capsys.readouterr().err


def test_main_rejects_broken_config(config_file, capsys):
    config_file.write_text("{", encoding="utf-8")

    assert main(["--config", str(config_file), "--add", "x"]) == 1
    assert "Invalid JSON" in capsys.readouterr().err


def test_purge_is_cancelled_when_stdin_is_closed(db_service, capsys):
    db_service.add_from_text("a")

    def closed(_):
        raise EOFError

    run_command(parse_args(["--database", "purge"]), db_service, prompt=closed)

    assert len(db_service.list_all()) == 1
    assert "Operation cancelled." in capsys.readouterr().out


def test_main_reports_undecodable_import(config_file, tmp_path, capsys):
    source = tmp_path / "in.txt"
    source.write_bytes(b"- caf\xe9\n")

    assert main(["--config", str(config_file), "--import", str(source)]) == 1
    assert "not valid UTF-8" in capsys.readouterr().err
