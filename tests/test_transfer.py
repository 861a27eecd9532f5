from __future__ import annotations

import csv
import io
import json
from datetime import date

import pytest

from taskbook.domain.enums import ExportType
from taskbook.domain.errors import StorageError, ValidationError
from taskbook.services.transfer import (
    export_file,
    export_tasks,
    import_file,
    import_tasks,
    parse_export_type,
    parse_import,
)

TODAY = date(2024, 3, 1)


def test_import_checklist_under_header(service):
    added = import_tasks(service, "01.01.2024:\n- [x] Renew passport +admin\n- Buy milk\n")

    first, second = service.list_all()
    assert added == 2
    assert first.due_date == second.due_date == date(2024, 1, 1)
    assert first.status is True
    assert first.title == "Renew passport"
    assert first.projects == ("admin",)
    assert second.status is False
    assert second.title == "Buy milk"
    assert second.projects == ()


def test_parse_import_headers_and_noise():
    text = "\n".join([
        "- before any header",
        "notes that are ignored",
        "2024-02-10:",
        "- [ ] open",
        "-    ",
        "15.02.2024:",
        "- [X] shouting done",
    ])

    items = parse_import(text, TODAY)

    assert [(i.text, i.due_date, i.status) for i in items] == [
        ("before any header", TODAY, False),
        ("open", date(2024, 2, 10), False),
        ("shouting done", date(2024, 2, 15), True),
    ]


def test_invalid_header_date_is_rejected():
    with pytest.raises(ValidationError):
        parse_import("31.02.2024:\n- x", TODAY)


def test_import_file_missing(service, tmp_path):
    with pytest.raises(StorageError):
        import_file(service, tmp_path / "nope.txt")


def test_import_file_reads_utf8(service, tmp_path):
    source = tmp_path / "tasks.txt"
    source.write_text("2024-03-05:\n- Café +errands\n", encoding="utf-8")

    assert import_file(service, source) == 1
    assert service.list_all()[0].title == "Café"


def test_txt_export_mirrors_import_format(service):
    service.add_from_text("Buy milk", due_date=date(2024, 1, 2))
    service.add_from_text("Renew passport +admin", due_date=date(2024, 1, 1), status=True)
    service.add_from_text("Call bank", due_date=date(2024, 1, 1))

    content = export_tasks(service.list_all(), ExportType.TXT)

    assert content == (
        "2024-01-01:\n"
        "- [x] Renew passport +admin\n"
        "- [ ] Call bank\n"
        "\n"
        "2024-01-02:\n"
        "- [ ] Buy milk\n"
    )


def test_txt_export_imports_back(service):
    service.add_from_text("Renew passport +admin", due_date=date(2024, 1, 1), status=True)
    content = export_tasks(service.list_all(), ExportType.TXT)

    items = parse_import(content, TODAY)

    assert [(i.text, i.due_date, i.status) for i in items] == [
        ("Renew passport +admin", date(2024, 1, 1), True)
    ]


def test_json_export_records(service):
    service.add_from_text("Pay rent +bills @home")

    (record,) = json.loads(export_tasks(service.list_all(), ExportType.JSON))

    assert record["title"] == "Pay rent"
    assert record["due_date"] == "2024-03-01"
    assert record["projects"] == ["bills"]
    assert record["contexts"] == ["home"]
    assert record["status"] is False


def test_csv_export_has_one_row_per_task(service):
    service.add_from_text("a +x")
    service.add_from_text("b @y")

    rows = list(csv.DictReader(io.StringIO(export_tasks(service.list_all(), ExportType.CSV))))

    assert [row["title"] for row in rows] == ["a", "b"]
    assert rows[0]["projects"] == "+x"
    assert rows[1]["contexts"] == "@y"


def test_ics_export_skips_undated(service, fake_repo):
    service.add_from_text("dated, with comma")
    fake_repo.create_task({"title": "undated", "description": "", "due_date": None})

    content = export_tasks(service.list_all(), ExportType.ICS)

    assert content.count("BEGIN:VEVENT") == 1
    assert "DTSTART;VALUE=DATE:20240301" in content
    assert "SUMMARY:dated\\, with comma" in content


def test_unknown_export_type():
    assert parse_export_type("TXT") is ExportType.TXT
    with pytest.raises(ValidationError, match="Unknown export type: xml"):
        parse_export_type("xml")


def test_export_file_writes_and_counts(service, tmp_path):
    service.add_from_text("a")
    target = tmp_path / "out" / "tasks.json"

    assert export_file(service, target, ExportType.JSON) == 1
    assert json.loads(target.read_text(encoding="utf-8"))[0]["title"] == "a"


def test_import_file_rejects_non_utf8(service, tmp_path):
    source = tmp_path / "latin1.txt"
    source.write_bytes(b"- caf\xe9\n")

    with pytest.raises(ValidationError):
        import_file(service, source)
    assert service.list_all() == []
