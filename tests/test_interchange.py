"""
Tests for XML import and export.
"""

import pytest

from conftest import make_workspace
from timetally.timer import ImportMode, Task, Workspace, export_list, merge_import, parse_document
from timetally.timer.interchange import ImportedList, escape_xml, export_filename


def document(*tasks: str, list_name: str | None = None) -> str:
    name = f"<ListName>{list_name}</ListName>" if list_name is not None else ""
    return f"<List>{name}{''.join(tasks)}</List>"


class TestExport:
    """Tests for export_list."""

    def test_export(self):
        ws = make_workspace(("Stretch", 300), ("Read", 60), list_name="Morning")
        assert export_list(ws) == (
            '<?xml version="1.0" encoding="UTF-8"?>'
            "<List><ListName>Morning</ListName>"
            "<Task><Name>Stretch</Name><Time>300</Time></Task>"
            "<Task><Name>Read</Name><Time>60</Time></Task>"
            "</List>"
        )

    def test_export_escapes_names(self):
        ws = make_workspace(("Tom & Jerry's <\"show\">", 5), list_name="A&B")
        xml = export_list(ws)
        assert "<ListName>A&amp;B</ListName>" in xml
        assert "<Name>Tom &amp; Jerry&apos;s &lt;&quot;show&quot;&gt;</Name>" in xml

    def test_export_ignores_progress(self):
        ws = make_workspace(("A", 10))
        ws.tasks[0].remaining_seconds = 3
        ws.tasks[0].enabled = False
        assert "<Time>10</Time>" in export_list(ws)
        assert "remaining" not in export_list(ws).lower()

    def test_escape_xml(self):
        assert escape_xml("<a & 'b' \"c\">") == "&lt;a &amp; &apos;b&apos; &quot;c&quot;&gt;"

    def test_export_filename(self):
        assert export_filename("Morning") == "tasks-Morning.xml"

    def test_exported_document_imports_back(self):
        ws = make_workspace(("Tom & Jerry", 5), ("B", 7), list_name="A&B")
        imported = parse_document(export_list(ws))
        assert imported.list_name == "A&B"
        assert [(t.name, t.duration_seconds) for t in imported.tasks] == [("Tom & Jerry", 5), ("B", 7)]


class TestParseDocument:
    """Tests for parse_document."""

    def test_parse(self):
        imported = parse_document(
            document(
                "<Task><Name>A</Name><Time>10</Time></Task>",
                "<Task><Name>B</Name><Time>5</Time></Task>",
                list_name="  Work ",
            )
        )
        assert imported.list_name == "Work"
        assert [(t.name, t.duration_seconds, t.remaining_seconds) for t in imported.tasks] == [
            ("A", 10, 10),
            ("B", 5, 5),
        ]

    def test_defaults_for_bad_entries(self):
        imported = parse_document(
            document(
                "<Task><Time>10</Time></Task>",
                "<Task><Name></Name><Time>abc</Time></Task>",
                "<Task><Name>C</Name></Task>",
                "<Task><Name>D</Name><Time>-4</Time></Task>",
                "<Task><Name>E</Name><Time>12abc</Time></Task>",
            )
        )
        assert [(t.name, t.duration_seconds) for t in imported.tasks] == [
            ("Unnamed", 10),
            ("Unnamed", 0),
            ("C", 0),
            ("D", 0),
            ("E", 12),
        ]

    def test_no_list_name(self):
        imported = parse_document(document("<Task><Name>A</Name><Time>1</Time></Task>"))
        assert imported.list_name == ""

    def test_zero_tasks(self):
        imported = parse_document(document(list_name="Empty"))
        assert imported.list_name == "Empty"
        assert imported.tasks == []

    @pytest.mark.parametrize("text", ["", "not xml", "<List><Task>"])
    def test_not_xml(self, text):
        imported = parse_document(text)
        assert imported.list_name == ""
        assert imported.tasks == []


class TestMergeImport:
    """Tests for merge_import."""

    def imported(self, name: str = "") -> ImportedList:
        return ImportedList(
            list_name=name,
            tasks=[Task(name="X", duration_seconds=30), Task(name="Y", duration_seconds=40)],
        )

    def test_replace_named_into_empty_default(self):
        ws = Workspace.default()
        merge_import(ws, self.imported("Work"), ImportMode.REPLACE)
        assert ws.list_order == ["Work"]
        assert ws.current_list == "Work"
        assert ws.current_task_index == 0
        assert "default" not in ws.lists
        assert [t.name for t in ws.tasks] == ["X", "Y"]

    def test_replace_keeps_slot_position(self):
        ws = make_workspace(("A", 10))
        ws.add_list("Home")
        ws.set_order(["Home", "default"])
        merge_import(ws, self.imported("Work"), ImportMode.REPLACE)
        assert ws.list_order == ["Home", "Work"]

    def test_replace_unnamed_overwrites_current(self):
        ws = make_workspace(("A", 10), ("B", 5))
        ws.current_task_index = 1
        merge_import(ws, self.imported(), ImportMode.REPLACE)
        assert ws.current_list == "default"
        assert [t.name for t in ws.tasks] == ["X", "Y"]
        assert ws.current_task_index == 0

    def test_replace_with_existing_name(self):
        ws = Workspace.default()
        ws.add_list("Work")
        merge_import(ws, self.imported("Work"), ImportMode.REPLACE)
        assert ws.list_order == ["Work"]
        assert [t.name for t in ws.lists["Work"]] == ["X", "Y"]

    def test_add_appends(self):
        ws = make_workspace(("A", 10))
        ws.current_task_index = 0
        merge_import(ws, self.imported("Work"), ImportMode.ADD)
        assert ws.current_list == "default"
        assert [t.name for t in ws.tasks] == ["A", "X", "Y"]

    def test_add_named_into_empty_list_renames(self):
        ws = Workspace.default()
        merge_import(ws, self.imported("Work"), ImportMode.ADD)
        assert ws.list_order == ["Work"]
        assert ws.current_list == "Work"

    def test_add_named_existing_name_appends(self):
        ws = Workspace.default()
        ws.add_list("Work")
        merge_import(ws, self.imported("Work"), ImportMode.ADD)
        assert ws.current_list == "default"
        assert [t.name for t in ws.tasks] == ["X", "Y"]
        assert ws.lists["Work"] == []

    def test_imported_tasks_are_fresh(self):
        imported = self.imported()
        imported.tasks[0].enabled = False
        imported.tasks[0].remaining_seconds = 3
        ws = Workspace.default()
        merge_import(ws, imported, ImportMode.ADD)
        assert ws.tasks[0].enabled is True
        assert ws.tasks[0].remaining_seconds == 30
        assert ws.tasks[0] is not imported.tasks[0]
