"""
Tests for the task editor.
"""

import pytest

from conftest import make_workspace
from timetally.timer import (
    MemorySlotStore,
    TaskEditor,
    TimerEngine,
    TimerState,
    ValidationError,
    WorkspaceStore,
)
from timetally.timer.tasks import parse_amount, to_seconds


class TestParsing:
    """Tests for amount and unit parsing."""

    def test_parse_amount(self):
        assert parse_amount("15") == 15
        assert parse_amount(" 7 ") == 7
        assert parse_amount(3) == 3

    @pytest.mark.parametrize("bad", ["", "abc", "0", "-5", "1.5", True])
    def test_parse_amount_rejects(self, bad):
        with pytest.raises(ValidationError):
            parse_amount(bad)

    def test_to_seconds(self):
        assert to_seconds(2, "minutes") == 120
        assert to_seconds("1", "hours") == 3600
        assert to_seconds(45, "s") == 45

    def test_unknown_unit(self):
        with pytest.raises(ValidationError):
            to_seconds(1, "fortnights")


class TestTaskEditor:
    """Tests for TaskEditor."""

    @pytest.fixture
    def editor(self):
        ws = make_workspace(("A", 10), ("B", 20), ("C", 30))
        return TaskEditor(ws, store=WorkspaceStore(MemorySlotStore()))

    def names(self, editor: TaskEditor) -> list[str]:
        return [task.name for task in editor.tasks]

    def test_add_task(self, editor: TaskEditor):
        assert editor.add_task("  Stretch ", 5, "minutes") is True
        task = editor.tasks[-1]
        assert task.name == "Stretch"
        assert task.duration_seconds == 300
        assert task.remaining_seconds == 300
        assert task.enabled is True

    @pytest.mark.parametrize("name,amount", [("", 5), ("X", 0), ("X", "ten"), ("X", -1)])
    def test_add_task_rejects(self, editor: TaskEditor, name, amount):
        assert editor.add_task(name, amount) is False
        assert self.names(editor) == ["A", "B", "C"]

    def test_edit_name(self, editor: TaskEditor):
        assert editor.edit_task(1, name="Bee") is True
        assert editor.tasks[1].name == "Bee"
        assert editor.tasks[1].duration_seconds == 20

    def test_edit_duration_resets_remaining(self, editor: TaskEditor):
        editor.tasks[0].remaining_seconds = 4
        assert editor.edit_task(0, duration_seconds="90") is True
        assert editor.tasks[0].duration_seconds == 90
        assert editor.tasks[0].remaining_seconds == 90

    def test_edit_rejects_whole_change(self, editor: TaskEditor):
        assert editor.edit_task(0, name="New", duration_seconds="0") is False
        assert editor.tasks[0].name == "A"
        assert editor.tasks[0].duration_seconds == 10

    def test_edit_blank_name(self, editor: TaskEditor):
        assert editor.edit_task(0, name="   ") is False
        assert editor.tasks[0].name == "A"

    def test_edit_out_of_range(self, editor: TaskEditor):
        assert editor.edit_task(9, name="X") is False

    def test_remove_before_cursor_shifts_cursor(self, editor: TaskEditor):
        editor.workspace.current_task_index = 2
        assert editor.remove_task(0) is True
        assert self.names(editor) == ["B", "C"]
        assert editor.workspace.current_task.name == "C"

    def test_remove_last_clamps_cursor(self, editor: TaskEditor):
        editor.workspace.current_task_index = 2
        assert editor.remove_task(2) is True
        assert editor.workspace.current_task_index == 1

    def test_remove_out_of_range(self, editor: TaskEditor):
        assert editor.remove_task(3) is False
        assert len(editor.tasks) == 3

    def test_move_task(self, editor: TaskEditor):
        assert editor.move_task(0, 1) is True
        assert self.names(editor) == ["B", "A", "C"]
        assert editor.move_task(2, -1) is True
        assert self.names(editor) == ["B", "C", "A"]

    def test_move_keeps_cursor_on_task(self, editor: TaskEditor):
        editor.workspace.current_task_index = 1
        editor.move_task(1, -1)
        assert editor.workspace.current_task.name == "B"
        editor.move_task(1, -1)
        assert editor.workspace.current_task.name == "B"

    @pytest.mark.parametrize("index,offset", [(0, -1), (2, 1), (0, 2)])
    def test_move_out_of_bounds(self, editor: TaskEditor, index, offset):
        assert editor.move_task(index, offset) is False
        assert self.names(editor) == ["A", "B", "C"]

    def test_toggle_enabled(self, editor: TaskEditor):
        assert editor.toggle_enabled(1) is True
        assert editor.tasks[1].enabled is False
        assert editor.toggle_enabled(1) is True
        assert editor.tasks[1].enabled is True

    def test_toggle_out_of_range(self, editor: TaskEditor):
        assert editor.toggle_enabled(5) is False

    def test_disabled_task_keeps_remaining(self, editor: TaskEditor):
        editor.tasks[1].remaining_seconds = 7
        editor.set_enabled(1, False)
        assert editor.tasks[1].remaining_seconds == 7


class TestRemovingWithEngine:
    """Removing tasks while the engine holds the cursor."""

    def test_restart_on_empty(self, ticker):
        ws = make_workspace(("A", 10))
        engine = TimerEngine(ws, ticker)
        editor = TaskEditor(ws, engine=engine)
        engine.start()
        ticker.fire(3)

        assert editor.remove_task(0) is True
        assert engine.state == TimerState.IDLE
        assert not ticker.is_running
        assert ws.current_task_index == 0
        assert ws.current_task is None

    def test_removing_running_task_halts(self, ticker):
        ws = make_workspace(("A", 10), ("B", 5), ("C", 5))
        engine = TimerEngine(ws, ticker)
        editor = TaskEditor(ws, engine=engine)
        engine.start()
        engine.skip()
        ticker.fire(2)

        assert editor.remove_task(1) is True
        assert engine.state == TimerState.IDLE
        assert not ticker.is_running
        assert ws.current_task.name == "C"
        assert ws.current_task.remaining_seconds == 5

    def test_removing_other_task_keeps_running(self, ticker):
        ws = make_workspace(("A", 10), ("B", 5))
        engine = TimerEngine(ws, ticker)
        editor = TaskEditor(ws, engine=engine)
        engine.start()

        assert editor.remove_task(1) is True
        assert engine.state == TimerState.RUNNING
