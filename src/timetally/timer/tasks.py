"""
Task Editor

Add, edit, remove, reorder and enable/disable tasks in the current list
while keeping the engine's cursor pointed at the same task.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from timetally.timer.errors import TallyError, ValidationError
from timetally.timer.models import Task, Workspace
from timetally.utils.logging import get_logger

if TYPE_CHECKING:
    from timetally.timer.engine import TimerEngine
    from timetally.timer.store import WorkspaceStore

logger = get_logger(__name__)

UNIT_SECONDS = {
    "seconds": 1,
    "minutes": 60,
    "hours": 3600,
    "s": 1,
    "m": 60,
    "h": 3600,
}


def parse_amount(amount: int | str) -> int:
    """Parse a positive whole number, raising ValidationError otherwise."""
    if isinstance(amount, bool):
        raise ValidationError(f"Not a number: {amount!r}")
    try:
        value = int(str(amount).strip())
    except ValueError as e:
        raise ValidationError(f"Not a number: {amount!r}") from e
    if value <= 0:
        raise ValidationError(f"Duration must be positive, got {value}")
    return value


def to_seconds(amount: int | str, unit: str = "seconds") -> int:
    multiplier = UNIT_SECONDS.get(unit.lower())
    if multiplier is None:
        raise ValidationError(f"Unknown time unit {unit!r}")
    return parse_amount(amount) * multiplier


class TaskEditor:
    """Edits the current list's tasks."""

    def __init__(
        self,
        workspace: Workspace,
        engine: Optional["TimerEngine"] = None,
        store: Optional["WorkspaceStore"] = None,
    ):
        self.workspace = workspace
        self.engine = engine
        self.store = store

    @property
    def tasks(self) -> list[Task]:
        return self.workspace.tasks

    def _apply(self, operation: str, change: Callable[[], None], **context) -> bool:
        try:
            change()
        except TallyError as e:
            logger.warning(
                "task_operation_rejected",
                operation=operation,
                error_type=type(e).__name__,
                reason=str(e),
                **context,
            )
            return False
        logger.info("task_operation", operation=operation, **context)
        if self.store:
            self.store.save(self.workspace)
        return True

    def _task_at(self, index: int) -> Task:
        if not 0 <= index < len(self.tasks):
            raise ValidationError(f"No task at index {index}")
        return self.tasks[index]

    def add_task(self, name: str, amount: int | str, unit: str = "seconds") -> bool:
        name = name.strip()

        def change() -> None:
            if not name:
                raise ValidationError("Task name must not be empty")
            seconds = to_seconds(amount, unit)
            self.tasks.append(Task(name=name, duration_seconds=seconds))

        return self._apply("add", change, task=name)

    def edit_task(
        self,
        index: int,
        name: Optional[str] = None,
        duration_seconds: Optional[int | str] = None,
    ) -> bool:
        """
        Rename a task and/or change its duration.

        A new duration always resets the remaining time, even for the task
        currently counting down.
        """

        def change() -> None:
            task = self._task_at(index)
            new_name = name.strip() if name is not None else None
            if new_name is not None and not new_name:
                raise ValidationError("Task name must not be empty")
            seconds = parse_amount(duration_seconds) if duration_seconds is not None else None

            if new_name is not None:
                task.name = new_name
            if seconds is not None:
                task.duration_seconds = seconds
                task.remaining_seconds = seconds

        return self._apply("edit", change, index=index)

    def remove_task(self, index: int) -> bool:
        def change() -> None:
            self._task_at(index)
            ws = self.workspace
            if self.engine and index == ws.current_task_index:
                # The countdown must not carry over onto a neighbour
                self.engine.halt()
            del self.tasks[index]
            if index < ws.current_task_index:
                ws.current_task_index -= 1
            if ws.current_task_index >= len(self.tasks):
                ws.current_task_index = max(len(self.tasks) - 1, 0)

        removed = self._apply("remove", change, index=index)
        if removed and not self.tasks:
            if self.engine:
                self.engine.restart()
            else:
                self.workspace.reset_tasks()
        return removed

    def move_task(self, index: int, offset: int) -> bool:
        """Swap a task with its neighbour: offset -1 moves up, +1 down."""

        def change() -> None:
            if offset not in (-1, 1):
                raise ValidationError(f"Offset must be -1 or 1, got {offset}")
            other = index + offset
            self._task_at(index)
            self._task_at(other)
            tasks = self.tasks
            tasks[index], tasks[other] = tasks[other], tasks[index]

            ws = self.workspace
            if ws.current_task_index == index:
                ws.current_task_index = other
            elif ws.current_task_index == other:
                ws.current_task_index = index

        return self._apply("move", change, index=index, offset=offset)

    def set_enabled(self, index: int, enabled: bool) -> bool:
        def change() -> None:
            self._task_at(index).enabled = enabled

        return self._apply("set_enabled", change, index=index, enabled=enabled)

    def toggle_enabled(self, index: int) -> bool:
        if not 0 <= index < len(self.tasks):
            logger.warning("task_operation_rejected", operation="toggle", index=index)
            return False
        return self.set_enabled(index, not self.tasks[index].enabled)
