"""
Read-only projection of the workspace for renderers.

Nothing here mutates state; the finish-time estimate can be recomputed on
any cadence without coordinating with the countdown.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional

from timetally.timer.formatting import format_duration
from timetally.timer.models import Task, Workspace

if TYPE_CHECKING:
    from timetally.timer.engine import TimerEngine

NO_TASK_TEXT = "No current task."
ALL_DONE_TEXT = "All tasks completed or no tasks available."


@dataclass(frozen=True)
class TabView:
    name: str
    is_current: bool


@dataclass(frozen=True)
class TaskView:
    index: int
    name: str
    duration_seconds: int
    remaining_seconds: int
    enabled: bool
    is_current: bool
    remaining_text: str
    progress_text: str


@dataclass(frozen=True)
class WorkspaceView:
    tabs: tuple[TabView, ...]
    list_name: str
    state: str
    tasks: tuple[TaskView, ...]
    timer_text: str
    progress_percent: float
    progress_text: str
    estimated_finish: Optional[datetime]
    finish_text: str


def progress_percent(task: Optional[Task]) -> float:
    if task is None:
        return 0.0
    return task.elapsed_fraction * 100


def format_percent(percent: float) -> str:
    return f"{percent:.2f}%"


def seconds_left(workspace: Workspace) -> int:
    """Remaining seconds of the enabled tasks from the cursor onwards."""
    tasks = workspace.tasks
    return sum(
        task.remaining_seconds
        for task in tasks[workspace.current_task_index:]
        if task.enabled
    )


def estimate_finish(workspace: Workspace, now: datetime) -> Optional[datetime]:
    total = seconds_left(workspace)
    if total <= 0:
        return None
    return now + timedelta(seconds=total)


def finish_text(finish: Optional[datetime]) -> str:
    if finish is None:
        return ALL_DONE_TEXT
    return f"Estimated Finish: {finish:%Y-%m-%d %H:%M}"


def timer_text(workspace: Workspace) -> str:
    task = workspace.current_task
    if task is None:
        return NO_TASK_TEXT
    return (
        f"Current: {task.name} - {format_duration(task.duration_seconds)} total, "
        f"{format_duration(task.remaining_seconds)} left"
    )


def build_view(
    workspace: Workspace,
    engine: Optional["TimerEngine"] = None,
    now: Optional[datetime] = None,
) -> WorkspaceView:
    """Snapshot everything a renderer needs."""
    now = now or datetime.now()
    current = workspace.current_task
    finish = estimate_finish(workspace, now)
    percent = progress_percent(current)

    return WorkspaceView(
        tabs=tuple(
            TabView(name=name, is_current=name == workspace.current_list)
            for name in workspace.list_order
        ),
        list_name=workspace.current_list,
        state=engine.state.value if engine else "idle",
        tasks=tuple(
            TaskView(
                index=index,
                name=task.name,
                duration_seconds=task.duration_seconds,
                remaining_seconds=task.remaining_seconds,
                enabled=task.enabled,
                is_current=index == workspace.current_task_index,
                remaining_text=format_duration(task.remaining_seconds),
                progress_text=format_percent(progress_percent(task)),
            )
            for index, task in enumerate(workspace.tasks)
        ),
        timer_text=timer_text(workspace),
        progress_percent=percent,
        progress_text=format_percent(percent) if current else "",
        estimated_finish=finish,
        finish_text=finish_text(finish),
    )
