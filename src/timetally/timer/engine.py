"""
Timer Engine

State machine that counts down the current list's tasks one after another.

    IDLE --start()--> RUNNING --pause()--> PAUSED --start()--> RUNNING
    RUNNING --last enabled task expires--> IDLE (full-list reset)

The engine never sleeps itself. A ``TickSource`` calls back once per
second; tests drive ``tick()`` directly.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Callable, Optional

from timetally.timer.models import Task, Workspace
from timetally.utils.logging import get_logger

if TYPE_CHECKING:
    from timetally.events import EventBus
    from timetally.timer.notifications import NotificationDispatcher
    from timetally.timer.scheduler import TickSource

logger = get_logger(__name__)


class TimerState(enum.Enum):
    """Engine lifecycle state."""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


@dataclass(frozen=True)
class EngineSnapshot:
    state: TimerState
    list_name: str
    task_index: int
    task_name: Optional[str]
    remaining_seconds: Optional[int]


class TimerEngine:
    """
    Sequential countdown over the workspace's current list.

    Disabled tasks are passed over without time or events. When no enabled
    task follows the one that just ended, the lap is over: every task goes
    back to full duration and the cursor returns to 0.
    """

    def __init__(
        self,
        workspace: Workspace,
        ticker: "TickSource",
        dispatcher: Optional["NotificationDispatcher"] = None,
        bus: Optional["EventBus"] = None,
        on_change: Optional[Callable[[], None]] = None,
    ):
        """
        Initialize the engine.

        Args:
            workspace: The workspace whose current list is run
            ticker: One-second tick source
            dispatcher: Beep/speech decisions for start and completion
            bus: Optional event bus for renderers
            on_change: Called after each transition worth persisting
        """
        self.workspace = workspace
        self.ticker = ticker
        self.dispatcher = dispatcher
        self.bus = bus
        self.on_change = on_change

        self._state = TimerState.IDLE
        self._run_id = 0

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == TimerState.RUNNING

    @property
    def active_task(self) -> Optional[Task]:
        return self.workspace.current_task

    def snapshot(self) -> EngineSnapshot:
        task = self.active_task
        return EngineSnapshot(
            state=self._state,
            list_name=self.workspace.current_list,
            task_index=self.workspace.current_task_index,
            task_name=task.name if task else None,
            remaining_seconds=task.remaining_seconds if task else None,
        )

    def _next_enabled(self, start: int) -> Optional[int]:
        """First enabled task index at or after ``start``."""
        tasks = self.workspace.tasks
        for index in range(max(start, 0), len(tasks)):
            if tasks[index].enabled:
                return index
        return None

    # =========================================================================
    # Controls
    # =========================================================================

    def start(self) -> bool:
        """Begin or resume counting down. Returns True if now running."""
        if self._state == TimerState.RUNNING:
            return False
        if not self.workspace.tasks:
            logger.debug("start_ignored", reason="empty_list")
            return False

        index = self._next_enabled(self.workspace.current_task_index)
        if index is None:
            logger.info("no_enabled_task_ahead", list_name=self.workspace.current_list)
            self._lap_complete()
            return False

        self.workspace.current_task_index = index
        task = self.workspace.tasks[index]
        # Resuming a partially elapsed task does not announce it again
        fresh = task.remaining_seconds == task.duration_seconds
        self._run()
        if fresh:
            self._task_started(task)
        logger.info("timer_started", task=task.name, index=index, resumed=not fresh)
        return True

    def pause(self) -> bool:
        """Stop counting, keep everything as-is."""
        if self._state != TimerState.RUNNING:
            return False
        self._stop_ticker()
        self._state = TimerState.PAUSED
        logger.info("timer_paused", index=self.workspace.current_task_index)
        self._publish("timer.paused", self._position())
        self._changed()
        return True

    def skip(self) -> bool:
        """Move to the next enabled task without completing this one."""
        return self._advance_manually(complete=False)

    def complete_early(self) -> bool:
        """Treat the active task as finished now, then move on."""
        return self._advance_manually(complete=True)

    def restart(self) -> None:
        """Stop, rewind to the first task, restore every duration."""
        self._stop_ticker()
        self._state = TimerState.IDLE
        self.workspace.reset_tasks()
        logger.info("timer_restarted", list_name=self.workspace.current_list)
        self._publish("timer.restarted", {"list": self.workspace.current_list})
        self._changed()

    def halt(self) -> None:
        """Stop the countdown without touching task data."""
        if self._state != TimerState.IDLE:
            logger.info("timer_halted", state=self._state.value)
        self._stop_ticker()
        self._state = TimerState.IDLE

    def tick(self) -> None:
        """Advance the active task by one second."""
        if self._state != TimerState.RUNNING:
            return

        task = self.active_task
        if task is None:
            logger.warning("tick_without_task", index=self.workspace.current_task_index)
            self.halt()
            return

        if not task.enabled:
            # Disabled while active: pass over it without time or events
            logger.info("disabled_task_passed_over", task=task.name)
            self._advance_from(self.workspace.current_task_index)
            self._changed()
            return

        task.remaining_seconds = max(task.remaining_seconds - 1, 0)
        self._publish("timer.tick", self._position())
        if task.remaining_seconds > 0:
            return

        self._task_completed(task)
        self._advance_from(self.workspace.current_task_index)
        self._changed()

    # =========================================================================
    # Internals
    # =========================================================================

    def _advance_manually(self, complete: bool) -> bool:
        task = self.active_task
        if task is None:
            return False

        was_running = self._state == TimerState.RUNNING
        self._stop_ticker()
        self._state = TimerState.IDLE

        if complete and task.enabled:
            self._task_completed(task)
        logger.info(
            "task_completed_early" if complete else "task_skipped",
            task=task.name,
            index=self.workspace.current_task_index,
        )

        index = self._next_enabled(self.workspace.current_task_index + 1)
        if index is None:
            self._lap_complete()
        else:
            self.workspace.current_task_index = index
            if was_running:
                self._run()
                self._task_started(self.workspace.tasks[index])
        self._changed()
        return True

    def _advance_from(self, index: int) -> None:
        """Keep running on the next enabled task after ``index``, or end the lap."""
        following = self._next_enabled(index + 1)
        if following is None:
            self._lap_complete()
        else:
            self.workspace.current_task_index = following
            self._task_started(self.workspace.tasks[following])

    def _run(self) -> None:
        self._stop_ticker()
        self._state = TimerState.RUNNING
        self.ticker.start(partial(self._on_tick, self._run_id))

    def _on_tick(self, run_id: int) -> None:
        if run_id != self._run_id:
            logger.debug("stale_tick_ignored", run_id=run_id)
            return
        self.tick()

    def _stop_ticker(self) -> None:
        self.ticker.stop()
        # Any callback still holding the old id becomes a no-op
        self._run_id += 1

    def _lap_complete(self) -> None:
        self._stop_ticker()
        self._state = TimerState.IDLE
        self.workspace.reset_tasks()
        logger.info("lap_completed", list_name=self.workspace.current_list)
        self._publish("timer.lap_completed", {"list": self.workspace.current_list})

    def _task_started(self, task: Task) -> None:
        self._publish("task.started", self._position())
        if self.dispatcher:
            config = self.workspace.get_or_create_config(self.workspace.current_list)
            self.dispatcher.task_started(task, config)

    def _task_completed(self, task: Task) -> None:
        logger.info("task_completed", task=task.name, index=self.workspace.current_task_index)
        self._publish("task.completed", self._position())
        if self.dispatcher:
            config = self.workspace.get_or_create_config(self.workspace.current_list)
            self.dispatcher.task_completed(task, config)

    def _position(self) -> dict:
        task = self.active_task
        return {
            "list": self.workspace.current_list,
            "index": self.workspace.current_task_index,
            "task": task.name if task else None,
            "remaining": task.remaining_seconds if task else None,
        }

    def _publish(self, name: str, payload: dict) -> None:
        if self.bus:
            self.bus.publish(name, payload)

    def _changed(self) -> None:
        if self.on_change:
            self.on_change()
