"""
Timer Data Models

Pydantic models for tasks, per-list notification settings and the
workspace aggregate. Field aliases match the persisted JSON slot, so a
model dumped with ``by_alias=True`` is exactly what the store holds.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from timetally.timer.errors import (
    DuplicateNameError,
    InvalidOrderError,
    LastListError,
    UnknownListError,
    ValidationError,
)

DEFAULT_LIST_NAME = "default"
DEFAULT_CUSTOM_MESSAGE = "Task completed!"


class NotificationMode(str, enum.Enum):
    """What gets spoken, and when."""
    NAME_AND_DURATION_ON_START = "taskNamePlusDurationStart"
    NAME_ON_START = "taskNameStart"
    DURATION_ON_START = "durationStart"
    CUSTOM_MESSAGE_ON_COMPLETE = "customCompletion"
    RANDOM_AFFIRMATION_ON_COMPLETE = "randomAffirmation"

    @property
    def announces_start(self) -> bool:
        return self in (
            NotificationMode.NAME_AND_DURATION_ON_START,
            NotificationMode.NAME_ON_START,
            NotificationMode.DURATION_ON_START,
        )


class Task(BaseModel):
    """
    A named unit of work with a fixed duration and a countdown.

    ``remaining_seconds`` never exceeds ``duration_seconds``. Disabled tasks
    are skipped by the engine but keep their remaining time.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    duration_seconds: int = Field(alias="time", ge=0)
    remaining_seconds: int = Field(default=0, alias="remainingTime", ge=0)
    enabled: bool = True

    @model_validator(mode="before")
    @classmethod
    def default_remaining(cls, data: Any) -> Any:
        if isinstance(data, dict):
            has_remaining = "remaining_seconds" in data or "remainingTime" in data
            if not has_remaining:
                data = dict(data)
                data["remaining_seconds"] = data.get("duration_seconds", data.get("time", 0))
        return data

    @model_validator(mode="after")
    def clamp_remaining(self) -> "Task":
        if self.remaining_seconds > self.duration_seconds:
            self.remaining_seconds = self.duration_seconds
        return self

    def reset(self) -> None:
        """Restore the full duration."""
        self.remaining_seconds = self.duration_seconds

    @property
    def elapsed_fraction(self) -> float:
        if self.duration_seconds <= 0:
            return 0.0
        return (self.duration_seconds - self.remaining_seconds) / self.duration_seconds

    def __repr__(self) -> str:
        state = "" if self.enabled else " disabled"
        return f"<Task {self.name!r} {self.remaining_seconds}/{self.duration_seconds}s{state}>"


# Execution order is list order
TaskList = list[Task]


class ListConfiguration(BaseModel):
    """Notification settings owned by one list."""

    model_config = ConfigDict(populate_by_name=True)

    beep_enabled: bool = Field(default=True, alias="beepEnabled")
    tts_enabled: bool = Field(default=False, alias="ttsEnabled")
    selected_voice: str = Field(default="", alias="selectedVoiceName")
    notification_mode: NotificationMode = Field(
        default=NotificationMode.NAME_AND_DURATION_ON_START, alias="ttsMode"
    )
    custom_message: str = Field(default=DEFAULT_CUSTOM_MESSAGE, alias="ttsCustomMessage")


class Workspace(BaseModel):
    """
    Root aggregate: every list, its configuration, and the cursor.

    The primitives below keep the structural invariants (``list_order`` is a
    permutation of ``lists``, at least one list, a config per list) and raise
    from ``timetally.timer.errors`` when asked to break them.
    """

    model_config = ConfigDict(populate_by_name=True)

    lists: dict[str, TaskList] = Field(default_factory=dict)
    list_order: list[str] = Field(default_factory=list, alias="listOrder")
    current_list: str = Field(default=DEFAULT_LIST_NAME, alias="currentList")
    list_configs: dict[str, ListConfiguration] = Field(
        default_factory=dict, alias="listConfigs"
    )
    current_task_index: int = Field(default=0, alias="currentTaskIndex", ge=0)

    @classmethod
    def default(cls) -> "Workspace":
        """A workspace with a single empty list named "default"."""
        return cls(
            lists={DEFAULT_LIST_NAME: []},
            list_order=[DEFAULT_LIST_NAME],
            current_list=DEFAULT_LIST_NAME,
            list_configs={DEFAULT_LIST_NAME: ListConfiguration()},
        )

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def tasks(self) -> TaskList:
        """The current list's tasks (the live list, not a copy)."""
        return self.lists.get(self.current_list, [])

    @property
    def current_task(self) -> Task | None:
        tasks = self.tasks
        if 0 <= self.current_task_index < len(tasks):
            return tasks[self.current_task_index]
        return None

    def has_list(self, name: str) -> bool:
        return name in self.lists

    def get_or_create_config(self, name: str) -> ListConfiguration:
        """Return the list's configuration, inserting the default first if absent."""
        config = self.list_configs.get(name)
        if config is None:
            config = ListConfiguration()
            self.list_configs[name] = config
        return config

    # =========================================================================
    # Structural primitives
    # =========================================================================

    def add_list(self, name: str, tasks: TaskList | None = None) -> None:
        if not name:
            raise ValidationError("List name must not be empty")
        if name in self.lists:
            raise DuplicateNameError(name)
        self.lists[name] = tasks if tasks is not None else []
        self.list_configs[name] = ListConfiguration()
        self.list_order.append(name)

    def rename_list(self, old: str, new: str) -> None:
        if old not in self.lists:
            raise UnknownListError(old)
        if not new:
            raise ValidationError("List name must not be empty")
        if new == old:
            return
        if new in self.lists:
            raise DuplicateNameError(new)

        self.lists[new] = self.lists.pop(old)
        self.list_configs[new] = self.list_configs.pop(old, None) or ListConfiguration()
        self.list_order[self.list_order.index(old)] = new
        if self.current_list == old:
            self.current_list = new

    def remove_list(self, name: str) -> None:
        if name not in self.lists:
            raise UnknownListError(name)
        if len(self.list_order) <= 1:
            raise LastListError(f"Cannot delete {name!r}: it is the only list")

        del self.lists[name]
        self.list_configs.pop(name, None)
        self.list_order.remove(name)
        if self.current_list == name:
            self.current_list = self.list_order[0]
            self.current_task_index = 0

    def set_order(self, new_order: list[str]) -> None:
        if sorted(new_order) != sorted(self.list_order):
            raise InvalidOrderError(
                f"{new_order!r} is not a permutation of {self.list_order!r}"
            )
        self.list_order = list(new_order)

    def select_list(self, name: str) -> None:
        if name not in self.lists:
            raise UnknownListError(name)
        self.current_list = name
        self.current_task_index = 0

    def substitute_current(self, name: str, tasks: TaskList) -> None:
        """
        Put list ``name`` in the current list's slot and make it current.

        The previously current list and its config are dropped. ``name`` may
        already exist elsewhere in ``list_order``; that entry is folded into
        the current slot so the order stays a permutation.
        """
        old = self.current_list
        if name != old:
            idx = self.list_order.index(old)
            if name in self.lists:
                self.list_order.remove(name)
                idx = self.list_order.index(old)
            self.list_order[idx] = name
            del self.lists[old]
            self.list_configs.pop(old, None)
        self.lists[name] = tasks
        self.get_or_create_config(name)
        self.current_list = name
        self.current_task_index = 0

    def reset_tasks(self) -> None:
        """Full-list reset: every task back to full duration, cursor to 0."""
        for task in self.tasks:
            task.reset()
        self.current_task_index = 0

    def repair(self) -> list[str]:
        """
        Restore structural invariants after loading foreign data.

        Returns a short description of each fix applied.
        """
        fixes: list[str] = []

        if not self.lists:
            self.lists[DEFAULT_LIST_NAME] = []
            fixes.append("created_default_list")

        order = [name for name in dict.fromkeys(self.list_order) if name in self.lists]
        order.extend(name for name in self.lists if name not in order)
        if order != self.list_order:
            self.list_order = order
            fixes.append("rebuilt_list_order")

        for name in self.lists:
            if name not in self.list_configs:
                self.list_configs[name] = ListConfiguration()
                fixes.append(f"default_config:{name}")

        if self.current_list not in self.lists:
            self.current_list = self.list_order[0]
            self.current_task_index = 0
            fixes.append("reset_current_list")

        return fixes
