"""
Shared fixtures and test doubles for TimeTally tests.
"""

import random
from typing import Callable, Optional

import pytest

from timetally.events import Event, EventBus
from timetally.timer import (
    ListConfiguration,
    MemorySlotStore,
    NotificationDispatcher,
    Task,
    TimerEngine,
    Workspace,
    WorkspaceStore,
)


class ManualTicker:
    """Tick source driven by the test: call ``fire()`` to deliver a tick."""

    def __init__(self) -> None:
        self.callback: Optional[Callable[[], None]] = None
        self.starts = 0
        self.stops = 0
        # Every callback ever handed over, including cancelled ones
        self.issued: list[Callable[[], None]] = []

    def start(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.issued.append(callback)
        self.starts += 1

    def stop(self) -> None:
        if self.callback is not None:
            self.stops += 1
        self.callback = None

    @property
    def is_running(self) -> bool:
        return self.callback is not None

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if self.callback is None:
                return
            self.callback()


class FakeSound:
    def __init__(self) -> None:
        self.plays = 0

    def play(self) -> None:
        self.plays += 1


class FakeSpeech:
    def __init__(self, voices: Optional[list[str]] = None) -> None:
        self.said: list[tuple[str, str]] = []
        self._voices = list(voices or [])

    def say(self, text: str, voice: str = "") -> None:
        self.said.append((text, voice))

    def voices(self) -> list[str]:
        return list(self._voices)

    @property
    def texts(self) -> list[str]:
        return [text for text, _ in self.said]


class EventRecorder:
    """Collects every event published on a bus."""

    def __init__(self, bus: EventBus) -> None:
        self.events: list[Event] = []
        bus.subscribe("*", self.events.append)

    def names(self) -> list[str]:
        return [event.name for event in self.events]

    def count(self, name: str) -> int:
        return self.names().count(name)


def make_workspace(*tasks: tuple[str, int], list_name: str = "default") -> Workspace:
    """A workspace whose single list holds ``tasks`` as (name, seconds) pairs."""
    return Workspace(
        lists={list_name: [Task(name=name, duration_seconds=secs) for name, secs in tasks]},
        list_order=[list_name],
        current_list=list_name,
        list_configs={list_name: ListConfiguration()},
    )


@pytest.fixture
def ticker() -> ManualTicker:
    return ManualTicker()


@pytest.fixture
def sound() -> FakeSound:
    return FakeSound()


@pytest.fixture
def speech() -> FakeSpeech:
    return FakeSpeech(voices=["alan", "amy"])


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(bus: EventBus) -> EventRecorder:
    return EventRecorder(bus)


@pytest.fixture
def dispatcher(sound: FakeSound, speech: FakeSpeech, rng: random.Random) -> NotificationDispatcher:
    return NotificationDispatcher(sound, speech, rng=rng)


@pytest.fixture
def store() -> WorkspaceStore:
    return WorkspaceStore(MemorySlotStore())


@pytest.fixture
def workspace() -> Workspace:
    return make_workspace(("A", 10), ("B", 5))


@pytest.fixture
def engine(
    workspace: Workspace,
    ticker: ManualTicker,
    dispatcher: NotificationDispatcher,
    bus: EventBus,
) -> TimerEngine:
    return TimerEngine(workspace, ticker, dispatcher=dispatcher, bus=bus)
