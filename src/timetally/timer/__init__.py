"""
Sequential Task Timer

Lists of timed tasks, the engine that runs them one after another, the
notifications it triggers, and the codecs that persist and exchange them.
"""

from timetally.timer.engine import EngineSnapshot, TimerEngine, TimerState
from timetally.timer.errors import (
    DuplicateNameError,
    InvalidOrderError,
    LastListError,
    MalformedImportError,
    PersistenceUnavailable,
    TallyError,
    UnknownListError,
    ValidationError,
)
from timetally.timer.formatting import format_duration
from timetally.timer.interchange import (
    ImportedList,
    ImportMode,
    export_list,
    merge_import,
    parse_document,
)
from timetally.timer.lists import ListManager
from timetally.timer.models import (
    ListConfiguration,
    NotificationMode,
    Task,
    TaskList,
    Workspace,
)
from timetally.timer.notifications import (
    AFFIRMATIONS,
    NotificationDispatcher,
    NotificationKind,
    Sound,
    Speech,
)
from timetally.timer.scheduler import IntervalTicker, TickSource
from timetally.timer.service import TimeTally
from timetally.timer.store import (
    MemorySlotStore,
    SqliteSlotStore,
    WorkspaceCodec,
    WorkspaceStore,
)
from timetally.timer.tasks import TaskEditor
from timetally.timer.view import WorkspaceView, build_view

__all__ = [
    # Coordinator
    "TimeTally",
    # Models
    "Task",
    "TaskList",
    "ListConfiguration",
    "NotificationMode",
    "Workspace",
    # Errors
    "TallyError",
    "ValidationError",
    "DuplicateNameError",
    "UnknownListError",
    "LastListError",
    "InvalidOrderError",
    "MalformedImportError",
    "PersistenceUnavailable",
    # Engine
    "TimerEngine",
    "TimerState",
    "EngineSnapshot",
    "IntervalTicker",
    "TickSource",
    # Managers
    "ListManager",
    "TaskEditor",
    # Notifications
    "AFFIRMATIONS",
    "NotificationDispatcher",
    "NotificationKind",
    "Sound",
    "Speech",
    # Persistence & interchange
    "MemorySlotStore",
    "SqliteSlotStore",
    "WorkspaceCodec",
    "WorkspaceStore",
    "ImportedList",
    "ImportMode",
    "export_list",
    "merge_import",
    "parse_document",
    # Formatting & view
    "format_duration",
    "WorkspaceView",
    "build_view",
]
