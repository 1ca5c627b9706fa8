"""
TimeTally Coordinator

Owns one workspace and wires the engine, managers, notifications and
persistence around it. Hosts (the CLI, a GUI) talk to this object only.
"""

from __future__ import annotations

import random
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence

from timetally.events import EventBus
from timetally.timer.engine import TimerEngine
from timetally.timer.errors import PersistenceUnavailable
from timetally.timer.interchange import (
    ImportedList,
    ImportMode,
    export_filename,
    export_list,
    merge_import,
    parse_document,
)
from timetally.timer.lists import ListManager
from timetally.timer.notifications import NotificationDispatcher, Sound, Speech
from timetally.timer.scheduler import IntervalTicker, TickSource
from timetally.timer.store import MemorySlotStore, SlotStore, SqliteSlotStore, WorkspaceStore
from timetally.timer.tasks import TaskEditor
from timetally.timer.view import WorkspaceView, build_view, estimate_finish, finish_text
from timetally.utils.logging import get_logger

if TYPE_CHECKING:
    from timetally.config import TallyConfig

logger = get_logger(__name__)


class TimeTally:
    """
    Sequential task timer.

    Provides:
    - List and per-list notification management (``lists``)
    - Task editing (``tasks``)
    - Countdown controls (start, pause, skip, complete_early, restart)
    - XML import/export
    - A read-only view for renderers
    """

    def __init__(
        self,
        store: WorkspaceStore,
        sound: Sound,
        speech: Speech,
        bus: Optional[EventBus] = None,
        ticker: Optional[TickSource] = None,
        estimate_ticker: Optional[TickSource] = None,
        rng: Optional[random.Random] = None,
        voices: Optional[Sequence[str]] = None,
    ):
        """
        Initialize the coordinator and load the saved workspace.

        Args:
            store: Where the workspace lives between sessions
            sound: Beep output
            speech: Spoken output
            bus: Event bus (a private one is created if omitted)
            ticker: One-second countdown source
            estimate_ticker: Finish-estimate refresh source
            rng: Random source for completion affirmations
            voices: Known voices; asked from ``speech`` if omitted
        """
        self.store = store
        self.bus = bus or EventBus()
        self.workspace = store.load()

        self.dispatcher = NotificationDispatcher(sound, speech, rng=rng, voices=())
        self.engine = TimerEngine(
            self.workspace,
            ticker or IntervalTicker(1.0, name="countdown"),
            dispatcher=self.dispatcher,
            bus=self.bus,
            on_change=self.save,
        )
        self.lists = ListManager(self.workspace, store, self.engine)
        self.tasks = TaskEditor(self.workspace, self.engine, store)

        self._estimate_ticker = estimate_ticker or IntervalTicker(5.0, name="estimate")
        self._pending_import: Optional[ImportedList] = None

        self.refresh_voices(voices)

    @classmethod
    def from_config(cls, config: "TallyConfig", ephemeral: bool = False) -> "TimeTally":
        """Build a coordinator with the configured store, audio and cadence."""
        from timetally.audio import NullSound, NullSpeech, PiperSpeech, ToneSound

        slots: SlotStore = MemorySlotStore()
        if not ephemeral:
            try:
                slots = SqliteSlotStore(str(config.store.path), echo=config.store.echo)
            except PersistenceUnavailable as e:
                # Keep working from memory for this session
                logger.warning("store_unavailable", path=str(config.store.path), error=str(e))
        store = WorkspaceStore(slots, key=config.store.slot_key, max_bytes=config.store.max_bytes)

        audio = config.audio
        if audio.enabled:
            sound = ToneSound(
                frequency=audio.beep_frequency,
                duration=audio.beep_duration,
                volume=audio.beep_volume,
                sample_rate=audio.sample_rate,
            )
            speech = PiperSpeech(
                piper_path=audio.piper_path,
                models_dir=audio.models_dir,
                sample_rate=audio.sample_rate,
            )
        else:
            sound, speech = NullSound(), NullSpeech()

        return cls(
            store,
            sound,
            speech,
            ticker=IntervalTicker(config.timer.tick_interval, name="countdown"),
            estimate_ticker=IntervalTicker(config.timer.estimate_interval, name="estimate"),
        )

    # =========================================================================
    # Persistence
    # =========================================================================

    def save(self) -> bool:
        saved = self.store.save(self.workspace)
        if saved:
            self.bus.publish("workspace.saved", {"list": self.workspace.current_list})
        return saved

    # =========================================================================
    # Countdown controls
    # =========================================================================

    def start(self) -> bool:
        return self.engine.start()

    def pause(self) -> bool:
        return self.engine.pause()

    def skip(self) -> bool:
        return self.engine.skip()

    def complete_early(self) -> bool:
        return self.engine.complete_early()

    def restart(self) -> None:
        self.engine.restart()

    def start_estimates(self) -> None:
        """Publish a finish estimate now and then on the estimate cadence."""
        self.publish_estimate()
        self._estimate_ticker.start(self.publish_estimate)

    def stop_estimates(self) -> None:
        self._estimate_ticker.stop()

    def publish_estimate(self, now: Optional[datetime] = None) -> Optional[datetime]:
        finish = estimate_finish(self.workspace, now or datetime.now())
        self.bus.publish(
            "finish.estimated",
            {
                "finish": finish.isoformat() if finish else None,
                "text": finish_text(finish),
            },
        )
        return finish

    def shutdown(self) -> None:
        """Stop every tick source and save."""
        self.engine.halt()
        self.stop_estimates()
        self.save()

    # =========================================================================
    # Voices and view
    # =========================================================================

    def refresh_voices(self, voices: Optional[Sequence[str]] = None) -> bool:
        """Reload voices; fix the current list's voice if it disappeared."""
        config = self.workspace.get_or_create_config(self.workspace.current_list)
        changed = self.dispatcher.refresh_voices(config, voices)
        if changed:
            self.save()
        return changed

    def view(self, now: Optional[datetime] = None) -> WorkspaceView:
        return build_view(self.workspace, self.engine, now)

    # =========================================================================
    # Import / export
    # =========================================================================

    def load_import(self, text: str) -> ImportedList:
        """Parse a document and hold it until ``apply_import`` picks a mode."""
        self._pending_import = parse_document(text)
        return self._pending_import

    def apply_import(
        self,
        mode: ImportMode | str,
        imported: Optional[ImportedList] = None,
    ) -> bool:
        imported = imported or self._pending_import
        if imported is None:
            logger.warning("import_nothing_pending")
            return False

        mode = ImportMode(mode)
        if mode == ImportMode.REPLACE:
            self.engine.halt()
        merge_import(self.workspace, imported, mode)
        self._pending_import = None
        self.save()
        self.refresh_voices(self.dispatcher.available_voices)
        return True

    def import_file(self, path: Path, mode: ImportMode | str) -> bool:
        text = Path(path).read_text(encoding="utf-8")
        return self.apply_import(mode, parse_document(text))

    def export(self) -> tuple[str, str]:
        """Return (suggested filename, document) for the current list."""
        return export_filename(self.workspace.current_list), export_list(self.workspace)
