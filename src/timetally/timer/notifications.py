"""
Notification Dispatcher

Decides whether to beep and what to say when a task starts or completes.
How the sound is made and how speech is rendered belongs to the host; the
dispatcher only talks to the ``Sound`` and ``Speech`` protocols.
"""

from __future__ import annotations

import enum
import random
from typing import Protocol, Sequence

from timetally.timer.formatting import format_duration
from timetally.timer.models import ListConfiguration, NotificationMode, Task
from timetally.utils.logging import get_logger

logger = get_logger(__name__)

AFFIRMATIONS = (
    "Great job!",
    "Well done!",
    "You did it!",
    "Keep it up!",
    "Nice work!",
)


class Sound(Protocol):
    """Plays the notification sound."""

    def play(self) -> None: ...


class Speech(Protocol):
    """Speaks text. An empty voice means the host's default voice."""

    def say(self, text: str, voice: str = "") -> None: ...

    def voices(self) -> list[str]: ...


class NotificationKind(enum.Enum):
    TASK_START = "task_start"
    TASK_COMPLETE = "task_complete"


class NotificationDispatcher:
    """
    Turns engine events into beeps and speech.

    Collaborator failures are logged and swallowed so a broken speaker never
    stops the countdown.
    """

    def __init__(
        self,
        sound: Sound,
        speech: Speech,
        rng: random.Random | None = None,
        voices: Sequence[str] | None = None,
    ):
        """
        Args:
            sound: Host sound output
            speech: Host speech output
            rng: Random source for affirmations (seed it in tests)
            voices: Initially available voices; defaults to asking ``speech``
        """
        self.sound = sound
        self.speech = speech
        self.rng = rng or random.Random()
        self._voices: list[str] = list(voices) if voices is not None else []
        if voices is None:
            self.refresh_voices()

    @property
    def available_voices(self) -> list[str]:
        return list(self._voices)

    def refresh_voices(
        self,
        config: ListConfiguration | None = None,
        voices: Sequence[str] | None = None,
    ) -> bool:
        """
        Reload the available voice set.

        If ``config`` names a voice that is no longer available it is
        corrected to the first available voice. Returns True when the
        configuration was changed.
        """
        if voices is None:
            try:
                voices = self.speech.voices()
            except Exception as e:
                logger.warning("voice_list_failed", error=str(e))
                voices = []
        self._voices = list(voices)
        logger.debug("voices_refreshed", count=len(self._voices))

        if config is None or not self._voices:
            return False
        if config.selected_voice and config.selected_voice in self._voices:
            return False

        logger.info(
            "voice_corrected",
            previous=config.selected_voice,
            selected=self._voices[0],
        )
        config.selected_voice = self._voices[0]
        return True

    def resolve_voice(self, config: ListConfiguration) -> str:
        """The configured voice if available, else "" for the host default."""
        if config.selected_voice and config.selected_voice in self._voices:
            return config.selected_voice
        return ""

    # =========================================================================
    # Message selection
    # =========================================================================

    def start_message(self, task: Task, config: ListConfiguration) -> str | None:
        if not config.tts_enabled:
            return None

        mode = config.notification_mode
        if mode == NotificationMode.NAME_AND_DURATION_ON_START:
            return f"Starting: {task.name}, which is {format_duration(task.duration_seconds)}."
        if mode == NotificationMode.NAME_ON_START:
            return f"Starting task: {task.name}."
        if mode == NotificationMode.DURATION_ON_START:
            return f"This task will take {format_duration(task.duration_seconds)}."
        return None

    def completion_message(self, config: ListConfiguration) -> str | None:
        if not config.tts_enabled:
            return None

        mode = config.notification_mode
        if mode == NotificationMode.CUSTOM_MESSAGE_ON_COMPLETE:
            return config.custom_message
        if mode == NotificationMode.RANDOM_AFFIRMATION_ON_COMPLETE:
            return self.rng.choice(AFFIRMATIONS)
        return None

    # =========================================================================
    # Dispatch
    # =========================================================================

    def dispatch(self, kind: NotificationKind, task: Task, config: ListConfiguration) -> None:
        if kind == NotificationKind.TASK_START:
            self.task_started(task, config)
        else:
            self.task_completed(task, config)

    def task_started(self, task: Task, config: ListConfiguration) -> None:
        message = self.start_message(task, config)
        if message:
            self._say(message, config)

    def task_completed(self, task: Task, config: ListConfiguration) -> None:
        if config.beep_enabled:
            self._play()

        message = self.completion_message(config)
        if message:
            self._say(message, config)

    def _play(self) -> None:
        try:
            self.sound.play()
        except Exception as e:
            logger.error("sound_failed", error=str(e), exc_info=True)

    def _say(self, text: str, config: ListConfiguration) -> None:
        voice = self.resolve_voice(config)
        logger.debug("speaking", text=text, voice=voice or "(default)")
        try:
            self.speech.say(text, voice)
        except Exception as e:
            logger.error("speech_failed", error=str(e), exc_info=True)
