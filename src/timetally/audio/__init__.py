"""
TimeTally Audio

Host implementations of the notification Sound and Speech collaborators.
"""

from timetally.audio.sound import NullSound, ToneSound, make_tone
from timetally.audio.tts import NullSpeech, PiperSpeech

__all__ = [
    "NullSound",
    "NullSpeech",
    "PiperSpeech",
    "ToneSound",
    "make_tone",
]
