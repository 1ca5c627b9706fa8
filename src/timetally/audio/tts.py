"""
Text-to-Speech Module

Speaks notifications using Piper TTS (local). Each installed Piper model is
one selectable voice, named after its .onnx file.
"""

from __future__ import annotations

import asyncio
import shutil
import subprocess
import time
from pathlib import Path

import numpy as np
import structlog

logger = structlog.get_logger(__name__)


class PiperSpeech:
    """
    Text-to-speech using a local Piper installation.

    ``say()`` returns immediately. Utterances are queued and spoken one at a
    time on the running event loop; without a loop they are spoken inline.
    """

    def __init__(
        self,
        piper_path: str | Path | None = None,
        models_dir: str | Path | None = None,
        sample_rate: int = 22050,
    ):
        """
        Initialize TTS.

        Args:
            piper_path: Path to piper executable (auto-detected if None)
            models_dir: Directory containing Piper .onnx voice models
            sample_rate: Output sample rate (Piper default is 22050)
        """
        self._models_dir = models_dir
        self.piper_path = self._find_piper(piper_path)
        self.sample_rate = sample_rate

        self._lock: asyncio.Lock | None = None
        self._pending: set[asyncio.Task] = set()

    def _find_piper(self, piper_path: str | Path | None) -> str | None:
        """Find piper executable."""
        if piper_path:
            path = Path(piper_path)
            if path.exists():
                return str(path)

        piper = shutil.which("piper")
        if piper:
            return piper

        candidates = [
            Path.cwd() / "bin" / "piper" / "piper",
            Path.home() / ".local" / "bin" / "piper",
            Path("/usr/local/bin/piper"),
            Path("/usr/bin/piper"),
        ]
        for path in candidates:
            if path.exists():
                return str(path)

        return None

    def _model_dirs(self) -> list[Path]:
        dirs = []
        if self._models_dir:
            dirs.append(Path(self._models_dir))
        dirs.extend([
            Path.cwd() / "models" / "piper",
            Path.home() / ".local" / "share" / "piper-voices",
            Path("/usr/share/piper-voices"),
        ])
        return [d for d in dirs if d.exists()]

    def _models(self) -> dict[str, Path]:
        """Voice name -> model file, first directory wins."""
        models: dict[str, Path] = {}
        for dir_path in self._model_dirs():
            for model_file in sorted(dir_path.glob("*.onnx")):
                models.setdefault(model_file.stem, model_file)
        return models

    def voices(self) -> list[str]:
        return list(self._models())

    def say(self, text: str, voice: str = "") -> None:
        if not text.strip():
            return

        models = self._models()
        if not self.piper_path or not models:
            logger.warning(
                "tts_unavailable",
                piper_path=self.piper_path,
                voices=len(models),
                text=text,
            )
            return

        model = models.get(voice) or next(iter(models.values()))

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._speak(text, model))
            return

        task = loop.create_task(self._speak(text, model))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _speak(self, text: str, model: Path) -> None:
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            audio = await self._synthesize_piper(text, model)
            if audio:
                await self._play_audio(audio)

    async def _synthesize_piper(self, text: str, model: Path) -> bytes | None:
        """Synthesize using Piper TTS."""
        try:
            start_time = time.perf_counter()
            proc = await asyncio.create_subprocess_exec(
                self.piper_path,
                "--model", str(model),
                "--output-raw",
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )

            stdout, stderr = await proc.communicate(input=text.encode())

            if proc.returncode != 0:
                logger.warning(
                    "piper_error",
                    returncode=proc.returncode,
                    stderr=stderr.decode()[:200]
                )
                return None

            logger.debug(
                "tts_synthesized",
                voice=model.stem,
                text_length=len(text),
                latency=round(time.perf_counter() - start_time, 3),
            )
            return stdout

        except FileNotFoundError:
            logger.warning("piper_not_found", path=self.piper_path)
            self.piper_path = None  # Disable for future calls
            return None

    async def _play_audio(self, audio_data: bytes) -> None:
        """Play 16-bit PCM through the speakers."""
        try:
            import sounddevice as sd

            audio = np.frombuffer(audio_data, dtype=np.int16).astype(np.float32) / 32768.0
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(
                None,
                lambda: sd.play(audio, samplerate=self.sample_rate, blocking=True)
            )
        except asyncio.CancelledError:
            import sounddevice as sd
            sd.stop()
            raise
        except OSError as e:
            logger.error("tts_playback_error", error=str(e))

    async def drain(self) -> None:
        """Wait until queued speech has been spoken."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def stop(self) -> None:
        """Cancel queued and in-flight speech."""
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        self._pending.clear()


class NullSpeech:
    """Speech output that only logs (audio disabled)."""

    def say(self, text: str, voice: str = "") -> None:
        logger.info("speech_suppressed", text=text, voice=voice or None)

    def voices(self) -> list[str]:
        return []
