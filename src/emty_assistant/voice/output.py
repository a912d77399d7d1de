"""Text-to-speech playback for spoken assistant replies."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4

from emty_assistant.events import SpeechEnded, SpeechEvent, SpeechFailed, SpeechStarted

from .interfaces import SpeechSynthesizer


class AudioOutputDevice(Protocol):
    """Interface for a speaker/audio sink."""

    def play(self, audio_bytes: bytes) -> None:
        """Play synthesized audio bytes, blocking until playback finishes."""

    def stop(self) -> None:
        """Interrupt playback started by ``play``."""


@dataclass(slots=True)
class VoiceOutputConfig:
    """Configurable controls for response speech."""

    enabled: bool = True
    max_chars: int = 500


class SpeechOutputService:
    """Synthesizes replies off the event loop and posts speech events."""

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        output_device: AudioOutputDevice,
        events: asyncio.Queue,
        config: VoiceOutputConfig | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._synthesizer = synthesizer
        self._output_device = output_device
        self._events = events
        self._config = config or VoiceOutputConfig()
        self._logger = logger or logging.getLogger("emty_assistant.voice.output")
        self._current: str | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def config(self) -> VoiceOutputConfig:
        return self._config

    @property
    def speaking(self) -> bool:
        return self._current is not None

    def speak(self, text: str) -> str | None:
        """Cancel the current utterance and start speaking ``text``."""
        self.cancel()
        if not self._config.enabled:
            return None

        normalized = " ".join(text.split())
        if not normalized:
            return None

        limited = normalized[: self._config.max_chars]
        utterance_id = uuid4().hex
        self._current = utterance_id
        self._task = asyncio.get_running_loop().create_task(
            self._play(utterance_id, limited), name=f"speech-output-{utterance_id}"
        )
        return utterance_id

    def cancel(self) -> None:
        if self._current is None:
            return

        utterance_id = self._current
        self._current = None
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._output_device.stop()
        self._logger.info("speech_cancelled", extra={"utterance_id": utterance_id})

    async def _play(self, utterance_id: str, text: str) -> None:
        self._emit(SpeechStarted(utterance_id=utterance_id))
        try:
            audio = await asyncio.to_thread(self._synthesizer.synthesize, text)
            await asyncio.to_thread(self._output_device.play, audio)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001 - playback failures become speech events.
            if self._current != utterance_id:
                return
            self._logger.exception("speech_failed", extra={"utterance_id": utterance_id})
            self._current = None
            self._task = None
            self._emit(SpeechFailed(utterance_id=utterance_id, message=f"Ses çalınamadı: {exc}"))
            return

        if self._current != utterance_id:
            return
        self._current = None
        self._task = None
        self._emit(SpeechEnded(utterance_id=utterance_id))

    def _emit(self, event: SpeechEvent) -> None:
        self._events.put_nowait(event)
