"""Microphone capture and speech-to-text sessions."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from emty_assistant.errors import CaptureUnsupportedError
from emty_assistant.events import CaptureEvent, CaptureFailed, ListeningChanged, TranscriptFinalized

from .interfaces import SpeechRecognizer


class MicrophoneSource(Protocol):
    """Represents a microphone-backed audio source."""

    def read_chunk(self) -> bytes:
        """Block until one phrase has been captured and return its audio."""


class SpeechCaptureService:
    """Captures one utterance per session and posts capture events."""

    def __init__(
        self,
        recognizer: SpeechRecognizer,
        microphone: MicrophoneSource,
        events: asyncio.Queue,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._recognizer = recognizer
        self._microphone = microphone
        self._events = events
        self._logger = logger or logging.getLogger("emty_assistant.voice.input")
        self._session = 0
        self._active_session: int | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def listening(self) -> bool:
        return self._active_session is not None

    def check_support(self) -> str | None:
        return None

    def start(self) -> int:
        """Begin capturing; requires a running event loop."""
        if self._active_session is not None:
            return self._active_session

        self._session += 1
        session = self._session
        self._active_session = session
        self._emit(ListeningChanged(session=session, listening=True))
        self._task = asyncio.get_running_loop().create_task(
            self._capture(session), name=f"speech-capture-{session}"
        )
        self._logger.info("capture_started", extra={"session": session})
        return session

    def stop(self) -> None:
        if self._active_session is None:
            return

        session = self._active_session
        self._active_session = None
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._emit(ListeningChanged(session=session, listening=False))
        self._logger.info("capture_stopped", extra={"session": session})

    async def _capture(self, session: int) -> None:
        try:
            audio = await asyncio.to_thread(self._microphone.read_chunk)
            transcript = await asyncio.to_thread(self._recognizer.transcribe, audio) if audio else ""
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001 - backend failures become capture events.
            if self._active_session != session:
                return
            self._logger.exception("capture_failed", extra={"session": session})
            self._finish(session, CaptureFailed(session=session, message=f"Ses tanıma başarısız: {exc}"))
            return

        if self._active_session != session:
            return
        self._finish(session, TranscriptFinalized(session=session, text=transcript.strip()))

    def _finish(self, session: int, event: CaptureEvent) -> None:
        self._active_session = None
        self._task = None
        self._emit(event)
        self._emit(ListeningChanged(session=session, listening=False))

    def _emit(self, event: CaptureEvent) -> None:
        self._events.put_nowait(event)


class UnsupportedSpeechCapture:
    """Stands in for capture when no speech-to-text backend is available."""

    def __init__(self, reason: str) -> None:
        self._reason = reason

    @property
    def listening(self) -> bool:
        return False

    def check_support(self) -> str | None:
        return self._reason

    def start(self) -> int:
        raise CaptureUnsupportedError(self._reason)

    def stop(self) -> None:
        return None
