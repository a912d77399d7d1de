"""Interaction controller arbitrating capture, completion requests and speech output.

All state changes happen on the event loop thread: public operations run
synchronously, and leaf results arrive as events that the worker task hands to
``handle_event`` one at a time.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from datetime import datetime, timezone
from typing import Callable

from emty_assistant.completion import CompletionClient
from emty_assistant.credentials import CredentialProvider
from emty_assistant.errors import AssistantError, ConfigurationError
from emty_assistant.events import (
    CaptureFailed,
    CompletionFailed,
    CompletionSucceeded,
    ControllerEvent,
    ListeningChanged,
    SpeechEnded,
    SpeechFailed,
    SpeechStarted,
    TranscriptFinalized,
)
from emty_assistant.models import ConversationPhase, ConversationStatus, ErrorKind, Message, MessageRole
from emty_assistant.telemetry import Telemetry
from emty_assistant.voice.interfaces import SpeechCapture, SpeechOutput

StatusListener = Callable[[ConversationStatus, tuple[Message, ...]], None]

MISSING_CREDENTIAL_MESSAGE = "API anahtarı yapılandırılmamış"


class InteractionController:
    """Owns conversation status and the message log; the only writer of either."""

    def __init__(
        self,
        *,
        capture: SpeechCapture,
        output: SpeechOutput,
        client: CompletionClient,
        credentials: CredentialProvider,
        events: asyncio.Queue | None = None,
        telemetry: Telemetry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._capture = capture
        self._output = output
        self._client = client
        self._credentials = credentials
        self._events: asyncio.Queue[ControllerEvent] = events if events is not None else asyncio.Queue()
        self._telemetry = telemetry
        self._logger = logger or logging.getLogger("emty_assistant.controller")

        self._phase = ConversationPhase.idle
        self._error: str | None = None
        self._error_kind: ErrorKind | None = None
        self._messages: list[Message] = []
        self._message_ids = itertools.count(1)
        self._turn_ids = itertools.count(1)
        self._active_turn: int | None = None
        self._turn_started_at = 0.0
        self._capture_session: int | None = None
        self._active_utterance: str | None = None
        self._requests: set[asyncio.Task[None]] = set()
        self._listeners: list[StatusListener] = []
        self._worker_task: asyncio.Task[None] | None = None

        self._unsupported_reason = capture.check_support()
        if self._unsupported_reason:
            self._set_error(ErrorKind.unsupported_environment, self._unsupported_reason)

    @property
    def events(self) -> asyncio.Queue:
        """Queue the leaves post their events to."""
        return self._events

    @property
    def status(self) -> ConversationStatus:
        return ConversationStatus(phase=self._phase, error=self._error, error_kind=self._error_kind)

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def capture_supported(self) -> bool:
        return self._unsupported_reason is None

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Call ``listener`` after every status or message-log change."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def start(self) -> None:
        """Start the event worker once for this controller."""
        if self._worker_task and not self._worker_task.done():
            return

        self._worker_task = asyncio.create_task(self._worker_loop(), name="interaction-controller-worker")
        self._logger.info("controller_started")

    async def stop(self) -> None:
        """Stop the worker, abandon in-flight requests and silence both voice leaves."""
        for task in list(self._requests):
            task.cancel()
        if self._requests:
            await asyncio.gather(*self._requests, return_exceptions=True)
        self._requests.clear()
        self._active_turn = None

        self._stop_capture()
        self._cancel_speech()

        if self._worker_task:
            self._worker_task.cancel()
            try:
                await self._worker_task
            except asyncio.CancelledError:
                pass
            finally:
                self._worker_task = None

        self._transition(ConversationPhase.idle)
        self._logger.info("controller_stopped")

    async def join(self) -> None:
        """Wait until no request is in flight and every posted event has been handled."""
        while True:
            if self._requests:
                await asyncio.gather(*list(self._requests), return_exceptions=True)
                continue
            await self._events.join()
            if not self._requests and self._events.empty():
                return

    def toggle_listening(self) -> bool:
        """Start or stop capture; returns ``False`` when the request is rejected."""
        if self._phase is ConversationPhase.listening:
            self._stop_capture()
            self._transition(ConversationPhase.idle)
            return True

        if self._phase is ConversationPhase.processing:
            self._logger.warning("listening_rejected", extra={"reason": "processing"})
            return False

        if not self.capture_supported:
            self._logger.warning("listening_rejected", extra={"reason": self._unsupported_reason})
            return False

        if self._phase is ConversationPhase.speaking:
            self._cancel_speech()

        self._capture_session = self._capture.start()
        self._transition(ConversationPhase.listening)
        return True

    def submit_transcript(self, text: str) -> bool:
        """Send ``text`` as a new turn; returns ``False`` when nothing was sent."""
        prompt = text.strip()
        if not prompt:
            return False

        if self._phase is ConversationPhase.processing:
            self._logger.info("transcript_dropped", extra={"reason": "processing", "chars": len(prompt)})
            return False

        self._end_current_activity()

        credential = self._credentials.current()
        if not credential:
            self._set_error(ErrorKind.configuration, MISSING_CREDENTIAL_MESSAGE)
            self._transition(ConversationPhase.idle)
            self._logger.warning("turn_rejected", extra={"reason": "missing_credential"})
            return False

        self._append(MessageRole.user, prompt)
        self._clear_error()
        turn_id = next(self._turn_ids)
        self._active_turn = turn_id
        self._turn_started_at = time.monotonic()
        self._transition(ConversationPhase.processing)

        task = asyncio.get_running_loop().create_task(
            self._request_completion(turn_id, prompt, credential), name=f"completion-turn-{turn_id}"
        )
        self._requests.add(task)
        task.add_done_callback(self._requests.discard)
        self._logger.info("turn_submitted", extra={"turn_id": turn_id, "chars": len(prompt)})
        return True

    def clear_messages(self) -> None:
        self._messages.clear()
        self._notify()

    def handle_event(self, event: ControllerEvent) -> None:
        """Apply one leaf event to the conversation state."""
        if isinstance(event, TranscriptFinalized):
            self._on_transcript(event)
        elif isinstance(event, ListeningChanged):
            self._on_listening_changed(event)
        elif isinstance(event, CaptureFailed):
            self._on_capture_failed(event)
        elif isinstance(event, CompletionSucceeded):
            self._on_completion_succeeded(event)
        elif isinstance(event, CompletionFailed):
            self._on_completion_failed(event)
        elif isinstance(event, SpeechStarted):
            self._logger.debug("speech_started", extra={"utterance_id": event.utterance_id})
        elif isinstance(event, (SpeechEnded, SpeechFailed)):
            self._on_speech_finished(event)
        else:
            raise TypeError(f"Unsupported controller event: {event!r}")

    async def _worker_loop(self) -> None:
        while True:
            event = await self._events.get()
            try:
                self.handle_event(event)
            except Exception:  # noqa: BLE001 - one bad event must not stop the conversation.
                self._logger.exception("event_handling_failed", extra={"event": type(event).__name__})
            finally:
                self._events.task_done()

    async def _request_completion(self, turn_id: int, prompt: str, credential: str) -> None:
        try:
            reply = await self._client.complete(prompt, credential)
        except ConfigurationError as exc:
            self._events.put_nowait(CompletionFailed(turn_id=turn_id, kind=ErrorKind.configuration, message=str(exc)))
        except AssistantError as exc:
            self._events.put_nowait(CompletionFailed(turn_id=turn_id, kind=ErrorKind.transport, message=str(exc)))
        except Exception as exc:  # noqa: BLE001 - any client failure ends the turn as a transport error.
            self._logger.exception("completion_client_crashed", extra={"turn_id": turn_id})
            message = f"AI yanıtı alınamadı: {type(exc).__name__}: {exc}"
            self._events.put_nowait(CompletionFailed(turn_id=turn_id, kind=ErrorKind.transport, message=message))
        else:
            self._events.put_nowait(CompletionSucceeded(turn_id=turn_id, reply=reply))

    def _on_transcript(self, event: TranscriptFinalized) -> None:
        if event.session != self._capture_session or self._phase is not ConversationPhase.listening:
            self._logger.info("transcript_dropped", extra={"reason": self._phase.value, "chars": len(event.text)})
            return

        if not event.text.strip():
            self._stop_capture()
            self._transition(ConversationPhase.idle)
            return

        self.submit_transcript(event.text)

    def _on_listening_changed(self, event: ListeningChanged) -> None:
        if event.session != self._capture_session:
            return
        if not event.listening and self._phase is ConversationPhase.listening:
            self._capture_session = None
            self._transition(ConversationPhase.idle)

    def _on_capture_failed(self, event: CaptureFailed) -> None:
        if event.session != self._capture_session:
            self._logger.info("stale_capture_failure_dropped", extra={"session": event.session})
            return

        self._set_error(ErrorKind.recognition, event.message)
        self._stop_capture()
        self._transition(ConversationPhase.idle)

    def _on_completion_succeeded(self, event: CompletionSucceeded) -> None:
        if event.turn_id != self._active_turn:
            self._logger.info("stale_completion_dropped", extra={"turn_id": event.turn_id})
            return

        self._active_turn = None
        self._append(MessageRole.assistant, event.reply)
        self._emit_telemetry("turn_completed", event.turn_id, reply_chars=len(event.reply))

        try:
            utterance_id = self._output.speak(event.reply)
        except Exception as exc:  # noqa: BLE001 - the reply is already recorded, only playback is lost.
            self._logger.exception("speech_start_failed", extra={"turn_id": event.turn_id})
            self._active_utterance = None
            self._set_error(ErrorKind.synthesis, f"Ses çalınamadı: {exc}")
            self._transition(ConversationPhase.idle)
            return

        self._active_utterance = utterance_id
        self._transition(ConversationPhase.speaking if utterance_id else ConversationPhase.idle)

    def _on_completion_failed(self, event: CompletionFailed) -> None:
        if event.turn_id != self._active_turn:
            self._logger.info("stale_completion_dropped", extra={"turn_id": event.turn_id})
            return

        self._active_turn = None
        self._emit_telemetry("turn_failed", event.turn_id, kind=event.kind.value)
        self._logger.warning("turn_failed", extra={"turn_id": event.turn_id, "kind": event.kind.value})
        self._set_error(event.kind, event.message)
        self._transition(ConversationPhase.idle)

    def _on_speech_finished(self, event: SpeechEnded | SpeechFailed) -> None:
        if event.utterance_id != self._active_utterance:
            return

        self._active_utterance = None
        if isinstance(event, SpeechFailed):
            self._set_error(ErrorKind.synthesis, event.message)
        if self._phase is ConversationPhase.speaking:
            self._transition(ConversationPhase.idle)
        else:
            self._notify()

    def _end_current_activity(self) -> None:
        if self._phase is ConversationPhase.listening:
            self._stop_capture()
        elif self._phase is ConversationPhase.speaking:
            self._cancel_speech()

    def _stop_capture(self) -> None:
        self._capture.stop()
        self._capture_session = None

    def _cancel_speech(self) -> None:
        self._output.cancel()
        self._active_utterance = None

    def _append(self, role: MessageRole, content: str) -> None:
        created_at = datetime.now(timezone.utc)
        if self._messages and created_at < self._messages[-1].created_at:
            created_at = self._messages[-1].created_at
        self._messages.append(
            Message(id=f"msg-{next(self._message_ids)}", role=role, content=content, created_at=created_at)
        )

    def _set_error(self, kind: ErrorKind, message: str) -> None:
        self._error = message
        self._error_kind = kind

    def _clear_error(self) -> None:
        self._error = None
        self._error_kind = None

    def _transition(self, phase: ConversationPhase) -> None:
        if phase is not self._phase:
            self._logger.debug("phase_changed", extra={"from": self._phase.value, "to": phase.value})
        self._phase = phase
        self._notify()

    def _notify(self) -> None:
        status = self.status
        messages = self.messages
        for listener in list(self._listeners):
            listener(status, messages)

    def _emit_telemetry(self, event_name: str, turn_id: int, **payload: object) -> None:
        if self._telemetry is None:
            return
        latency_ms = round((time.monotonic() - self._turn_started_at) * 1000, 1)
        self._telemetry.emit(event_name, {"turn_id": turn_id, "latency_ms": latency_ms, **payload})
