from __future__ import annotations

import asyncio
import threading

import pytest

from emty_assistant.errors import CaptureUnsupportedError
from emty_assistant.events import CaptureFailed, ListeningChanged, TranscriptFinalized
from emty_assistant.voice.input import SpeechCaptureService, UnsupportedSpeechCapture


class StubRecognizer:
    def __init__(self, transcript: str = "", error: Exception | None = None) -> None:
        self.transcript = transcript
        self.error = error
        self.calls = 0

    def transcribe(self, audio_bytes: bytes) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.transcript


class StubMicrophone:
    def __init__(self, audio: bytes = b"RIFF....", gate: threading.Event | None = None) -> None:
        self.audio = audio
        self.gate = gate

    def read_chunk(self) -> bytes:
        if self.gate is not None:
            self.gate.wait(timeout=2)
        return self.audio


async def _next_events(queue: asyncio.Queue, count: int) -> list:
    return [await asyncio.wait_for(queue.get(), timeout=1) for _ in range(count)]


def test_capture_emits_listening_transcript_then_stop() -> None:
    async def _run():
        events: asyncio.Queue = asyncio.Queue()
        capture = SpeechCaptureService(StubRecognizer("  merhaba "), StubMicrophone(), events)
        capture.start()
        listening = capture.listening
        received = await _next_events(events, 3)
        return listening, received, capture.listening

    listening, received, still_listening = asyncio.run(_run())

    assert listening is True
    assert received == [
        ListeningChanged(session=1, listening=True),
        TranscriptFinalized(session=1, text="merhaba"),
        ListeningChanged(session=1, listening=False),
    ]
    assert still_listening is False


def test_start_is_idempotent_while_session_active() -> None:
    async def _run():
        events: asyncio.Queue = asyncio.Queue()
        capture = SpeechCaptureService(StubRecognizer("selam"), StubMicrophone(), events)
        first = capture.start()
        second = capture.start()
        received = await _next_events(events, 3)
        await asyncio.sleep(0.05)
        return (first, second), received, events.qsize()

    sessions, received, leftover = asyncio.run(_run())

    assert sessions == (1, 1)
    assert received[0] == ListeningChanged(session=1, listening=True)
    assert leftover == 0


def test_silence_finalizes_an_empty_transcript_without_recognizing() -> None:
    async def _run():
        events: asyncio.Queue = asyncio.Queue()
        recognizer = StubRecognizer("ignored")
        capture = SpeechCaptureService(recognizer, StubMicrophone(audio=b""), events)
        capture.start()
        return await _next_events(events, 3), recognizer.calls

    received, calls = asyncio.run(_run())

    assert received[1] == TranscriptFinalized(session=1, text="")
    assert calls == 0


def test_no_transcript_is_emitted_after_stop() -> None:
    async def _run():
        events: asyncio.Queue = asyncio.Queue()
        gate = threading.Event()
        capture = SpeechCaptureService(StubRecognizer("late words"), StubMicrophone(gate=gate), events)
        capture.start()
        await asyncio.sleep(0.01)
        capture.stop()
        capture.stop()
        gate.set()
        await asyncio.sleep(0.1)
        return [events.get_nowait() for _ in range(events.qsize())]

    received = asyncio.run(_run())

    assert received == [ListeningChanged(session=1, listening=True), ListeningChanged(session=1, listening=False)]


def test_recognition_failure_is_reported_and_session_ends() -> None:
    async def _run():
        events: asyncio.Queue = asyncio.Queue()
        capture = SpeechCaptureService(
            StubRecognizer(error=RuntimeError("Speech recognition service request failed.")),
            StubMicrophone(),
            events,
        )
        capture.start()
        return await _next_events(events, 3)

    received = asyncio.run(_run())

    assert isinstance(received[1], CaptureFailed)
    assert "request failed" in received[1].message
    assert received[2] == ListeningChanged(session=1, listening=False)


def test_unsupported_capture_reports_reason_and_refuses_start() -> None:
    capture = UnsupportedSpeechCapture("No microphone available")

    assert capture.check_support() == "No microphone available"
    assert capture.listening is False
    capture.stop()
    with pytest.raises(CaptureUnsupportedError):
        capture.start()


def test_each_session_gets_a_new_id() -> None:
    async def _run():
        events: asyncio.Queue = asyncio.Queue()
        gate = threading.Event()
        capture = SpeechCaptureService(StubRecognizer("selam"), StubMicrophone(gate=gate), events)
        first = capture.start()
        capture.stop()
        second = capture.start()
        gate.set()
        received = [await asyncio.wait_for(events.get(), timeout=1) for _ in range(5)]
        return first, second, received

    first, second, received = asyncio.run(_run())

    assert (first, second) == (1, 2)
    assert received[:3] == [
        ListeningChanged(session=1, listening=True),
        ListeningChanged(session=1, listening=False),
        ListeningChanged(session=2, listening=True),
    ]
    assert received[3:] == [
        TranscriptFinalized(session=2, text="selam"),
        ListeningChanged(session=2, listening=False),
    ]
