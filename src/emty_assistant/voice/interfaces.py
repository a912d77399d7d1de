"""Contracts for speech recognition, synthesis and the controller's voice leaves."""

from typing import Protocol


class SpeechRecognizer(Protocol):
    """Converts buffered audio into text."""

    def transcribe(self, audio_bytes: bytes) -> str:
        """Return recognized text from raw audio input, or an empty string."""


class SpeechSynthesizer(Protocol):
    """Converts text responses into audio output."""

    def synthesize(self, text: str) -> bytes:
        """Return playable audio bytes for the given text."""


class SpeechCapture(Protocol):
    """Microphone capture that reports back through controller events."""

    @property
    def listening(self) -> bool: ...

    def check_support(self) -> str | None:
        """Return ``None`` when capture works here, otherwise the reason it does not."""

    def start(self) -> int:
        """Begin a capture session and return its id; returns the active id while one is running."""

    def stop(self) -> None:
        """End the active capture session; no-op when idle."""


class SpeechOutput(Protocol):
    """Speech playback that reports back through controller events."""

    @property
    def speaking(self) -> bool: ...

    def speak(self, text: str) -> str | None:
        """Replace any current utterance and return the new utterance id, or ``None`` if nothing plays."""

    def cancel(self) -> None:
        """Stop playback immediately; no-op when nothing is playing."""
