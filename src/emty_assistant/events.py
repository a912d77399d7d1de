"""Events posted by the capture, speech output and completion leaves."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from emty_assistant.models import ErrorKind


@dataclass(frozen=True, slots=True)
class ListeningChanged:
    session: int
    listening: bool


@dataclass(frozen=True, slots=True)
class TranscriptFinalized:
    """One completed utterance; empty when nothing intelligible was heard."""

    session: int
    text: str


@dataclass(frozen=True, slots=True)
class CaptureFailed:
    session: int
    message: str


@dataclass(frozen=True, slots=True)
class SpeechStarted:
    utterance_id: str


@dataclass(frozen=True, slots=True)
class SpeechEnded:
    utterance_id: str


@dataclass(frozen=True, slots=True)
class SpeechFailed:
    utterance_id: str
    message: str


@dataclass(frozen=True, slots=True)
class CompletionSucceeded:
    turn_id: int
    reply: str


@dataclass(frozen=True, slots=True)
class CompletionFailed:
    turn_id: int
    kind: ErrorKind
    message: str


CaptureEvent = Union[ListeningChanged, TranscriptFinalized, CaptureFailed]
SpeechEvent = Union[SpeechStarted, SpeechEnded, SpeechFailed]
CompletionEvent = Union[CompletionSucceeded, CompletionFailed]
ControllerEvent = Union[CaptureEvent, SpeechEvent, CompletionEvent]
