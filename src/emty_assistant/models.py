from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class MessageRole(str, Enum):
    user = "user"
    assistant = "assistant"


class ConversationPhase(str, Enum):
    """Exclusive activity the conversation is in."""

    idle = "idle"
    listening = "listening"
    processing = "processing"
    speaking = "speaking"


class ErrorKind(str, Enum):
    unsupported_environment = "unsupported_environment"
    configuration = "configuration"
    transport = "transport"
    recognition = "recognition"
    synthesis = "synthesis"


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    role: MessageRole
    content: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class ConversationStatus:
    """Read-only snapshot of what the conversation is doing right now."""

    phase: ConversationPhase = ConversationPhase.idle
    error: str | None = None
    error_kind: ErrorKind | None = None

    @property
    def listening(self) -> bool:
        return self.phase is ConversationPhase.listening

    @property
    def processing(self) -> bool:
        return self.phase is ConversationPhase.processing

    @property
    def speaking(self) -> bool:
        return self.phase is ConversationPhase.speaking

    @property
    def idle(self) -> bool:
        return self.phase is ConversationPhase.idle
