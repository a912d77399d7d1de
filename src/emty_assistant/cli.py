"""Console presentation of the conversation for the interactive CLI."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel

from emty_assistant.models import ConversationStatus, Message, MessageRole

_STATUS_TEXT = {
    "listening": ("Dinliyor...", "green"),
    "processing": ("Düşünüyor...", "blue"),
    "speaking": ("Konuşuyor... (kesmek için Enter)", "magenta"),
    "idle": ("Konuşmak için Enter'a bas ya da mesaj yaz", "dim"),
}


def status_text(status: ConversationStatus) -> str:
    return _STATUS_TEXT[status.phase.value][0]


class ConsoleView:
    """Prints new messages and status changes as the controller reports them."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()
        self._shown_ids: set[str] = set()
        self._last_status: ConversationStatus | None = None

    def render(self, status: ConversationStatus, messages: tuple[Message, ...]) -> None:
        if not messages and self._shown_ids:
            self._shown_ids.clear()
            self._console.print("[dim]Konuşmalar temizlendi.[/dim]")

        for message in messages:
            if message.id in self._shown_ids:
                continue
            self._shown_ids.add(message.id)
            self._console.print(self._bubble(message))

        if status != self._last_status:
            self._last_status = status
            label, style = _STATUS_TEXT[status.phase.value]
            self._console.print(f"[{style}]{label}[/{style}]")
            if status.error:
                self._console.print(f"[red]Hata: {status.error}[/red]")

    @staticmethod
    def _bubble(message: Message) -> Panel:
        timestamp = message.created_at.astimezone().strftime("%H:%M")
        if message.role is MessageRole.user:
            return Panel(message.content, title="Sen", subtitle=timestamp, title_align="right", border_style="green")
        return Panel(message.content, title="EMTY", subtitle=timestamp, title_align="left", border_style="cyan")
