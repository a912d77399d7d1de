"""CLI startup entrypoint for EMTY Assistant."""

from __future__ import annotations

import asyncio

import typer
from rich import print
from rich.console import Console

from emty_assistant.cli import ConsoleView
from emty_assistant.completion import OpenAICompletionClient
from emty_assistant.config import settings
from emty_assistant.controller import InteractionController
from emty_assistant.credentials import CredentialStore, mask
from emty_assistant.errors import AssistantError
from emty_assistant.telemetry import LoggingTelemetry, configure_logging

app = typer.Typer(help="EMTY voice assistant")


@app.callback()
def _configure() -> None:
    configure_logging(settings.log_level)


def _build_credentials() -> CredentialStore:
    return CredentialStore(configured=settings.openai_api_key, path=settings.credentials_path)


def _build_client() -> OpenAICompletionClient:
    return OpenAICompletionClient(
        system_prompt=settings.system_prompt,
        base_url=settings.openai_base_url,
        model=settings.openai_model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        timeout_seconds=settings.request_timeout_seconds,
        fallback_reply=settings.fallback_reply,
    )


def _key_argument(line: str) -> str | None:
    """Return what follows the ``/key`` command, or ``None`` when ``line`` is another input."""
    if line == "/key" or line.startswith("/key "):
        return line[len("/key") :]
    return None


def _build_capture(events: asyncio.Queue, phrase_time_limit: float):
    from emty_assistant.voice import SpeechCaptureService, UnsupportedSpeechCapture

    try:
        from emty_assistant.voice.stt_speechrecognition import (
            SpeechRecognitionMicrophoneSource,
            SpeechRecognitionRecognizer,
        )

        recognizer = SpeechRecognitionRecognizer(language=settings.language)
        microphone = SpeechRecognitionMicrophoneSource(phrase_time_limit=phrase_time_limit)
    except RuntimeError as exc:
        return UnsupportedSpeechCapture(f"Ses tanıma desteklenmiyor: {exc}")
    except ImportError:
        return UnsupportedSpeechCapture(
            "Ses tanıma desteklenmiyor. Install with: pip install 'emty-assistant[voice]'"
        )
    return SpeechCaptureService(recognizer=recognizer, microphone=microphone, events=events)


@app.command()
def start() -> None:
    """Show runtime configuration."""
    credentials = _build_credentials()
    print(
        {
            "app_name": settings.app_name,
            "model": settings.openai_model,
            "base_url": settings.openai_base_url,
            "language": settings.language,
            "api_key": mask(credentials.current()),
            "credentials_path": str(credentials.path),
            "voice_enabled": settings.voice_enabled,
        }
    )


@app.command("set-api-key")
def set_api_key(key: str = typer.Argument(..., help="Completion service API key")) -> None:
    """Save an API key for later sessions."""
    credentials = _build_credentials()
    try:
        credentials.save(key)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    print({"saved": str(credentials.path), "api_key": mask(credentials.current())})


@app.command()
def ask(prompt: str) -> None:
    """Send one text prompt and print the reply."""
    credentials = _build_credentials()
    client = _build_client()
    try:
        reply = asyncio.run(client.complete(prompt, credentials.current()))
    except AssistantError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)
    print({"reply": reply})


@app.command("voice-chat")
def voice_chat(
    phrase_time_limit: float = typer.Option(settings.phrase_time_limit, help="Per-utterance capture limit in seconds"),
    speak: bool = typer.Option(settings.voice_enabled, help="Speak replies aloud"),
) -> None:
    """Run the interactive voice conversation."""
    from emty_assistant.voice import SpeechOutputService, VoiceOutputConfig

    try:
        from emty_assistant.voice.tts_pyttsx3 import Pyttsx3AudioOutputDevice, Pyttsx3SpeechSynthesizer
    except RuntimeError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)
    except ImportError:
        print({"error": "Voice extras are missing. Install with: pip install 'emty-assistant[voice]'"})
        raise typer.Exit(code=1)

    try:
        synthesizer = Pyttsx3SpeechSynthesizer()
        output_device = Pyttsx3AudioOutputDevice(
            voice_id=settings.tts_voice_id,
            rate=settings.tts_rate,
            volume=settings.tts_volume,
        )
    except RuntimeError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)

    async def _run() -> None:
        events: asyncio.Queue = asyncio.Queue()
        credentials = _build_credentials()
        controller = InteractionController(
            capture=_build_capture(events, phrase_time_limit),
            output=SpeechOutputService(
                synthesizer=synthesizer,
                output_device=output_device,
                events=events,
                config=VoiceOutputConfig(enabled=speak),
            ),
            client=_build_client(),
            credentials=credentials,
            events=events,
            telemetry=LoggingTelemetry() if settings.telemetry_enabled else None,
        )
        console = Console()
        view = ConsoleView(console)
        controller.subscribe(view.render)
        await controller.start()

        console.print("[bold green]EMTY AI[/bold green] - Enter: konuş/dur, /clear, /key <API anahtarı>, /quit")
        view.render(controller.status, controller.messages)
        try:
            while True:
                line = (await asyncio.to_thread(input)).strip()
                if line in ("/quit", "/q"):
                    break
                key = _key_argument(line)
                if line == "/clear":
                    controller.clear_messages()
                elif key is not None:
                    try:
                        credentials.save(key)
                    except ValueError as exc:
                        console.print(f"[red]{exc}[/red]")
                    else:
                        console.print("[dim]API anahtarı kaydedildi.[/dim]")
                elif not line:
                    if not controller.toggle_listening():
                        console.print("[yellow]Şu an dinlenemiyor.[/yellow]")
                elif not controller.submit_transcript(line) and controller.status.processing:
                    console.print("[yellow]Önceki yanıt bekleniyor.[/yellow]")
        except (EOFError, KeyboardInterrupt):
            pass
        finally:
            await controller.stop()

    asyncio.run(_run())
    print({"voice_chat": "stopped"})


if __name__ == "__main__":
    app()
