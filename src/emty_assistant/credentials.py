"""Access-token storage for the completion service."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Protocol

_logger = logging.getLogger("emty_assistant.credentials")


class CredentialProvider(Protocol):
    """Supplies the currently active completion credential."""

    def current(self) -> str | None:
        """Return the active access token, or ``None`` when none is configured."""


class CredentialStore:
    """Configured key first, then the key saved on disk; a newly saved key wins."""

    def __init__(self, *, configured: str | None, path: str | Path) -> None:
        self._path = Path(path).expanduser()
        configured_key = (configured or "").strip()
        self._active = configured_key or self._load_saved()

    @property
    def path(self) -> Path:
        return self._path

    def current(self) -> str | None:
        return self._active or None

    def save(self, key: str) -> None:
        """Persist ``key`` and make it the active credential."""
        cleaned = key.strip()
        if not cleaned:
            raise ValueError("API anahtarı boş olamaz")

        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps({"api_key": cleaned}), encoding="utf-8")
        os.chmod(self._path, 0o600)
        self._active = cleaned
        _logger.info("credential_saved", extra={"path": str(self._path)})

    def clear(self) -> None:
        if self._path.exists():
            self._path.unlink()
        self._active = ""

    def _load_saved(self) -> str:
        if not self._path.exists():
            return ""
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            _logger.warning("credential_file_unreadable", extra={"path": str(self._path)})
            return ""
        value = payload.get("api_key") if isinstance(payload, dict) else None
        return value.strip() if isinstance(value, str) else ""


def mask(key: str | None) -> str | None:
    if not key:
        return None
    return f"{key[:3]}...{key[-4:]}" if len(key) > 8 else "***"
