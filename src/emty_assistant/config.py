"""Runtime configuration for EMTY Assistant."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="EMTY_", env_file=".env", extra="ignore")

    app_name: str = "emty-assistant"
    log_level: str = "INFO"
    openai_api_key: str | None = Field(
        default=None,
        description="Completion service credential; falls back to the saved key when unset.",
    )
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4"
    system_prompt: str = "Sen yardımsever bir AI asistanısın. Türkçe olarak kısa ve net cevaplar ver."
    max_tokens: int = 150
    temperature: float = 0.7
    request_timeout_seconds: float | None = 30.0
    fallback_reply: str = "Cevap alınamadı."
    language: str = "tr-TR"
    phrase_time_limit: float = 8.0
    tts_voice_id: str | None = None
    tts_rate: int | None = 180
    tts_volume: float | None = None
    voice_enabled: bool = True
    telemetry_enabled: bool = True
    credentials_path: Path = Field(
        default=Path("~/.config/emty-assistant/credentials.json"),
        description="Where a user-entered API key is saved.",
    )


settings = Settings()
