"""
Voice Assistant — Centralized configuration.

Loads all settings from .env and validates required keys.
`load_settings()` is called once at startup and the resulting immutable
Settings object is handed to every adapter constructor.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# .env lives at the project root (one level up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    # Telegram
    TELEGRAM_BOT_TOKEN: str = ""
    ALLOWED_USER_IDS: list[int] = []

    # LLM — provider-agnostic (groq, gemini, anthropic, openai, cohere)
    LLM_PROVIDER: str = "groq"
    LLM_MODEL: str = ""          # empty → smart default per provider
    LLM_API_KEY: str

    # Transcription — Whisper on an OpenAI-compatible endpoint
    TRANSCRIPTION_API_KEY: str = ""   # empty → reuse LLM_API_KEY
    TRANSCRIPTION_MODEL: str = "whisper-large-v3-turbo"
    TRANSCRIPTION_BASE_URL: str = "https://api.groq.com/openai/v1"
    TRANSCRIPTION_LANGUAGE: str = ""  # empty → auto-detect

    # Calendar provider: "google" | "caldav"
    CALENDAR_PROVIDER: str = "google"
    CALENDAR_ID: str = "primary"

    # Google Calendar: refresh token, or a token file from the consent flow
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REFRESH_TOKEN: str = ""
    GOOGLE_CREDENTIALS_PATH: str = "credentials.json"
    GOOGLE_TOKEN_PATH: str = "token.json"

    # CalDAV (only needed when CALENDAR_PROVIDER=caldav)
    CALDAV_URL: str = ""
    CALDAV_USERNAME: str = ""
    CALDAV_PASSWORD: str = ""
    CALDAV_CALENDAR_NAME: str = ""

    # Notes
    NOTES_DIR: str = "data/notes"
    NOTES_FILE: str = "notes.json"

    TIMEZONE: str = "UTC"

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @property
    def notes_path(self) -> Path:
        return Path(self.NOTES_DIR) / self.NOTES_FILE


def load_settings() -> Settings:
    """Load settings from .env and the environment, validating required keys."""
    load_dotenv(_ENV_PATH)

    token = os.getenv("TELEGRAM_BOT_TOKEN", "")
    llm_api_key = os.getenv("LLM_API_KEY", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    if not llm_api_key or llm_api_key.startswith("your-"):
        print("ERROR: LLM_API_KEY is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    values = {
        name: os.environ[name]
        for name in Settings.model_fields
        if name in os.environ
    }
    values["TELEGRAM_BOT_TOKEN"] = token
    values["LLM_API_KEY"] = llm_api_key
    return Settings(**values)
