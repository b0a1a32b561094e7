from __future__ import annotations
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Server-side settings, read from CINEBOT_* variables or cinebot.env.
    The Gemini key stays here and is only sent to Google.
    """
    app_name: str = "CineBot API"
    log_level: str = "INFO"

    # Gemini (the key never leaves the server)
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"
    gemini_api_base: str = "https://generativelanguage.googleapis.com"
    gemini_api_version: str = "v1beta"
    request_timeout_s: float = 60.0

    # In-process search sessions (never persisted)
    session_ttl_s: float = 3600.0
    max_sessions: int = 1024

    model_config = SettingsConfigDict(
        env_prefix="CINEBOT_",   # reads CINEBOT_GEMINI_API_KEY, etc.
        env_file="cinebot.env",
        extra="ignore",
    )

settings: Settings = Settings()
