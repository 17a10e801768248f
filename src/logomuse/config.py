"""Runtime settings read from the environment.

Values come from process environment variables, optionally loaded from a
``.env`` file by the CLI before ``Settings.from_env()`` is called.
"""

import os

from pydantic import BaseModel, Field

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


class Settings(BaseModel):
    """Application settings.

    Environment variables:
        LLM_PROVIDER: Provider type (gemini, openai; default: gemini)
        GEMINI_API_KEY / GEMINI_MODEL: Gemini credentials and model
        OPENAI_API_KEY / OPENAI_CHAT_MODEL: OpenAI credentials and model
        LOGOMUSE_TEMPERATURE: Sampling temperature, 0.0 to 2.0 (default: 0.7)
        LOGOMUSE_STORE: Conversation store (memory, sqlite, firestore; default: sqlite)
        LOGOMUSE_SQLITE_PATH: SQLite file (default: ./logomuse_conversations.db)
        FIRESTORE_PROJECT: GCP project for the firestore store
        LOGOMUSE_PERSONA_CONFIG: Path or URL of persona description overrides
        LOGOMUSE_CONFIG_TIMEOUT: Seconds to wait for persona overrides (default: 5)
        LOGOMUSE_ENABLE_COMPETITOR: Enable the competitor persona (default: off)
        LOGOMUSE_LOG_LEVEL: Logging level (default: WARNING)
    """

    llm_provider: str = "gemini"
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)

    store_backend: str = "sqlite"
    sqlite_path: str = "./logomuse_conversations.db"
    firestore_project: str | None = None

    persona_config_location: str | None = None
    persona_config_timeout: float = Field(default=5.0, gt=0)
    enable_competitor_persona: bool = False

    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            llm_provider=os.getenv("LLM_PROVIDER", "gemini").lower(),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini"),
            temperature=float(os.getenv("LOGOMUSE_TEMPERATURE", "0.7")),
            store_backend=os.getenv("LOGOMUSE_STORE", "sqlite").lower(),
            sqlite_path=os.getenv("LOGOMUSE_SQLITE_PATH", "./logomuse_conversations.db"),
            firestore_project=os.getenv("FIRESTORE_PROJECT"),
            persona_config_location=os.getenv("LOGOMUSE_PERSONA_CONFIG"),
            persona_config_timeout=float(os.getenv("LOGOMUSE_CONFIG_TIMEOUT", "5")),
            enable_competitor_persona=_env_flag("LOGOMUSE_ENABLE_COMPETITOR"),
            log_level=os.getenv("LOGOMUSE_LOG_LEVEL", "WARNING").upper(),
        )
