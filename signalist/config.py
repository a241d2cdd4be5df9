"""Application configuration — environment variables and defaults.

Every third-party credential (Finnhub, Gemini, SMTP) is read HERE.
Nothing else in the package calls ``os.getenv`` directly.
"""

import os
from pathlib import Path


class Settings:
    """Central configuration pulled from environment with safe defaults."""

    # Paths
    BASE_DIR: Path = Path(__file__).resolve().parent.parent
    DATA_DIR: Path = Path(os.getenv("SIGNALIST_DATA_DIR", str(BASE_DIR / "data")))
    LOGS_DIR: Path = Path(os.getenv("SIGNALIST_LOGS_DIR", str(BASE_DIR / "logs")))
    PROMPTS_DIR: Path = Path(__file__).resolve().parent / "prompts"
    TEMPLATES_DIR: Path = Path(__file__).resolve().parent / "templates"

    # Database
    DB_PATH: Path = Path(os.getenv("DB_PATH", str(DATA_DIR / "signalist.duckdb")))

    # "development" exposes tracebacks on the diagnostic endpoint
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    APP_URL: str = os.getenv("APP_URL", "http://localhost:8000")

    # ── Sessions ──────────────────────────────────────────────────
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "signalist_session")
    SESSION_TTL_DAYS: int = int(os.getenv("SESSION_TTL_DAYS", "7"))

    # ── LLM Provider ──────────────────────────────────────────────
    # Which provider to use: "gemini" | "ollama" | "lmstudio"
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "gemini")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gemini-2.0-flash-exp")
    LLM_CONTEXT_SIZE: int = int(os.getenv("LLM_CONTEXT_SIZE", "8192"))
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.3"))

    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_BASE_URL: str = os.getenv(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
    )
    OLLAMA_URL: str = os.getenv("OLLAMA_URL", "http://localhost:11434")
    LMSTUDIO_URL: str = os.getenv("LMSTUDIO_URL", "http://localhost:1234")

    # LM Studio usually doesn't need one
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")

    @property
    def LLM_BASE_URL(self) -> str:
        """Computed: returns the active provider URL based on LLM_PROVIDER."""
        if self.LLM_PROVIDER == "gemini":
            return self.GEMINI_BASE_URL.rstrip("/")
        if self.LLM_PROVIDER == "lmstudio":
            return self.LMSTUDIO_URL.rstrip("/")
        return self.OLLAMA_URL.rstrip("/")

    # ── News data (Finnhub) ───────────────────────────────────────
    FINNHUB_API_KEY: str = os.getenv("FINNHUB_API_KEY", "")
    FINNHUB_BASE_URL: str = os.getenv("FINNHUB_BASE_URL", "https://finnhub.io/api/v1")
    NEWS_MAX_ARTICLES: int = int(os.getenv("NEWS_MAX_ARTICLES", "6"))
    NEWS_LOOKBACK_DAYS: int = int(os.getenv("NEWS_LOOKBACK_DAYS", "5"))

    # ── Email (SMTP) ──────────────────────────────────────────────
    SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    SMTP_STARTTLS: bool = os.getenv("SMTP_STARTTLS", "true").lower() == "true"
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "") or SMTP_USERNAME
    EMAIL_FROM_NAME: str = os.getenv("EMAIL_FROM_NAME", "Signalist")

    # ── Scheduler ─────────────────────────────────────────────────
    NEWS_SUMMARY_CRON: str = os.getenv("NEWS_SUMMARY_CRON", "0 14 * * *")
    SCHEDULER_TIMEZONE: str = os.getenv("SCHEDULER_TIMEZONE", "UTC")
    SCHEDULER_AUTOSTART: bool = os.getenv("SCHEDULER_AUTOSTART", "true").lower() == "true"

    def __init__(self) -> None:
        """Ensure runtime directories exist."""
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)
        self.LOGS_DIR.mkdir(parents=True, exist_ok=True)

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USERNAME and self.SMTP_PASSWORD)


settings = Settings()
