"""Environment and settings (Pydantic Settings)."""

from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# Default data directory: ~/.daylog/data/
_data_dir = Path.home() / ".daylog" / "data"


class Settings(BaseSettings):
    """Daylog settings loaded from environment and .env.

    Linear credentials may come from here (static API key) or from the
    OAuth cookie set by the web app.
    """

    model_config = SettingsConfigDict(
        env_prefix="DAYLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths (local-first data stored in ~/.daylog/data/)
    db_path: Path = _data_dir / "daylog.db"
    session_path: Path = _data_dir / "session.json"

    # Linear
    linear_api_key: Optional[str] = None
    linear_client_id: Optional[str] = None
    linear_client_secret: Optional[str] = None
    linear_redirect_uri: Optional[str] = None
    linear_api_url: str = "https://api.linear.app/graphql"
    linear_authorize_url: str = "https://linear.app/oauth/authorize"
    linear_token_url: str = "https://api.linear.app/oauth/token"
    linear_timeout: float = 15.0

    # Web app
    secret_key: str = "change-me"
    cookie_secure: bool = False
    public_url: str = "http://127.0.0.1:8000"
    host: str = "127.0.0.1"
    port: int = 8000

    # IANA zone (e.g. America/Sao_Paulo) for day boundaries and plan rows;
    # unset uses the system local time
    timezone: Optional[str] = None

    # Reflection autosave delay (seconds)
    reflection_autosave_delay: float = 1.0

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: Path = _data_dir / "daylog.log"


def get_settings() -> Settings:
    """Return application settings (singleton-like)."""
    return Settings()
