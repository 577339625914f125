"""Configuration management from environment variables."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Project root
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
EXPORT_DIR = DATA_DIR / "exports"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration."""

    # HTTP
    USER_AGENT: str = os.getenv(
        "USER_AGENT",
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) shopscrape/0.1",
    )
    TIMEOUT: int = int(os.getenv("TIMEOUT", "20"))

    # Scraper
    WAIT_TIMEOUT: float = float(os.getenv("WAIT_TIMEOUT", "5.0"))
    MAX_PAGES: int = int(os.getenv("MAX_PAGES", "500"))

    # Export
    SPREADSHEET_ENABLED: bool = _env_bool("SPREADSHEET_ENABLED", "true")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # API Security
    API_KEY: str | None = os.getenv("API_KEY")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration values."""
        errors = []
        if cls.TIMEOUT <= 0:
            errors.append("TIMEOUT must be positive")
        if cls.WAIT_TIMEOUT < 0:
            errors.append("WAIT_TIMEOUT must not be negative")
        if cls.MAX_PAGES < 1:
            errors.append("MAX_PAGES must be at least 1")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


config = Config()
