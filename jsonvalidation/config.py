import logging
import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    SCHEMA_PATHS: list[str] = [
        path for path in os.getenv("SCHEMA_PATHS", "schemas").split(os.pathsep) if path
    ]
    DEFAULT_DRAFT: int = int(os.getenv("DEFAULT_DRAFT", "7"))
    CHECK_SCHEMAS: bool = _flag("CHECK_SCHEMAS", "true")
    VALIDATE_FORMATS: bool = _flag("VALIDATE_FORMATS", "true")
    SCHEMA_CACHE_ENABLED: bool = _flag("SCHEMA_CACHE_ENABLED", "true")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Install the default console handler. Applications call this, the library never does."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(levelname)s | %(name)s | %(message)s",
    )
