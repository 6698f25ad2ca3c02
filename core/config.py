import os
import sys
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Values already set in the process environment win over .env
load_dotenv()

logger = logging.getLogger(__name__)

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings:
    """Runtime configuration read from the environment."""

    def __init__(self):
        self.db_path = Path(os.getenv("COOKFEED_DB_PATH", str(BASE_DIR / "cookfeed.db")))
        self.secret_key = os.getenv("COOKFEED_SECRET_KEY", "change-me-in-the-env-file")
        self.algorithm = "HS256"
        self.token_expire_minutes = int(os.getenv("COOKFEED_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))
        self.cors_origins = _env_list(
            "COOKFEED_CORS_ORIGINS",
            ["http://localhost:3000", "http://127.0.0.1:3000"],
        )
        self.log_file = os.getenv("COOKFEED_LOG_FILE", "app.log")
        self.log_level = os.getenv("COOKFEED_LOG_LEVEL", "INFO").upper()
        self.rate_limit_enabled = _env_bool("COOKFEED_RATE_LIMIT_ENABLED", True)
        # Favorites whose collection has no row are shown on public profiles.
        # Pending product confirmation, see DESIGN.md.
        self.uncategorized_favorites_public = _env_bool("COOKFEED_UNCATEGORIZED_FAVORITES_PUBLIC", True)
        self.cookie_secure = _env_bool("COOKFEED_COOKIE_SECURE", False)


settings = Settings()


# --- Logging Configuration ---
def setup_logging(level: str = None, log_file: str = None):
    """
    Configures the root logger for the application.
    - Clears existing handlers to prevent duplicate logs on reload.
    - Adds a stream handler for console output.
    - Adds a rotating file handler when a log file is configured.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level or settings.log_level)

    # Clear existing handlers to prevent duplicates during reloads
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    log_formatter = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] [%(name)s] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(log_formatter)
    root_logger.addHandler(stream_handler)

    target = log_file if log_file is not None else settings.log_file
    if target:
        file_handler = RotatingFileHandler(target, maxBytes=10 * 1024 * 1024, backupCount=3)
        file_handler.setFormatter(log_formatter)
        root_logger.addHandler(file_handler)

    # Reduce noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.WARNING)

    logging.info("Logging configured (level=%s, file=%s)", root_logger.level, target or "-")
