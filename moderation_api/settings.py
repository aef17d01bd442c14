"""Process settings from environment variables."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file before anything reads os.environ
load_dotenv()


class Settings:
    """Process-level settings sourced from environment variables."""

    # Moderation config document (backend URL, model, template, policies)
    CONFIG_PATH: Path = Path(os.getenv("CONFIG_PATH", "config.json"))

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8080"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
