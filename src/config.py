"""Configuration module for the Game Review backend.

This module provides centralized configuration management, including directory
paths, API server settings, authentication settings, and logging defaults.
All configuration values can be overridden via environment variables.
"""

import os
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from core.exceptions import ConfigurationError
from schemas.token import TokenSettings

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = Path(os.getenv("DATA_DIR", str(ROOT_DIR / DATA_DIR_NAME)))

# --- Database Configuration ---

DATABASE_URL: str = os.getenv(
    "DATABASE_URL", f"sqlite:///{(DATA_DIR / 'game_reviews.db').as_posix()}"
)

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# CORS allowed origins (comma-separated list)
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,"
    "http://127.0.0.1:3000",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# --- Authentication Configuration ---

# Signing secret for bearer tokens; required, there is no insecure default
JWT_SECRET_KEY: Optional[str] = os.getenv("JWT_SECRET_KEY")
JWT_ISSUER: str = os.getenv("JWT_ISSUER", "GameReviewSystem")
JWT_AUDIENCE: str = os.getenv("JWT_AUDIENCE", "GameReviewSystemUsers")
JWT_ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24))
)

# bcrypt cost factor (higher = more secure but slower)
BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

# Admin token for admin registration (set via ADMIN_TOKEN environment variable)
ADMIN_TOKEN: Optional[str] = os.getenv("ADMIN_TOKEN")


def get_token_settings() -> TokenSettings:
    """Resolve token signing settings from the environment.

    Returns:
        TokenSettings ready to hand to a TokenManager.

    Raises:
        ConfigurationError: If JWT_SECRET_KEY is not set or the lifetime is
            not positive.
    """
    if not JWT_SECRET_KEY:
        raise ConfigurationError("JWT_SECRET_KEY must be set to issue tokens")
    if ACCESS_TOKEN_EXPIRE_MINUTES <= 0:
        raise ConfigurationError("ACCESS_TOKEN_EXPIRE_MINUTES must be positive")

    return TokenSettings(
        signing_key=JWT_SECRET_KEY.encode("utf-8"),
        issuer=JWT_ISSUER,
        audience=JWT_AUDIENCE,
        lifetime=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
        algorithm=JWT_ALGORITHM,
    )
