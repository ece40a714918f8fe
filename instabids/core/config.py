# instabids/core/config.py
# Application settings (database URL, JWT verification key, media storage)
from typing import List

from pydantic import ValidationError
from pydantic_settings import BaseSettings

from instabids.core.exceptions import ConfigurationError

# Values copied from setup guides that must never reach a running process
PLACEHOLDER_MARKERS = ("your-anon-key", "your-project-url", "changeme")


class Settings(BaseSettings):
    # Database (the hosted Postgres behind the BaaS)
    DATABASE_URL: str
    DB_ECHO: bool = False
    # JWT secret used by the auth provider to sign access tokens
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"

    # Media storage (public-readable)
    MEDIA_UPLOAD_DIR: str = "static/uploads"
    MEDIA_URL_PREFIX: str = "/static/uploads"
    MEDIA_MAX_BYTES: int = 10 * 1024 * 1024

    # Development-only in-memory bid card API
    ENABLE_MOCK_API: bool = False

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    class Config:
        env_file = ".env"


def load_settings(**overrides) -> Settings:
    """
    Build Settings from the environment, failing fast on missing or
    placeholder credentials.
    """
    try:
        loaded = Settings(**overrides)
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ConfigurationError(
            f"Missing or invalid required settings: {', '.join(missing)}"
        ) from e

    for name in ("DATABASE_URL", "JWT_SECRET_KEY"):
        value = getattr(loaded, name)
        if not value.strip() or any(marker in value for marker in PLACEHOLDER_MARKERS):
            raise ConfigurationError(f"{name} is empty or still a placeholder value")
    return loaded


settings = load_settings()
