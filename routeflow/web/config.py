"""
Web Configuration - Centralized settings management
"""
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

# Load .env from the working directory when present
_local_env = Path.cwd() / ".env"
if _local_env.exists():
    load_dotenv(_local_env, override=False)


def _env_bool(name: str, default: bool = False) -> bool:
    value = (os.getenv(name) or "").strip().lower()
    if not value:
        return default
    return value in {"1", "true", "yes", "on"}


class AppConfig(BaseModel):
    """Application configuration with environment variable support"""

    # Server settings
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # App metadata
    title: str = "routeflow"
    version: str = "0.1.0"

    # Logging
    log_level: str = "INFO"
    request_log: bool = False

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load configuration from environment variables"""
        return cls(
            host=os.getenv("ROUTEFLOW_HOST", "127.0.0.1"),
            port=int(os.getenv("ROUTEFLOW_PORT", "8000")),
            debug=_env_bool("ROUTEFLOW_DEBUG"),
            title=os.getenv("ROUTEFLOW_TITLE", "routeflow"),
            log_level=os.getenv("ROUTEFLOW_LOG_LEVEL", "INFO").upper(),
            request_log=_env_bool("ROUTEFLOW_REQUEST_LOG"),
        )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for standalone servers."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
