"""
Environment configuration.
"""
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB


@dataclass(frozen=True)
class Settings:
    database_path: str = "data/shares.db"
    host: str = "0.0.0.0"
    port: int = 3001
    base_url: str = "http://localhost:3000"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    cleanup_interval: float = 60
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    debug: bool = False

    def share_url(self, share_id: str) -> str:
        return f"{self.base_url.rstrip('/')}/v/{share_id}"


def load_settings() -> Settings:
    """Build settings from the environment (and a .env file if present)."""
    load_dotenv()
    origins = os.getenv("CORS_ORIGINS", "*")
    return Settings(
        database_path=os.getenv("DATABASE_PATH", "data/shares.db"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3001")),
        base_url=os.getenv("BASE_URL") or os.getenv("FRONTEND_URL") or "http://localhost:3000",
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        cleanup_interval=float(os.getenv("CLEANUP_INTERVAL_SECONDS", "60")),
        max_file_size=int(os.getenv("MAX_FILE_SIZE", str(DEFAULT_MAX_FILE_SIZE))),
        debug=os.getenv("DEBUG", "false").lower() == "true",
    )
