import os
import logging
from typing import Literal

from pydantic import BaseModel

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")

class Settings(BaseModel):
    database_url: str = "sqlite:////tmp/foodtrace.db"
    admin_id: str = "admin"
    base_url: str = "http://localhost:8000"
    store_backend: Literal["sql", "memory"] = "sql"
    allow_participant_overwrite: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:////tmp/foodtrace.db"),
            admin_id=os.getenv("ADMIN_ID", "admin"),
            base_url=os.getenv("BASE_URL", "http://localhost:8000"),
            store_backend=os.getenv("STORE_BACKEND", "sql"),
            allow_participant_overwrite=_env_bool("ALLOW_PARTICIPANT_OVERWRITE", True),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
