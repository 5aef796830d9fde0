# config.py
# Endpoint configuration, read from the environment (and .env) once per process.

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from .errors import ConfigurationError

load_dotenv()


class Settings(BaseModel):
    script_url: str = ""
    read_url: str = ""
    update_url: str = ""
    timeout: Optional[float] = None

    def require_script_url(self) -> str:
        if not self.script_url:
            raise ConfigurationError(
                "Google Script URL not configured. Please set GOOGLE_SCRIPT_URL in .env file"
            )
        return self.script_url

    def require_read_url(self) -> str:
        url = self.read_url or self.script_url
        if not url:
            raise ConfigurationError(
                "Read URL not configured. Please set GOOGLE_SHEETS_READ_URL in .env file"
            )
        return url

    def require_update_url(self) -> str:
        url = self.update_url or self.script_url
        if not url:
            raise ConfigurationError(
                "Update URL not configured. Please set GOOGLE_SCRIPT_UPDATE_URL in .env file"
            )
        return url


def settings_from_env() -> Settings:
    raw_timeout = os.getenv("UPSTREAM_TIMEOUT", "").strip()
    return Settings(
        script_url=os.getenv("GOOGLE_SCRIPT_URL", "").strip(),
        read_url=os.getenv("GOOGLE_SHEETS_READ_URL", "").strip(),
        update_url=os.getenv("GOOGLE_SCRIPT_UPDATE_URL", "").strip(),
        timeout=float(raw_timeout) if raw_timeout else None,
    )


@lru_cache()
def get_settings() -> Settings:
    return settings_from_env()
