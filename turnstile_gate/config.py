# turnstile_gate/config.py
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"
DEFAULT_TOKEN_HEADER = "cf-turnstile-response"
DEFAULT_REMOTE_IP_HEADER = "CF-Connecting-IP"
REQUEST_ID_HEADER = "X-Request-ID"

# Returned to end users on a rejected token; never includes the error codes.
VERIFICATION_FAILED_MESSAGE = "Turnstile verification failed"


def _csv_to_list(value: str) -> List[str]:
    items = [part.strip() for part in value.split(",")]
    return [item for item in items if item]


class Settings(BaseSettings):
    """Environment-driven configuration (``TURNSTILE_*`` variables)."""

    model_config = SettingsConfigDict(env_prefix="TURNSTILE_", extra="ignore")

    secret_key: Optional[str] = Field(default=None, description="Turnstile secret key")
    verify_url: str = Field(default=DEFAULT_VERIFY_URL)
    token_header: str = Field(default=DEFAULT_TOKEN_HEADER)
    remote_ip_header: str = Field(default=DEFAULT_REMOTE_IP_HEADER)
    trust_remote_ip_header: bool = Field(
        default=False,
        description="Read the client IP from remote_ip_header instead of the connection",
    )
    timeout_s: Optional[float] = Field(default=None, gt=0)
    skip_paths: str = Field(default="", description="Comma-separated paths, 'prefix*' allowed")
    log_level: str = Field(default="INFO")

    @field_validator("secret_key")
    @classmethod
    def _blank_secret_is_unset(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def skip_path_list(self) -> List[str]:
        return _csv_to_list(self.skip_paths)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() rereads the env."""
    get_settings.cache_clear()
