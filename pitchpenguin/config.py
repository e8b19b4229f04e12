import os
from pathlib import Path
from pydantic import BaseModel, field_validator
from pitchpenguin.api.urls import normalize_api_base_url

DEFAULT_BASE_URL = "http://localhost:3001"


class Settings(BaseModel):
    """
    Client configuration. Environment variables fill anything the caller
    does not pass explicitly.
    """
    api_base_url: str = DEFAULT_BASE_URL
    state_dir: Path = Path.home() / ".pitchpenguin"
    request_timeout: float = 10.0

    @field_validator("api_base_url")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_api_base_url(value) or DEFAULT_BASE_URL

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        values = {}
        base_url = os.getenv("PITCHPENGUIN_API_BASE_URL")
        if base_url:
            values["api_base_url"] = base_url
        state_dir = os.getenv("PITCHPENGUIN_STATE_DIR")
        if state_dir:
            values["state_dir"] = Path(state_dir).expanduser()
        timeout = os.getenv("PITCHPENGUIN_REQUEST_TIMEOUT")
        if timeout:
            values["request_timeout"] = float(timeout)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
