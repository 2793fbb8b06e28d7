"""Immutable connection settings shared by every client component."""

from pydantic import BaseModel, ConfigDict, Field, SecretStr

DEFAULT_BASE_URL = "http://127.0.0.1:12315"
DEFAULT_TIMEOUT = 10.0


class APIConfiguration(BaseModel):
    """Logseq HTTP API connection settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(default=DEFAULT_BASE_URL, description="Logseq HTTP API server address")
    api_token: SecretStr = Field(default=SecretStr("auth"), description="Bearer token configured in Logseq")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Per-call timeout in seconds")
    debug: bool = Field(default=False, description="Emit per-call debug logging")
