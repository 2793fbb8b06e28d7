"""Server configuration and logging setup."""

import logging
import sys
from enum import Enum

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import APIConfiguration
from .models.configuration import DEFAULT_BASE_URL, DEFAULT_TIMEOUT


class LogseqMode(str, Enum):
    """Tool vocabulary exposed to the MCP client."""

    GENERAL = "general"
    ONTOLOGICAL = "ontological"


class ServerConfig(BaseSettings):
    """Settings loaded from ``LOGSEQ_*`` environment variables (or ``.env``)."""

    model_config = SettingsConfigDict(
        env_prefix="LOGSEQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = Field(default=DEFAULT_BASE_URL, description="Logseq API URL")
    token: SecretStr = Field(default=SecretStr("auth"), description="Logseq API token")
    mode: LogseqMode = Field(default=LogseqMode.GENERAL, description="general or ontological")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    debug: bool = False

    def get_api_config(self) -> APIConfiguration:
        """Build the immutable client configuration."""
        return APIConfiguration(
            base_url=self.url,
            api_token=self.token,
            timeout=self.timeout,
            debug=self.debug,
        )


def setup_logging(debug: bool = False) -> None:
    """Send log records to stderr; stdout carries the MCP stdio protocol."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    has_console = any(
        isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr
        for h in root.handlers
    )
    if not has_console:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        root.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)
