"""Logseq HTTP API client."""

from .api_client import LogseqClient
from .api_client_links import SyncResult
from .api_client_pages import MaterializeResult

__all__ = ["LogseqClient", "MaterializeResult", "SyncResult"]
