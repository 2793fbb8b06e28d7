"""Logseq API client - transport gateway, graph info and queries."""

import json
import sys
from datetime import datetime
from typing import Any

import httpx

from ..models import (
    APIConfiguration,
    APIError,
    AuthenticationError,
    BusinessError,
    DecodeError,
    GraphInfo,
    NetworkError,
    TimeoutError,
)
from .result_helper import decode_graph, flatten_rows, is_empty_result

API_PATH = "/api"


def log_event(message: str, component: str = "CLIENT") -> None:
    """Log an event to stderr with timestamp and consistent formatting."""
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    print(f"[{timestamp}] [{component}] {message}", file=sys.stderr, flush=True)


class _ClientLogger:
    """Lightweight logger that writes through log_event.

    MCP stdio hosts swallow the standard logging module's output during tool
    calls, so client diagnostics are printed to stderr directly. Debug lines
    are dropped unless the client was configured with ``debug=True``.
    """

    def __init__(self, component: str = "CLIENT", debug: bool = False) -> None:
        self._component = component
        self._debug = debug

    def _msg(self, msg: object) -> str:
        try:
            return str(msg)
        except Exception:
            return repr(msg)

    def info(self, msg: object) -> None:
        log_event(self._msg(msg), self._component)

    def warning(self, msg: object) -> None:
        log_event(f"WARNING: {self._msg(msg)}", self._component)

    def error(self, msg: object) -> None:
        log_event(f"ERROR: {self._msg(msg)}", self._component)

    def debug(self, msg: object) -> None:
        if self._debug:
            log_event(f"DEBUG: {self._msg(msg)}", self._component)


class LogseqClientCore:
    """Core Logseq API client - one remote call per method invocation.

    Every Logseq API method is reached through the same endpoint:
    ``POST /api`` with ``{"method": ..., "args": [...]}``. Calls are never
    retried; a timeout or connection failure surfaces immediately.
    """

    def __init__(self, config: APIConfiguration, transport: httpx.AsyncBaseTransport | None = None):
        """Initialize the Logseq API client."""
        self.config = config
        self.base_url = config.base_url
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _logger(self, component: str = "CLIENT") -> _ClientLogger:
        return _ClientLogger(component, debug=self.config.debug)

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            headers = {
                "Authorization": f"Bearer {self.config.api_token.get_secret_value()}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=httpx.Timeout(self.config.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "LogseqClientCore":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    def _handle_response(self, method: str, response: httpx.Response) -> Any:
        """Check status and business errors, then decode the JSON body.

        Logseq reports many failures as ``{"error": "..."}`` with a 200
        status, so the body is inspected even on success.
        """
        logger = self._logger("GATEWAY")

        if response.status_code in (401, 403):
            logger.error(f"{method}: unauthorized (status {response.status_code})")
            raise AuthenticationError(response.status_code)

        if response.is_error:
            logger.error(f"{method}: error response (status {response.status_code}): {response.text}")
            raise APIError(response.status_code, response.text)

        if not response.content.strip():
            return None

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as err:
            raise DecodeError(f"{method} response", err) from err

        if isinstance(data, dict):
            error = data.get("error")
            if error:
                logger.error(f"{method}: business error: {error}")
                raise BusinessError(method, str(error))

        return data

    async def call(self, method: str, *args: Any) -> Any:
        """Invoke one Logseq API method and return its decoded JSON result.

        Raises:
            TimeoutError: the call exceeded the configured timeout
            NetworkError: the request could not be delivered
            AuthenticationError / APIError: non-2xx status
            BusinessError: 2xx response with an ``error`` field
            DecodeError: body was not JSON
        """
        logger = self._logger("GATEWAY")
        logger.debug(f"call {method} args={list(args)!r}")

        try:
            response = await self.client.post(API_PATH, json={"method": method, "args": list(args)})
        except httpx.TimeoutException as err:
            logger.error(f"{method}: timed out after {self.config.timeout}s")
            raise TimeoutError(method) from err
        except httpx.TransportError as err:
            logger.error(f"{method}: request failed: {err}")
            raise NetworkError(f"request failed: {err}") from err

        return self._handle_response(method, response)

    async def get_graph(self) -> GraphInfo:
        """Return the name and path of the currently open graph."""
        data = await self.call("logseq.App.getCurrentGraph")
        return decode_graph(data)

    async def query(self, datalog: str) -> Any:
        """Run a Datalog query, falling back to the datascript engine when empty.

        Some Logseq builds answer ``logseq.DB.q`` with an empty result for
        queries that ``logseq.DB.datascriptQuery`` handles. Row-shaped results
        (``[[x], [y]]``) are flattened to ``[x, y]``.
        """
        logger = self._logger("QUERY")
        logger.debug(f"query {datalog}")

        result = await self.call("logseq.DB.q", datalog)
        if is_empty_result(result):
            try:
                fallback = await self.call("logseq.DB.datascriptQuery", datalog)
            except (APIError, BusinessError, DecodeError) as err:
                # The datascript engine is optional; an empty primary result stands.
                logger.warning(f"datascriptQuery fallback failed: {err}")
            else:
                if not is_empty_result(fallback):
                    result = fallback

        return flatten_rows(result)
