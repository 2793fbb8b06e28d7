"""Exception hierarchy for the Logseq API client.

Lookups that find nothing return ``None``; the exceptions below are reserved
for calls that genuinely failed.
"""


class LogseqError(Exception):
    """Base class for every error raised by the client."""


class NetworkError(LogseqError):
    """The request never produced an HTTP response (connection, DNS, protocol)."""


class TimeoutError(NetworkError):  # noqa: A001
    """The fixed per-call timeout elapsed."""

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Request timed out: {method}")


class AuthenticationError(LogseqError):
    """The API token was rejected (HTTP 401/403)."""

    def __init__(self, status_code: int, message: str = "Invalid API token or unauthorized access") -> None:
        self.status_code = status_code
        super().__init__(f"{message} (status: {status_code})")


class APIError(LogseqError):
    """Non-2xx HTTP status returned by the API."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"api error: {body} (status: {status_code})")


class BusinessError(LogseqError):
    """A 2xx response carrying an ``error`` field."""

    def __init__(self, method: str, message: str) -> None:
        self.method = method
        self.message = message
        super().__init__(f"api error: {message}")


class DecodeError(LogseqError):
    """A response did not match any shape the caller accepts."""

    def __init__(self, context: str, cause: Exception | None = None) -> None:
        self.context = context
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"failed to parse {context}{detail}")


class EntityCreationError(LogseqError):
    """createPage answered without a usable UUID."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"failed to create page '{name}'")


class NodeNotFoundError(LogseqError):
    """An operation needed an existing page or block and found none."""

    def __init__(self, node_id: str, message: str = "entity not found") -> None:
        self.node_id = node_id
        super().__init__(f"{message}: {node_id}")
