# monday_client/monday_exceptions.py

from typing import Any, List, Optional


class MondayAPIError(Exception):
    """Base exception for everything raised by the Monday client."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class MondayConfigurationError(MondayAPIError):
    """Raised before any network I/O when the client or the query is misconfigured."""

    pass


class MissingTemplateVariablesError(MondayConfigurationError):
    """Raised when a query template references variables nobody supplied."""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"Missing template variables: {', '.join(self.missing)}")


class InvalidDateError(MondayAPIError, ValueError):
    """Raised when a base date cannot be turned into a calendar date."""

    def __init__(self, value: Any, cause: Optional[Exception] = None, source: str = "generate_context"):
        self.value = value
        super().__init__(f"Invalid date provided to {source}: {value!r}", cause=cause)


class InterpolationError(MondayAPIError):
    """Raised when the template renderer rejects a query template."""

    pass


class MondayTimeoutError(MondayAPIError):
    """Raised once a request has timed out on every allowed attempt."""

    def __init__(self, timeout_ms: int, attempts: int, cause: Optional[Exception] = None):
        self.timeout_ms = timeout_ms
        self.attempts = attempts
        super().__init__(
            f"Request timed out after {timeout_ms}ms (attempt {attempts})", cause=cause
        )


class MondayTransportError(MondayAPIError):
    """Network level failure (DNS, refused connection, protocol error). Never retried."""

    pass


class MondayHTTPError(MondayAPIError):
    """Non-2xx response from the GraphQL endpoint."""

    def __init__(self, status_code: int, reason: str):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"HTTP {status_code}: {reason}")


class MondayGraphQLError(MondayAPIError):
    """The endpoint answered with a populated ``errors`` array."""

    def __init__(self, errors: list):
        self.errors = errors
        messages = ", ".join(error.message for error in errors)
        super().__init__(f"GraphQL errors: {messages}")


class ItemsPageNotFoundError(MondayAPIError):
    """A paginated response did not contain any ``items_page`` object."""

    def __init__(self):
        super().__init__(
            "No items_page found in query result. "
            "Make sure your query includes items_page with cursor and items fields."
        )


class PaginationError(MondayAPIError):
    """Wraps whatever failed while fetching a given page."""

    def __init__(self, page: int, cause: Exception):
        self.page = page
        super().__init__(f"Failed to fetch page {page}: {cause}", cause=cause)
