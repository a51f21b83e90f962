# monday_client/monday_models.py

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from utilities.config import Config

# Arbitrary JSON as returned by the GraphQL endpoint.
JsonValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]

MAX_PAGE_SIZE = 500


@dataclass
class RequestOptions:
    """Per-request transport settings. All durations are milliseconds."""

    timeout: int = 30000
    retries: int = 3
    retry_delay: int = 1000

    @classmethod
    def from_config(cls) -> "RequestOptions":
        settings = Config.get_monday_settings()
        return cls(
            timeout=settings['timeout_ms'],
            retries=settings['retries'],
            retry_delay=settings['retry_delay_ms'],
        )


@dataclass
class PaginationOptions:
    """
    Controls how many pages the pagination driver fetches.

    :param max_pages: Stop after this many pages even if a cursor came back (None = no cap)
    :param page_size: Items requested per page, clamped to Monday's maximum of 500
    :param delay_between_pages: Pause in milliseconds between two page fetches
    """

    max_pages: Optional[int] = None
    page_size: int = MAX_PAGE_SIZE
    delay_between_pages: int = 100

    @property
    def limit(self) -> int:
        return min(self.page_size, MAX_PAGE_SIZE)


@dataclass
class GraphQLRequest:
    query: str
    variables: Optional[Dict[str, Any]] = None

    def to_payload(self) -> Dict[str, Any]:
        return {'query': self.query, 'variables': self.variables}


@dataclass
class GraphQLErrorDetail:
    message: str
    locations: Optional[List[Dict[str, int]]] = None
    path: Optional[List[Union[str, int]]] = None

    @classmethod
    def from_api(cls, data: Any) -> "GraphQLErrorDetail":
        if not isinstance(data, dict):
            return cls(message=str(data))
        return cls(
            message=str(data.get('message', '')),
            locations=data.get('locations'),
            path=data.get('path'),
        )


@dataclass
class GraphQLResponse:
    """Parsed body of a GraphQL reply. A populated ``errors`` list means failure even when ``data`` is set."""

    data: JsonValue = None
    errors: List[GraphQLErrorDetail] = field(default_factory=list)

    @classmethod
    def from_api(cls, body: Any) -> "GraphQLResponse":
        if not isinstance(body, dict):
            return cls(data=None)
        raw_errors = body.get('errors') or []
        if not isinstance(raw_errors, list):
            # a lone error object instead of an array
            raw_errors = [raw_errors]
        return cls(
            data=body.get('data'),
            errors=[GraphQLErrorDetail.from_api(error) for error in raw_errors],
        )

    @property
    def failed(self) -> bool:
        return len(self.errors) > 0


@dataclass
class PaginationState:
    page: int = 0
    cursor: Optional[str] = None
    items: List[Any] = field(default_factory=list)
    has_more: bool = True
