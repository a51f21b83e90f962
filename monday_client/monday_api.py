# monday_client/monday_api.py

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from monday_client.monday_exceptions import (
    ItemsPageNotFoundError,
    MissingTemplateVariablesError,
    MondayConfigurationError,
    MondayGraphQLError,
    MondayHTTPError,
    MondayTimeoutError,
    MondayTransportError,
    PaginationError,
)
from monday_client.monday_models import (
    GraphQLRequest,
    GraphQLResponse,
    PaginationOptions,
    PaginationState,
    RequestOptions,
)
from monday_client.monday_template import BaseDate, render_template
from monday_client.monday_util import build_aggregate_result, find_items_page, query_uses_pagination
from utilities.config import Config


class MondayAPI:

    # region 🚀 Initialization & Setup
    # ============================================================
    def __init__(
        self,
        api_token: Optional[str] = None,
        api_url: Optional[str] = None,
        api_version: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        default_options: Optional[RequestOptions] = None,
    ):
        """
        🏗️ Sets up a Monday.com GraphQL client and validates its configuration.

        :param api_token: API token; falls back to MONDAY_API_TOKEN
        :param api_url: GraphQL endpoint; falls back to MONDAY_API_URL, then https://api.monday.com/v2
        :param api_version: Value for the API-Version header; falls back to MONDAY_API_VERSION
        :param http_client: Shared httpx.AsyncClient. When given, the caller owns (and closes) it
        :param default_options: RequestOptions used when a call passes none
        :raises MondayConfigurationError: if no API token is available
        """
        self.logger = logging.getLogger("app_logger")
        settings = Config.get_monday_settings()

        self.api_token = api_token or settings['api_token']
        if not self.api_token:
            self.logger.error("❌ MONDAY_API_TOKEN is not set. Check .env or your configuration.")
            raise MondayConfigurationError("MONDAY_API_TOKEN environment variable is required")

        self.api_url = api_url or settings['api_url']
        self.api_version = api_version or settings['api_version']
        self.default_options = default_options or RequestOptions.from_config()

        self._client = http_client
        self._owns_client = http_client is None
        self._client_loop = None
        self.logger.debug(f"✅ Monday API client ready for {self.api_url} 🏗️")

    async def __aenter__(self) -> "MondayAPI":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Closes the HTTP client if this instance created it."""
        if (
            self._owns_client
            and self._client is not None
            and not self._client.is_closed
            and self._client_loop is asyncio.get_running_loop()
        ):
            await self._client.aclose()
        self._client = None if self._owns_client else self._client

    def _get_client(self) -> httpx.AsyncClient:
        loop = asyncio.get_running_loop()
        if self._owns_client and self._client is not None and self._client_loop is not loop:
            # Pooled connections belong to the loop that opened them.
            self.logger.debug("🔄 Event loop changed, opening a new HTTP client.")
            self._client = None
        if self._client is None or self._client.is_closed:
            # Deadlines are enforced per attempt in _send, not by httpx.
            self._client = httpx.AsyncClient(timeout=None)
            self._owns_client = True
            self._client_loop = loop
        return self._client

    @property
    def headers(self) -> Dict[str, str]:
        return {
            'Authorization': self.api_token,
            'Content-Type': 'application/json',
            'API-Version': self.api_version,
        }
    # endregion

    # region 🔐 Private Methods (Requests, Timeouts, Error Handling)
    # ============================================================
    async def _send(self, request: GraphQLRequest, timeout_ms: int) -> httpx.Response:
        """
        🔒 Private Method: Sends a single POST, cancelling it once timeout_ms elapses.

        :raises asyncio.TimeoutError: when the deadline fires
        :raises MondayTransportError: on any other network failure
        """
        client = self._get_client()
        try:
            return await asyncio.wait_for(
                client.post(self.api_url, json=request.to_payload(), headers=self.headers),
                timeout=timeout_ms / 1000,
            )
        except httpx.TimeoutException as te:
            # httpx gave up before our own deadline; same failure mode.
            raise asyncio.TimeoutError(str(te)) from te
        except httpx.HTTPError as he:
            self.logger.error(f"❌ Network error talking to Monday.com: {he}")
            raise MondayTransportError(f"Request to {self.api_url} failed: {he}", cause=he) from he

    def _handle_response(self, response: httpx.Response) -> GraphQLResponse:
        """
        🔒 Private Method: Turns an HTTP reply into a GraphQLResponse, raising on HTTP or GraphQL errors.
        """
        if not response.is_success:
            self.logger.error(f"❌ HTTP error encountered: {response.status_code} {response.reason_phrase}")
            raise MondayHTTPError(response.status_code, response.reason_phrase)

        try:
            body = response.json()
        except ValueError as ve:
            raise MondayTransportError(f"Invalid JSON response: {ve}", cause=ve) from ve

        result = GraphQLResponse.from_api(body)
        if result.failed:
            for error in result.errors:
                self.logger.error(f"💥 GraphQL error: {error.message}")
            raise MondayGraphQLError(result.errors)
        return result
    # endregion

    # region ✨ Query Execution
    # ============================================================
    async def execute_query(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        options: Optional[RequestOptions] = None,
    ) -> Any:
        """
        📡 Executes one GraphQL request against Monday.com.

        Only timeouts are retried: attempt N that times out waits retry_delay * N ms
        and tries again, until `retries` attempts have been made. HTTP status errors,
        GraphQL errors and network failures are raised straight away.

        :param query: GraphQL query string
        :param variables: Optional variables dict
        :param options: Timeout/retry settings, defaults to the client's
        :return: The `data` part of the response
        """
        options = options or self.default_options
        request = GraphQLRequest(query=query, variables=variables)
        attempt = 1

        while True:
            self.logger.debug(f"📡 Attempt {attempt}/{options.retries}: Sending request to Monday.com")
            try:
                response = await self._send(request, options.timeout)
            except asyncio.TimeoutError as te:
                if attempt < options.retries:
                    delay_ms = options.retry_delay * attempt
                    self.logger.warning(
                        f"⌛ Request timed out after {options.timeout}ms. "
                        f"Attempt {attempt}/{options.retries}. Retrying in {delay_ms}ms..."
                    )
                    await asyncio.sleep(delay_ms / 1000)
                    attempt += 1
                    continue
                self.logger.error("❌ Max retries reached without success. Failing the request.")
                raise MondayTimeoutError(options.timeout, attempt, cause=te) from te

            return self._handle_response(response).data

    async def execute_paginated_query(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        pagination_options: Optional[PaginationOptions] = None,
        options: Optional[RequestOptions] = None,
    ) -> Dict[str, Any]:
        """
        🔎 Fetches every page of an items_page query and returns them as one result.

        The query should declare `$limit` and `$cursor` variables; `limit` is always sent,
        `cursor` only once the previous page returned one.

        :param query: GraphQL query containing items_page
        :param variables: Extra variables sent with every page
        :param pagination_options: Page size, page cap and inter-page delay
        :param options: Timeout/retry settings applied to each page
        :return: {'boards': [{'items_page': {'cursor': None, 'items': [...]}}]} or {'items_page': {...}}
        :raises MondayConfigurationError: if the query has no items_page
        :raises PaginationError: if any page fails; nothing partial is returned
        """
        if not query_uses_pagination(query):
            raise MondayConfigurationError("Query must contain items_page to use pagination")

        pagination_options = pagination_options or PaginationOptions()
        base_variables = {**(variables or {}), 'limit': pagination_options.limit}
        state = PaginationState()
        max_pages = pagination_options.max_pages

        while state.has_more and (not max_pages or state.page < max_pages):
            state.page += 1
            page_variables = dict(base_variables)
            if state.cursor is not None:
                page_variables['cursor'] = state.cursor

            try:
                result = await self.execute_query(query, page_variables, options)
                items_page = find_items_page(result)
                if items_page is None:
                    raise ItemsPageNotFoundError()
            except Exception as e:
                self.logger.error(f"❌ Error fetching page {state.page}: {e}")
                raise PaginationError(state.page, e) from e

            items = items_page.get('items')
            if isinstance(items, list):
                state.items.extend(items)
            state.cursor = items_page.get('cursor')
            state.has_more = state.cursor is not None

            self.logger.debug(
                f"📄 Page {state.page}: {len(items) if isinstance(items, list) else 0} items "
                f"({len(state.items)} total)."
            )

            if state.has_more and pagination_options.delay_between_pages > 0:
                await asyncio.sleep(pagination_options.delay_between_pages / 1000)

        if state.has_more:
            self.logger.info(f"⚠️ Stopped after max_pages={max_pages} with more pages available.")
        else:
            self.logger.debug("✅ No more pages left to fetch.")

        return build_aggregate_result(query, state.items)
    # endregion

    # region 🧩 Template Execution
    # ============================================================
    def _render(self, template: str, base_date: BaseDate, extra_context: Optional[Mapping[str, str]]) -> str:
        query, missing = render_template(template, base_date, extra_context)
        if missing:
            raise MissingTemplateVariablesError(missing)
        return query

    async def execute_query_with_template(
        self,
        template: str,
        base_date: BaseDate,
        variables: Optional[Dict[str, Any]] = None,
        options: Optional[RequestOptions] = None,
        extra_context: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """
        Renders {{date}}-style variables for base_date into the template, then runs it.

        :raises InvalidDateError: if base_date cannot be parsed
        :raises MissingTemplateVariablesError: before any request if the template needs unknown variables
        """
        query = self._render(template, base_date, extra_context)
        return await self.execute_query(query, variables, options)

    async def execute_paginated_query_with_template(
        self,
        template: str,
        base_date: BaseDate,
        variables: Optional[Dict[str, Any]] = None,
        pagination_options: Optional[PaginationOptions] = None,
        options: Optional[RequestOptions] = None,
        extra_context: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """Template rendering followed by execute_paginated_query."""
        query = self._render(template, base_date, extra_context)
        return await self.execute_paginated_query(query, variables, pagination_options, options)
    # endregion


# region 🌐 Module-level API
# ============================================================
_default_api: Optional[MondayAPI] = None


def get_monday_api() -> MondayAPI:
    """Returns the shared client, creating it from the environment on first use."""
    global _default_api
    if _default_api is None:
        _default_api = MondayAPI()
    return _default_api


def set_monday_api(api: Optional[MondayAPI]) -> None:
    """Replaces (or with None, forgets) the shared client."""
    global _default_api
    _default_api = api


async def execute_query(
    query: str,
    variables: Optional[Dict[str, Any]] = None,
    options: Optional[RequestOptions] = None,
) -> Any:
    """📡 MondayAPI.execute_query on the shared client."""
    return await get_monday_api().execute_query(query, variables, options)


async def execute_query_with_template(
    template: str,
    base_date: BaseDate,
    variables: Optional[Dict[str, Any]] = None,
    options: Optional[RequestOptions] = None,
    extra_context: Optional[Mapping[str, str]] = None,
) -> Any:
    """🧩 MondayAPI.execute_query_with_template on the shared client."""
    return await get_monday_api().execute_query_with_template(
        template, base_date, variables, options, extra_context
    )


async def execute_paginated_query(
    query: str,
    variables: Optional[Dict[str, Any]] = None,
    pagination_options: Optional[PaginationOptions] = None,
    options: Optional[RequestOptions] = None,
) -> Dict[str, Any]:
    """🔎 MondayAPI.execute_paginated_query on the shared client."""
    return await get_monday_api().execute_paginated_query(query, variables, pagination_options, options)


async def execute_paginated_query_with_template(
    template: str,
    base_date: BaseDate,
    variables: Optional[Dict[str, Any]] = None,
    pagination_options: Optional[PaginationOptions] = None,
    options: Optional[RequestOptions] = None,
    extra_context: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """🔎 MondayAPI.execute_paginated_query_with_template on the shared client."""
    return await get_monday_api().execute_paginated_query_with_template(
        template, base_date, variables, pagination_options, options, extra_context
    )
# endregion
