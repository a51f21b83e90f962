"""Monday.com GraphQL client: templated, paginated and retrying queries."""

from monday_client.monday_api import (
    MondayAPI,
    execute_paginated_query,
    execute_paginated_query_with_template,
    execute_query,
    execute_query_with_template,
    get_monday_api,
    set_monday_api,
)
from monday_client.monday_exceptions import (
    InterpolationError,
    InvalidDateError,
    ItemsPageNotFoundError,
    MissingTemplateVariablesError,
    MondayAPIError,
    MondayConfigurationError,
    MondayGraphQLError,
    MondayHTTPError,
    MondayTimeoutError,
    MondayTransportError,
    PaginationError,
)
from monday_client.monday_models import GraphQLErrorDetail, GraphQLResponse, PaginationOptions, RequestOptions
from monday_client.monday_service import MondayService
from monday_client.monday_template import extract_variables, generate_context, interpolate, validate

__all__ = [
    "MondayAPI",
    "MondayService",
    "execute_query",
    "execute_query_with_template",
    "execute_paginated_query",
    "execute_paginated_query_with_template",
    "get_monday_api",
    "set_monday_api",
    "generate_context",
    "interpolate",
    "extract_variables",
    "validate",
    "RequestOptions",
    "PaginationOptions",
    "GraphQLResponse",
    "GraphQLErrorDetail",
    "MondayAPIError",
    "MondayConfigurationError",
    "MissingTemplateVariablesError",
    "InvalidDateError",
    "InterpolationError",
    "MondayTimeoutError",
    "MondayTransportError",
    "MondayHTTPError",
    "MondayGraphQLError",
    "ItemsPageNotFoundError",
    "PaginationError",
]
