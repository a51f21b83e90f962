# monday_client/monday_util.py

from typing import Any, Dict, List, Optional

from monday_client.monday_models import JsonValue

# --------------------- CONSTANTS ---------------------

ITEMS_PAGE_KEY = 'items_page'
BOARDS_KEY = 'boards'
MAX_SEARCH_DEPTH = 64

ITEM_FIELDS = '''
            id
            name
            created_at
            updated_at
            column_values {
              id
              text
              value
              type
            }
'''


def query_uses_pagination(query: str) -> bool:
    return ITEMS_PAGE_KEY in query


def find_items_page(result: JsonValue, max_depth: int = MAX_SEARCH_DEPTH) -> Optional[Dict[str, Any]]:
    """
    Depth-first search for the first ``items_page`` object anywhere in a GraphQL result.

    Dicts are checked for an ``items_page`` key before their children are visited;
    lists are walked in order. Anything nested deeper than ``max_depth`` is ignored.

    :param result: Decoded ``data`` payload
    :param max_depth: Nesting limit for the search
    :return: The ``items_page`` dict, or None if there isn't one
    """
    stack = [(result, 0)]
    while stack:
        node, depth = stack.pop()
        if depth > max_depth:
            continue
        if isinstance(node, dict):
            candidate = node.get(ITEMS_PAGE_KEY)
            if isinstance(candidate, dict):
                return candidate
            children = list(node.values())
        elif isinstance(node, list):
            children = node
        else:
            continue
        # reversed so the first child is popped first
        for child in reversed(children):
            if isinstance(child, (dict, list)):
                stack.append((child, depth + 1))
    return None


def build_aggregate_result(query: str, items: List[Any]) -> Dict[str, Any]:
    """
    Single-bucket aggregation: wraps every collected item in one ``items_page``.

    Queries mentioning ``boards`` get ``{'boards': [{'items_page': ...}]}``; anything else
    gets a bare ``{'items_page': ...}``. Multi-board or grouped responses are not rebuilt,
    callers needing that should page manually with ``MondayAPI.execute_query``.
    """
    items_page = {'cursor': None, 'items': items}
    if BOARDS_KEY in query:
        return {BOARDS_KEY: [{ITEMS_PAGE_KEY: items_page}]}
    return {ITEMS_PAGE_KEY: items_page}


def get_aggregated_items(result: Dict[str, Any]) -> List[Any]:
    """Returns the items list from a result built by build_aggregate_result."""
    if BOARDS_KEY in result:
        boards = result.get(BOARDS_KEY) or []
        if not boards:
            return []
        return boards[0].get(ITEMS_PAGE_KEY, {}).get('items', [])
    return result.get(ITEMS_PAGE_KEY, {}).get('items', [])
