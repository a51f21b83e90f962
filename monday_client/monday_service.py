# monday_client/monday_service.py

import logging
from typing import Any, Dict, List, Optional

from monday_client.monday_api import MondayAPI, get_monday_api
from monday_client.monday_exceptions import InvalidDateError
from monday_client.monday_models import PaginationOptions
from monday_client.monday_template import BaseDate
from monday_client.monday_util import ITEM_FIELDS, get_aggregated_items, query_uses_pagination
from utilities.helper_functions import filter_items_by_created_at, parse_datetime

# Settings every KPI snapshot/preview runs with.
KPI_PAGINATION_OPTIONS = PaginationOptions(max_pages=50, page_size=500, delay_between_pages=100)


def _check_date_range(start_date, end_date, source: str) -> None:
    """Raises InvalidDateError for a range bound that cannot be parsed, before anything is fetched."""
    for value in (start_date, end_date):
        try:
            parse_datetime(value)
        except (ValueError, TypeError, OverflowError) as e:
            raise InvalidDateError(value, cause=e, source=source) from e


class MondayService:
    """
    Board and item retrieval built on MondayAPI.

    The *_paginated methods follow items_page cursors until the board is exhausted;
    the legacy methods issue a single request capped at item_limit.
    """

    def __init__(self, monday_api: Optional[MondayAPI] = None):
        self.logger = logging.getLogger("app_logger")
        self.monday_api = monday_api or get_monday_api()

    # region 🔎 Paginated Fetch
    async def get_boards_with_items_paginated(
        self, board_ids: List[int], pagination_options: Optional[PaginationOptions] = None
    ) -> Dict[str, Any]:
        """
        📥 Fetches all items of the given boards. Items from every board end up in boards[0].
        """
        self.logger.debug(f"📥 Fetching all items from boards {board_ids}...")
        query = f'''
        query ($boardIds: [ID!]!, $limit: Int!, $cursor: String) {{
          boards(ids: $boardIds) {{
            id
            name
            items_page(limit: $limit, cursor: $cursor) {{
              cursor
              items {{{ITEM_FIELDS}          }}
            }}
          }}
        }}
        '''
        return await self.monday_api.execute_paginated_query(
            query, {'boardIds': [str(board_id) for board_id in board_ids]}, pagination_options
        )

    async def get_board_items_paginated(
        self, board_id: int, pagination_options: Optional[PaginationOptions] = None
    ) -> Dict[str, Any]:
        """📥 Fetches all items of one board."""
        self.logger.debug(f"📥 Fetching all items from board {board_id}...")
        query = f'''
        query ($boardId: ID!, $limit: Int!, $cursor: String) {{
          boards(ids: [$boardId]) {{
            id
            name
            items_page(limit: $limit, cursor: $cursor) {{
              cursor
              items {{{ITEM_FIELDS}          }}
            }}
          }}
        }}
        '''
        return await self.monday_api.execute_paginated_query(query, {'boardId': str(board_id)}, pagination_options)

    async def get_items_in_date_range_paginated(
        self,
        board_id: int,
        start_date: str,
        end_date: str,
        pagination_options: Optional[PaginationOptions] = None,
    ) -> Dict[str, Any]:
        """
        📅 Fetches all items of a board and keeps those created between start_date and end_date.
        Monday's items_page has no created_at filter, so the range is applied here.
        """
        _check_date_range(start_date, end_date, "get_items_in_date_range_paginated")
        result = await self.get_board_items_paginated(board_id, pagination_options)
        items = get_aggregated_items(result)
        items[:] = filter_items_by_created_at(items, start_date, end_date)
        self.logger.debug(f"📅 {len(items)} items created between {start_date} and {end_date}.")
        return result
    # endregion

    # region 🔧 Single Requests
    async def get_item(self, item_id: int) -> Any:
        """🔎 Fetches one item with its column values."""
        query = f'''
        query ($itemId: ID!) {{
          items(ids: [$itemId]) {{{ITEM_FIELDS}          }}
        }}
        '''
        return await self.monday_api.execute_query(query, {'itemId': str(item_id)})

    async def get_boards_with_items(self, board_ids: List[int], item_limit: int = 100) -> Any:
        """Legacy single-request fetch, at most item_limit items per board."""
        query = f'''
        query ($boardIds: [ID!]!, $itemLimit: Int!) {{
          boards(ids: $boardIds) {{
            id
            name
            items_page(limit: $itemLimit) {{
              items {{{ITEM_FIELDS}          }}
            }}
          }}
        }}
        '''
        return await self.monday_api.execute_query(
            query, {'boardIds': [str(board_id) for board_id in board_ids], 'itemLimit': item_limit}
        )

    async def get_board_items(self, board_id: int, item_limit: int = 100) -> Any:
        """Legacy single-request fetch of one board."""
        return await self.get_boards_with_items([board_id], item_limit)

    async def get_items_in_date_range(self, board_id: int, start_date: str, end_date: str) -> Any:
        """Legacy single-request variant of get_items_in_date_range_paginated."""
        _check_date_range(start_date, end_date, "get_items_in_date_range")
        result = await self.get_board_items(board_id)
        boards = (result or {}).get('boards') or []
        if boards and isinstance(boards[0].get('items_page'), dict):
            items_page = boards[0]['items_page']
            items_page['items'] = filter_items_by_created_at(items_page.get('items') or [], start_date, end_date)
        return result
    # endregion

    # region 📊 KPI Queries
    async def run_kpi_query(
        self,
        query_template: str,
        base_date: BaseDate,
        pagination_options: Optional[PaginationOptions] = None,
    ) -> Any:
        """
        📊 Runs a stored KPI query template for a base date.

        Templates containing items_page are paginated (50 pages of 500 by default);
        anything else is sent as a single request.
        """
        if query_uses_pagination(query_template):
            self.logger.info(f"📊 Running paginated KPI query for {base_date}")
            return await self.monday_api.execute_paginated_query_with_template(
                query_template, base_date, pagination_options=pagination_options or KPI_PAGINATION_OPTIONS
            )
        self.logger.info(f"📊 Running KPI query for {base_date}")
        return await self.monday_api.execute_query_with_template(query_template, base_date)
    # endregion
