# monday_client/monday_template.py

import logging
import re
import datetime
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

import chevron

from monday_client.monday_exceptions import InterpolationError, InvalidDateError
from utilities.helper_functions import format_date, parse_calendar_date

logger = logging.getLogger("app_logger")

# region 🔧 Template Vocabulary
# ============================================
DATE_OFFSETS = {
    'date': 0,
    'date_minus_1': 1,
    'date_minus_7': 7,
    'date_minus_30': 30,
    'date_minus_60': 60,
    'date_minus_90': 90,
}

# {{name}}, {{{name}}} and {{&name}}; the last two render unescaped
VARIABLE_PATTERN = re.compile(r'\{\{\{?&?\s*([^{}]+?)\s*\}?\}\}')
# endregion

TemplateContext = Dict[str, str]
BaseDate = Union[str, datetime.date, datetime.datetime]


def generate_context(base_date: BaseDate) -> TemplateContext:
    """
    📅 Builds the relative-date variables for a base date.

    :param base_date: ISO date string, date or datetime
    :return: {'date': 'YYYY-MM-DD', 'date_minus_1': ..., ..., 'date_minus_90': ...}
    :raises InvalidDateError: if base_date cannot be parsed
    """
    try:
        day = parse_calendar_date(base_date)
    except (ValueError, TypeError, OverflowError) as e:
        raise InvalidDateError(base_date, cause=e) from e

    try:
        return {name: format_date(day - datetime.timedelta(days=offset)) for name, offset in DATE_OFFSETS.items()}
    except OverflowError as e:
        # base date within 90 days of date.min
        raise InvalidDateError(base_date, cause=e) from e


def interpolate(template: str, context: Mapping[str, str]) -> str:
    """
    🧩 Renders {{variable}} placeholders with values from context.
    Unknown variables render as empty strings; use validate() to catch them.
    """
    try:
        return chevron.render(template, dict(context))
    except Exception as e:
        raise InterpolationError(f"Failed to interpolate query template: {e}", cause=e) from e


def extract_variables(template: str) -> Iterator[str]:
    """
    Yields every variable name referenced by the template once, in order of first appearance.
    """
    seen = set()
    for match in VARIABLE_PATTERN.finditer(template):
        name = match.group(1).strip()
        if name not in seen:
            seen.add(name)
            yield name


def validate(template: str, context: Mapping[str, str]) -> List[str]:
    """
    Returns the variables referenced by template that context does not provide.
    An empty list means the template is fully satisfied.
    """
    return [name for name in extract_variables(template) if name not in context]


def render_template(
    template: str, base_date: BaseDate, extra_context: Optional[Mapping[str, str]] = None
) -> Tuple[Optional[str], List[str]]:
    """
    Expands a query template against a base date.

    :return: (rendered query, list of missing variables)
    """
    context = generate_context(base_date)
    if extra_context:
        context.update({key: str(value) for key, value in extra_context.items()})
    missing = validate(template, context)
    if missing:
        logger.warning(f"⚠️ Template references unknown variables: {', '.join(missing)}")
        return None, missing
    query = interpolate(template, context)
    logger.debug(f"🧩 Template rendered for base date {context['date']}")
    return query, missing
