"""
Sort Policy

Four total orderings over translation groups. The same policy is used for
SQL ORDER BY clauses and for in-memory sorting so both paths agree.
"""

from enum import Enum
from typing import List, Optional

from keyhub.exceptions import InvalidInputError
from keyhub.translation.models import TranslationGroup


class SortOption(str, Enum):
    TIME_DESC = "time_desc"
    TIME_ASC = "time_asc"
    KEY_ASC = "key_asc"
    KEY_DESC = "key_desc"


DEFAULT_SORT = SortOption.TIME_DESC

# Fixed clause table; these are the only strings ever interpolated into ORDER BY
_ORDER_BY = {
    SortOption.TIME_DESC: "sort_order DESC, key ASC",
    SortOption.TIME_ASC: "sort_order ASC, key ASC",
    SortOption.KEY_ASC: "key ASC",
    SortOption.KEY_DESC: "key DESC",
}


def parse_sort_option(value: Optional[str]) -> SortOption:
    """Parse a sort option name; None or empty gives the default."""
    if value is None or value == "":
        return DEFAULT_SORT
    if isinstance(value, SortOption):
        return value
    try:
        return SortOption(value)
    except ValueError:
        valid = ", ".join(option.value for option in SortOption)
        raise InvalidInputError(f"Unknown sort option '{value}', expected one of: {valid}",
                                code="invalid_sort")


def order_by_clause(option: SortOption) -> str:
    """ORDER BY clause for translation rows; rows of a key are ordered by language."""
    return f"{_ORDER_BY[option]}, language ASC"


def sort_groups(groups: List[TranslationGroup], option: SortOption) -> List[TranslationGroup]:
    """Return a new list of groups ordered by the given option."""
    if option == SortOption.TIME_DESC:
        # Two stable passes: key ascending, then sort_order descending
        return sorted(sorted(groups, key=lambda g: g.key), key=lambda g: g.sort_order, reverse=True)
    if option == SortOption.TIME_ASC:
        return sorted(groups, key=lambda g: (g.sort_order, g.key))
    if option == SortOption.KEY_ASC:
        return sorted(groups, key=lambda g: g.key)
    return sorted(groups, key=lambda g: g.key, reverse=True)
