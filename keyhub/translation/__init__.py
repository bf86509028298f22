"""
Translation module - Key validation and derived translation data

This module provides:
- models: Project, SupportedLanguage and TranslationGroup dataclasses
- validator: Key format, duplicate, namespace and similarity checks
- progress: Completion percentages and incomplete-item lookup
- search: Case-insensitive filtering and match highlighting
- sorting: The four group orderings shared by storage and memory
"""

from keyhub.translation.models import (
    Project,
    SupportedLanguage,
    TranslationCell,
    TranslationGroup,
    groups_from_rows,
    is_value_complete,
)
from keyhub.translation.validator import (
    BatchKeyResult,
    KeyValidationOptions,
    ValidationResult,
    calculate_similarity,
    check_duplicate,
    check_namespace_conflict,
    check_similarity,
    validate_batch,
    validate_complete,
    validate_format,
)
from keyhub.translation.progress import (
    LanguageProgress,
    LanguageStats,
    calculate,
    get_incomplete_items,
    get_language_stats,
    is_item_complete,
)
from keyhub.translation.search import filter_groups, highlight
from keyhub.translation.sorting import (
    DEFAULT_SORT,
    SortOption,
    order_by_clause,
    parse_sort_option,
    sort_groups,
)
