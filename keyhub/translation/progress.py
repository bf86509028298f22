"""
Translation Progress Module

Completion aggregation over in-memory translation groups. is_item_complete()
is the single predicate behind both the percentages and the incomplete list.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from keyhub.translation.models import TranslationGroup, is_value_complete


@dataclass
class LanguageProgress:
    """Completion percentages for a set of groups."""
    overall: int
    by_language: Dict[str, int] = field(default_factory=dict)
    total_keys: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall,
            "by_language": dict(self.by_language),
            "total_keys": self.total_keys,
        }


@dataclass
class LanguageStats:
    """Completion of a single language."""
    language_code: str
    completed: int
    total: int
    percentage: int


def percentage(count: int, total: int) -> int:
    """Integer percentage rounded half up; 0 when total is 0."""
    if total <= 0:
        return 0
    return (200 * count + total) // (2 * total)


def is_item_complete(group: TranslationGroup, language_codes: List[str]) -> bool:
    """True when the group has a non-empty trimmed value in every language."""
    return all(is_value_complete(group.value(code)) for code in language_codes)


def calculate(groups: List[TranslationGroup], language_codes: List[str]) -> LanguageProgress:
    """
    Calculate per-language and overall completion.

    Per-language: share of groups with a non-empty value in that language.
    Overall: share of groups complete in every configured language.

    Example:
        Two groups, languages ["en", "fr"], the second missing "fr":
        overall=50, by_language={"en": 100, "fr": 50}
    """
    total = len(groups)
    by_language = {
        code: percentage(sum(1 for group in groups if is_value_complete(group.value(code))), total)
        for code in language_codes
    }
    complete = sum(1 for group in groups if is_item_complete(group, language_codes))
    return LanguageProgress(overall=percentage(complete, total), by_language=by_language, total_keys=total)


def get_incomplete_items(groups: List[TranslationGroup], language_codes: List[str]) -> List[TranslationGroup]:
    """Groups missing a value in at least one configured language, in input order."""
    return [group for group in groups if not is_item_complete(group, language_codes)]


def get_language_stats(groups: List[TranslationGroup], language_code: str) -> LanguageStats:
    total = len(groups)
    completed = sum(1 for group in groups if is_value_complete(group.value(language_code)))
    return LanguageStats(
        language_code=language_code,
        completed=completed,
        total=total,
        percentage=percentage(completed, total),
    )
