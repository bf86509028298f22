"""Substring search over translation groups."""

import re
from typing import List

from markupsafe import Markup, escape

from keyhub.translation.models import TranslationGroup


def filter_groups(groups: List[TranslationGroup], term: str, language_codes: List[str]) -> List[TranslationGroup]:
    """
    Keep groups whose key or any language value contains the term, ignoring case.

    A blank term returns the input list itself.
    """
    if not term or not term.strip():
        return groups

    needle = term.lower()

    def matches(group: TranslationGroup) -> bool:
        if needle in group.key.lower():
            return True
        return any(needle in group.value(code).lower() for code in language_codes)

    return [group for group in groups if matches(group)]


def highlight(text: str, term: str) -> Markup:
    """Wrap case-insensitive occurrences of term in <mark>, escaping the rest."""
    if not term or not term.strip():
        return escape(text)

    pattern = re.compile(f"({re.escape(term)})", re.IGNORECASE)
    parts = pattern.split(text)
    # split() with one capture group alternates text and matches
    pieces = [
        Markup("<mark>{}</mark>").format(part) if index % 2 else escape(part)
        for index, part in enumerate(parts)
    ]
    return Markup("").join(pieces)
