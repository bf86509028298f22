"""
Translation Key Validation Module

Contains the checks a key must pass before it may enter the store:
- Format rules (character set, separators, leading digit)
- Duplicate detection (optionally case-insensitive)
- Namespace conflicts between dot-separated keys
- Similarity to existing keys (likely typos)

Every check returns a ValidationResult and never raises for invalid input.
The format, duplicate and namespace checks are cheap enough for live typing;
the similarity check scans every existing key and should only run on
discrete events such as submit or blur.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from keyhub.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.85
MAX_LISTED_CONFLICTS = 3

_WHITESPACE = re.compile(r"\s")
_ALLOWED = re.compile(r"[A-Za-z0-9._]+")
_CONSECUTIVE_SEPARATORS = re.compile(r"[._]{2,}")
_EDGE_SEPARATORS = "._"

MSG_EMPTY = "Please enter a translation key"
MSG_WHITESPACE = "Translation key cannot contain whitespace"
MSG_CHARSET = "Translation key may only contain letters, digits, dots and underscores"
MSG_LEADING_DIGIT = "Translation key cannot start with a digit"
MSG_CONSECUTIVE = "Translation key cannot contain consecutive dots or underscores"
MSG_EDGES = "Translation key cannot start or end with a dot or underscore"
MSG_DUPLICATE = "Translation key already exists"
MSG_DUPLICATE_IGNORE_CASE = "Translation key already exists (ignoring case)"
MSG_IN_BATCH_DUPLICATE = "Duplicated in batch"


@dataclass
class ValidationResult:
    """Outcome of a validation check."""
    is_valid: bool
    message: Optional[str] = None
    similar_keys: List[str] = field(default_factory=list)
    conflicting_keys: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"is_valid": self.is_valid}
        if self.message:
            payload["message"] = self.message
        if self.similar_keys:
            payload["similar_keys"] = list(self.similar_keys)
        if self.conflicting_keys:
            payload["conflicting_keys"] = list(self.conflicting_keys)
        return payload


@dataclass
class KeyValidationOptions:
    """Options for validate_complete()."""
    case_sensitive: bool = True
    check_similarity: bool = False
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    check_namespace_conflict: bool = True

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "KeyValidationOptions":
        """Build options from stored settings; values of the wrong type fall back to defaults."""
        data = data or {}
        defaults = cls()
        threshold = data.get('similarity_threshold')
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            threshold = defaults.similarity_threshold
        return cls(
            case_sensitive=_flag(data, 'case_sensitive', defaults.case_sensitive),
            check_similarity=_flag(data, 'check_similarity', defaults.check_similarity),
            similarity_threshold=float(threshold),
            check_namespace_conflict=_flag(data, 'check_namespace_conflict', defaults.check_namespace_conflict),
        )


def _flag(data: Dict[str, Any], name: str, default: bool) -> bool:
    value = data.get(name)
    return value if isinstance(value, bool) else default


@dataclass
class BatchKeyResult:
    key: str
    is_valid: bool
    message: Optional[str] = None


def validate_format(key: str) -> ValidationResult:
    """
    Validate the shape of a translation key.

    Rules, checked in order, each with its own message:
    1. Not empty or whitespace-only
    2. No whitespace anywhere
    3. Only ASCII letters, digits, '.' and '_'
    4. Does not start with a digit
    5. No two consecutive separators ('..', '__', '._', '_.')
    6. Does not start or end with a separator

    Args:
        key: Candidate key, untrimmed

    Returns:
        ValidationResult
    """
    if not key or not key.strip():
        return ValidationResult(False, MSG_EMPTY)

    if _WHITESPACE.search(key):
        return ValidationResult(False, MSG_WHITESPACE)

    if not _ALLOWED.fullmatch(key):
        return ValidationResult(False, MSG_CHARSET)

    if key[0].isdigit():
        return ValidationResult(False, MSG_LEADING_DIGIT)

    if _CONSECUTIVE_SEPARATORS.search(key):
        return ValidationResult(False, MSG_CONSECUTIVE)

    if key[0] in _EDGE_SEPARATORS or key[-1] in _EDGE_SEPARATORS:
        return ValidationResult(False, MSG_EDGES)

    return ValidationResult(True)


def check_duplicate(key: str, existing_keys: Iterable[str], case_sensitive: bool = True) -> ValidationResult:
    """
    Check whether the trimmed key already exists.

    Args:
        key: Candidate key
        existing_keys: Keys already in the project
        case_sensitive: When False, compare lower-cased forms

    Returns:
        ValidationResult
    """
    trimmed = key.strip()

    if case_sensitive:
        if trimmed in set(existing_keys):
            return ValidationResult(False, MSG_DUPLICATE)
        return ValidationResult(True)

    lowered = trimmed.lower()
    if any(existing.lower() == lowered for existing in existing_keys):
        return ValidationResult(False, MSG_DUPLICATE_IGNORE_CASE)
    return ValidationResult(True)


def check_namespace_conflict(key: str, existing_keys: Iterable[str]) -> ValidationResult:
    """
    Check that the key neither contains nor is contained by an existing key.

    Keys are hierarchical through '.': "a" is an ancestor of "a.b". A key may
    not be an ancestor or a descendant of another key. Comparison is
    case-sensitive.

    Example:
        >>> check_namespace_conflict("a", ["a.b"]).is_valid
        False
        >>> check_namespace_conflict("a.b.c", ["a.b"]).is_valid
        False
        >>> check_namespace_conflict("a.bb", ["a.b"]).is_valid
        True
    """
    trimmed = key.strip()
    conflicts = []

    for existing in existing_keys:
        # Candidate would become the namespace of an existing key
        if existing.startswith(trimmed + "."):
            conflicts.append(existing)
        # Candidate would live under an existing leaf
        elif trimmed.startswith(existing + "."):
            conflicts.append(existing)

    if conflicts:
        listed = ", ".join(conflicts[:MAX_LISTED_CONFLICTS])
        more = "..." if len(conflicts) > MAX_LISTED_CONFLICTS else ""
        return ValidationResult(
            False,
            f"Translation key conflicts with existing namespace: {listed}{more}",
            conflicting_keys=conflicts,
        )
    return ValidationResult(True)


def calculate_similarity(first: str, second: str) -> float:
    """
    Normalized Levenshtein similarity: (max_len - distance) / max_len.

    Returns:
        Similarity between 0.0 and 1.0; two empty strings are identical
    """
    len1, len2 = len(first), len(second)
    if len1 == 0:
        return 1.0 if len2 == 0 else 0.0
    if len2 == 0:
        return 0.0

    previous = list(range(len2 + 1))
    for i in range(1, len1 + 1):
        current = [i] + [0] * len2
        for j in range(1, len2 + 1):
            cost = 0 if first[i - 1] == second[j - 1] else 1
            current[j] = min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            )
        previous = current

    max_len = max(len1, len2)
    return (max_len - previous[len2]) / max_len


def check_similarity(key: str, existing_keys: Iterable[str],
                     threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> ValidationResult:
    """
    Flag keys that look like a typo of an existing key.

    A similarity in [threshold, 1) marks the key as suspicious. Exact matches
    are left to check_duplicate().

    Returns:
        ValidationResult with similar_keys populated when invalid
    """
    trimmed = key.strip()
    similar = []

    for existing in existing_keys:
        similarity = calculate_similarity(trimmed, existing)
        if threshold <= similarity < 1:
            similar.append(existing)

    if similar:
        logger.debug(f"Key '{trimmed}' is similar to {len(similar)} existing keys")
        return ValidationResult(
            False,
            f"Translation key is similar to existing keys, possibly a typo: {', '.join(similar)}",
            similar_keys=similar,
        )
    return ValidationResult(True)


def validate_complete(key: str, existing_keys: Iterable[str] = (),
                      options: Optional[KeyValidationOptions] = None) -> ValidationResult:
    """
    Run every enabled check, stopping at the first failure.

    Order: format, duplicate, namespace conflict (on by default),
    similarity (off by default).

    Args:
        key: Candidate key
        existing_keys: Keys already in the project; exclude the key being renamed
        options: KeyValidationOptions, defaults when omitted

    Returns:
        ValidationResult of the first failing check, or a valid result
    """
    options = options or KeyValidationOptions()
    existing_keys = list(existing_keys)

    result = validate_format(key)
    if not result.is_valid:
        return result

    result = check_duplicate(key, existing_keys, options.case_sensitive)
    if not result.is_valid:
        return result

    if options.check_namespace_conflict:
        result = check_namespace_conflict(key, existing_keys)
        if not result.is_valid:
            return result

    if options.check_similarity:
        result = check_similarity(key, existing_keys, options.similarity_threshold)
        if not result.is_valid:
            return result

    return ValidationResult(True)


def validate_batch(keys: Iterable[str], existing_keys: Iterable[str],
                   options: Optional[KeyValidationOptions] = None) -> List[BatchKeyResult]:
    """
    Validate a list of candidate keys, e.g. from a multi-line input.

    Blank entries are dropped and entries are trimmed. Keys are validated in
    order against the existing keys plus the keys accepted earlier in the
    batch, so "a" followed by "a.b" rejects the second. Keys that appear more
    than once in the batch are rejected as in-batch duplicates.
    """
    candidates = [key.strip() for key in keys if key and key.strip()]
    accepted = list(existing_keys)
    counts: Dict[str, int] = {}
    for key in candidates:
        counts[key] = counts.get(key, 0) + 1

    results = []
    for key in candidates:
        result = validate_complete(key, accepted, options)
        if not result.is_valid:
            results.append(BatchKeyResult(key, False, result.message))
        elif counts[key] > 1:
            results.append(BatchKeyResult(key, False, MSG_IN_BATCH_DUPLICATE))
        else:
            accepted.append(key)
            results.append(BatchKeyResult(key, True))
    return results
