"""
Translation Data Classes

Plain dataclasses for projects, supported languages and translation groups.
A group holds the per-language cells of one key in an explicit mapping.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple


def is_value_complete(value: Optional[str]) -> bool:
    """A cell is complete when its value is non-empty after trimming."""
    return bool(value and value.strip())


@dataclass
class SupportedLanguage:
    """A language that projects can be translated into."""
    id: Optional[int]
    name: str
    code: str
    is_active: bool = True
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SupportedLanguage":
        return cls(
            id=row.get('id'),
            name=row['name'],
            code=row['code'],
            is_active=bool(row.get('is_active', True)),
            created_at=row.get('created_at'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "is_active": self.is_active,
            "created_at": self.created_at,
        }


@dataclass
class Project:
    """A translation project and its configured languages."""
    id: int
    name: str
    description: Optional[str] = None
    selected_languages: List[str] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    is_completed: bool = False
    total_keys: int = 0
    completed_keys: int = 0

    @classmethod
    def from_row(cls, row: Dict[str, Any], total_keys: int = 0, completed_keys: int = 0) -> "Project":
        return cls(
            id=row['id'],
            name=row['name'],
            description=row.get('description') or None,
            selected_languages=list(row.get('selected_languages') or []),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at'),
            is_completed=bool(row.get('is_completed')),
            total_keys=total_keys,
            completed_keys=completed_keys,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "selected_languages": list(self.selected_languages),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "is_completed": self.is_completed,
            "total_translations": self.total_keys,
            "completed_translations": self.completed_keys,
        }


@dataclass
class TranslationCell:
    """One (key, language) value."""
    value: str = ""
    is_completed: bool = False

    @classmethod
    def of(cls, value: Optional[str]) -> "TranslationCell":
        value = value or ""
        return cls(value=value, is_completed=is_value_complete(value))


@dataclass
class TranslationGroup:
    """All cells sharing one key within a project."""
    key: str
    sort_order: int = 0
    translations: Dict[str, TranslationCell] = field(default_factory=dict)

    def value(self, language_code: str) -> str:
        cell = self.translations.get(language_code)
        return cell.value if cell else ""

    def cells(self) -> Iterator[Tuple[str, TranslationCell]]:
        """Yield (language, cell) pairs ordered by language code."""
        for language in sorted(self.translations):
            yield language, self.translations[language]

    def values(self, language_codes: List[str]) -> Dict[str, str]:
        """Values for the given languages, empty string where a cell is missing."""
        return {code: self.value(code) for code in language_codes}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "sort_order": self.sort_order,
            "translations": [
                {"language": language, "value": cell.value, "is_completed": cell.is_completed}
                for language, cell in self.cells()
            ],
        }


def groups_from_rows(rows: List[Dict[str, Any]]) -> List[TranslationGroup]:
    """
    Fold translation rows into groups, keeping the first-seen key order.

    Rows are expected to arrive already ordered by the active sort option.
    """
    groups: Dict[str, TranslationGroup] = {}
    for row in rows:
        group = groups.get(row['key'])
        if group is None:
            group = TranslationGroup(key=row['key'], sort_order=row.get('sort_order') or 0)
            groups[row['key']] = group
        group.translations[row['language']] = TranslationCell(
            value=row.get('value') or "",
            is_completed=bool(row.get('is_completed')),
        )
    return list(groups.values())
