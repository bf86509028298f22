"""
Translation Interchange Formats

Parses and renders the two external formats. Both parse into the canonical
map {key: {language_code: value}} that the store imports and exports.

CSV:
    UTF-8 with a BOM, header row "Key,<lang1>,<lang2>,...", one row per key,
    fields wrapped in double quotes with "" as the escaped quote.

JSON, two accepted shapes:
    Full bundle:
        {"project": {"id", "name", "description"},
         "languages": [{"code", "name"}],
         "translations": {key: {lang: value}},
         "exportTime": ISO 8601}
    Bare map:
        {key: {lang: value}}

Single-language JSON (export only):
    {key: value}

Every malformed payload raises ImportFormatError with a code naming the cause.
"""

import csv
import io
import json
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from keyhub.exceptions import ImportFormatError
from keyhub.logger import get_logger

logger = get_logger(__name__)

BOM = "\ufeff"
KEY_COLUMN = "Key"
FILE_NAME_MARKER = "_translations"
DEFAULT_IMPORT_NAME = "Imported Project"

_UNSAFE_FILE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


@dataclass
class ParsedPayload:
    """A parsed import payload, before metadata inference."""
    translations: Dict[str, Dict[str, str]]
    languages: List[str]
    source_format: str
    name: Optional[str] = None
    description: Optional[str] = None
    language_names: Dict[str, str] = field(default_factory=dict)


@dataclass
class ProjectMetadata:
    """Project fields inferred from a payload."""
    name: str
    description: Optional[str]
    languages: List[str]


# ============================================================
# Parsing
# ============================================================

def _strip_bom(content: str) -> str:
    return content[1:] if content.startswith(BOM) else content


def parse_csv(content: str) -> ParsedPayload:
    """
    Parse a CSV payload.

    Blank rows and rows with an empty key are skipped. Short rows read as
    empty values; cells beyond the header are ignored.

    Raises:
        ImportFormatError: empty_payload, invalid_csv, invalid_header, no_language_columns,
            duplicate_key
    """
    text = _strip_bom(content or "")
    if not text.strip():
        raise ImportFormatError("The file is empty", code="empty_payload")

    try:
        rows = list(csv.reader(io.StringIO(text, newline=''), strict=True))
    except csv.Error as e:
        raise ImportFormatError(f"Malformed CSV: {e}", code="invalid_csv") from e

    header = rows[0] if rows else []
    if not header or header[0].strip() != KEY_COLUMN:
        raise ImportFormatError(f"The first column header must be '{KEY_COLUMN}'", code="invalid_header")

    languages = [code.strip() for code in header[1:]]
    if not any(languages):
        raise ImportFormatError("The header has no language columns", code="no_language_columns")
    if any(not code for code in languages):
        raise ImportFormatError("The header has an empty language column", code="invalid_header")
    if len(set(languages)) != len(languages):
        raise ImportFormatError("The header repeats a language column", code="invalid_header")

    translations: Dict[str, Dict[str, str]] = {}
    for row in rows[1:]:
        if not row or not row[0].strip():
            continue
        key = row[0].strip()
        if key in translations:
            raise ImportFormatError(f"The key '{key}' appears more than once", code="duplicate_key",
                                    details={"key": key})
        translations[key] = {
            code: row[index + 1] if index + 1 < len(row) else ""
            for index, code in enumerate(languages)
        }

    logger.debug(f"Parsed CSV: {len(translations)} keys, {len(languages)} languages")
    return ParsedPayload(translations=translations, languages=languages, source_format="csv")


def _as_language_map(key: str, values: Any) -> Dict[str, str]:
    if not isinstance(values, dict):
        raise ImportFormatError(f"Translations of '{key}' must be an object of language values",
                                code="unrecognized_structure")
    result = {}
    for language, value in values.items():
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ImportFormatError(f"Value of '{key}' in '{language}' must be a string",
                                    code="unrecognized_structure")
        result[language] = value
    return result


def _languages_in(translations: Dict[str, Dict[str, str]]) -> List[str]:
    """Union of inner language codes in first-seen order."""
    seen: Dict[str, None] = {}
    for values in translations.values():
        for language in values:
            seen.setdefault(language, None)
    return list(seen)


def _is_full_bundle(data: Dict[str, Any]) -> bool:
    return isinstance(data.get("translations"), dict) and ("project" in data or "languages" in data)


def parse_json_payload(content: str) -> ParsedPayload:
    """
    Parse a JSON payload in either the full-bundle or the bare-map shape.

    Raises:
        ImportFormatError: empty_payload, invalid_json, not_an_object, unrecognized_structure
    """
    text = _strip_bom(content or "")
    if not text.strip():
        raise ImportFormatError("The file is empty", code="empty_payload")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportFormatError(f"Invalid JSON: {e}", code="invalid_json") from e

    if not isinstance(data, dict):
        raise ImportFormatError("The JSON document must be an object", code="not_an_object")
    if not data:
        raise ImportFormatError("The JSON document has no translations", code="empty_payload")

    if _is_full_bundle(data):
        return _parse_full_bundle(data)

    translations = {key: _as_language_map(key, values) for key, values in data.items()}
    languages = _languages_in(translations)
    logger.debug(f"Parsed bare JSON map: {len(translations)} keys, {len(languages)} languages")
    return ParsedPayload(translations=translations, languages=languages, source_format="json")


def _parse_full_bundle(data: Dict[str, Any]) -> ParsedPayload:
    project = data.get("project") or {}
    if not isinstance(project, dict):
        raise ImportFormatError("'project' must be an object", code="unrecognized_structure")

    translations = {key: _as_language_map(key, values) for key, values in data["translations"].items()}

    languages: List[str] = []
    language_names: Dict[str, str] = {}
    declared = data.get("languages")
    if declared is not None:
        if not isinstance(declared, list):
            raise ImportFormatError("'languages' must be a list", code="unrecognized_structure")
        for entry in declared:
            if not isinstance(entry, dict) or not isinstance(entry.get("code"), str):
                raise ImportFormatError("Each language needs a 'code'", code="unrecognized_structure")
            code = entry["code"].strip()
            if code and code not in language_names:
                languages.append(code)
                language_names[code] = entry.get("name") or code
    if not languages:
        languages = _languages_in(translations)

    name = project.get("name")
    description = project.get("description")
    logger.debug(f"Parsed JSON bundle: {len(translations)} keys, {len(languages)} languages")
    return ParsedPayload(
        translations=translations,
        languages=languages,
        source_format="json",
        name=name.strip() if isinstance(name, str) and name.strip() else None,
        description=description if isinstance(description, str) and description else None,
        language_names=language_names,
    )


def parse_payload(content: str, filename: str) -> ParsedPayload:
    """Parse by file extension: .csv or .json."""
    suffix = Path(filename).suffix.lower()
    if suffix == ".csv":
        return parse_csv(content)
    if suffix == ".json":
        return parse_json_payload(content)
    raise ImportFormatError(f"Unsupported file type '{suffix or filename}', expected .json or .csv",
                            code="unsupported_format")


def infer_project_metadata(parsed: ParsedPayload, filename: Optional[str] = None,
                           today: Optional[date] = None) -> ProjectMetadata:
    """
    Derive the project name, description and languages of an import.

    Name precedence: the bundle's project name, then the file name with the
    "_translations..." export suffix removed, then "Imported Project <date>".
    """
    name = parsed.name
    if not name and filename:
        stem = Path(filename).stem
        if FILE_NAME_MARKER in stem:
            stem = stem.split(FILE_NAME_MARKER)[0]
        name = stem.strip() or None
    if not name:
        name = f"{DEFAULT_IMPORT_NAME} {(today or date.today()).isoformat()}"
    return ProjectMetadata(name=name, description=parsed.description, languages=list(parsed.languages))


# ============================================================
# Rendering
# ============================================================

def export_timestamp(now: Optional[datetime] = None) -> str:
    """ISO 8601 UTC timestamp with milliseconds, e.g. 2024-05-01T08:30:00.000Z"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def to_json_bundle(project: Dict[str, Any], languages: Sequence[Dict[str, str]],
                   translations: Dict[str, Dict[str, str]],
                   export_time: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the full-bundle document.

    Args:
        project: Mapping with id, name and description
        languages: Mappings with code and name, in column order
        translations: Canonical map
    """
    return {
        "project": {
            "id": project.get("id"),
            "name": project.get("name"),
            "description": project.get("description") or None,
        },
        "languages": [{"code": lang["code"], "name": lang["name"]} for lang in languages],
        "translations": translations,
        "exportTime": export_time or export_timestamp(),
    }


def render_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


def to_csv(language_codes: Sequence[str], translations: Dict[str, Dict[str, str]]) -> str:
    """Render the canonical map as CSV with a BOM prefix and every data field quoted."""
    buffer = io.StringIO()
    buffer.write(BOM)
    buffer.write(",".join([KEY_COLUMN, *language_codes]))

    if not translations:
        return buffer.getvalue()

    buffer.write("\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(
        [key, *(values.get(code) or "" for code in language_codes)]
        for key, values in translations.items()
    )
    # Rows are newline-separated with no trailing newline
    return buffer.getvalue()[:-1]


def single_language_map(translations: Dict[str, Dict[str, str]], language_code: str) -> Dict[str, str]:
    """Flat {key: value} for one language; keys without a value are left out."""
    return {
        key: values[language_code]
        for key, values in translations.items()
        if values.get(language_code)
    }


def sanitize_file_name(name: str) -> str:
    return _UNSAFE_FILE_NAME_CHARS.sub("_", name)


def generate_file_name(project_name: str, extension: str, suffix: Optional[str] = None,
                       today: Optional[date] = None) -> str:
    """
    Deterministic export file name.

    Example:
        >>> generate_file_name("My App", "json", "en", date(2024, 5, 1))
        'My_App_translations_en_2024-05-01.json'
    """
    day = today or datetime.now(timezone.utc).date()
    suffix_part = f"_{suffix}" if suffix else ""
    return f"{sanitize_file_name(project_name)}{FILE_NAME_MARKER}{suffix_part}_{day.isoformat()}.{extension}"
