"""
Language code syntax and display names.

Codes are BCP 47-like tags: a 2-3 letter primary language subtag followed by
optional script (Hans), region (US, 419) or variant subtags joined by '-'.
Examples: 'en', 'zh-Hans', 'pt-BR', 'es-419', 'sr-Latn-RS'.

Only the syntax is checked; a well-formed code that is missing from
KNOWN_LANGUAGES is still accepted and shown by its code.
"""

import re


_LANGUAGE_TAG = re.compile(
    r"[A-Za-z]{2,3}"              # primary language
    r"(?:-[A-Za-z]{4})?"          # script
    r"(?:-(?:[A-Za-z]{2}|\d{3}))?"  # region
    r"(?:-[A-Za-z0-9]{5,8})*"     # variants
)

KNOWN_LANGUAGES = {
    'ar': 'Arabic',
    'bg': 'Bulgarian',
    'bn': 'Bengali',
    'cs': 'Czech',
    'da': 'Danish',
    'de': 'German',
    'el': 'Greek',
    'en': 'English',
    'es': 'Spanish',
    'fa': 'Persian',
    'fi': 'Finnish',
    'fr': 'French',
    'he': 'Hebrew',
    'hi': 'Hindi',
    'hu': 'Hungarian',
    'id': 'Indonesian',
    'it': 'Italian',
    'ja': 'Japanese',
    'ko': 'Korean',
    'ms': 'Malay',
    'nl': 'Dutch',
    'no': 'Norwegian',
    'pl': 'Polish',
    'pt': 'Portuguese',
    'ro': 'Romanian',
    'ru': 'Russian',
    'sv': 'Swedish',
    'th': 'Thai',
    'tr': 'Turkish',
    'uk': 'Ukrainian',
    'vi': 'Vietnamese',
    'zh': 'Chinese',

    'zh-Hans': 'Chinese (Simplified)',
    'zh-Hant': 'Chinese (Traditional)',
    'zh-CN': 'Chinese (Simplified, China)',
    'zh-TW': 'Chinese (Traditional, Taiwan)',
    'en-US': 'English (United States)',
    'en-GB': 'English (United Kingdom)',
    'es-419': 'Spanish (Latin America)',
    'pt-BR': 'Portuguese (Brazil)',
    'pt-PT': 'Portuguese (Portugal)',
    'fr-CA': 'French (Canada)',
}


def is_valid_language_code(code: str) -> bool:
    """
    Check the syntax of a language code.

    Examples:
        >>> is_valid_language_code('zh-Hans')
        True
        >>> is_valid_language_code('es-419')
        True
        >>> is_valid_language_code('english')
        False
    """
    return bool(code) and _LANGUAGE_TAG.fullmatch(code) is not None


def display_name(code: str) -> str:
    """Display name for a code, falling back to the code itself."""
    return KNOWN_LANGUAGES.get(code) or code
