"""
Message bundles - human-readable text for message keys
"""

from typing import Dict, Optional

DEFAULT_LOCALE = "en"

MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "avoid.condition.inversion": "Avoid condition inversion.",
    },
    "fr": {
        "avoid.condition.inversion": "Évitez l'inversion de la condition.",
    },
    "de": {
        "avoid.condition.inversion": "Vermeiden Sie die Invertierung der Bedingung.",
    },
    "es": {
        "avoid.condition.inversion": "Evite la inversión de la condición.",
    },
    "pt": {
        "avoid.condition.inversion": "Evite a inversão da condição.",
    },
    "ru": {
        "avoid.condition.inversion": "Избегайте инверсии условия.",
    },
}


def available_locales() -> list:
    return sorted(MESSAGES)


def is_known_locale(locale: str) -> bool:
    """Check if a locale (``fr`` or ``fr_CA``) resolves to a bundle."""
    return _normalize(locale) in MESSAGES or _language(locale) in MESSAGES


def resolve_message(
    key: str,
    locale: str = DEFAULT_LOCALE,
    overrides: Optional[Dict[str, str]] = None,
) -> str:
    """
    Resolve a message key to text.

    Lookup order: custom override, exact locale, language part of the locale,
    English, then the key itself.
    """
    if overrides and key in overrides:
        return overrides[key]

    for candidate in (_normalize(locale), _language(locale), DEFAULT_LOCALE):
        bundle = MESSAGES.get(candidate)
        if bundle and key in bundle:
            return bundle[key]
    return key


def _normalize(locale: str) -> str:
    return locale.replace("-", "_").lower()


def _language(locale: str) -> str:
    return _normalize(locale).split("_", 1)[0]
