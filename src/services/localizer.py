"""Simple localization module for club billing messages.

Loads the translation catalog for the configured LOCALE once at import time
(static/translations/<language>.json, falling back to English).
Provides a single t(key, **kwargs) function for translation lookup.

Usage:
    from src.services.localizer import t

    # Simple lookup
    message = t("notifications.thank_you")

    # With placeholder substitution
    message = t("notifications.greeting", member_name="Ana")
"""

import json
import logging
from pathlib import Path
from typing import Any

from src.services.locale_service import LOCALE

logger = logging.getLogger(__name__)

FALLBACK_LANGUAGE = "en"
_TRANSLATIONS_DIR = Path(__file__).parent.parent / "static" / "translations"


def _load_catalog(language: str) -> dict[str, Any]:
    """Load catalog for a language, falling back to English."""
    for candidate in (language, FALLBACK_LANGUAGE):
        path = _TRANSLATIONS_DIR / f"{candidate}.json"
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            logger.warning("Translation catalog not found: %s", path)
        except json.JSONDecodeError as e:
            logger.error("Failed to load translations from %s: %s", path, e)
    return {}


# Load translations once at import time
LANGUAGE = LOCALE.split("_")[0].lower()
_TRANSLATIONS: dict[str, Any] = _load_catalog(LANGUAGE)


def t(key: str, **kwargs: Any) -> str:
    """Get translation for a key with optional placeholder substitution.

    Args:
        key: Dot-notation key (e.g., "notifications.greeting")
        **kwargs: Placeholder values for string formatting

    Returns:
        Translated string with placeholders replaced, or the key itself if not found.

    Examples:
        >>> t("notifications.greeting", member_name="Ana")
        'Hello Ana,'
    """
    value: Any = _TRANSLATIONS

    for part in key.split("."):
        if isinstance(value, dict) and part in value:
            value = value[part]
        else:
            logger.warning("Translation key not found: %s", key)
            return key

    if not isinstance(value, str):
        logger.warning("Translation value is not a string for key: %s", key)
        return key

    if kwargs:
        try:
            return value.format(**kwargs)
        except KeyError as e:
            logger.warning("Missing placeholder %s for key: %s", e, key)
            return value

    return value


__all__ = ["t", "LANGUAGE"]
