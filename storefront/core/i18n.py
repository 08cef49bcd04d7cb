"""Translation lookups for the Dutch and English storefront"""

import json
import os
from functools import lru_cache
from typing import Any, Iterable, Optional

from .config import settings

L10N_DIR = os.path.join(os.path.dirname(__file__), "..", "l10n")

SUPPORTED_LOCALES = ("nl", "en")


def get_default_locale() -> str:
    default = (settings.default_locale or "nl").split("-")[0].lower()
    return default if default in SUPPORTED_LOCALES else SUPPORTED_LOCALES[0]


def is_supported_locale(locale: Optional[str]) -> bool:
    if not locale:
        return False
    return locale.split("-")[0].lower() in SUPPORTED_LOCALES


def normalize_locale(locale: Optional[str]) -> str:
    """
    Lowercase a language code and drop its region.
    Unknown languages fall back to the default locale.
    """
    if not is_supported_locale(locale):
        return get_default_locale()
    return locale.split("-")[0].lower()


def iter_supported_locales() -> Iterable[str]:
    return iter(SUPPORTED_LOCALES)


@lru_cache()
def load_catalog(locale: str) -> dict[str, Any]:
    """Load the message catalog for a locale"""
    path = os.path.join(L10N_DIR, f"{locale}.json")
    with open(path, "r", encoding="UTF-8") as f:
        return json.load(f)


def _lookup(catalog: dict[str, Any], key: str) -> Optional[str]:
    node: Any = catalog
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


def has_message(key: str, locale: Optional[str] = None) -> bool:
    return _lookup(load_catalog(normalize_locale(locale)), key) is not None


def translate(key: str, locale: Optional[str] = None, **params: Any) -> str:
    """
    Get the localized text for a dotted key.

    Looks in the requested locale, then the default locale, and finally
    returns the key itself. ``{name}`` placeholders are filled from params.
    """
    locale = normalize_locale(locale)
    message = _lookup(load_catalog(locale), key)
    if message is None and locale != get_default_locale():
        message = _lookup(load_catalog(get_default_locale()), key)
    if message is None:
        return key

    for name, value in params.items():
        message = message.replace(f"{{{name}}}", str(value))
    return message


def format_price(cents: int, locale: Optional[str] = None) -> str:
    """Format an amount in cents as euros"""
    amount = f"{abs(cents) / 100:.2f}"
    if normalize_locale(locale) == "nl":
        amount = amount.replace(".", ",")
    sign = "-" if cents < 0 else ""
    return f"{sign}€{amount}"
