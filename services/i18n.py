from __future__ import annotations

import json
import os
import threading
from typing import Any

from loguru import logger
from nicegui import app

I18N_PATH = "config/i18n/translations.json"
DEFAULT_LANGUAGE = "en"
SUPPORTED_LANGUAGES: list[dict[str, str]] = [
    {"code": "en", "label": "English"},
    {"code": "de", "label": "Deutsch"},
]
SUPPORTED_LANGUAGE_CODES = [entry["code"] for entry in SUPPORTED_LANGUAGES]

_DEFAULT_TRANSLATIONS: dict[str, dict[str, str]] = {
    "picker.tab.Day": {"en": "Day", "de": "Tag"},
    "picker.tab.Week": {"en": "Week", "de": "Woche"},
    "picker.tab.Month": {"en": "Month", "de": "Monat"},
    "picker.tab.Range": {"en": "Range", "de": "Zeitraum"},
    "picker.today": {"en": "Today", "de": "Heute"},
    "picker.current_week": {"en": "Current Week", "de": "Aktuelle Woche"},
    "picker.current_month": {"en": "Current Month", "de": "Aktueller Monat"},
    "picker.cancel": {"en": "Cancel", "de": "Abbrechen"},
    "picker.ok": {"en": "OK", "de": "OK"},
    "time_logs.title": {"en": "Time Logs", "de": "Zeiterfassung"},
    "time_logs.total": {"en": "Total: {hours} h in {count} entries", "de": "Gesamt: {hours} h in {count} Einträgen"},
    "time_logs.empty": {"en": "No time logs in this period.", "de": "Keine Zeiteinträge in diesem Zeitraum."},
    "time_logs.load_failed": {"en": "Failed to load time logs: {error}", "de": "Zeiteinträge konnten nicht geladen werden: {error}"},
}

_i18n_lock = threading.RLock()
_translations: dict[str, dict[str, str]] | None = None


def load_translations() -> dict[str, dict[str, str]]:
    """Built-in labels, overridden per key/language by I18N_PATH when present."""
    global _translations
    with _i18n_lock:
        if _translations is not None:
            return _translations
        parsed: dict[str, dict[str, str]] = {k: dict(v) for k, v in _DEFAULT_TRANSLATIONS.items()}
        if os.path.exists(I18N_PATH):
            with open(I18N_PATH, "r", encoding="utf-8") as f:
                raw = json.load(f)
            for key, values in raw.items():
                if not isinstance(values, dict):
                    continue
                parsed.setdefault(key, {}).update({str(lang): str(text) for lang, text in values.items() if text})
            logger.info(f"[load_translations] - overrides_loaded - path={I18N_PATH} keys={len(raw)}")
        _translations = parsed
        return parsed


def get_language() -> str:
    """
    Per-user language from `app.storage.user` inside a UI context,
    DEFAULT_LANGUAGE everywhere else.
    """
    try:
        lang = app.storage.user.get("language", DEFAULT_LANGUAGE)
    except RuntimeError:
        # no UI context (tests, background threads)
        lang = DEFAULT_LANGUAGE
    return str(lang) if lang in SUPPORTED_LANGUAGE_CODES else DEFAULT_LANGUAGE


def t(key: str, default: str | None = None, *, language: str | None = None, **kwargs: Any) -> str:
    translations = load_translations()
    lang = str(language or get_language())
    if lang not in SUPPORTED_LANGUAGE_CODES:
        lang = DEFAULT_LANGUAGE
    text = translations.get(key, {}).get(lang) or translations.get(key, {}).get(DEFAULT_LANGUAGE)
    if not text:
        logger.debug(f"[t] - missing_translation - key={key} lang={lang}")
        text = default if default is not None else key
    if kwargs:
        return text.format(**kwargs)
    return text
