"""JSON message catalogs for user-facing billing text."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class I18nService:
    """Looks up ``key`` in ``<locale>.json``, falling back to the default locale.

    Locale codes are case-insensitive; catalogs are read once per service.
    """

    def __init__(self, *, locales_path: str | Path | None = None, default_locale: str = "en") -> None:
        self.locales_path = Path(locales_path or Path(__file__).with_name("locales"))
        self.default_locale = default_locale.lower()
        self._catalogs: dict[str, dict[str, str]] = {}

    def gettext(self, key: str, *, locale: str | None = None, **kwargs: Any) -> str:
        text = None
        for candidate in self._candidates(locale):
            text = self._catalog(candidate).get(key)
            if text is not None:
                break
        if text is None:
            text = key
        return text.format(**kwargs) if kwargs else text

    def _candidates(self, locale: str | None) -> list[str]:
        requested = (locale or self.default_locale).lower()
        if requested == self.default_locale:
            return [requested]
        return [requested, self.default_locale]

    def _catalog(self, locale: str) -> dict[str, str]:
        if locale not in self._catalogs:
            file_path = self.locales_path / f"{locale}.json"
            if file_path.exists():
                with file_path.open("r", encoding="utf-8") as fp:
                    self._catalogs[locale] = json.load(fp)
            else:
                self._catalogs[locale] = {}
        return self._catalogs[locale]


__all__ = ["I18nService"]
