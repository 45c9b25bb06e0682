from __future__ import annotations

import json
import logging
from pathlib import Path

from bookingbot.application.ports.translator import TranslatorPort


class JsonTranslator(TranslatorPort):
    """Translation tables loaded from `<language>.json` files, one flat key -> text map each."""

    def __init__(self, locales_dir: str | Path, default_language: str = "EN") -> None:
        self._default = default_language.upper()
        self._logger = logging.getLogger(__name__)
        self._tables = self._load_all(Path(locales_dir))

    def _load_all(self, locales_dir: Path) -> dict[str, dict[str, str]]:
        tables: dict[str, dict[str, str]] = {}
        for path in sorted(locales_dir.glob("*.json")):
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            tables[path.stem.upper()] = {str(k): str(v) for k, v in data.items()}
        if self._default not in tables:
            self._logger.warning(
                "Default language has no translation file",
                extra={"reason": f"{self._default} missing in {locales_dir}"},
            )
        return tables

    def languages(self) -> list[str]:
        return sorted(self._tables)

    def get(self, language: str | None, key: str, *args: object) -> str:
        lang = (language or self._default).upper()
        template = self._tables.get(lang, {}).get(key)
        if template is None:
            template = self._tables.get(self._default, {}).get(key)
        if template is None:
            self._logger.warning("Missing translation", extra={"reason": f"{lang}:{key}"})
            return f"[{key}]"
        if not args:
            return template
        try:
            return template.format(*args)
        except (IndexError, KeyError, ValueError):
            self._logger.warning("Bad translation placeholders", extra={"reason": f"{lang}:{key}"})
            return template
