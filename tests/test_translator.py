from __future__ import annotations

import json
import tempfile
from pathlib import Path

from bookingbot.infrastructure.i18n.json_translator import JsonTranslator

LOCALES_DIR = Path(__file__).resolve().parents[1] / "bookingbot" / "locales"


def test_every_locale_defines_the_same_keys():
    """Each shipped language carries the full key set of English."""
    tables = {}
    for path in LOCALES_DIR.glob("*.json"):
        with open(path, "r", encoding="utf-8") as f:
            tables[path.stem] = set(json.load(f))

    assert {"en", "uk"} <= set(tables)
    for name, keys in tables.items():
        assert keys == tables["en"], name


def test_placeholders_and_language_selection(translator):
    assert translator.languages() == ["EN", "UK"]
    assert translator.get("EN", "TimezoneUpdated", "Europe/Kyiv") == "Timezone set to Europe/Kyiv."
    assert translator.get("uk", "Back") == "Назад"
    assert translator.get(None, "Back") == "Back"


def test_missing_keys_fall_back():
    with tempfile.TemporaryDirectory() as tmpdir:
        Path(tmpdir, "en.json").write_text(json.dumps({"Hello": "Hello {0}"}), encoding="utf-8")
        Path(tmpdir, "de.json").write_text(json.dumps({"Other": "Andere"}), encoding="utf-8")
        translator = JsonTranslator(tmpdir, default_language="EN")

        assert translator.get("DE", "Hello", "Ana") == "Hello Ana"
        assert translator.get("FR", "Hello", "Ana") == "Hello Ana"
        assert translator.get("EN", "Nope") == "[Nope]"
        # Without arguments the template comes back as is
        assert translator.get("EN", "Hello") == "Hello {0}"
