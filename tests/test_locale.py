from __future__ import annotations

import json
from pathlib import Path

from core.locale import BASE_LANG, LocaleRegistry

BUNDLES = {
    "en-US": {"lang": {"display": "English"}, "common": {"saved": "Saved"}},
    "zh-CN": {"lang": {"display": "简体中文"}, "common": {"saved": "已保存"}},
    "de-DE": {"lang": {"display": "Deutsch"}},
}


def test_unknown_code_resolves_to_base_bundle() -> None:
    registry = LocaleRegistry(BUNDLES)

    assert registry.resolve("fr-FR").code == BASE_LANG
    assert registry.resolve(None).code == BASE_LANG
    assert registry.resolve("zh-CN").code == "zh-CN"


def test_languages_list_base_first_then_by_display_name() -> None:
    registry = LocaleRegistry(BUNDLES)

    assert [option.code for option in registry.languages] == ["en-US", "de-DE", "zh-CN"]
    assert registry.languages[0].name == "English"


def test_text_falls_back_for_missing_keys() -> None:
    bundle = LocaleRegistry(BUNDLES).resolve("de-DE")

    assert bundle.text("common.saved", "Saved") == "Saved"
    assert bundle.text("lang", "fallback") == "fallback"


def test_missing_base_bundle_is_synthesized() -> None:
    registry = LocaleRegistry({"zh-CN": BUNDLES["zh-CN"]})

    assert registry.has(BASE_LANG)
    assert registry.resolve("xx").text("common.saved", "Saved") == "Saved"


def test_from_directory_skips_broken_files(tmp_path: Path) -> None:
    (tmp_path / "en-US.json").write_text(json.dumps(BUNDLES["en-US"]), encoding="utf-8")
    (tmp_path / "zh-CN.json").write_text("{broken", encoding="utf-8")
    (tmp_path / "de-DE.json").write_text("[]", encoding="utf-8")

    registry = LocaleRegistry.from_directory(tmp_path)

    assert registry.has("en-US")
    assert not registry.has("zh-CN")
    assert not registry.has("de-DE")


def test_shipped_bundles_load() -> None:
    from console.constants import LOCALES_DIR

    registry = LocaleRegistry.from_directory(LOCALES_DIR)

    assert {"en-US", "zh-CN", "de-DE"} <= {option.code for option in registry.languages}
    assert registry.resolve("en-US").lookup("config.coexistenceRequired")
