"""Locale registry.

Bundles are JSON trees shipped with the package, one file per language code
(``en-US.json``). The registry indexes them once and always resolves to some
bundle: unknown codes fall back to the base language.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

LOGGER = logging.getLogger(__name__)

BASE_LANG = "en-US"


@dataclass(frozen=True)
class LanguageOption:
    code: str
    name: str


@dataclass(frozen=True)
class LocaleBundle:
    """One language's text tree, addressed by dotted key paths."""

    code: str
    display_name: str
    tree: Mapping[str, Any] = field(default_factory=dict)

    def lookup(self, path: str) -> Optional[str]:
        node: Any = self.tree
        for part in path.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return None
            node = node[part]
        return node if isinstance(node, str) else None

    def text(self, path: str, fallback: str) -> str:
        """Return the localized string at ``path`` or ``fallback``."""

        value = self.lookup(path)
        return value if value else fallback


def _display_name(code: str, tree: Mapping[str, Any]) -> str:
    lang = tree.get("lang")
    if isinstance(lang, Mapping) and isinstance(lang.get("display"), str) and lang["display"]:
        return lang["display"]
    return code.upper()


class LocaleRegistry:
    """Directory of available bundles keyed by language code."""

    def __init__(self, bundles: Mapping[str, Mapping[str, Any]], base_code: str = BASE_LANG) -> None:
        self._base_code = base_code
        self._bundles: dict[str, LocaleBundle] = {
            code: LocaleBundle(code=code, display_name=_display_name(code, tree), tree=tree)
            for code, tree in bundles.items()
        }
        if base_code not in self._bundles:
            # The base language must always resolve, even with no file for it.
            LOGGER.warning("Base locale %s missing; using an empty bundle", base_code)
            self._bundles[base_code] = LocaleBundle(code=base_code, display_name=base_code.upper())

    @classmethod
    def from_directory(cls, directory: Path, base_code: str = BASE_LANG) -> "LocaleRegistry":
        """Load every ``*.json`` bundle in ``directory``."""

        bundles: dict[str, Mapping[str, Any]] = {}
        for path in sorted(directory.glob("*.json")):
            try:
                tree = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                LOGGER.warning("Skipping locale %s: %s", path.name, exc)
                continue
            if not isinstance(tree, dict):
                LOGGER.warning("Skipping locale %s: root must be an object", path.name)
                continue
            bundles[path.stem] = tree
        LOGGER.debug("Loaded %s locale bundles from %s", len(bundles), directory)
        return cls(bundles, base_code=base_code)

    @property
    def base_code(self) -> str:
        return self._base_code

    @property
    def languages(self) -> list[LanguageOption]:
        """Base language first, the rest sorted by display name."""

        others = sorted(
            (bundle for code, bundle in self._bundles.items() if code != self._base_code),
            key=lambda bundle: bundle.display_name.casefold(),
        )
        base = self._bundles[self._base_code]
        return [LanguageOption(base.code, base.display_name)] + [
            LanguageOption(bundle.code, bundle.display_name) for bundle in others
        ]

    def has(self, code: str) -> bool:
        return code in self._bundles

    def resolve(self, code: Optional[str]) -> LocaleBundle:
        """Return the exact bundle for ``code`` or the base bundle."""

        if code and code in self._bundles:
            return self._bundles[code]
        return self._bundles[self._base_code]
