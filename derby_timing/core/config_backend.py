"""Low-level INI parsing helpers for configuration management."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping, Optional
import configparser
import os
import sys

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigBackend:
    """Encapsulates discovery and parsing of settings.ini."""

    def __init__(self, ini_path: Optional[str] = None) -> None:
        base_dir = os.path.dirname(sys.argv[0])
        self._path = Path(ini_path or (Path(base_dir) / "settings.ini"))

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Dict[str, Dict[str, str]]:
        """Return {section: {option: value}}. A missing file yields an empty mapping."""
        parser = configparser.ConfigParser(inline_comment_prefixes=(";", "#"))
        parser.read(self._path, encoding="utf-8")
        data: Dict[str, Dict[str, str]] = {}
        for section in parser.sections():
            data[section] = dict(parser.items(section))
        return data

    def get_option(
        self,
        data: Mapping[str, Mapping[str, str]],
        section: str,
        option: str,
        fallback: str = "",
    ) -> str:
        section_map = data.get(section)
        if section_map is None:
            return fallback
        return section_map.get(option, fallback)

    def get_int(
        self,
        data: Mapping[str, Mapping[str, str]],
        section: str,
        option: str,
        fallback: int,
        minimum: Optional[int] = None,
    ) -> int:
        raw = self.get_option(data, section, option, fallback="")
        if raw.strip() == "":
            return fallback
        try:
            value = int(raw)
        except ValueError as exc:
            raise ValueError(f"[{section}] {option} must be an integer, got '{raw}'") from exc
        if minimum is not None and value < minimum:
            raise ValueError(f"[{section}] {option} must be >= {minimum}, got {value}")
        return value

    def get_bool(
        self,
        data: Mapping[str, Mapping[str, str]],
        section: str,
        option: str,
        fallback: bool,
    ) -> bool:
        raw = self.get_option(data, section, option, fallback="").strip().lower()
        if not raw:
            return fallback
        if raw in TRUE_VALUES:
            return True
        if raw in FALSE_VALUES:
            return False
        raise ValueError(f"[{section}] {option} must be a boolean, got '{raw}'")
