"""QObject-based singleton store for configuration management."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from PyQt5 import QtCore

from derby_timing.core.config_backend import ConfigBackend

MIN_TIMER_MS = 20


@dataclass
class ConfigModel:
    # Betting countdown
    countdown_start: int = 10
    countdown_tick_ms: int = 1000

    # Race
    draw_interval_ms: int = 1200
    finish_line: int = 5
    auto_draw: bool = True
    seed: Optional[int] = None

    # Wagers
    reset_wagers_on_start: bool = True


class ConfigStore(QtCore.QObject):
    config_changed = QtCore.pyqtSignal(object)

    def __init__(self, backend: Optional[ConfigBackend] = None) -> None:
        super().__init__()
        self._backend = backend or ConfigBackend()
        self._config = ConfigModel()
        self.reload()

    @property
    def config(self) -> ConfigModel:
        return self._config

    @property
    def backend(self) -> ConfigBackend:
        return self._backend

    def reload(self) -> ConfigModel:
        data = self._backend.load()
        cfg = ConfigModel()
        backend = self._backend

        cfg.countdown_start = backend.get_int(data, "countdown", "start_seconds", cfg.countdown_start, minimum=1)
        cfg.countdown_tick_ms = backend.get_int(data, "countdown", "tick_ms", cfg.countdown_tick_ms, minimum=MIN_TIMER_MS)

        cfg.draw_interval_ms = backend.get_int(data, "race", "draw_interval_ms", cfg.draw_interval_ms, minimum=MIN_TIMER_MS)
        cfg.finish_line = backend.get_int(data, "race", "finish_line", cfg.finish_line, minimum=1)
        cfg.auto_draw = backend.get_bool(data, "race", "auto_draw", cfg.auto_draw)
        seed = backend.get_option(data, "race", "seed", fallback="").strip()
        if seed:
            cfg.seed = backend.get_int(data, "race", "seed", 0, minimum=0)

        cfg.reset_wagers_on_start = backend.get_bool(data, "wagers", "reset_on_start", cfg.reset_wagers_on_start)

        self._config = cfg
        self.config_changed.emit(cfg)
        return cfg

    def apply_overrides(self, **overrides) -> ConfigModel:
        """Apply command-line overrides on top of the loaded file. None values are skipped."""
        values = {key: value for key, value in overrides.items() if value is not None}
        if not values:
            return self._config
        unknown = set(values) - set(ConfigModel.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown config fields: {', '.join(sorted(unknown))}")
        cfg = replace(self._config, **values)
        if cfg.countdown_start < 1:
            raise ValueError(f"countdown_start must be >= 1, got {cfg.countdown_start}")
        if cfg.draw_interval_ms < MIN_TIMER_MS:
            raise ValueError(f"draw_interval_ms must be >= {MIN_TIMER_MS}, got {cfg.draw_interval_ms}")
        if cfg.seed is not None and cfg.seed < 0:
            raise ValueError(f"seed must be >= 0, got {cfg.seed}")
        self._config = cfg
        self.config_changed.emit(cfg)
        return cfg


_CONFIG_STORE: Optional[ConfigStore] = None


def get_config_store() -> ConfigStore:
    global _CONFIG_STORE
    if _CONFIG_STORE is None:
        _CONFIG_STORE = ConfigStore()
    return _CONFIG_STORE


def set_config_store(store: ConfigStore) -> ConfigStore:
    global _CONFIG_STORE
    _CONFIG_STORE = store
    return store


__all__ = [
    "ConfigModel",
    "ConfigStore",
    "MIN_TIMER_MS",
    "get_config_store",
    "set_config_store",
]
