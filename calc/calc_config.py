"""
Loads calc settings from a YAML file, with environment overrides.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import pystache
import yaml

from calc.calc_datatypes import ConfigError

CONFIG_ENV = "CALC_CONFIG"
DEBUG_ENV = "CALC_DEBUG"
DEFAULT_CONFIG_NAME = "calc.yaml"


@dataclass
class CalcConfig:
    initial: float = 0.0
    prompt: str = ">> "
    precision: int = 6
    result_template: str = "{{value}}"
    debug: bool = False

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'CalcConfig':
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"config must be a mapping, not {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(map(str, unknown))}")

        cfg = cls()
        for key, value in data.items():
            setattr(cfg, key, _coerce(key, value))
        if cfg.precision < 1:
            raise ConfigError(f"precision must be positive, got {cfg.precision}")
        try:
            pystache.parse(cfg.result_template)
        except Exception as e:
            raise ConfigError(f"bad result_template: {e}") from e
        return cfg

    @classmethod
    def load(cls, path: Optional[str] = None) -> 'CalcConfig':
        """Explicit path, then $CALC_CONFIG, then ./calc.yaml, then defaults."""
        candidate = path or os.environ.get(CONFIG_ENV)
        if candidate:
            p = Path(candidate)
            if not p.exists():
                raise ConfigError(f"config file not found: {candidate}")
        else:
            p = Path.cwd() / DEFAULT_CONFIG_NAME
            if not p.exists():
                return cls()._apply_env()

        try:
            data = yaml.safe_load(p.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {p}: {e}") from e
        return cls.from_dict(data)._apply_env()

    def _apply_env(self) -> 'CalcConfig':
        if os.environ.get(DEBUG_ENV):
            self.debug = True
        return self


def _coerce(key: str, value: Any) -> Any:
    match key:
        case "initial":
            # bool is an int subclass; reject it explicitly
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"'initial' must be a number, got {value!r}")
            return float(value)
        case "precision":
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"'precision' must be an integer, got {value!r}")
            return value
        case "debug":
            if not isinstance(value, bool):
                raise ConfigError(f"'debug' must be true or false, got {value!r}")
            return value
        case _:
            if not isinstance(value, str):
                raise ConfigError(f"'{key}' must be a string, got {value!r}")
            return value
