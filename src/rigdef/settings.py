"""Importer settings, from defaults, environment variables or a JSON file."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rigdef.io_utils import load_json


ENV_LEGACY_REMAP = "RIGDEF_LEGACY_REMAP"
ENV_LOG_STATISTICS = "RIGDEF_LOG_STATISTICS"
ENV_DUMP_NODES = "RIGDEF_DUMP_NODES"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


def _parse_flag(name: str, raw: object, default: bool) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


@dataclass(frozen=True, slots=True)
class ImporterSettings:
    """Switches for one importer instance.

    enabled         -- legacy remapping on (False for files already using final indices)
    log_statistics  -- log node/resolution statistics after each pass
    dump_nodes      -- log every canonical table entry after each pass
    """

    enabled: bool = True
    log_statistics: bool = False
    dump_nodes: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ImporterSettings:
        env = os.environ if environ is None else environ
        return cls(
            enabled=_parse_flag(ENV_LEGACY_REMAP, env.get(ENV_LEGACY_REMAP), True),
            log_statistics=_parse_flag(ENV_LOG_STATISTICS, env.get(ENV_LOG_STATISTICS), False),
            dump_nodes=_parse_flag(ENV_DUMP_NODES, env.get(ENV_DUMP_NODES), False),
        )

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> ImporterSettings:
        unknown = sorted(set(payload) - {"enabled", "log_statistics", "dump_nodes"})
        if unknown:
            raise ValueError(f"unknown importer settings: {', '.join(unknown)}")
        return cls(
            enabled=_parse_flag("enabled", payload.get("enabled"), True),
            log_statistics=_parse_flag("log_statistics", payload.get("log_statistics"), False),
            dump_nodes=_parse_flag("dump_nodes", payload.get("dump_nodes"), False),
        )

    @classmethod
    def from_file(cls, path: Path) -> ImporterSettings:
        payload = load_json(path)
        if not isinstance(payload, dict):
            raise ValueError(f"{path}: settings file must hold a JSON object")
        return cls.from_dict(payload)

    def to_dict(self) -> dict[str, bool]:
        return {
            "enabled": self.enabled,
            "log_statistics": self.log_statistics,
            "dump_nodes": self.dump_nodes,
        }
