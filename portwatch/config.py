from __future__ import annotations
import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .collectors.procfs import PROC_NET_TCP, PROC_NET_TCP6
from .errors import ConfigError
from .utils.path import find_config_file

log = logging.getLogger(__name__)

SOURCES = ("procfs", "psutil")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class CFG:
    refresh_interval: float = 1.0
    source: str = "procfs"
    tcp_path: str = PROC_NET_TCP
    tcp6_path: str = PROC_NET_TCP6
    http_enabled: bool = True
    http_host: str = "127.0.0.1"
    http_port: int = 8766
    channel_buffer: int = 1
    max_errors: int = 20
    log_level: str = "INFO"

    def validate(self) -> "CFG":
        if self.refresh_interval <= 0:
            raise ConfigError("must be positive", "refresh_interval")
        if self.source not in SOURCES:
            raise ConfigError(f"must be one of {', '.join(SOURCES)}", "source")
        if not 1 <= self.http_port <= 65535:
            raise ConfigError("must be within 1..65535", "http_port")
        if self.channel_buffer < 1:
            raise ConfigError("must be at least 1", "channel_buffer")
        if self.max_errors < 0:
            raise ConfigError("must not be negative", "max_errors")
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"must be one of {', '.join(LOG_LEVELS)}", "log_level")
        return self


_TYPES = {f.name: f.type for f in fields(CFG)}
_COERCE = {"float": (int, float), "int": (int,), "bool": (bool,), "str": (str,)}


def apply_overrides(cfg: CFG, data: Dict[str, Any]) -> CFG:
    for key, value in data.items():
        if key not in _TYPES:
            raise ConfigError("unknown setting", key)
        allowed = _COERCE[_TYPES[key]]
        # bool is an int subclass; don't let `true` pass as a port
        if not isinstance(value, allowed) or (isinstance(value, bool) and bool not in allowed):
            raise ConfigError(f"expected {_TYPES[key]}, got {type(value).__name__}", key)
        setattr(cfg, key, float(value) if _TYPES[key] == "float" else value)
    return cfg


def load_config_file(path: Optional[Path]) -> Dict[str, Any]:
    if not path:
        return {}
    if not path.exists():
        log.warning("config not found: %s", path)
        return {}
    txt = path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(txt) if path.suffix in (".yaml", ".yml") else json.loads(txt)
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigError(f"cannot parse {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping of settings")
    log.info("loaded config from %s", path)
    return data


def init_cfg_from_args(args) -> CFG:
    """Defaults, then the config file, then whatever was given on the command line."""
    cfg = CFG()
    apply_overrides(cfg, load_config_file(find_config_file(getattr(args, "config", None))))

    cli = {
        "refresh_interval": getattr(args, "interval", None),
        "source": getattr(args, "source", None),
        "tcp_path": getattr(args, "tcp", None),
        "tcp6_path": getattr(args, "tcp6", None),
        "http_host": getattr(args, "host", None),
        "http_port": getattr(args, "port", None),
        "log_level": getattr(args, "log_level", None),
    }
    apply_overrides(cfg, {k: v for k, v in cli.items() if v is not None})
    if getattr(args, "no_http", False):
        cfg.http_enabled = False
    return cfg.validate()
