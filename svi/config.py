"""
Configuration for the svi text editor.

Settings are read from ~/svi/config/svi.conf, one `key=value` per line.
Lines starting with '#' are comments. A missing file, an unknown key or a bad
value is never fatal: the default is kept.
"""
import os
from dataclasses import dataclass, fields

from svi import logger

CONFIG_PATH = os.path.expanduser("~/svi/config/svi.conf")


@dataclass
class Config:
    tab_width: int = 8
    fallback_columns: int = 80
    fallback_lines: int = 24
    size_query_timeout: float = 1.0
    log_file: str = os.path.expanduser("~/svi/svi.log")


# lower bounds for numeric settings
MINIMUMS = {
    "tab_width": 1,
    "fallback_columns": 1,
    "fallback_lines": 2,
    "size_query_timeout": 0,
}


def load_config(path: str = None) -> Config:
    """Load settings from `path` (default CONFIG_PATH) on top of the defaults."""
    config = Config()
    path = path or CONFIG_PATH
    if not os.path.isfile(path):
        return config
    types = {f.name: f.type for f in fields(Config)}
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except OSError as e:
        logger.log(f"config: cannot read {path}: {e}")
        return config

    for number, line in enumerate(lines, 1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            logger.log(f"config: {path}:{number}: expected key=value")
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        if key not in types:
            logger.log(f"config: {path}:{number}: unknown setting '{key}'")
            continue
        try:
            value = _convert(types[key], value)
        except ValueError:
            logger.log(f"config: {path}:{number}: bad value for '{key}': {value!r}")
            continue
        if key in MINIMUMS and value < MINIMUMS[key]:
            logger.log(f"config: {path}:{number}: '{key}' must be at least {MINIMUMS[key]}")
            continue
        if key == "log_file":
            value = os.path.expanduser(value)
        setattr(config, key, value)
    return config


def _convert(kind, value: str):
    if kind in (int, "int"):
        return int(value)
    if kind in (float, "float"):
        return float(value)
    return value
