from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Dict


DEFAULT_CONFIG_PATH = Path("config.toml")


def load_raw_config(path: str | Path | None = None) -> Dict[str, Any]:
    """
    Load the relay's optional config file (config.toml by default).

    Returns an empty dict when the file is missing so every setting falls back
    to its environment variable.
    """
    target = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not target.is_file():
        return {}

    with target.open("rb") as handle:
        return tomllib.load(handle)


def section(config: dict | None, name: str) -> Dict[str, Any]:
    """Return the ``[lookup_relay.<name>]`` table, or an empty dict."""

    return (config or {}).get("lookup_relay", {}).get(name, {})


__all__ = ["load_raw_config", "section", "DEFAULT_CONFIG_PATH"]
