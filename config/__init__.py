# PATH: config/__init__.py
"""
Configuration loading utilities for DUET.

YAML files live next to this module:
- contracts.yaml: deployment module address
- tokens.yaml: known tokens (symbol, name, address, decimals)
- strategy.yaml: arbitrage/routing thresholds and watched markets

Environment (.env) is read by chains/client.py through python-dotenv.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


CONFIG_DIR = Path(__file__).parent

PathLike = Union[str, Path]


def load_yaml(filename: PathLike) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        filename: Name of file in config directory, or an explicit path

    Returns:
        Parsed YAML as dict
    """
    filepath = Path(filename)
    if not filepath.is_absolute() and not filepath.exists():
        filepath = CONFIG_DIR / filepath
    if not filepath.exists():
        raise FileNotFoundError(f"Config file not found: {filepath}")

    with open(filepath, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {filepath}")
    return data


def _load_optional(path: Optional[PathLike], default_name: str) -> Dict[str, Any]:
    try:
        return load_yaml(path if path is not None else CONFIG_DIR / default_name)
    except FileNotFoundError:
        return {}


def load_contracts_config(path: Optional[PathLike] = None) -> Dict[str, Any]:
    """Load contracts configuration ({} when the file is missing)."""
    return _load_optional(path, "contracts.yaml")


def load_tokens_config(path: Optional[PathLike] = None) -> Dict[str, Any]:
    """Load tokens configuration ({} when the file is missing)."""
    return _load_optional(path, "tokens.yaml")


def load_strategy(path: Optional[PathLike] = None) -> Dict[str, Any]:
    """Load strategy configuration ({} when the file is missing)."""
    return _load_optional(path, "strategy.yaml")
