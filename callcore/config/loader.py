# callcore/config/loader.py
"""
Configuration Loader

Design principle:
- Code = truth (SessionConfig has all defaults)
- YAML = input parameters (optional)
- CLI flags = explicit overrides, applied last
- System works without YAML
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from .session import SessionConfig


logger = logging.getLogger(__name__)

LOCAL_CONFIG_NAME = "callcore.yml"


def default_config_paths() -> List[Path]:
    return [
        Path.cwd() / LOCAL_CONFIG_NAME,
        Path.home() / ".callcore" / "config.yml",
    ]


def _load_yaml(config_path: Optional[Path] = None) -> Optional[Dict[str, Any]]:
    """Load the first YAML file found; None if there is none (not an error)."""
    paths = [Path(config_path)] if config_path else default_config_paths()

    for path in paths:
        if not path.exists():
            continue
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to read config {path}, using defaults: {e}")
            return None

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Config {path} is not a mapping, using defaults")
            return None
        logger.debug(f"Loaded config from {path}")
        return data

    if config_path:
        logger.warning(f"Config file not found: {config_path}")
    return None


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    # camelCase and snake_case may be mixed across YAML and overrides
    alias_to_name = {f.alias: name for name, f in SessionConfig.model_fields.items() if f.alias}
    return {alias_to_name.get(k, k): v for k, v in data.items()}


def load_config(path: Union[str, Path, None] = None, **overrides: Any) -> SessionConfig:
    """
    Build the session config: defaults <- YAML <- overrides.

    Overrides whose value is None are ignored, so unset CLI flags never
    clobber YAML values.
    """
    explicit = _normalize_keys({k: v for k, v in overrides.items() if v is not None})
    data = _normalize_keys(_load_yaml(Path(path) if path else None) or {})

    try:
        return SessionConfig.model_validate({**data, **explicit})
    except PydanticValidationError as e:
        if not data:
            raise
        logger.warning(f"Invalid config values ({e.error_count()} error(s)), ignoring config file")
        return SessionConfig.model_validate(explicit)


__all__ = ["LOCAL_CONFIG_NAME", "default_config_paths", "load_config"]
