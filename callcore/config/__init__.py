# callcore/config/__init__.py
"""
callcore configuration

YAML is input parameters, code has defaults (YAML can be deleted).
"""

from .session import LOG_LEVELS, SessionConfig, TransportMode
from .loader import LOCAL_CONFIG_NAME, default_config_paths, load_config

__all__ = [
    "LOG_LEVELS",
    "SessionConfig",
    "TransportMode",
    "LOCAL_CONFIG_NAME",
    "default_config_paths",
    "load_config",
]
