# callcore/core/tsd/elevation.py
"""
Elevation check

A TSD with requiresElevation passes when:
1. the session pre-approved elevation AND the tool is on its whitelist, or
2. the privilege probe reports the process is already elevated, or
3. the probe is inapplicable on this platform (returns None)

Case 3 is permissive: on non-Windows hosts elevated tools run without any
privilege check. This is a development convenience, not a security boundary.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Callable, Optional

from ..errors import ElevationError

if TYPE_CHECKING:
    from ...config import SessionConfig


logger = logging.getLogger(__name__)

# True = elevated, False = not elevated, None = cannot tell on this platform
PrivilegeProbe = Callable[[], Optional[bool]]


def default_privilege_probe() -> Optional[bool]:
    if sys.platform != "win32":
        return None

    import ctypes

    try:
        return bool(ctypes.windll.shell32.IsUserAnAdmin())  # type: ignore[attr-defined]
    except (AttributeError, OSError) as e:
        logger.warning(f"Privilege probe failed, treating process as not elevated: {e}")
        return False


class ElevationChecker:
    def __init__(
        self,
        probe: PrivilegeProbe = default_privilege_probe,
        logger: Optional[logging.Logger] = None,
    ):
        self._probe = probe
        self._logger = logger or logging.getLogger(__name__)

    def check(self, tool_name: str, session_config: Optional["SessionConfig"]) -> None:
        """
        Raises:
            ElevationError: the tool needs elevation and the process is not elevated
        """
        if session_config is not None and session_config.is_elevation_pre_approved(tool_name):
            self._logger.debug(f"Elevation pre-approved by session: tool={tool_name}")
            return

        elevated = self._probe()
        if elevated is None:
            self._logger.debug(f"Elevation check skipped (not applicable on {sys.platform}): tool={tool_name}")
            return
        if elevated:
            self._logger.debug(f"Already running elevated: tool={tool_name}")
            return

        self._logger.warning(f"Elevation denied: tool={tool_name}")
        raise ElevationError(tool_name)


__all__ = ["PrivilegeProbe", "default_privilege_probe", "ElevationChecker"]
