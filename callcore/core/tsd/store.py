# callcore/core/tsd/store.py
"""
TSD Store

Reads every *.json file from a TSD directory and builds a lookup map
tool_name -> TaskSpecificDefinition.

Invalid files (bad JSON, schema violations) are logged and skipped: the
applier never sees a malformed policy.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from .models import TaskSpecificDefinition


logger = logging.getLogger(__name__)

DEFAULT_TSD_DIR = Path("config") / "tsds"


class TsdStore:
    """
    In-memory TSD source.

    Populate with load() (directory scan) and/or put() (programmatic).
    """

    def __init__(
        self,
        tsd_dir: Union[str, Path, None] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.tsd_dir = Path(tsd_dir) if tsd_dir is not None else Path.cwd() / DEFAULT_TSD_DIR
        self._logger = logger or logging.getLogger(__name__)
        self._tsds: Dict[str, TaskSpecificDefinition] = {}

    def load(self) -> int:
        """
        Scan the TSD directory. Call once at startup.

        Returns:
            Number of TSDs loaded by this call
        """
        if not self.tsd_dir.is_dir():
            self._logger.warning(f"TSD directory does not exist, no TSDs loaded: {self.tsd_dir}")
            return 0

        files = sorted(self.tsd_dir.glob("*.json"))
        self._logger.info(f"Loading {len(files)} TSD file(s) from {self.tsd_dir}")

        loaded = 0
        for path in files:
            tsd = self._load_file(path)
            if tsd is None:
                continue
            if tsd.tool_name in self._tsds:
                self._logger.warning(f"TSD for {tsd.tool_name} redefined by {path.name}")
            self._tsds[tsd.tool_name] = tsd
            loaded += 1
            self._logger.debug(f"TSD loaded: {path.name} -> {tsd.tool_name}")

        self._logger.info(f"TSDs loaded: {loaded} (total {len(self._tsds)})")
        return loaded

    def _load_file(self, path: Path) -> Optional[TaskSpecificDefinition]:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            self._logger.error(f"Failed to read TSD file {path.name}, skipped: {e}")
            return None

        try:
            return TaskSpecificDefinition.model_validate(raw)
        except PydanticValidationError as e:
            self._logger.warning(
                f"Invalid TSD file {path.name}, skipped: {e.error_count()} error(s): "
                f"{'; '.join(err['msg'] for err in e.errors())}"
            )
            return None

    def get(self, tool_name: str) -> Optional[TaskSpecificDefinition]:
        """TSD for a tool, or None when no policy is configured."""
        return self._tsds.get(tool_name)

    def put(self, tsd: TaskSpecificDefinition) -> None:
        self._tsds[tsd.tool_name] = tsd

    def all(self) -> Dict[str, TaskSpecificDefinition]:
        return dict(self._tsds)

    def list_tool_names(self) -> List[str]:
        return list(self._tsds.keys())

    def __len__(self) -> int:
        return len(self._tsds)

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self._tsds

    def __iter__(self) -> Iterator[TaskSpecificDefinition]:
        return iter(list(self._tsds.values()))


__all__ = ["TsdStore", "DEFAULT_TSD_DIR"]
