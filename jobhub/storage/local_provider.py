"""
Local filesystem state storage.
Keeps one JSON file per store key inside a directory.
"""
import os
import tempfile
from pathlib import Path
from typing import List, Optional

import structlog

from .provider import StateStorage


logger = structlog.get_logger(__name__)


class LocalStateStorage(StateStorage):
    """Local filesystem storage provider for development."""

    def __init__(self, base_dir: str = "var/state"):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _get_path(self, key: str) -> Path:
        """Get the local filesystem path for a given key."""
        clean_key = key.strip().replace("..", "").replace("/", "_").replace("\\", "_")
        return self.base_dir / f"{clean_key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._get_path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._get_path(key)
        # write-then-rename so a crash never leaves a half-written blob
        fd, tmp = tempfile.mkstemp(dir=str(self.base_dir), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, path)
        except OSError:
            logger.error("state_write_failed", key=key, path=str(path))
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def remove_item(self, key: str) -> None:
        path = self._get_path(key)
        if path.exists():
            path.unlink()

    def keys(self) -> List[str]:
        return sorted(p.stem for p in self.base_dir.glob("*.json"))
