"""
Settings store for adapter records.

Records are nested JSON mappings, one file per key, laid out like the
Tvheadend settings tree:

    <root>/input/tvhdhomerun/adapters/<uuid>

Writes are atomic (temp file + ``os.replace``) so a crash mid-save never
leaves a truncated record behind; a record that fails to parse is logged
and treated as absent.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Optional

import aiofiles

from tvh_hdhomerun.core.logging_utils import get_module_logger

logger = get_module_logger("SettingsStore")

Record = Dict[str, Any]


class JSONSettingsStore:
    """File-backed implementation of the settings store protocol."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self._write_lock = asyncio.Lock()

    def path_for(self, key: str) -> Path:
        parts = PurePosixPath(key).parts
        if not parts or key.startswith("/") or any(p in ("..", ".") for p in parts):
            raise ValueError(f"Invalid settings key: {key!r}")
        return self.root.joinpath(*parts)

    async def load(self, key: str) -> Optional[Record]:
        """Return the record stored under ``key`` or None."""
        path = self.path_for(key)
        if not await asyncio.to_thread(path.exists):
            return None

        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as fh:
                text = await fh.read()
        except OSError as e:
            logger.warning("Failed to read settings %s: %s", path, e)
            return None

        try:
            record = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring corrupt settings %s: %s", path, e)
            return None

        if not isinstance(record, dict):
            logger.warning("Ignoring settings %s: top level is %s, not an object", path, type(record).__name__)
            return None
        return record

    async def save(self, key: str, record: Record) -> bool:
        """Replace the record stored under ``key``. Returns False on failure."""
        path = self.path_for(key)
        payload = json.dumps(record, indent=2, sort_keys=True)

        def write_file() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path: Optional[Path] = None
            try:
                with tempfile.NamedTemporaryFile(
                    "w",
                    dir=str(path.parent),
                    prefix=f".{path.name}.",
                    delete=False,
                    encoding="utf-8",
                ) as tmp:
                    tmp_path = Path(tmp.name)
                    tmp.write(payload)
                    tmp.flush()
                    os.fsync(tmp.fileno())

                os.replace(tmp_path, path)
                tmp_path = None
            finally:
                if tmp_path is not None:
                    try:
                        tmp_path.unlink()
                    except FileNotFoundError:
                        pass

        async with self._write_lock:
            try:
                await asyncio.to_thread(write_file)
            except OSError as e:
                logger.error("Failed to write settings %s: %s", path, e)
                return False

        logger.debug("Saved settings %s", key)
        return True
