"""
Key/value stores

Per-shop JSON documents. The file store keeps one JSON file per shop and
key under the data directory and replaces files atomically; the in-memory
store backs tests and single-process demos.
"""

import asyncio
import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote, unquote

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore:
    """Dict-backed store; values are deep-copied in and out"""

    def __init__(self):
        self._data: Dict[str, Dict[str, Any]] = {}

    async def get(self, shop_domain: str, key: str) -> Optional[Any]:
        value = self._data.get(shop_domain, {}).get(key)
        return copy.deepcopy(value)

    async def set(self, shop_domain: str, key: str, value: Any) -> None:
        self._data.setdefault(shop_domain, {})[key] = copy.deepcopy(value)

    async def list_shops(self) -> List[str]:
        return sorted(self._data)


class FileKeyValueStore:
    """JSON file per shop and key: <data_dir>/<quoted shop>/<key>.json"""

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)

    def _shop_dir(self, shop_domain: str) -> Path:
        name = quote(shop_domain, safe="")
        # Quoting leaves "." and ".." as-is; both would escape data_dir
        if name in ("", ".", ".."):
            raise ValueError(f"Invalid shop domain: {shop_domain!r}")
        return self.data_dir / name

    def _path(self, shop_domain: str, key: str) -> Path:
        return self._shop_dir(shop_domain) / f"{quote(key, safe='')}.json"

    def _read(self, path: Path) -> Optional[Any]:
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)

    def _write(self, path: Path, value: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(value, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except Exception:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _list(self) -> List[str]:
        if not self.data_dir.exists():
            return []
        return sorted(
            unquote(entry.name)
            for entry in self.data_dir.iterdir()
            if entry.is_dir() and any(entry.glob("*.json"))
        )

    async def get(self, shop_domain: str, key: str) -> Optional[Any]:
        path = self._path(shop_domain, key)
        try:
            return await asyncio.to_thread(self._read, path)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt store file {path}: {e}")
            raise

    async def set(self, shop_domain: str, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write, self._path(shop_domain, key), value)

    async def list_shops(self) -> List[str]:
        return await asyncio.to_thread(self._list)
