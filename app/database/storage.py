"""
Simple JSON file storage with in-memory caching

- Local-only persistence: one JSON file per collection under the data dir
- Same operations and snapshot feed as the in-memory backend
- In-memory cache with TTL reduces file I/O for frequently read collections
- Easy to swap for a hosted document store by implementing PersistenceBackend
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List

from app.core.errors import PersistenceError
from app.database.backend import MemoryBackend, Document
from app.database.cache import TTLCache


def read_json(filepath: str) -> List[Dict[str, Any]]:
    """
    Read JSON file, return empty list if not found

    A file that exists but does not parse raises json.JSONDecodeError.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        return []


def write_json(filepath: str, data: List[Dict[str, Any]]):
    """
    Write data to JSON file

    Written to a temporary file in the same directory and moved into place,
    so a failed write leaves the previous file untouched.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    except BaseException:
        Path(tmp_path).unlink(missing_ok=True)
        raise


class JsonFileBackend(MemoryBackend):
    """
    Persist each collection to `<data_dir>/<collection>.json`

    The file is the source of truth; the cache only spares re-reading it.
    A failed write raises PersistenceError and drops the cached collection,
    so the next read goes back to whatever reached the disk. A missing file
    is an empty collection; a file that does not parse raises PersistenceError.
    """
    def __init__(self, data_dir: str = "data", cache_ttl_seconds: int = 60):
        super().__init__()
        self.data_dir = Path(data_dir)
        self._cache = TTLCache(ttl_seconds=cache_ttl_seconds)

    def _path(self, collection: str) -> str:
        return str(self.data_dir / f"{collection}.json")

    @staticmethod
    def _cache_key(collection: str) -> str:
        return f"collection:{collection}"

    def _documents(self, collection: str) -> Dict[str, Document]:
        def load() -> Dict[str, Document]:
            path = self._path(collection)
            try:
                rows = read_json(path)
            except json.JSONDecodeError as exc:
                raise PersistenceError(f"Collection file {path} is corrupt: {exc}", kind=collection) from exc
            if not isinstance(rows, list):
                raise PersistenceError(f"Collection file {path} does not hold a list", kind=collection)
            return {
                row["id"]: {k: v for k, v in row.items() if k != "id"}
                for row in rows
                if isinstance(row, dict) and row.get("id")
            }
        return self._cache.get_or_load(self._cache_key(collection), load)

    def _save(self, collection: str, documents: Dict[str, Document]):
        rows = [{"id": doc_id, **doc} for doc_id, doc in documents.items()]
        try:
            write_json(self._path(collection), rows)
        except OSError:
            self._cache.invalidate(self._cache_key(collection))
            raise

        # Update cache immediately
        self._cache.set(self._cache_key(collection), documents)

    async def close(self):
        await super().close()
        self._cache.clear()
