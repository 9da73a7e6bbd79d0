"""
Persistence for the authenticated browser state.

The blob is whatever Playwright's `context.storage_state()` returns
(`{"cookies": [...], "origins": [...]}`), stored as JSON. Stores only know
how to read, write and delete it; deciding when to do so is the session
manager's job.
"""

import json
from pathlib import Path
from typing import Optional


class SessionStoreCorrupt(Exception):
    """Stored state exists but cannot be turned back into a storage state."""


def parse_state(text: str, source: str = "session store") -> dict:
    """Decode a stored blob, raising SessionStoreCorrupt on anything malformed."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise SessionStoreCorrupt(f"Error reading storage state from {source}: {e}") from e
    if not isinstance(data, dict) or not isinstance(data.get("cookies", []), list):
        raise SessionStoreCorrupt(f"Error reading storage state from {source}: unexpected structure")
    return data


class FileSessionStore:
    """Storage state kept as a single JSON file."""

    def __init__(self, path):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"FileSessionStore({str(self.path)!r})"

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> Optional[dict]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SessionStoreCorrupt(f"Error reading storage state from {self.path}: {e}") from e
        return parse_state(text, str(self.path))

    def write(self, state: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(state), encoding="utf-8")
        tmp.replace(self.path)

    def delete(self) -> None:
        self.path.unlink(missing_ok=True)


class MemorySessionStore:
    """
    In-process store, mainly for tests. Holds the raw serialized text so a
    corrupt blob can be planted directly; counts writes and deletes.
    """

    def __init__(self, raw: Optional[str] = None):
        self.raw = raw
        self.writes = 0
        self.deletes = 0

    def exists(self) -> bool:
        return self.raw is not None

    def read(self) -> Optional[dict]:
        if self.raw is None:
            return None
        return parse_state(self.raw, "memory")

    def write(self, state: dict) -> None:
        self.raw = json.dumps(state)
        self.writes += 1

    def delete(self) -> None:
        self.raw = None
        self.deletes += 1
