# journey_persistence.py
import json
import re
from pathlib import Path
from typing import Dict, Optional, Protocol

from journey import JourneyLog

DEFAULT_JOURNEY_DIR = Path("state") / "journeys"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


def _to_path(p) -> Path:
    if isinstance(p, Path):
        return p
    return Path(str(p))


class MemoryStore:
    def __init__(self):
        self.data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore:
    """One <key>.json file per key under `root`."""

    def __init__(self, root=DEFAULT_JOURNEY_DIR):
        self.root = _to_path(root)

    def path_for(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9._-]+", "_", key)
        return self.root / f"{safe}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(value, encoding="utf-8")

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        if path.exists():
            path.unlink()


class JourneyStore:
    """Load / save JourneyLog snapshots by fingerprint. Storage errors never propagate."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def load(self, fingerprint: str) -> JourneyLog:
        try:
            raw = self.store.get(fingerprint)
            if raw:
                return JourneyLog.from_dict(fingerprint, json.loads(raw))
        except Exception as e:
            print(f"[WARN] Failed to load journey {fingerprint}: {e}")
        return JourneyLog(fingerprint=fingerprint)

    def save(self, log: JourneyLog, is_complete: bool = False) -> bool:
        try:
            self.store.set(log.fingerprint, json.dumps(log.to_dict(is_complete=is_complete)))
        except Exception as e:
            print(f"[WARN] Failed to save journey {log.fingerprint}: {e}")
            return False
        return True

    def discard(self, fingerprint: str) -> bool:
        try:
            self.store.delete(fingerprint)
        except Exception as e:
            print(f"[WARN] Failed to discard journey {fingerprint}: {e}")
            return False
        return True
