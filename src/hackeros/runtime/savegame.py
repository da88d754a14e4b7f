from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from hackeros.config.balance import Balance
from hackeros.core.missions import MissionStore
from hackeros.core.vfs import VirtualFilesystem

log = logging.getLogger(__name__)

SAVE_FORMAT_VERSION = 1


def default_save_path() -> Path | None:
    """Resolve HACKEROS_SAVE; None means persistence is switched off."""
    raw = os.environ.get("HACKEROS_SAVE", "").strip()
    if raw.lower() == "off":
        return None
    if raw:
        return Path(raw).expanduser()
    return Path(Balance.SAVE_DIR).expanduser() / Balance.SAVE_FILE


class SaveStore:
    """JSON key-value store. Keys used by the game: "missions" and "filesystem"."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def read(self) -> dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            raw: object = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning("ignoring unreadable save file %s: %s", self.path, e)
            return {}
        if not isinstance(raw, dict):
            log.warning("ignoring save file %s: root is not an object", self.path)
            return {}
        version = raw.get("format_version", 0)
        if not isinstance(version, int) or version > SAVE_FORMAT_VERSION:
            log.warning("ignoring save file %s: unsupported format_version %r", self.path, version)
            return {}
        data = raw.get("data", {})
        return data if isinstance(data, dict) else {}

    def write(self, data: dict[str, Any]) -> None:
        payload = {"format_version": SAVE_FORMAT_VERSION, "data": data}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self.read().get(key, default)

    def put(self, key: str, value: Any) -> None:
        data = self.read()
        data[key] = value
        self.write(data)

    # --- game state ---

    def load_game(self, fs: VirtualFilesystem, missions: MissionStore) -> bool:
        data = self.read()
        if not data:
            return False
        state = data.get("missions")
        if isinstance(state, dict):
            try:
                missions.import_state(state)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                log.warning("ignoring corrupt save %s: %s", self.path, e)
                return False
            missions.drain_events()
        snapshot = data.get("filesystem")
        if isinstance(snapshot, dict):
            try:
                fs.restore(snapshot)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                log.warning("ignoring saved filesystem: %s", e)
        log.info("game loaded from %s", self.path)
        return True

    def save_game(self, fs: VirtualFilesystem, missions: MissionStore) -> None:
        self.write({"missions": missions.export_state(), "filesystem": fs.snapshot()})
        log.info("game saved to %s", self.path)
