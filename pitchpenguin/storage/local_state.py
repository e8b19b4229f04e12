import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

KEY_PREFIX = "pp:"


class LocalState:
    """
    Persists the handful of strings the client remembers between runs
    (last room, player name per room, AI lock, sound preference) in a JSON
    file. Every key is stored with the `pp:` prefix.
    """

    def __init__(self, base_path: str | Path = "~/.pitchpenguin"):
        self.base_path = Path(base_path).expanduser()
        self.state_path = self.base_path / "local_state.json"
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _load(self) -> dict[str, str]:
        if not self.state_path.exists():
            return {}
        try:
            with open(self.state_path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Discarding unreadable state file {self.state_path}: {e}")
            return {}
        return {k: str(v) for k, v in data.items()} if isinstance(data, dict) else {}

    def _save(self, data: dict[str, str]) -> None:
        with open(self.state_path, "w") as f:
            json.dump(data, f, indent=2, sort_keys=True)

    def get(self, key: str) -> str | None:
        return self._load().get(KEY_PREFIX + key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[KEY_PREFIX + key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if data.pop(KEY_PREFIX + key, None) is not None:
            self._save(data)

    # Room identity

    def remember_player(self, code: str, player_name: str) -> None:
        data = self._load()
        data[f"{KEY_PREFIX}player:{code}"] = player_name
        data[f"{KEY_PREFIX}lastRoom"] = code
        data[f"{KEY_PREFIX}lastName"] = player_name
        self._save(data)

    def player_for_room(self, code: str | None) -> str | None:
        if not code:
            return None
        return self.get(f"player:{code}")

    def forget_room(self, code: str) -> None:
        self.remove(f"player:{code}")

    @property
    def last_room(self) -> str | None:
        return self.get("lastRoom")

    @property
    def last_name(self) -> str | None:
        return self.get("lastName")

    def resolve_room(self, code: str | None) -> str:
        return code or self.last_room or ""

    # AI pitch lock

    def ai_locked(self, code: str, player_name: str) -> bool:
        return self.get(f"ai-lock:{code}:{player_name}") == "true"

    def lock_ai(self, code: str, player_name: str) -> None:
        self.set(f"ai-lock:{code}:{player_name}", "true")

    # Sound

    @property
    def sfx_enabled(self) -> bool:
        return self.get("sfx-enabled") != "false"

    @sfx_enabled.setter
    def sfx_enabled(self, enabled: bool) -> None:
        self.set("sfx-enabled", "true" if enabled else "false")
