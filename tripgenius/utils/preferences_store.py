import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger("tripgenius.store")

# Same key the planner page uses in localStorage
STORAGE_KEY = "last_itinerary_input"


def default_state_file() -> Path:
    return Path(os.getenv("TRIPGENIUS_STATE_FILE") or Path.home() / ".tripgenius" / f"{STORAGE_KEY}.json")


class PreferencesStore:
    def __init__(self, path: Union[str, Path, None] = None):
        """
        Keep the last submitted preferences record in a local JSON file.
        If path is None, defaults to TRIPGENIUS_STATE_FILE or ~/.tripgenius/.
        """
        load_dotenv()
        self.path = Path(path) if path else default_state_file()

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to parse saved preferences at %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, values: Union[Mapping[str, Any], BaseModel]) -> None:
        if isinstance(values, BaseModel):
            values = values.model_dump(mode="json")
        data = self._read_all()
        data[STORAGE_KEY] = json.dumps(dict(values), ensure_ascii=False)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")

    def load(self) -> Optional[Dict[str, Any]]:
        saved = self._read_all().get(STORAGE_KEY)
        if not saved:
            return None
        try:
            values = json.loads(saved)
        except (TypeError, json.JSONDecodeError) as e:
            logger.warning("Failed to parse saved preferences: %s", e)
            return None
        return values if isinstance(values, dict) else None

    def clear(self) -> None:
        data = self._read_all()
        if data.pop(STORAGE_KEY, None) is None:
            return
        self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
