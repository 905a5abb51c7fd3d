import json
import logging
import os
import sys
from typing import Any, Dict, Optional

from evstudio.utils.file_ops import safe_write


class SettingsStore:
    def __init__(self, filename: str = "settings.json", base_dir: Optional[str] = None):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.path = self._resolve_settings_path(filename, base_dir)

    def _resolve_settings_path(self, filename: str, base_dir: Optional[str]) -> str:
        if os.path.isabs(filename):
            return filename
        if base_dir is None:
            if getattr(sys, "frozen", False):
                base_dir = os.path.dirname(sys.executable)
            else:
                base_dir = os.path.abspath(".")
        return os.path.join(base_dir, filename)

    def load(self) -> Dict[str, Any]:
        try:
            if not os.path.exists(self.path):
                return {}
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                self.logger.warning(f"Ignoring settings file without a JSON object: {self.path}")
                return {}
            return data
        except (OSError, ValueError) as e:
            self.logger.warning(f"Failed to load settings: {e}")
            return {}

    def save(self, data: Dict[str, Any]) -> None:
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with safe_write(self.path) as f:
                json.dump(data, f, indent=2, ensure_ascii=True)
        except OSError as e:
            self.logger.warning(f"Failed to save settings: {e}")
