"""Application configuration manager wrapping QSettings."""

import logging
from datetime import timedelta
from pathlib import Path

from PySide6.QtCore import QObject, Signal, Slot, QSettings

logger = logging.getLogger(__name__)

# Default values
DEFAULTS = {
    "general/projectsRoot": "",
    "watcher/debounceMs": 500,
    "analytics/activeWindowSeconds": 120,
    "analytics/dailyMetricsDays": 7,
    "analytics/peakHourLimit": 4,
    "advanced/debugLogging": False,
}


class ConfigManager(QObject):
    """Centralized settings for discovery, analytics and the watcher."""

    settings_changed = Signal(str)  # key

    def __init__(self, parent=None):
        super().__init__(parent)
        self._settings = QSettings()

    @Slot(str, result=str)
    def get_string(self, key: str) -> str:
        return str(self._settings.value(key, DEFAULTS.get(key, "")))

    @Slot(str, result=int)
    def get_int(self, key: str) -> int:
        val = self._settings.value(key, DEFAULTS.get(key, 0))
        try:
            return int(val)
        except (ValueError, TypeError):
            return DEFAULTS.get(key, 0)

    @Slot(str, result=bool)
    def get_bool(self, key: str) -> bool:
        val = self._settings.value(key, DEFAULTS.get(key, False))
        if isinstance(val, bool):
            return val
        if isinstance(val, str):
            return val.lower() in ("true", "1", "yes")
        return bool(val)

    @Slot(str, str)
    def set_string(self, key: str, value: str):
        self._settings.setValue(key, value)
        self.settings_changed.emit(key)

    @Slot(str, int)
    def set_int(self, key: str, value: int):
        self._settings.setValue(key, value)
        self.settings_changed.emit(key)

    @Slot(str, bool)
    def set_bool(self, key: str, value: bool):
        self._settings.setValue(key, value)
        self.settings_changed.emit(key)

    def projects_root(self) -> Path | None:
        """Configured projects root, or None to use the discovery default."""
        root = self.get_string("general/projectsRoot")
        return Path(root).expanduser() if root else None

    def debounce_ms(self) -> int:
        return max(0, self.get_int("watcher/debounceMs"))

    def active_window(self) -> timedelta:
        return timedelta(seconds=self.get_int("analytics/activeWindowSeconds"))

    def daily_metrics_days(self) -> int:
        return self.get_int("analytics/dailyMetricsDays")

    def peak_hour_limit(self) -> int:
        return self.get_int("analytics/peakHourLimit")

    def debug_logging(self) -> bool:
        return self.get_bool("advanced/debugLogging")
