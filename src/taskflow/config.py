"""Configuration management for TaskFlow."""

import calendar
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

TASKFLOW_HOME = Path(os.environ.get("TASKFLOW_HOME", Path.home() / "taskflow"))
CONFIG_FILE = TASKFLOW_HOME / "config" / "taskflow.conf"
DATA_DIR = TASKFLOW_HOME / "data"

WEEKDAYS = {name.lower(): index for index, name in enumerate(calendar.day_name)}


@dataclass
class Config:
    """TaskFlow configuration."""

    data_dir: str = ""
    timezone: str = ""
    week_start: str = "Monday"
    search_debounce_ms: int = 300
    due_reminder_lead_hours: int = 24
    budget_alert_threshold: float = 0.8
    weekly_goal: int = 10
    cascade_project_delete: bool = True

    @property
    def data_path(self) -> Path:
        """Resolved snapshot directory."""
        if self.data_dir:
            return Path(self.data_dir).expanduser()
        return DATA_DIR

    @property
    def week_start_day(self) -> int:
        """week_start as a calendar weekday index (Monday=0)."""
        return WEEKDAYS.get(self.week_start.strip().lower(), calendar.MONDAY)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _strip_value(value: str) -> str:
    """Unquote a value, dropping any trailing inline comment."""
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def parse_config(text: str) -> Config:
    """Parse KEY=value lines into a Config. Unknown keys are ignored."""
    config = Config()

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _strip_value(value.strip())

        try:
            match key:
                case "data_dir":
                    config.data_dir = value
                case "timezone":
                    config.timezone = value
                case "week_start":
                    if value.strip().lower() not in WEEKDAYS:
                        logger.warning(f"Unknown WEEK_START {value!r}, keeping {config.week_start}")
                    else:
                        config.week_start = value
                case "search_debounce_ms":
                    config.search_debounce_ms = int(value)
                case "due_reminder_lead_hours":
                    config.due_reminder_lead_hours = int(value)
                case "budget_alert_threshold":
                    config.budget_alert_threshold = float(value)
                case "weekly_goal":
                    config.weekly_goal = int(value)
                case "cascade_project_delete":
                    config.cascade_project_delete = _parse_bool(value)
        except ValueError:
            logger.warning(f"Invalid value for {key.upper()}: {value!r}")

    return config


def load_config() -> Config:
    """Load configuration from taskflow.conf file."""
    if not CONFIG_FILE.exists():
        return Config()
    return parse_config(CONFIG_FILE.read_text())
