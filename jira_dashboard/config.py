"""
Configuration for the Jira Dashboard

Loads config/config.yaml and overrides it with environment variables.
"""

import os
from typing import Optional

import yaml

from .integrations import extract_sheet_id
from .models import NotificationSettings


class Config:
    """Load configuration from config.yaml and environment."""

    def __init__(self, config_path: Optional[str] = None):
        config_path = config_path or os.getenv("DASHBOARD_CONFIG", "config/config.yaml")
        self.config = {}

        if os.path.exists(config_path):
            with open(config_path) as f:
                self.config = yaml.safe_load(f) or {}

        # Override with environment variables
        self._load_env()

    def _load_env(self):
        """Load configuration from environment variables."""
        env_mapping = {
            "GOOGLE_SHEET_ID": ("sheets", "sheet_id"),
            "GOOGLE_SHEET_URL": ("sheets", "url"),
            "SHEETS_ISSUES_TAB": ("sheets", "issues_tab"),
            "SHEETS_SPRINTS_TAB": ("sheets", "sprints_tab"),
            "SHEETS_TIMEOUT": ("sheets", "timeout"),
            "NOTIFY_WARNING_THRESHOLD": ("notifications", "warning_threshold"),
            "NOTIFY_DANGER_THRESHOLD": ("notifications", "danger_threshold"),
            "NOTIFY_COOLDOWN_MINUTES": ("notifications", "cooldown_minutes"),
            "CORS_ORIGINS": ("server", "cors_origins"),
            "LOG_LEVEL": ("logging", "level"),
        }

        for env_var, (section, key) in env_mapping.items():
            value = os.getenv(env_var)
            if value:
                if not self.config.get(section):
                    self.config[section] = {}
                self.config[section][key] = value

    def get(self, section: str, key: str, default=None):
        """Get configuration value."""
        return (self.config.get(section) or {}).get(key, default)

    @property
    def sheet_id(self) -> Optional[str]:
        sheet_id = self.get("sheets", "sheet_id")
        if sheet_id:
            return sheet_id

        url = self.get("sheets", "url")
        if url:
            return extract_sheet_id(url)
        return None

    @property
    def issues_tab(self) -> str:
        return self.get("sheets", "issues_tab", "Issues")

    @property
    def sprints_tab(self) -> str:
        return self.get("sheets", "sprints_tab", "Sprints")

    @property
    def sheets_timeout(self) -> float:
        return float(self.get("sheets", "timeout", 30.0))

    @property
    def cors_origins(self) -> list[str]:
        origins = self.get("server", "cors_origins", ["http://localhost:3000"])
        if isinstance(origins, str):
            return [o.strip() for o in origins.split(",") if o.strip()]
        return list(origins)

    @property
    def log_level(self) -> str:
        return str(self.get("logging", "level", "INFO")).upper()

    def notification_settings(self) -> NotificationSettings:
        """Initial notification settings, defaults filled in."""
        defaults = NotificationSettings()
        section = self.config.get("notifications") or {}

        settings = NotificationSettings(
            warning_threshold=float(section.get("warning_threshold", defaults.warning_threshold)),
            danger_threshold=float(section.get("danger_threshold", defaults.danger_threshold)),
            email_notifications=_as_bool(section.get("email_notifications", defaults.email_notifications)),
            dashboard_notifications=_as_bool(section.get("dashboard_notifications", defaults.dashboard_notifications)),
            cooldown_minutes=int(section.get("cooldown_minutes", defaults.cooldown_minutes))
        )
        settings.validate()
        return settings


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)
