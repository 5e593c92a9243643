"""Configuration loader for the RaidTrack bot."""

import yaml
from pathlib import Path
from typing import Any, Dict, Optional


class Config:
    """Configuration manager for the RaidTrack bot."""

    def __init__(self, config_path: str = "config/config.yaml"):
        """
        Initialize configuration from YAML file.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}\n"
                f"Please copy config/config.example.yaml to config/config.yaml and configure it."
            )

        with open(self.config_path, "r", encoding="utf-8") as f:
            self._config = yaml.safe_load(f) or {}

    def reload(self) -> None:
        """Reload configuration from YAML file."""
        self.load()

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'discord.token')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

            if value is None:
                return default

        return value

    @property
    def discord_token(self) -> str:
        """Get Discord bot token."""
        token = self.get("discord.token")
        if not token or token == "YOUR_BOT_TOKEN_HERE":
            raise ValueError("Discord token not configured in config.yaml")
        return token

    @property
    def guild_id(self) -> Optional[str]:
        """Default guild (scope) for raw raidInstances imports."""
        guild_id = self.get("discord.guild_id")
        return str(guild_id) if guild_id else None

    @property
    def database_path(self) -> str:
        return self.get("database.path", "data/raidtrack.db")

    # SavedVariables ingestion

    @property
    def sv_enabled(self) -> bool:
        return bool(self.get("saved_variables.enabled", True))

    @property
    def sv_file(self) -> str:
        return self.get("saved_variables.file", "data/RaidTrack.lua")

    @property
    def sv_export_key(self) -> str:
        return self.get("saved_variables.export_key", "RaidTrackExport")

    @property
    def sv_poll_seconds(self) -> int:
        """Polling interval, never below 5 seconds."""
        return max(5, int(self.get("saved_variables.poll_seconds", 60)))

    @property
    def sv_instances_key(self) -> str:
        return self.get("saved_variables.instances_key", "raidInstances")

    @property
    def sv_presets_key(self) -> str:
        return self.get("saved_variables.presets_key", "raidPresets")

    # Raid publishing

    @property
    def raid_create_events(self) -> bool:
        return bool(self.get("raids.create_events", True))

    @property
    def raid_event_leeway_seconds(self) -> int:
        return int(self.get("raids.event_leeway_seconds", 300))

    @property
    def raid_default_duration_seconds(self) -> int:
        return int(self.get("raids.default_duration_seconds", 3 * 3600))

    @property
    def raid_render_debounce_seconds(self) -> float:
        return float(self.get("raids.render_debounce_seconds", 1.2))

    @property
    def raid_event_location(self) -> str:
        return self.get("raids.event_location", "In-game (WoW)")

    @property
    def fallback_channel_id(self) -> Optional[str]:
        channel_id = self.get("channels.fallback")
        return str(channel_id) if channel_id else None

    @property
    def channel_routing(self) -> Dict[str, str]:
        """Difficulty (upper case) -> channel ID."""
        routing = self.get("channels.routing", {}) or {}
        return {
            str(key).upper(): str(value)
            for key, value in routing.items()
            if value
        }

    # Class/spec emoji

    @property
    def allow_external_emoji(self) -> bool:
        return bool(self.get("emoji.allow_external", True))

    @property
    def custom_emoji(self) -> Dict[str, str]:
        """Map of lowercase ``class_spec`` keys to custom emoji IDs."""
        mapping = self.get("emoji.custom", {}) or {}
        return {
            str(key).lower(): str(value).strip()
            for key, value in mapping.items()
            if str(value).strip()
        }

    @property
    def emoji_overrides(self) -> Dict[str, str]:
        """Map of ``CLASS:SPEC`` keys to full emoji tokens."""
        mapping = self.get("emoji.overrides", {}) or {}
        return {str(key).upper(): str(value) for key, value in mapping.items()}

    # Logging

    @property
    def log_level(self) -> str:
        """Get logging level."""
        return self.get("logging.level", "INFO")

    @property
    def log_file(self) -> str:
        """Get log file path."""
        return self.get("logging.file", "logs/raidtrack.log")

    @property
    def log_library_level(self) -> str:
        """Get logging level for discord.py and aiosqlite."""
        return self.get("logging.library_level", "WARNING")

    @property
    def log_format(self) -> str:
        """Get log format string."""
        return self.get(
            "logging.format",
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
