# Task board configuration
# Override defaults via taskboard.yaml or environment variables.

import os
import yaml
from pathlib import Path
from dataclasses import dataclass, fields
from typing import Optional

CONFIG_PATH = Path(__file__).parent.parent / "taskboard.yaml"


class ConfigError(Exception):
    """Raised when configuration is invalid."""
    pass


@dataclass
class Config:
    """Runtime configuration for the board engine and server."""

    # Storage
    db_path: str = "~/.local/share/taskboard/taskboard.db"

    # Drag activation
    pointer_distance: float = 5.0   # px the pointer must travel
    touch_delay: float = 0.25       # seconds a finger must rest
    touch_tolerance: float = 5.0    # px a resting finger may wander

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    api_secret: str = ""
    log_level: str = "INFO"

    def resolve(self):
        """Apply environment overrides, expand ~ and sanity-check values."""
        self.db_path = os.environ.get("TASKBOARD_DB", self.db_path)
        self.api_secret = os.environ.get("TASKBOARD_API_SECRET", self.api_secret)
        self.db_path = str(Path(self.db_path).expanduser())

        if self.pointer_distance < 0 or self.touch_delay < 0 or self.touch_tolerance < 0:
            raise ConfigError("Drag activation thresholds must not be negative")
        self.log_level = str(self.log_level).upper()

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load config from YAML file, falling back to defaults."""
        cfg_path = Path(path) if path else CONFIG_PATH
        if cfg_path.exists():
            with open(cfg_path, "r") as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ConfigError(f"Cannot parse {cfg_path}: {e}")
            if not isinstance(data, dict):
                raise ConfigError(f"{cfg_path} must contain a mapping")
            known = {fld.name for fld in fields(cls)}
            cfg = cls(**{k: v for k, v in data.items() if k in known})
        else:
            cfg = cls()
        cfg.resolve()
        return cfg
