# editions/config.py
"""
Ledger configuration.

Loaded from a YAML file (default: ./editions.yaml):

    data_dir: ./ledger-data
    admin: deployer            # account name or 0x address
    media_registry: media      # relative to data_dir
    market_registry: market
    signing: true
    log_level: INFO

EDITIONS_DATA_DIR and EDITIONS_LOG_LEVEL override the file.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_CONFIG_FILE = "editions.yaml"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class LedgerConfig:
    """Parsed ledger configuration."""
    data_dir: Path = Path("./ledger-data")
    admin: str = "deployer"
    media_registry: str = "media"
    market_registry: str = "market"
    signing: bool = True
    log_level: str = "INFO"

    @property
    def accounts_dir(self) -> Path:
        return self.data_dir / "accounts"

    @property
    def ledger_dir(self) -> Path:
        return self.data_dir / "ledger"

    @property
    def media_dir(self) -> Path:
        return self.data_dir / self.media_registry

    @property
    def market_dir(self) -> Path:
        return self.data_dir / self.market_registry

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data_dir": str(self.data_dir),
            "admin": self.admin,
            "media_registry": self.media_registry,
            "market_registry": self.market_registry,
            "signing": self.signing,
            "log_level": self.log_level,
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerConfig":
        data = dict(data or {})
        env_dir = os.environ.get("EDITIONS_DATA_DIR")
        if env_dir:
            data["data_dir"] = env_dir
        env_level = os.environ.get("EDITIONS_LOG_LEVEL")
        if env_level:
            data["log_level"] = env_level

        log_level = str(data.get("log_level", "INFO")).upper()
        if log_level not in _LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {log_level}")

        return cls(
            data_dir=Path(data.get("data_dir", "./ledger-data")),
            admin=str(data.get("admin", "deployer")),
            media_registry=str(data.get("media_registry", "media")),
            market_registry=str(data.get("market_registry", "market")),
            signing=bool(data.get("signing", True)),
            log_level=log_level,
        )

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "LedgerConfig":
        """Parse configuration from a YAML string."""
        data = yaml.safe_load(yaml_content)
        if data is not None and not isinstance(data, dict):
            raise ValueError("Config must be a YAML mapping")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Path | str) -> "LedgerConfig":
        """Load configuration from a YAML file."""
        with open(path, "r") as f:
            return cls.from_yaml(f.read())

    @classmethod
    def load(cls, path: Path | str = None) -> "LedgerConfig":
        """Load from `path`, or the default file, or fall back to defaults."""
        if path is not None:
            return cls.from_file(path)
        default = Path(DEFAULT_CONFIG_FILE)
        if default.exists():
            return cls.from_file(default)
        return cls.from_dict({})
