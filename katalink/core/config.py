"""
katalink Configuration

Handles configuration from environment variables, JSON files, and CLI arguments.
"""

import json
import os
from dataclasses import dataclass
from typing import List, Optional


DEFAULT_PROXY_URL = "ws://127.0.0.1:41949"


def _env_bool(key: str, default: bool = False) -> bool:
    value = os.environ.get(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class EngineConfig:
    """katalink configuration"""

    # Proxy endpoint
    proxy_url: str = DEFAULT_PROXY_URL

    # Engine files (checked for existence before connecting)
    engine_path: Optional[str] = None
    engine_config: Optional[str] = None
    weights: Optional[str] = None

    # Logging
    log_traffic: bool = False
    log_dir: Optional[str] = None
    console_level: str = "INFO"

    # Query defaults
    max_visits: int = 1000
    report_every: float = 0.1
    include_ownership: bool = True
    include_policy: bool = True
    # includeMovesOwnership, sent only to engines that support it
    moves_ownership: bool = True

    @classmethod
    def from_json(cls, json_path: str) -> "EngineConfig":
        """Load configuration from JSON file"""
        with open(json_path, "r") as f:
            data = json.load(f)

        return cls(
            proxy_url=data.get("proxy_url", DEFAULT_PROXY_URL),
            engine_path=data.get("engine_path"),
            engine_config=data.get("engine_config"),
            weights=data.get("weights"),
            log_traffic=data.get("log_traffic", False),
            log_dir=data.get("log_dir"),
            console_level=data.get("console_level", "INFO"),
            max_visits=data.get("max_visits", 1000),
            report_every=data.get("report_every", 0.1),
            include_ownership=data.get("include_ownership", True),
            include_policy=data.get("include_policy", True),
            moves_ownership=data.get("moves_ownership", True),
        )

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Load configuration from environment variables"""
        return cls(
            proxy_url=os.environ.get("KATAGO_WS_PROXY_URL") or DEFAULT_PROXY_URL,
            engine_path=os.environ.get("KATALINK_ENGINE"),
            engine_config=os.environ.get("KATALINK_ENGINE_CONFIG"),
            weights=os.environ.get("KATALINK_WEIGHTS"),
            log_traffic=_env_bool("KATALINK_LOG_TRAFFIC"),
            log_dir=os.environ.get("KATALINK_LOG_DIR"),
            console_level=os.environ.get("KATALINK_LOG_LEVEL", "INFO"),
            max_visits=int(os.environ.get("KATALINK_MAX_VISITS", "1000")),
            moves_ownership=_env_bool("KATALINK_MOVES_OWNERSHIP", True),
        )

    def merge(self, other: "EngineConfig") -> "EngineConfig":
        """Merge another config into this one (other takes precedence for non-default values)"""
        for field_name in self.__dataclass_fields__:
            other_val = getattr(other, field_name)
            if other_val is not None and other_val != getattr(EngineConfig, field_name, None):
                setattr(self, field_name, other_val)
        return self

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors"""
        errors = []

        if not self.proxy_url.startswith(("ws://", "wss://")):
            errors.append(f"Invalid proxy_url (expected ws:// or wss://): {self.proxy_url}")

        if self.max_visits < 1:
            errors.append(f"Invalid max_visits: {self.max_visits}")

        if self.report_every <= 0:
            errors.append(f"Invalid report_every: {self.report_every}")

        if self.console_level.upper() not in ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]:
            errors.append(f"Invalid console_level: {self.console_level}")

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            "proxy_url": self.proxy_url,
            "engine_path": self.engine_path,
            "engine_config": self.engine_config,
            "weights": self.weights,
            "log_traffic": self.log_traffic,
            "log_dir": self.log_dir,
            "console_level": self.console_level,
            "max_visits": self.max_visits,
            "report_every": self.report_every,
            "include_ownership": self.include_ownership,
            "include_policy": self.include_policy,
            "moves_ownership": self.moves_ownership,
        }
