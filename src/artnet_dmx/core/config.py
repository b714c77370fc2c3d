"""
Configuration Management for artnet-dmx.

Uses Pydantic Settings for type-safe configuration with environment
variable support and YAML file loading.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, List
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
import yaml

LIMITED_BROADCAST = "255.255.255.255"


class ArtNetConfig(BaseModel):
    """Art-Net sender configuration."""
    host: str = LIMITED_BROADCAST
    port: int = Field(default=6454, ge=1, le=65535)
    refresh_interval_ms: int = Field(default=4000, gt=0)
    send_all_always: bool = False  # Every send carries all 512 channels
    bind_interface: Optional[str] = None  # "10.0.0.2" or "10.0.0.2/24"
    broadcast_networks: List[str] = Field(default_factory=list)  # CIDR, e.g. "192.168.1.0/24"


class Settings(BaseSettings):
    """
    Main application settings.

    Can be configured via:
    - Environment variables (prefixed with ARTNET_)
    - YAML config file
    - Direct instantiation
    """

    model_config = SettingsConfigDict(env_prefix="ARTNET_", env_nested_delimiter="__")

    artnet: ArtNetConfig = Field(default_factory=ArtNetConfig)

    # Debug
    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save settings to a YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False)
