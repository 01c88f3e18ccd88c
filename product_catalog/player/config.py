"""
Player configuration.
"""

import os
from dataclasses import dataclass


@dataclass
class PlayerConfig:
    base_url: str = "http://localhost:5000"
    mode: str = "auto"
    speed: float = 1.0
    timeout: float = 10.0

    @classmethod
    def from_dict(cls, config: dict) -> "PlayerConfig":
        return cls(
            base_url=config.get("base_url", os.environ.get("API_URL", cls.base_url)),
            mode=config.get("mode", cls.mode),
            speed=float(config.get("speed", cls.speed)),
            timeout=float(config.get("timeout", cls.timeout)),
        )
