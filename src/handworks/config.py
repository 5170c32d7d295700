"""HandWorks configuration.

Settings live in a flat YAML mapping; every key is optional:

    camera_index: 0
    fps: 60
    explosion_debounce: 0.2
    gravity: 0.15
    log_level: info
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger("handworks.config")


@dataclass
class AppConfig:
    # Camera / tracking
    camera_index: int = 0
    camera_width: int = 640
    camera_height: int = 480
    model_complexity: int = 1
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5

    # Window / presentation
    window_name: str = "HandWorks"
    window_width: int = 1280
    window_height: int = 720
    fps: float = 60.0
    show_preview: bool = True
    preview_width: int = 256
    show_hud: bool = True

    # Animation
    explosion_debounce: float = 0.2
    hand_lost_reset: Optional[float] = 0.5
    gravity: float = 0.15
    friction: float = 0.96
    trail_alpha: float = 0.2
    star_count: int = 150
    max_particles: Optional[int] = None
    seed: Optional[int] = None

    log_level: str = "info"

    @classmethod
    def from_dict(cls, data: dict) -> AppConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_yaml(cls, path: str | Path) -> AppConfig:
        """Load settings from a YAML file. Missing keys keep their defaults."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at top level")
        logger.info("Loaded config from %s", path)
        return cls.from_dict(data)

    def to_yaml(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(asdict(self), f, default_flow_style=False, sort_keys=False)

    def override(self, **kwargs) -> AppConfig:
        """Return a copy with the non-None keyword values applied."""
        data = asdict(self)
        data.update({k: v for k, v in kwargs.items() if v is not None})
        return AppConfig.from_dict(data)
