"""
Backend settings, read from the environment.

Every setting has an in-code default; an environment variable overrides
it. Values are validated by pydantic when the settings are loaded.
"""
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "ROLLUP_TREE_"


class Settings(BaseModel):
    """Server, drawing-area and animation settings."""
    host: str = "127.0.0.1"
    port: int = Field(default=8766, ge=1, le=65535)
    width: float = Field(default=800, gt=0)
    height: float = Field(default=600, gt=0)
    transition_ms: int = Field(default=750, ge=0)
    fps: int = Field(default=60, gt=0, le=240)
    data: Optional[Path] = None  # JSON file with the initial tree
    log_level: str = "INFO"

    @property
    def transition_seconds(self) -> float:
        return self.transition_ms / 1000

    @property
    def frame_interval(self) -> float:
        return 1 / self.fps

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "Settings":
        """Build settings from ROLLUP_TREE_* variables."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw not in (None, ""):
                values[name] = raw
        return cls(**values)


settings = Settings.from_env()
