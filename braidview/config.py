"""Configuration loading for braidview."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class LayoutConfig(BaseModel):
    spacing_x: float = 200.0
    row_height: float = 100.0
    hub_radius: float = 200.0
    collision_step: float = 60.0
    hub_threshold: int = 3


class RevealConfig(BaseModel):
    animation_speed: int = 1000  # ms between reveals
    min_speed: int = 100
    max_speed: int = 2000
    edge_animation_ms: int = 1000


class Config(BaseModel):
    braids_dir: str = "tests/braids"
    current_dag_path: str = "data/dag.json"
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    reveal: RevealConfig = Field(default_factory=RevealConfig)

    @property
    def resolved_braids_dir(self) -> Path:
        """Resolve braids_dir relative to project root."""
        return _resolve(self.braids_dir)

    @property
    def resolved_current_dag_path(self) -> Path:
        return _resolve(self.current_dag_path)


def _resolve(raw: str) -> Path:
    p = Path(raw).expanduser()
    if p.is_absolute():
        return p
    return _project_root() / p


def _project_root() -> Path:
    """Return the braidview project root directory."""
    return Path(__file__).parent.parent


def load_config(config_path: Path | None = None) -> Config:
    """Load config from YAML file. Falls back to defaults if file missing."""
    if config_path is None:
        config_path = _project_root() / "config.yaml"

    if config_path.exists():
        raw: dict[str, Any] = yaml.safe_load(config_path.read_text()) or {}
        return Config(**raw)

    return Config()
