"""Project state model."""

from enum import Enum
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

from .character import CharacterDesign
from .keyframe import Keyframes, SceneCharacterMapping
from .script import Script
from .storyboard import Storyboard
from .video_prompt import VideoPrompts


class ProjectState(str, Enum):
    """Project state enum."""
    INIT = "init"
    SCRIPTED = "scripted"
    STORYBOARDED = "storyboarded"
    CAST = "cast"
    KEYFRAMED = "keyframed"
    COMPLETED = "completed"
    FAILED = "failed"


class Project(BaseModel):
    """Artifacts produced so far for one brief."""

    requirement: str = Field(default="", description="Original creative brief")
    art_style: str = Field(default="写实风格", description="Selected art style name")
    art_style_strength: int = Field(default=80, ge=0, le=100)
    aspect_ratio: str = Field(default="9:16", description="Keyframe aspect ratio")
    state: ProjectState = Field(default=ProjectState.INIT, description="Current state")
    script: Optional[Script] = None
    storyboard: Optional[Storyboard] = None
    character_design: Optional[CharacterDesign] = None
    scene_character_mapping: Optional[SceneCharacterMapping] = None
    keyframes: Optional[Keyframes] = None
    video_prompts: Optional[VideoPrompts] = None
    errors: List[str] = Field(default_factory=list, description="Error messages")

    class Config:
        """Pydantic config."""
        frozen = False

    @classmethod
    def from_yaml(cls, path: Path) -> "Project":
        """Load project from YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save project to YAML file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                self.model_dump(mode="json", by_alias=True),
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )
