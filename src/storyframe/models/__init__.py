"""Data models for the storyboard pipeline."""

from .script import Scene, Script
from .storyboard import Storyboard, StoryboardScene
from .character import CharacterDesign, CharacterInfo, DesignedCharacter, UnifiedSetting
from .keyframe import (
    KeyframeScene,
    Keyframes,
    MappedCharacter,
    SceneCharacterMapping,
    SceneCharacters,
)
from .video_prompt import OverallStyle, VideoPromptScene, VideoPrompts
from .project import Project, ProjectState

__all__ = [
    "Scene",
    "Script",
    "Storyboard",
    "StoryboardScene",
    "CharacterDesign",
    "CharacterInfo",
    "DesignedCharacter",
    "UnifiedSetting",
    "KeyframeScene",
    "Keyframes",
    "MappedCharacter",
    "SceneCharacterMapping",
    "SceneCharacters",
    "OverallStyle",
    "VideoPromptScene",
    "VideoPrompts",
    "Project",
    "ProjectState",
]
