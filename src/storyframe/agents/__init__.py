"""Generation agents for each pipeline stage."""

from .base import BaseAgent
from .script_writer import ScriptInput, ScriptWriterAgent
from .storyboard import StoryboardAgent, StoryboardInput
from .character_designer import (
    CharacterDesignerAgent,
    CharacterInput,
    build_regeneration_prompt,
    collect_character_names,
    regenerate_character_image,
)
from .prompt_enhancer import EnhancerInput, PromptEnhancerAgent
from .video_prompts import VideoPromptAgent, VideoPromptInput

__all__ = [
    "BaseAgent",
    "ScriptInput",
    "ScriptWriterAgent",
    "StoryboardAgent",
    "StoryboardInput",
    "CharacterDesignerAgent",
    "CharacterInput",
    "build_regeneration_prompt",
    "collect_character_names",
    "regenerate_character_image",
    "EnhancerInput",
    "PromptEnhancerAgent",
    "VideoPromptAgent",
    "VideoPromptInput",
]
