"""Video prompt data model."""

from typing import ClassVar, List

from pydantic import Field, field_validator

from .base import ArtifactModel


class OverallStyle(ArtifactModel):
    """Style guidance shared by every scene's video prompts."""

    visual_style: str = ""
    color_palette: str = ""
    motion_style: str = ""
    audio_atmosphere: str = ""


class VideoPromptScene(ArtifactModel):
    """Per-scene prompts for external video-generation tools."""

    scene_number: int = Field(..., ge=1)
    scene_description: str = Field(default="", description="Human-readable description")
    sora_prompt: str = Field(default="", description="OpenAI Sora prompt")
    runway_prompt: str = Field(default="", description="Runway prompt")
    pika_prompt: str = Field(default="", description="Pika prompt")
    kling_prompt: str = Field(default="", description="Kling prompt (Chinese)")
    chinese_prompt: str = Field(default="", description="Generic Chinese prompt")
    camera_movement: str = ""
    duration: str = ""
    motion_intensity: str = Field(default="", description="low / medium / high")
    audio_suggestion: str = ""
    music_mood: str = ""

    TOOL_FIELDS: ClassVar[tuple[tuple[str, str], ...]] = (
        ("Sora", "sora_prompt"),
        ("Runway", "runway_prompt"),
        ("Pika", "pika_prompt"),
        ("Kling", "kling_prompt"),
        ("Chinese", "chinese_prompt"),
    )

    @field_validator("duration", mode="before")
    @classmethod
    def _duration_as_text(cls, value):
        if isinstance(value, (int, float)):
            return f"{value:g}s"
        return value

    def tool_prompts(self) -> dict[str, str]:
        """Return the prompt for every supported tool, keyed by tool name."""
        return {tool: getattr(self, field) for tool, field in self.TOOL_FIELDS}


class VideoPrompts(ArtifactModel):
    """Video prompts for the whole storyboard."""

    overall_style: OverallStyle = Field(default_factory=OverallStyle)
    scenes: List[VideoPromptScene] = Field(default_factory=list)
