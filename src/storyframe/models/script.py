"""Script data model."""

from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from .base import ArtifactModel


class Scene(ArtifactModel):
    """One narrative beat of the script."""

    scene_number: int = Field(..., description="1-based scene number", ge=1)
    location: str = Field(default="", description="Concrete place the scene happens")
    time_of_day: str = Field(default="", description="Morning, noon, dusk, night...")
    mood: str = Field(default="", description="Emotional atmosphere")
    characters: List[str] = Field(default_factory=list, description="Character names present")
    action: str = Field(default="", description="Visual action description")
    dialogue: Optional[str] = Field(None, description="Optional short dialogue")
    emotional_beat: str = Field(default="", description="Emotional turning point")
    visual_hook: str = Field(default="", description="Most eye-catching image of the scene")
    duration: str = Field(default="", description="Scene length, e.g. '5s'")

    @field_validator("duration", mode="before")
    @classmethod
    def _duration_as_text(cls, value):
        if isinstance(value, (int, float)):
            return f"{value:g}s"
        return value

    @field_validator("characters", mode="before")
    @classmethod
    def _strip_names(cls, value):
        if value is None:
            return []
        return [str(name).strip() for name in value if str(name).strip()]


class Script(ArtifactModel):
    """Structured script produced from a creative brief."""

    title: str = Field(..., description="Short title")
    genre: str = Field(default="", description="Genre")
    logline: str = Field(default="", description="One-line hook")
    summary: str = Field(default="", description="Story summary")
    emotional_arc: str = Field(default="", description="Emotional arc")
    target_audience: str = Field(default="", description="Target audience")
    visual_style: str = Field(default="", description="Overall visual style hint")
    scenes: List[Scene] = Field(default_factory=list, description="Ordered scenes")

    @model_validator(mode="after")
    def _dense_numbering(self) -> "Script":
        for position, scene in enumerate(self.scenes, start=1):
            if scene.scene_number != position:
                raise ValueError(
                    f"scene numbers must run 1..{len(self.scenes)} in order; "
                    f"position {position} has scene {scene.scene_number}"
                )
        return self

    def scene(self, scene_number: int) -> Optional[Scene]:
        """Return the scene with the given number, if present."""
        if 1 <= scene_number <= len(self.scenes):
            return self.scenes[scene_number - 1]
        return None
