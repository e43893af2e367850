"""Storyboard data model."""

from typing import List, Optional

from pydantic import Field

from .base import ArtifactModel


class StoryboardScene(ArtifactModel):
    """Shot-level plan for a single scene."""

    scene_number: int = Field(..., ge=1, description="Matches the script scene number")
    shot_type: str = Field(default="", description="Close-up, medium, wide...")
    camera_angle: str = Field(default="", description="Eye level, high, low...")
    camera_movement: str = Field(default="", description="Static, dolly in, pan...")
    focal_length: str = Field(default="", description="Wide, standard, telephoto")
    depth_of_field: str = Field(default="", description="Shallow or deep DOF")
    composition: str = Field(default="", description="Rule of thirds, symmetry...")
    character_position: str = Field(default="", description="Where characters stand")
    lighting: str = Field(default="", description="Lighting setup")
    color_temperature: str = Field(default="", description="warm / cool / neutral")
    mood: str = Field(default="", description="Atmosphere")
    transition: str = Field(default="", description="Cut, fade, dissolve...")
    prompt: str = Field(..., description="English image-generation prompt")
    video_prompt: str = Field(default="", description="English motion prompt")


class Storyboard(ArtifactModel):
    """Storyboard for a whole script."""

    art_style: str = Field(default="", description="Selected art style name")
    aspect_ratio: str = Field(default="9:16", description="Shared aspect ratio")
    camera_style: str = Field(default="", description="Overall camera style")
    lighting_style: str = Field(default="", description="Overall lighting style")
    scenes: List[StoryboardScene] = Field(default_factory=list)

    def scene(self, scene_number: int) -> Optional[StoryboardScene]:
        """Return the scene with the given number, if present."""
        for scene in self.scenes:
            if scene.scene_number == scene_number:
                return scene
        return None

    def with_prompts(self, prompts: dict[int, str]) -> "Storyboard":
        """Return a copy whose scene prompts are replaced by scene number."""
        scenes = [
            scene.model_copy(update={"prompt": prompts[scene.scene_number]})
            if scene.scene_number in prompts
            else scene
            for scene in self.scenes
        ]
        return self.model_copy(update={"scenes": scenes})
