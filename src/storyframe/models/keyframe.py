"""Scene mapping and keyframe data models."""

from typing import List, Optional

from pydantic import Field, model_validator

from .base import ArtifactModel


class MappedCharacter(ArtifactModel):
    """A character placed in a scene, with the descriptors used for prompting."""

    name: str
    position: str = Field(default="", description="Position hint in the frame")
    gender: str = ""
    age: str = ""
    ethnicity: str = ""
    appearance: str = ""
    outfit: str = ""
    expression: str = ""
    resolved: bool = Field(default=True, description="False if no design matched the name")


class SceneCharacters(ArtifactModel):
    """Characters present in one scene."""

    scene_number: int
    characters: List[MappedCharacter] = Field(default_factory=list)


class SceneCharacterMapping(ArtifactModel):
    """Scene number to characters, derived from the script."""

    scenes: List[SceneCharacters] = Field(default_factory=list)

    def for_scene(self, scene_number: int) -> List[MappedCharacter]:
        for entry in self.scenes:
            if entry.scene_number == scene_number:
                return entry.characters
        return []


class KeyframeScene(ArtifactModel):
    """The still image generated for one scene."""

    scene_number: int = Field(..., ge=1)
    prompt: str = Field(..., description="Prompt actually sent to the image service")
    image: str = Field(..., description="Image location")


class Keyframes(ArtifactModel):
    """One keyframe per storyboard scene, ordered by scene number."""

    scenes: List[KeyframeScene] = Field(default_factory=list)

    @model_validator(mode="after")
    def _ordered_unique(self) -> "Keyframes":
        self.scenes.sort(key=lambda s: s.scene_number)
        numbers = [s.scene_number for s in self.scenes]
        if len(numbers) != len(set(numbers)):
            raise ValueError("duplicate keyframe scene numbers")
        return self

    def scene(self, scene_number: int) -> Optional[KeyframeScene]:
        for scene in self.scenes:
            if scene.scene_number == scene_number:
                return scene
        return None

    def with_image(self, scene_number: int, image: str) -> "Keyframes":
        """Return keyframes where only the given scene's image changes."""
        if self.scene(scene_number) is None:
            raise KeyError(f"no keyframe for scene {scene_number}")
        scenes = [
            s.model_copy(update={"image": image}) if s.scene_number == scene_number else s
            for s in self.scenes
        ]
        return self.model_copy(update={"scenes": scenes})
