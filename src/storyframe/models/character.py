"""Character design data model."""

from typing import List, Optional

from pydantic import Field

from .base import ArtifactModel


class CharacterInfo(ArtifactModel):
    """Textual design for one character."""

    name: str = Field(..., description="Unique character name")
    role: str = Field(default="", description="Lead, antagonist, supporting...")
    relationship: str = Field(default="", description="Relation to other characters")
    ethnicity: str = Field(default="", description="Ethnicity")
    age: str = Field(default="", description="Age")
    gender: str = Field(default="", description="Gender")
    description: str = Field(default="", description="Background and personality")
    appearance: str = Field(default="", description="Face, hair, build")
    outfit: str = Field(default="", description="Costume")
    expression: str = Field(default="", description="Default expression")
    prompt: str = Field(default="", description="English image-generation prompt")


class UnifiedSetting(ArtifactModel):
    """Traits shared by the whole cast."""

    ethnicity: str = Field(default="", description="Shared ethnicity")
    art_style_keywords: str = Field(default="", description="Unified art-style keywords")
    family_traits: str = Field(default="", description="Shared family features")


class DesignedCharacter(ArtifactModel):
    """A character together with its reference image."""

    info: CharacterInfo
    image: str = Field(..., description="Reference image location")


class CharacterDesign(ArtifactModel):
    """The designed cast, in order of first appearance in the script."""

    unified_setting: UnifiedSetting = Field(default_factory=UnifiedSetting)
    cast: List[DesignedCharacter] = Field(default_factory=list)

    @property
    def characters(self) -> List[CharacterInfo]:
        return [member.info for member in self.cast]

    @property
    def character_images(self) -> List[str]:
        return [member.image for member in self.cast]

    def find(self, name: str) -> Optional[CharacterInfo]:
        """Return the character with exactly this name."""
        for member in self.cast:
            if member.info.name == name:
                return member.info
        return None

    def image_for(self, name: str) -> Optional[str]:
        """Return the reference image for the named character."""
        for member in self.cast:
            if member.info.name == name:
                return member.image
        return None

    def with_image(self, index: int, image: str) -> "CharacterDesign":
        """Return a design where only slot ``index`` has a new image."""
        if not 0 <= index < len(self.cast):
            raise IndexError(f"character index {index} out of range")
        cast = list(self.cast)
        cast[index] = cast[index].model_copy(update={"image": image})
        return self.model_copy(update={"cast": cast})
