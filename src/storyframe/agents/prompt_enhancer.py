"""Prompt enhancer agent: rewrites storyboard prompts around the cast."""

from dataclasses import dataclass
from typing import List

from pydantic import Field

from ..models import SceneCharacterMapping, Storyboard
from ..models.base import ArtifactModel
from ..styles import base_keywords
from .base import BaseAgent


class EnhancedPrompt(ArtifactModel):
    scene_number: int
    prompt: str


class EnhancedPrompts(ArtifactModel):
    prompts: List[EnhancedPrompt] = Field(default_factory=list)


@dataclass
class EnhancerInput:
    """Input data for the prompt enhancer."""

    storyboard: Storyboard
    mapping: SceneCharacterMapping


class PromptEnhancerAgent(BaseAgent[EnhancerInput, Storyboard]):
    """Best-effort rewrite of every scene's image prompt.

    Never raises: any failure is logged and the storyboard comes back
    unchanged.
    """

    temperature = 0.3

    @property
    def name(self) -> str:
        return "PromptEnhancerAgent"

    @property
    def system_prompt(self) -> str:
        return """You are a film art director who turns storyboard notes into precise image prompts.

For each scene write one concise English prompt in natural language:
[character details] + [core action and expression] + [environment and lighting]
+ [emotional atmosphere] + [art style keywords] + [cinematic quality words].

Character details must match the descriptions given: gender, ethnicity,
appearance and outfit. Keep the art style keywords of the original prompt.

Return ONLY a JSON object:
{"prompts": [{"sceneNumber": 1, "prompt": "..."}]}"""

    def run(self, input_data: EnhancerInput) -> Storyboard:
        storyboard = input_data.storyboard
        try:
            response = self._create_message(self._build_prompt(storyboard, input_data.mapping))
            enhanced = self._parse(response, EnhancedPrompts)
            prompts = {p.scene_number: p.prompt for p in enhanced.prompts if p.prompt.strip()}
            missing = [s.scene_number for s in storyboard.scenes if s.scene_number not in prompts]
            if missing:
                raise ValueError(f"no enhanced prompt for scene(s) {missing}")
        except Exception as e:
            self._logger.warning(f"Prompt enhancement failed, keeping original prompts: {e}")
            return storyboard

        self._logger.info(f"Enhanced prompts for {len(storyboard.scenes)} scene(s)")
        return storyboard.with_prompts(prompts)

    def _build_prompt(self, storyboard: Storyboard, mapping: SceneCharacterMapping) -> str:
        lines = [f"Art style keywords: {base_keywords(storyboard.art_style)}", ""]
        for scene in storyboard.scenes:
            lines.extend([
                f"=== Scene {scene.scene_number} ===",
                f"Shot: {scene.shot_type}, {scene.camera_angle}, {scene.camera_movement}",
                f"Composition: {scene.composition}; character position: {scene.character_position}",
                f"Lighting: {scene.lighting} ({scene.color_temperature})",
                f"Mood: {scene.mood}",
                "Characters:",
            ])
            characters = mapping.for_scene(scene.scene_number)
            if not characters:
                lines.append("- none")
            for c in characters:
                lines.append(
                    f"- {c.name}: {c.gender}, {c.ethnicity}, {c.appearance}, "
                    f"{c.outfit}, {c.expression}"
                )
            lines.extend([f"Original prompt: {scene.prompt}", ""])
        lines.append("Return one prompt for every scene above.")
        return "\n".join(lines)
