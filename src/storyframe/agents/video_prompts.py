"""Video prompt agent: per-tool motion prompts for every keyframed scene."""

from dataclasses import dataclass
from typing import Optional

from ..errors import InputValidationError, SchemaValidationError
from ..models import Keyframes, Script, Storyboard, VideoPrompts
from .base import BaseAgent

SYSTEM_PROMPT = """You are an expert in AI video generation tools: OpenAI Sora, Runway Gen-2,
Pika and Kling. Turn a script and its storyboard into optimised video prompts for
every scene.

Tool notes:
- Sora: long, high-quality clips; understands complex camera language. Write detailed
  English with explicit camera movement and the passage of time.
- Runway: 8-second clips. Write concise English stressing subject motion and camera path.
- Pika: stylised, animation-friendly. Write English with visuals, motion and style words.
- Kling: performs best with clear Chinese descriptions of subject and motion.

Return ONLY a JSON object:
{
  "overallStyle": {
    "visualStyle": "English, e.g. cinematic, warm tones, soft lighting",
    "colorPalette": "English, e.g. muted colors with warm highlights",
    "motionStyle": "English, e.g. smooth slow movements, gentle transitions",
    "audioAtmosphere": "English, e.g. ambient sound, soft background music"
  },
  "scenes": [
    {
      "sceneNumber": 1,
      "sceneDescription": "scene description for the user",
      "soraPrompt": "Sora prompt",
      "runwayPrompt": "Runway prompt",
      "pikaPrompt": "Pika prompt",
      "klingPrompt": "Kling prompt, in Chinese",
      "chinesePrompt": "generic Chinese prompt",
      "cameraMovement": "camera movement",
      "duration": "suggested length, e.g. 5s",
      "motionIntensity": "low / medium / high",
      "audioSuggestion": "sound effects",
      "musicMood": "music mood"
    }
  ]
}

Principles:
1. Be concrete about what is on screen.
2. Name camera moves with film terms: dolly in, pan, tilt, tracking shot, static.
3. Describe change over time: slowly, gradually, in a sequence.
4. Include light and atmosphere: golden hour, soft natural light, dramatic shadows.
5. Match motion intensity to emotion: high for tension, low for lyrical moments."""


@dataclass
class VideoPromptInput:
    """Input data for the video prompt agent."""

    script: Optional[Script]
    storyboard: Optional[Storyboard]
    keyframes: Optional[Keyframes]


class VideoPromptAgent(BaseAgent[VideoPromptInput, VideoPrompts]):
    """Agent that writes tool-specific video prompts for the finished keyframes."""

    temperature = 0.7

    @property
    def name(self) -> str:
        return "VideoPromptAgent"

    @property
    def system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def run(self, input_data: VideoPromptInput) -> VideoPrompts:
        """Generate video prompts.

        Raises:
            InputValidationError: If script, storyboard or keyframes is missing.
            ResponseParseError: If the reply cannot be parsed.
            SchemaValidationError: If the reply does not cover exactly the
                keyframed scenes.
        """
        script, storyboard, keyframes = (
            input_data.script, input_data.storyboard, input_data.keyframes,
        )
        if script is None or not script.scenes:
            raise InputValidationError("missing required input: script")
        if storyboard is None or not storyboard.scenes:
            raise InputValidationError("missing required input: storyboard")
        if keyframes is None or not keyframes.scenes:
            raise InputValidationError("missing required input: keyframes")

        self._logger.info(f"Writing video prompts for {len(storyboard.scenes)} scene(s)")
        response = self._create_message(self._build_prompt(script, storyboard))
        prompts = self._align_with_keyframes(self._parse(response, VideoPrompts), keyframes)
        self._logger.info(f"Got video prompts for {len(prompts.scenes)} scene(s)")
        return prompts

    def _build_prompt(self, script: Script, storyboard: Storyboard) -> str:
        lines = [
            "Script:",
            f"- Title: {script.title}",
            f"- Genre: {script.genre}",
            f"- Emotional arc: {script.emotional_arc}",
            f"- Visual style: {script.visual_style}",
            "",
            "Storyboard and scenes:",
        ]
        for position, scene in enumerate(storyboard.scenes):
            source = script.scenes[position] if position < len(script.scenes) else None
            lines.extend([
                f"Scene {scene.scene_number}:",
                f"- Shot: {scene.shot_type}",
                f"- Angle: {scene.camera_angle}",
                f"- Camera: {scene.camera_movement}",
                f"- Composition: {scene.composition}",
                f"- Lighting: {scene.lighting}",
                f"- Transition: {scene.transition}",
                f"- Action: {source.action if source else ''}",
                f"- Emotional beat: {source.emotional_beat if source else ''}",
                f"- Visual hook: {source.visual_hook if source else ''}",
            ])
        lines.extend(["", "Write optimised video prompts for every scene and return JSON."])
        return "\n".join(lines)

    def _align_with_keyframes(self, prompts: VideoPrompts, keyframes: Keyframes) -> VideoPrompts:
        expected = [scene.scene_number for scene in keyframes.scenes]
        got = [scene.scene_number for scene in prompts.scenes]
        if sorted(got) != expected:
            raise SchemaValidationError(
                "could not validate against schema VideoPrompts",
                details=[f"expected scenes {expected}, got {got}"],
            )
        by_number = {scene.scene_number: scene for scene in prompts.scenes}
        return prompts.model_copy(update={"scenes": [by_number[n] for n in expected]})
