"""Storyboard agent: script to shot-level plan."""

from dataclasses import dataclass

from ..errors import InputValidationError, SchemaValidationError
from ..models import Script, Storyboard
from ..styles import DEFAULT_STYLE, contains_style_keyword, style_keywords
from .base import BaseAgent


@dataclass
class StoryboardInput:
    """Input data for the storyboard planner."""

    script: Script
    art_style: str = DEFAULT_STYLE
    art_style_strength: int = 80
    aspect_ratio: str = "9:16"


class StoryboardAgent(BaseAgent[StoryboardInput, Storyboard]):
    """Agent that plans camera, lighting and an image prompt for every scene."""

    temperature = 0.3

    def __init__(self, client, timeout: float = 60.0) -> None:
        """Initialize the storyboard agent.

        Args:
            client: Text-generation client.
            timeout: Wall-clock budget for the single text call, in seconds.
        """
        super().__init__(client)
        self.timeout = timeout

    @property
    def name(self) -> str:
        """Return the agent's name."""
        return "StoryboardAgent"

    @property
    def system_prompt(self) -> str:
        """Return the system prompt for storyboard planning."""
        return """You are a professional storyboard artist. Convert a script into a JSON storyboard.

Return JSON in this format:
{
  "artStyle": "art style name",
  "aspectRatio": "9:16",
  "cameraStyle": "overall camera style, e.g. steady framing, slow tracking",
  "lightingStyle": "overall lighting style, e.g. natural light, warm interior",
  "scenes": [
    {
      "sceneNumber": 1,
      "shotType": "Close-up / Medium Shot / Wide Shot",
      "cameraAngle": "Eye Level / High Angle / Low Angle",
      "cameraMovement": "Static / Dolly In / Pan / Tracking",
      "focalLength": "standard / wide / telephoto",
      "depthOfField": "Shallow DOF / Deep DOF",
      "composition": "rule of thirds / symmetry / diagonal",
      "characterPosition": "where the characters stand",
      "lighting": "lighting description",
      "colorTemperature": "warm / cool / neutral",
      "mood": "atmosphere",
      "transition": "Cut / Fade / Dissolve",
      "prompt": "English image prompt: art style keywords + scene description",
      "videoPrompt": "English video prompt: on-screen motion + camera movement"
    }
  ]
}

Key requirements:
1. One storyboard scene per script scene, with the same sceneNumber.
2. Every prompt must contain the art style keywords given by the user.
3. Keep it concise and professional, suitable for AI video generation.
4. Return the JSON directly, without any explanation."""

    def run(self, input_data: StoryboardInput) -> Storyboard:
        """Plan the storyboard for a script.

        Raises:
            InputValidationError: If the script has no scenes.
            GenerationTimeout: If the call exceeds the timeout.
            SchemaValidationError: If the scenes do not mirror the script.
        """
        script = input_data.script
        if script is None or not script.scenes:
            raise InputValidationError("script must contain at least one scene")

        keywords = style_keywords(input_data.art_style, input_data.art_style_strength)
        self._logger.info(
            f"Planning storyboard for {len(script.scenes)} scenes "
            f"(style={input_data.art_style}, strength={input_data.art_style_strength})"
        )

        response = self._create_message(
            self._build_prompt(script, keywords),
            timeout=self.timeout,
        )
        storyboard = self._parse(response, Storyboard)
        storyboard = self._align_with_script(storyboard, script)

        scenes = []
        for scene in storyboard.scenes:
            if not contains_style_keyword(scene.prompt, keywords):
                self._logger.warning(
                    f"Scene {scene.scene_number} prompt lacks style keywords; prepending them"
                )
                scene = scene.model_copy(update={"prompt": f"{keywords}, {scene.prompt}"})
            scenes.append(scene)

        return storyboard.model_copy(update={
            "art_style": input_data.art_style,
            "aspect_ratio": input_data.aspect_ratio,
            "scenes": scenes,
        })

    def _build_prompt(self, script: Script, keywords: str) -> str:
        """Summarize the script down to what a storyboard artist needs."""
        lines = [
            f"Script: {script.title} ({script.genre})",
            f"Style: {script.visual_style}",
            "",
            "Scenes:",
        ]
        for scene in script.scenes:
            lines.append(
                f"Scene {scene.scene_number}: {scene.location}, {scene.time_of_day}, "
                f"characters: {', '.join(scene.characters) or 'none'}, {scene.action}"
            )
        lines.extend([
            "",
            f"Art style keywords: {keywords}",
            "",
            "Generate the storyboard JSON. Every prompt must contain the art style keywords.",
        ])
        return "\n".join(lines)

    def _align_with_script(self, storyboard: Storyboard, script: Script) -> Storyboard:
        expected = [scene.scene_number for scene in script.scenes]
        got = [scene.scene_number for scene in storyboard.scenes]
        if sorted(got) != expected:
            raise SchemaValidationError(
                "could not validate against schema Storyboard",
                details=[f"expected scenes {expected}, got {got}"],
            )
        by_number = {scene.scene_number: scene for scene in storyboard.scenes}
        return storyboard.model_copy(update={"scenes": [by_number[n] for n in expected]})
