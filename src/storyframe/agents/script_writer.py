"""Script writer agent: creative brief to structured script."""

import json
from dataclasses import dataclass
from typing import Optional

from ..errors import InputValidationError, SchemaValidationError
from ..models import Script
from .base import BaseAgent

MIN_SCENES = 5
MAX_SCENES = 8

SYSTEM_PROMPT = f"""You are an award-winning screenwriter of short-form video.
Write scripts that grab attention in the first three seconds, move through a clear
conflict or turn in every scene, and tell the story mostly through images.

Return ONLY a JSON object, with no markdown fences and no commentary:
{{
  "title": "short, punchy title",
  "genre": "genre",
  "logline": "one-line hook naming the conflict",
  "summary": "story summary, under 150 words",
  "emotionalArc": "emotional arc, e.g. lonely - meeting - warmth - hope",
  "targetAudience": "target audience",
  "visualStyle": "overall visual style suggestion",
  "scenes": [
    {{
      "sceneNumber": 1,
      "location": "concrete place",
      "timeOfDay": "morning / noon / dusk / night",
      "mood": "atmosphere",
      "characters": ["character name"],
      "action": "concrete, visual action: verbs and details",
      "dialogue": "optional short line, or 'silent'",
      "emotionalBeat": "emotional beat of this scene",
      "visualHook": "the single most eye-catching image of this scene",
      "duration": "5-10s"
    }}
  ]
}}

Rules:
1. {MIN_SCENES}-{MAX_SCENES} scenes, 45-60 seconds in total, numbered from 1 without gaps.
2. Every scene MUST have a non-empty visualHook.
3. Actions are specific and filmable; never write abstract lines like "he thinks".
4. The emotional arc is complete and has rises and falls.
5. The last scene ends on an emotional upswing or an open ending.
6. Use exactly the same character name every time a character appears; annotate
   gender in the name on first use when it is not obvious, e.g. "Lin (female)".
7. Write the content in the language of the user's request."""


@dataclass
class ScriptInput:
    """Input data for the script writer."""

    requirement: str
    previous_script: Optional[Script] = None


class ScriptWriterAgent(BaseAgent[ScriptInput, Script]):
    """Agent that turns a free-text brief into a Script.

    With ``previous_script`` set, the brief is treated as revision feedback
    on that script.
    """

    temperature = 0.3

    @property
    def name(self) -> str:
        """Return the agent's name."""
        return "ScriptWriterAgent"

    @property
    def system_prompt(self) -> str:
        """Return the system prompt for script writing."""
        return SYSTEM_PROMPT

    def run(self, input_data: ScriptInput) -> Script:
        """Generate (or revise) a script.

        Args:
            input_data: Requirement text and optional script to revise.

        Returns:
            Validated Script.

        Raises:
            InputValidationError: If the requirement is empty.
            ResponseParseError: If the reply holds no usable JSON.
            SchemaValidationError: If the script breaks the writing rules.
        """
        requirement = (input_data.requirement or "").strip()
        if not requirement:
            raise InputValidationError("requirement must not be empty")

        mode = "Revising" if input_data.previous_script else "Writing"
        self._logger.info(f"{mode} script for: '{requirement[:60]}'")

        response = self._create_message(self._build_prompt(requirement, input_data.previous_script))
        script = self._parse(response, Script)
        self._check_rules(script)

        self._logger.info(f"Script '{script.title}' has {len(script.scenes)} scenes")
        return script

    def _build_prompt(self, requirement: str, previous: Optional[Script]) -> str:
        """Build the user prompt for a new script or a revision."""
        if previous is not None:
            serialized = json.dumps(previous.to_payload(), ensure_ascii=False, indent=2)
            return "\n".join([
                "This is the previous version of the script:",
                serialized,
                "",
                f"The user wants these changes: {requirement}",
                "",
                "Revise the script accordingly. Keep everything the user did not ask to change,",
                "including the title and the number of scenes.",
                "Return the complete revised script as a JSON object only.",
            ])

        return "\n".join([
            f"User request: {requirement}",
            "",
            "Write a moving script that:",
            "1. Opens with a strong visual hook in the first three seconds",
            "2. Has a clear emotional arc",
            "3. Gives every scene an eye-catching image",
            "",
            "Return the JSON object only.",
        ])

    def _check_rules(self, script: Script) -> None:
        problems = []
        if not MIN_SCENES <= len(script.scenes) <= MAX_SCENES:
            problems.append(
                f"expected {MIN_SCENES}-{MAX_SCENES} scenes, got {len(script.scenes)}"
            )
        for scene in script.scenes:
            if not scene.visual_hook.strip():
                problems.append(f"scene {scene.scene_number} has no visual hook")
        if problems:
            raise SchemaValidationError(
                "could not validate against schema Script", details=problems
            )
