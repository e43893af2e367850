"""Stage orchestration and the response envelope each stage reports through."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from .agents import (
    CharacterDesignerAgent,
    CharacterInput,
    EnhancerInput,
    PromptEnhancerAgent,
    ScriptInput,
    ScriptWriterAgent,
    StoryboardAgent,
    StoryboardInput,
    VideoPromptAgent,
    VideoPromptInput,
    regenerate_character_image,
)
from .batch import BatchRunner
from .config import Config
from .errors import InputValidationError, StoryframeError
from .keyframes import KeyframeCompositor, regenerate_keyframe
from .mapping import build_scene_character_mapping
from .models import Project, ProjectState, SceneCharacterMapping, Storyboard
from .previews import generate_style_previews
from .services.anthropic import AnthropicClient
from .services.imagen import ImagenClient

logger = logging.getLogger(__name__)


@dataclass
class StageResponse:
    """Uniform result of one stage call.

    Success carries the named artifact; failure carries a message, optional
    diagnostic details and an HTTP-style status code.
    """

    success: bool
    artifact_name: str
    artifact: Any = None
    error: Optional[str] = None
    details: Any = None
    status_code: int = 200

    @classmethod
    def ok(cls, artifact_name: str, artifact: Any) -> "StageResponse":
        return cls(success=True, artifact_name=artifact_name, artifact=artifact)

    @classmethod
    def failure(cls, artifact_name: str, error: Exception) -> "StageResponse":
        if isinstance(error, StoryframeError):
            return cls(
                success=False,
                artifact_name=artifact_name,
                error=error.message,
                details=error.details,
                status_code=error.status_code,
            )
        return cls(
            success=False,
            artifact_name=artifact_name,
            error=str(error) or type(error).__name__,
            details={"type": type(error).__name__},
            status_code=500,
        )

    def to_dict(self) -> dict:
        if self.success:
            payload = self.artifact
            if hasattr(payload, "to_payload"):
                payload = payload.to_payload()
            return {"success": True, self.artifact_name: payload}
        body = {"success": False, "error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class Pipeline:
    """Runs the generation stages in order against a Project.

    Each stage method records its artifact on the project when it succeeds
    and returns a StageResponse either way.
    """

    def __init__(
        self,
        config: Config,
        text_client: Optional[AnthropicClient] = None,
        image_client: Optional[ImagenClient] = None,
        runner: Optional[BatchRunner] = None,
        keyframe_runner: Optional[BatchRunner] = None,
    ) -> None:
        self.config = config
        self._text_client = text_client
        self._image_client = image_client
        self.runner = runner or BatchRunner.from_config(config)
        self.keyframe_runner = keyframe_runner or BatchRunner.keyframes_from_config(config)

    @property
    def text_client(self) -> AnthropicClient:
        if self._text_client is None:
            self.config.validate_required()
            self._text_client = AnthropicClient(self.config)
        return self._text_client

    @property
    def image_client(self) -> ImagenClient:
        if self._image_client is None:
            self.config.validate_image_required()
            self._image_client = ImagenClient(self.config)
        return self._image_client

    @property
    def assets_dir(self) -> Path:
        return Path(self.config.workspace) / "assets"

    def run_stage(self, artifact_name: str, fn: Callable[..., Any], *args, **kwargs) -> StageResponse:
        """Call ``fn`` and wrap its result, or its error, in a StageResponse."""
        try:
            return StageResponse.ok(artifact_name, fn(*args, **kwargs))
        except StoryframeError as e:
            logger.error(f"Stage {artifact_name} failed ({e.status_code}): {e.message}")
            return StageResponse.failure(artifact_name, e)
        except Exception as e:
            logger.exception(f"Stage {artifact_name} failed unexpectedly")
            return StageResponse.failure(artifact_name, e)

    def _record(self, project: Project, response: StageResponse, state: ProjectState) -> StageResponse:
        if response.success:
            project.state = state
        else:
            project.errors.append(f"{response.artifact_name}: {response.error}")
        return response

    def script(self, project: Project, feedback: Optional[str] = None) -> StageResponse:
        """Write the script, or revise the current one when feedback is given."""
        def write():
            agent = ScriptWriterAgent(self.text_client)
            if feedback is not None:
                return agent.run(ScriptInput(requirement=feedback, previous_script=project.script))
            return agent.run(ScriptInput(requirement=project.requirement))

        response = self.run_stage("script", write)
        if response.success:
            project.script = response.artifact
        return self._record(project, response, ProjectState.SCRIPTED)

    def storyboard(self, project: Project) -> StageResponse:
        def plan():
            if project.script is None:
                raise InputValidationError("script must contain at least one scene")
            agent = StoryboardAgent(self.text_client, timeout=self.config.storyboard_timeout)
            return agent.run(StoryboardInput(
                script=project.script,
                art_style=project.art_style,
                art_style_strength=project.art_style_strength,
                aspect_ratio=project.aspect_ratio,
            ))

        response = self.run_stage("storyboard", plan)
        if response.success:
            project.storyboard = response.artifact
        return self._record(project, response, ProjectState.STORYBOARDED)

    def characters(self, project: Project, fast_mode: bool = False, aspect_ratio: str = "3:4") -> StageResponse:
        def design():
            if project.script is None:
                raise InputValidationError("missing required input: script")
            agent = CharacterDesignerAgent(
                self.text_client,
                self.image_client,
                output_dir=self.assets_dir / "characters",
                runner=self.runner,
            )
            return agent.run(CharacterInput(
                script=project.script,
                art_style=project.art_style,
                art_style_strength=project.art_style_strength,
                fast_mode=fast_mode,
                aspect_ratio=aspect_ratio,
            ))

        response = self.run_stage("design", design)
        if response.success:
            project.character_design = response.artifact
        return self._record(project, response, ProjectState.CAST)

    def keyframes(self, project: Project, fast_mode: bool = False, enhance: bool = True) -> StageResponse:
        """Map the cast onto scenes, enhance prompts, then draw every keyframe."""
        def compose():
            if project.script is None or project.storyboard is None:
                raise InputValidationError("missing required input: script and storyboard")
            if project.character_design is None:
                raise InputValidationError("missing required input: character design")

            mapping = build_scene_character_mapping(
                project.script, project.storyboard, project.character_design,
            )
            project.scene_character_mapping = mapping

            storyboard = project.storyboard
            if enhance:
                storyboard = self._enhance(storyboard, mapping)

            compositor = KeyframeCompositor(
                self.image_client,
                output_dir=self.assets_dir / "keyframes",
                runner=self.keyframe_runner,
            )
            return compositor.compose(
                storyboard,
                project.character_design,
                mapping,
                fast_mode=fast_mode,
                aspect_ratio=project.aspect_ratio,
            )

        response = self.run_stage("keyframes", compose)
        if response.success:
            project.keyframes = response.artifact
        return self._record(project, response, ProjectState.KEYFRAMED)

    def _enhance(self, storyboard: Storyboard, mapping: SceneCharacterMapping) -> Storyboard:
        """Best-effort prompt enhancement; skipped if no text client can be built."""
        try:
            client = self.text_client
        except ValueError as e:
            logger.warning(f"Skipping prompt enhancement: {e}")
            return storyboard
        return PromptEnhancerAgent(client).run(EnhancerInput(storyboard=storyboard, mapping=mapping))

    def video_prompts(self, project: Project) -> StageResponse:
        def transcode():
            agent = VideoPromptAgent(self.text_client)
            return agent.run(VideoPromptInput(
                script=project.script,
                storyboard=project.storyboard,
                keyframes=project.keyframes,
            ))

        response = self.run_stage("videoPrompts", transcode)
        if response.success:
            project.video_prompts = response.artifact
        return self._record(project, response, ProjectState.COMPLETED)

    def regenerate_character(self, project: Project, index: int, fast_mode: bool = False) -> StageResponse:
        """Redraw one character image; every other slot is left as is."""
        def redraw():
            design = project.character_design
            if design is None or not 0 <= index < len(design.cast):
                raise InputValidationError(f"no character at index {index}")
            character = design.cast[index].info
            output_path = self._next_path(self.assets_dir / "characters", f"character_{index + 1:02d}")
            image = regenerate_character_image(
                self.image_client,
                character,
                design.unified_setting.art_style_keywords,
                output_path,
                strength=project.art_style_strength,
                fast_mode=fast_mode,
            )
            return design.with_image(index, image)

        response = self.run_stage("design", redraw)
        if response.success:
            project.character_design = response.artifact
        return response

    def regenerate_keyframe(
        self,
        project: Project,
        scene_number: int,
        prompt: Optional[str] = None,
        fast_mode: bool = False,
    ) -> StageResponse:
        """Redraw one keyframe; every other scene is left as is."""
        def redraw():
            keyframes = project.keyframes
            scene = keyframes.scene(scene_number) if keyframes else None
            if scene is None:
                raise InputValidationError(f"no keyframe for scene {scene_number}")
            images = project.character_design.character_images if project.character_design else []
            output_path = self._next_path(self.assets_dir / "keyframes", f"scene_{scene_number:02d}")
            image = regenerate_keyframe(
                self.image_client,
                scene,
                images,
                output_path,
                prompt=prompt,
                aspect_ratio=project.aspect_ratio,
                fast_mode=fast_mode,
            )
            return keyframes.with_image(scene_number, image)

        response = self.run_stage("keyframes", redraw)
        if response.success:
            project.keyframes = response.artifact
        return response

    def previews(self, output_dir: Optional[Path] = None) -> StageResponse:
        return self.run_stage(
            "previews",
            generate_style_previews,
            self.image_client,
            output_dir or self.assets_dir / "style-previews",
            runner=self.runner,
        )

    def run(self, project: Project, fast_mode: bool = False) -> Project:
        """Run every stage in order, stopping at the first failure."""
        stages = [
            ("script", lambda: self.script(project)),
            ("storyboard", lambda: self.storyboard(project)),
            ("characters", lambda: self.characters(project, fast_mode=fast_mode)),
            ("keyframes", lambda: self.keyframes(project, fast_mode=fast_mode)),
            ("video prompts", lambda: self.video_prompts(project)),
        ]
        for label, stage in stages:
            logger.info(f"Running stage: {label}")
            response = stage()
            if not response.success:
                project.state = ProjectState.FAILED
                logger.error(f"Pipeline stopped at {label}: {response.error}")
                break
        return project

    @staticmethod
    def _next_path(directory: Path, stem: str) -> Path:
        """First unused ``<stem>_rN.png`` in ``directory``."""
        n = 1
        while (directory / f"{stem}_r{n}.png").exists():
            n += 1
        return directory / f"{stem}_r{n}.png"
