"""Packaging of keyframes and video prompts into a zip archive."""

import logging
import zipfile
from datetime import datetime
from pathlib import Path
from typing import Optional

from .errors import InputValidationError
from .models import Keyframes, OverallStyle, VideoPromptScene, VideoPrompts

logger = logging.getLogger(__name__)


def _prefix(scene_number: int) -> str:
    return f"{scene_number:02d}"


def image_name(scene_number: int, source: str) -> str:
    """Archive name for a keyframe image, keeping the source extension."""
    suffix = Path(source).suffix.lower() or ".jpg"
    return f"{_prefix(scene_number)}_scene{suffix}"


def format_scene_prompts(scene: VideoPromptScene) -> str:
    lines = [f"Scene {scene.scene_number}", ""]
    if scene.scene_description:
        lines.extend([scene.scene_description, ""])
    for tool, prompt in scene.tool_prompts().items():
        lines.extend([f"[{tool}]", prompt or "-", ""])
    lines.extend([
        f"Camera movement: {scene.camera_movement}",
        f"Duration: {scene.duration}",
        f"Motion intensity: {scene.motion_intensity}",
        f"Audio: {scene.audio_suggestion}",
        f"Music mood: {scene.music_mood}",
    ])
    return "\n".join(lines) + "\n"


def format_overall_style(style: OverallStyle) -> str:
    return "\n".join([
        f"Visual style: {style.visual_style}",
        f"Color palette: {style.color_palette}",
        f"Motion style: {style.motion_style}",
        f"Audio atmosphere: {style.audio_atmosphere}",
    ]) + "\n"


def format_readme(title: str, keyframes: Keyframes, names: dict) -> str:
    lines = [
        f"# {title} - Keyframes",
        "",
        f"{len(keyframes.scenes)} keyframe(s)",
        "",
        "## Keyframes",
    ]
    for kf in keyframes.scenes:
        lines.extend([
            "",
            f"### Scene {kf.scene_number}",
            f"- Prompt: {kf.prompt}",
            f"- File: {names.get(kf.scene_number, 'missing')}",
        ])
    lines.extend(["", "---", f"Generated: {datetime.now():%Y-%m-%d %H:%M:%S}", ""])
    return "\n".join(lines)


def export_archive(
    keyframes: Keyframes,
    video_prompts: Optional[VideoPrompts],
    title: str,
    output: Path,
) -> Path:
    """Write keyframes, per-scene prompts and a README into ``output``.

    A keyframe whose image file cannot be read is left out of the archive
    and logged; the README marks it missing.

    Raises:
        InputValidationError: If there are no keyframes to export.
    """
    if not keyframes.scenes:
        raise InputValidationError("no keyframes to export")

    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    names = {}

    with zipfile.ZipFile(output, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for kf in keyframes.scenes:
            source = Path(kf.image)
            if not source.is_file():
                logger.warning(f"Keyframe image for scene {kf.scene_number} not found: {source}")
                continue
            name = image_name(kf.scene_number, kf.image)
            archive.write(source, name)
            names[kf.scene_number] = name

        if video_prompts is not None:
            for scene in video_prompts.scenes:
                archive.writestr(
                    f"{_prefix(scene.scene_number)}_prompts.txt",
                    format_scene_prompts(scene),
                )
            archive.writestr("overall_style.txt", format_overall_style(video_prompts.overall_style))

        archive.writestr("README.md", format_readme(title, keyframes, names))

    logger.info(f"Exported {len(names)} keyframe(s) to {output}")
    return output
