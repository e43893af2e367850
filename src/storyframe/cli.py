"""CLI entry point for the storyboard generator."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from . import __version__
from .config import ConfigStore
from .export import export_archive
from .models import Project
from .pipeline import Pipeline, StageResponse
from .previews import list_style_previews
from .styles import DEFAULT_STYLE, STYLE_KEYWORDS

app = typer.Typer(
    name="storyframe",
    help="AI-assisted storyboard and keyframe generator",
    no_args_is_help=True
)


@dataclass
class CliState:
    store: ConfigStore
    json_output: bool = False


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"storyframe version {__version__}")
        raise typer.Exit()


def project_option():
    return typer.Option(
        Path("project.yaml"),
        "--project",
        "-p",
        help="Path to the project YAML file",
        file_okay=True,
        dir_okay=False
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
    env_file: Optional[Path] = typer.Option(
        None,
        "--env-file",
        help="Load settings from this .env file"
    ),
    custom_endpoint: Optional[str] = typer.Option(
        None,
        "--custom-endpoint",
        help="Send text generation to this Anthropic-compatible endpoint"
    ),
    custom_api_key: Optional[str] = typer.Option(
        None,
        "--custom-api-key",
        help="API key for the custom endpoint"
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the stage response envelope as JSON"
    ),
) -> None:
    """Storyframe - Turn a creative brief into a storyboard with keyframes."""
    setup_logging(verbose)
    store = ConfigStore(env_file)
    if custom_endpoint or custom_api_key:
        store.update(
            use_custom_api=True,
            custom_api_endpoint=custom_endpoint,
            custom_api_key=custom_api_key,
        )
    ctx.obj = CliState(store=store, json_output=json_output)


def _load_project(path: Path) -> Project:
    if not path.exists():
        typer.echo(f"❌ No project found at {path}")
        typer.echo("   Run 'storyframe script \"<brief>\"' to create a new project")
        raise typer.Exit(1)
    try:
        return Project.from_yaml(path)
    except Exception as e:
        typer.echo(f"❌ Error loading project: {e}")
        raise typer.Exit(1)


def _save_project(project: Project, path: Path) -> None:
    try:
        project.to_yaml(path)
    except Exception as e:
        typer.echo(f"❌ Error saving project: {e}")
        raise typer.Exit(1)


def _pipeline(ctx: typer.Context) -> Pipeline:
    return Pipeline(ctx.obj.store.current)


def _report(ctx: typer.Context, response: StageResponse, project: Optional[Project], path: Path) -> None:
    """Persist the project and print the outcome; exit non-zero on failure."""
    if project is not None:
        _save_project(project, path)

    if ctx.obj.json_output:
        typer.echo(json.dumps(response.to_dict(), ensure_ascii=False, indent=2))
    elif response.success:
        typer.echo(f"✅ {response.artifact_name} saved to {path}")
    else:
        typer.echo(f"❌ {response.artifact_name} failed ({response.status_code}): {response.error}")
        if response.details:
            typer.echo(f"   Details: {response.details}")

    if not response.success:
        raise typer.Exit(1)


def _check_style(art_style: str) -> None:
    if art_style not in STYLE_KEYWORDS:
        typer.echo(f"⚠️  Unknown art style '{art_style}', falling back to {DEFAULT_STYLE}")


@app.command()
def script(
    ctx: typer.Context,
    requirement: Optional[str] = typer.Argument(
        None,
        help="Creative brief for a new script"
    ),
    feedback: Optional[str] = typer.Option(
        None,
        "--revise",
        "-r",
        help="Revise the project's existing script with this feedback"
    ),
    art_style: str = typer.Option(
        DEFAULT_STYLE,
        "--style",
        help="Art style name used by later stages"
    ),
    strength: int = typer.Option(
        80,
        "--strength",
        help="Art style strength (0-100)",
        min=0,
        max=100
    ),
    aspect_ratio: str = typer.Option(
        "9:16",
        "--aspect-ratio",
        "-a",
        help="Keyframe aspect ratio"
    ),
    project_path: Path = project_option(),
) -> None:
    """Write a script from a brief, or revise the current one."""
    if feedback is not None:
        project = _load_project(project_path)
        typer.echo(f"✏️  Revising script: {feedback}")
    else:
        _check_style(art_style)
        project = Project(
            requirement=requirement or "",
            art_style=art_style,
            art_style_strength=strength,
            aspect_ratio=aspect_ratio,
        )
        typer.echo(f"🎬 Writing script: {project.requirement}")

    response = _pipeline(ctx).script(project, feedback=feedback)
    if response.success and not ctx.obj.json_output:
        s = project.script
        typer.echo(f"\n📋 {s.title} ({s.genre})")
        typer.echo(f"   {s.logline}")
        for scene in s.scenes:
            typer.echo(f"   • Scene {scene.scene_number}: {scene.location}, {scene.duration}")
            typer.echo(f"     → {scene.visual_hook}")
    _report(ctx, response, project, project_path)


@app.command()
def storyboard(
    ctx: typer.Context,
    project_path: Path = project_option(),
) -> None:
    """Plan shots and image prompts for every scene."""
    project = _load_project(project_path)
    typer.echo(f"🎞️  Planning storyboard ({project.art_style}, strength {project.art_style_strength})")
    response = _pipeline(ctx).storyboard(project)
    _report(ctx, response, project, project_path)


@app.command()
def characters(
    ctx: typer.Context,
    fast: bool = typer.Option(
        False,
        "--fast",
        "-f",
        help="Fast preview mode (low resolution)"
    ),
    aspect_ratio: str = typer.Option(
        "3:4",
        "--aspect-ratio",
        "-a",
        help="Character portrait aspect ratio"
    ),
    project_path: Path = project_option(),
) -> None:
    """Design the cast and draw a reference image per character."""
    project = _load_project(project_path)
    typer.echo("🎨 Designing characters")
    response = _pipeline(ctx).characters(project, fast_mode=fast, aspect_ratio=aspect_ratio)
    if response.success and not ctx.obj.json_output:
        for member in project.character_design.cast:
            typer.echo(f"   • {member.info.name} ({member.info.gender}): {member.image}")
    _report(ctx, response, project, project_path)


@app.command()
def keyframes(
    ctx: typer.Context,
    fast: bool = typer.Option(
        False,
        "--fast",
        "-f",
        help="Fast preview mode (low resolution)"
    ),
    enhance: bool = typer.Option(
        True,
        "--enhance/--no-enhance",
        help="Rewrite prompts around the cast before drawing"
    ),
    project_path: Path = project_option(),
) -> None:
    """Draw one keyframe per storyboard scene."""
    project = _load_project(project_path)
    typer.echo("🖼️  Generating keyframes")
    response = _pipeline(ctx).keyframes(project, fast_mode=fast, enhance=enhance)
    if response.success and not ctx.obj.json_output:
        for kf in project.keyframes.scenes:
            typer.echo(f"   • Scene {kf.scene_number}: {kf.image}")
    _report(ctx, response, project, project_path)


@app.command("video-prompts")
def video_prompts(
    ctx: typer.Context,
    project_path: Path = project_option(),
) -> None:
    """Write tool-specific video prompts for every keyframed scene."""
    project = _load_project(project_path)
    typer.echo("📝 Writing video prompts")
    response = _pipeline(ctx).video_prompts(project)
    _report(ctx, response, project, project_path)


@app.command()
def run(
    ctx: typer.Context,
    requirement: str = typer.Argument(
        ...,
        help="Creative brief"
    ),
    art_style: str = typer.Option(
        DEFAULT_STYLE,
        "--style",
        help="Art style name"
    ),
    strength: int = typer.Option(
        80,
        "--strength",
        help="Art style strength (0-100)",
        min=0,
        max=100
    ),
    aspect_ratio: str = typer.Option(
        "9:16",
        "--aspect-ratio",
        "-a",
        help="Keyframe aspect ratio"
    ),
    fast: bool = typer.Option(
        False,
        "--fast",
        "-f",
        help="Fast preview mode for all images"
    ),
    project_path: Path = project_option(),
) -> None:
    """Run every stage from brief to video prompts."""
    _check_style(art_style)
    project = Project(
        requirement=requirement,
        art_style=art_style,
        art_style_strength=strength,
        aspect_ratio=aspect_ratio,
    )
    typer.echo(f"🚀 Running full pipeline: {requirement}")
    project = _pipeline(ctx).run(project, fast_mode=fast)
    _save_project(project, project_path)

    typer.echo(f"\n📁 Project saved: {project_path}")
    typer.echo(f"   State: {project.state.value}")
    if project.errors:
        typer.echo(f"❌ {project.errors[-1]}")
        raise typer.Exit(1)


@app.command("regenerate-character")
def regenerate_character(
    ctx: typer.Context,
    number: int = typer.Argument(
        ...,
        help="Character number as listed by 'status' (1-based)",
        min=1
    ),
    fast: bool = typer.Option(
        False,
        "--fast",
        "-f",
        help="Fast preview mode (low resolution)"
    ),
    project_path: Path = project_option(),
) -> None:
    """Redraw one character's reference image."""
    project = _load_project(project_path)
    typer.echo(f"🔄 Regenerating character {number}")
    response = _pipeline(ctx).regenerate_character(project, number - 1, fast_mode=fast)
    _report(ctx, response, project, project_path)


@app.command("regenerate-keyframe")
def regenerate_keyframe(
    ctx: typer.Context,
    scene_number: int = typer.Argument(
        ...,
        help="Scene number of the keyframe",
        min=1
    ),
    prompt: Optional[str] = typer.Option(
        None,
        "--prompt",
        help="Prompt to use instead of the stored one"
    ),
    fast: bool = typer.Option(
        False,
        "--fast",
        "-f",
        help="Fast preview mode (low resolution)"
    ),
    project_path: Path = project_option(),
) -> None:
    """Redraw the keyframe for one scene."""
    project = _load_project(project_path)
    typer.echo(f"🔄 Regenerating keyframe for scene {scene_number}")
    response = _pipeline(ctx).regenerate_keyframe(project, scene_number, prompt=prompt, fast_mode=fast)
    _report(ctx, response, project, project_path)


@app.command()
def previews(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Directory for preview images"
    ),
    list_only: bool = typer.Option(
        False,
        "--list",
        "-l",
        help="List existing previews instead of generating"
    ),
) -> None:
    """Generate one preview image per art style."""
    pipeline = _pipeline(ctx)
    output_dir = output or pipeline.assets_dir / "style-previews"

    if list_only:
        existing = list_style_previews(output_dir)
        if not existing:
            typer.echo(f"No previews in {output_dir}")
        for path in existing:
            typer.echo(f"   • {path.name}")
        return

    typer.echo(f"🎨 Generating style previews into {output_dir}")
    response = pipeline.previews(output_dir)
    if ctx.obj.json_output:
        typer.echo(json.dumps(response.to_dict(), ensure_ascii=False, indent=2))
    elif response.success:
        report = response.artifact
        for result in report.results:
            icon = "✅" if result.success else "❌"
            typer.echo(f"   {icon} {result.style}: {result.path or result.error}")
        typer.echo(f"\n   {report.succeeded} succeeded, {report.failed} failed")
    else:
        typer.echo(f"❌ Previews failed: {response.error}")
    if not response.success:
        raise typer.Exit(1)


@app.command()
def export(
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Archive path (defaults to <title>_keyframes.zip)"
    ),
    project_path: Path = project_option(),
) -> None:
    """Package keyframes and video prompts into a zip archive."""
    project = _load_project(project_path)
    if project.keyframes is None:
        typer.echo("❌ Project has no keyframes yet")
        raise typer.Exit(1)

    title = project.script.title if project.script else "storyframe"
    archive = output or Path(f"{title}_keyframes.zip")
    try:
        path = export_archive(project.keyframes, project.video_prompts, title, archive)
    except Exception as e:
        typer.echo(f"❌ Error exporting archive: {e}")
        raise typer.Exit(1)
    typer.echo(f"✅ Archive written: {path}")


@app.command()
def status(
    project_path: Path = project_option(),
) -> None:
    """Show project status."""
    project = _load_project(project_path)

    typer.echo(f"📁 Project: {project_path}")
    typer.echo(f"   Brief: {project.requirement}")
    typer.echo(f"   State: {project.state.value}")
    typer.echo(f"   Art style: {project.art_style} ({project.art_style_strength})")
    typer.echo(f"   Aspect ratio: {project.aspect_ratio}")

    if project.script:
        typer.echo(f"\n📋 Script: {project.script.title} ({len(project.script.scenes)} scenes)")
    if project.character_design:
        typer.echo("\n👥 Characters:")
        for number, member in enumerate(project.character_design.cast, start=1):
            typer.echo(f"   {number}. {member.info.name}: {member.image}")
    if project.storyboard:
        typer.echo("\n📽️  Scenes:")
        for scene in project.storyboard.scenes:
            keyframe = project.keyframes.scene(scene.scene_number) if project.keyframes else None
            status_icon = "✅" if keyframe else "⏳"
            typer.echo(f"   {status_icon} Scene {scene.scene_number}: {scene.shot_type}")
            prompt_preview = scene.prompt[:60] + "..." if len(scene.prompt) > 60 else scene.prompt
            typer.echo(f"      → {prompt_preview}")
    if project.video_prompts:
        typer.echo(f"\n🎥 Video prompts: {len(project.video_prompts.scenes)} scene(s)")
    for error in project.errors:
        typer.echo(f"⚠️  {error}")


if __name__ == "__main__":
    app()
