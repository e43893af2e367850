"""Art-style preview images, one per catalogue style."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .batch import BatchRunner
from .services.imagen import ImagenClient, first_image
from .styles import PREVIEW_STYLES, PreviewStyle

logger = logging.getLogger(__name__)

PREVIEW_SUFFIXES = (".jpg", ".png")
_WHITESPACE = re.compile(r"\s+")


@dataclass
class PreviewResult:
    """Outcome for one style preview."""

    style: str
    success: bool
    path: Optional[str] = None
    error: Optional[str] = None


@dataclass
class PreviewReport:
    """All preview outcomes; partial failure still counts as a finished run."""

    results: List[PreviewResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    def to_payload(self) -> dict:
        return {
            "results": [vars(r) for r in self.results],
            "succeeded": self.succeeded,
            "failed": self.failed,
        }


def preview_filename(style_name: str) -> str:
    return _WHITESPACE.sub("-", style_name).lower() + ".png"


def generate_style_previews(
    image_client: ImagenClient,
    output_dir: Path,
    runner: Optional[BatchRunner] = None,
    styles: Sequence[PreviewStyle] = PREVIEW_STYLES,
) -> PreviewReport:
    """Draw one preview image per style.

    Runs in batches of three with a cooldown between batches. A failed
    style is reported in its PreviewResult and does not stop the others.
    """
    output_dir = Path(output_dir)
    runner = runner or BatchRunner(batch_size=3, cooldown=1.0)

    def draw(style: PreviewStyle) -> str:
        result = image_client.generate_image(
            prompt=style.prompt,
            output_path=output_dir / preview_filename(style.name),
            aspect_ratio="1:1",
        )
        return first_image(result, f"preview for {style.name}")

    logger.info(f"Generating {len(styles)} style preview(s) into {output_dir}")
    report = runner.run(styles, draw, key=lambda style: style.name)

    results = []
    for style, item in zip(styles, report.results):
        if item.ok:
            results.append(PreviewResult(style=style.name, success=True, path=item.value))
        else:
            results.append(PreviewResult(style=style.name, success=False, error=str(item.error)))

    logger.info(f"Style previews: {report.succeeded} succeeded, {report.failed} failed")
    return PreviewReport(results=results)


def list_style_previews(output_dir: Path) -> List[Path]:
    """Return preview images already present in ``output_dir``."""
    output_dir = Path(output_dir)
    if not output_dir.exists():
        return []
    return sorted(p for p in output_dir.iterdir() if p.suffix.lower() in PREVIEW_SUFFIXES)
