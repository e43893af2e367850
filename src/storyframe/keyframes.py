"""Keyframe compositor: one still image per storyboard scene."""

import logging
import re
from pathlib import Path
from typing import List, NamedTuple, Optional, Sequence

from .batch import BatchRunner
from .errors import InputValidationError
from .models import (
    CharacterDesign,
    KeyframeScene,
    Keyframes,
    MappedCharacter,
    SceneCharacterMapping,
    Storyboard,
    StoryboardScene,
)
from .services.imagen import ImagenClient, first_image
from .styles import DEFAULT_STYLE, base_keywords

logger = logging.getLogger(__name__)

# 马 and 熊 are left out: both are common surnames.
ANIMAL_KEYWORDS = {
    "猫": "cat", "小猫": "cat", "狗": "dog", "鸟": "bird", "兔子": "rabbit",
    "狐狸": "fox", "狼": "wolf", "狮子": "lion", "老虎": "tiger", "鹿": "deer",
    "宠物": "pet", "动物": "animal",
    "cat": "cat", "kitten": "kitten", "kitty": "kitten", "dog": "dog", "puppy": "puppy",
    "bird": "bird", "rabbit": "rabbit", "fox": "fox", "wolf": "wolf", "lion": "lion",
    "tiger": "tiger", "bear": "bear", "deer": "deer", "horse": "horse",
    "pet": "pet", "animal": "animal",
}
_ANIMAL_PATTERN = re.compile(
    "|".join(
        re.escape(kw) if not kw.isascii() else rf"\b{kw}\b"
        for kw in sorted(ANIMAL_KEYWORDS, key=len, reverse=True)
    ),
    re.IGNORECASE,
)
_DIGITS = re.compile(r"\d+")
_APPEARANCE_SPLIT = re.compile(r"[,，]")

HUMAN_AGE_WORDS = (
    ("baby", ("婴儿", "幼儿", "baby", "infant")),
    ("teenager", ("青少年", "teen")),
    ("child", ("儿童", "少年", "小孩", "child", "kid")),
    ("young adult", ("青年", "年轻", "young")),
    ("middle-aged", ("中年", "middle")),
    ("elderly", ("老年", "老人", "elderly", "old")),
)


class CharacterProfile(NamedTuple):
    species: str
    gender: str
    age: str
    is_animal: bool


def _age_from_years(years: int) -> str:
    if years < 3:
        return "baby"
    if years < 13:
        return "child"
    if years < 20:
        return "teenager"
    if years < 36:
        return "young adult"
    if years < 60:
        return "middle-aged"
    return "elderly"


def analyze_character(character: MappedCharacter) -> CharacterProfile:
    """Species, gender and age group of a character, in English prompt words.

    A character whose name or appearance mentions an animal is an animal;
    everyone else is human. A number in the age text wins over age words.
    """
    gender = character.gender.lower()
    age = character.age.lower()

    match = _ANIMAL_PATTERN.search(character.name) or _ANIMAL_PATTERN.search(character.appearance)
    if match:
        species = ANIMAL_KEYWORDS.get(match.group(0).lower(), "animal")
        is_male = "公" in gender or ("male" in gender and "female" not in gender)
        if any(w in age for w in ("幼", "小", "young", "baby")) or "小" in character.name:
            animal_age = "young"
        elif "老" in age or "old" in age:
            animal_age = "old"
        else:
            animal_age = "adult"
        return CharacterProfile(species, "male" if is_male else "female", animal_age, True)

    if any(w in gender for w in ("女", "female", "woman", "她")):
        human_gender = "female"
    elif any(w in gender for w in ("男", "male", "man", "他")):
        human_gender = "male"
    elif any(w in gender for w in ("儿童", "child", "小孩")):
        human_gender = "child"
    else:
        human_gender = "person"

    years = _DIGITS.search(age)
    if years:
        human_age = _age_from_years(int(years.group(0)))
    else:
        human_age = "adult"
        for label, words in HUMAN_AGE_WORDS:
            if any(w in age for w in words):
                human_age = label
                break
    return CharacterProfile("human", human_gender, human_age, False)


def describe_characters(characters: Sequence[MappedCharacter]) -> str:
    """Prefix pinning each resolved character's look and frame position."""
    descriptions = []
    for c in characters:
        if not c.resolved:
            continue
        profile = analyze_character(c)
        parts = [profile.species, profile.gender, profile.age, c.ethnicity, c.appearance]
        if c.outfit:
            parts.append(f"wearing {c.outfit}")
        parts.append(c.position)
        descriptions.append(", ".join(p for p in parts if p))
    if not descriptions:
        return ""
    return f"[CHARACTER DETAILS MUST MATCH: {'; '.join(descriptions)}]. "


def validate_scene_prompt(prompt: str, characters: Sequence[MappedCharacter]) -> List[str]:
    """List the characters whose key traits are missing from ``prompt``.

    Checked per character: species for animals, gender unless neutral,
    age group unless adult, and the first two appearance phrases.
    """
    lowered = prompt.lower()
    issues = []
    for c in characters:
        if not c.resolved:
            continue
        profile = analyze_character(c)
        required = []
        if profile.is_animal:
            required.extend([profile.species, profile.gender])
        elif profile.gender not in ("person", "child"):
            required.append(profile.gender)
        if profile.age != "adult":
            required.append(profile.age)
        required.extend(
            phrase.strip() for phrase in _APPEARANCE_SPLIT.split(c.appearance)[:2] if phrase.strip()
        )
        missing = [kw for kw in required if kw.lower() not in lowered]
        if missing:
            issues.append(f"{c.name} is missing: {', '.join(missing)}")
    return issues


def ensure_character_details(prompt: str, characters: Sequence[MappedCharacter]) -> str:
    """Prepend a short ``CRITICAL:`` cast line when the prompt fails validation."""
    issues = validate_scene_prompt(prompt, characters)
    if not issues:
        return prompt
    for issue in issues:
        logger.warning(f"Prompt check: {issue}")
    parts = []
    for c in characters:
        if c.resolved:
            profile = analyze_character(c)
            parts.append(" ".join(p for p in (profile.species, profile.gender, profile.age, c.position) if p))
    fix = " and ".join(parts)
    return f"CRITICAL: {fix}. {prompt}"


def apply_style_sandwich(prompt: str, art_style: str) -> str:
    """Wrap a prompt with art-style keywords before and after, once."""
    keywords = base_keywords(art_style)
    lowered = prompt.lower()
    if "critical art style" not in lowered:
        prompt = f"CRITICAL ART STYLE: {keywords}. {prompt}"
    if "ensure the final image" not in lowered:
        prompt = (
            f"{prompt} Ensure the final image adheres strictly to the "
            f"{art_style} art style with {keywords}."
        )
    return prompt


def reference_images(
    scene_number: int,
    design: CharacterDesign,
    mapping: SceneCharacterMapping,
) -> List[str]:
    """Images of the characters in a scene, else the first character image."""
    images = []
    for c in mapping.for_scene(scene_number):
        image = design.image_for(c.name)
        if image is not None:
            images.append(image)
    if images:
        return images
    return design.character_images[:1]


def regenerate_keyframe(
    image_client: ImagenClient,
    scene: KeyframeScene,
    character_images: Sequence[str],
    output_path: Path,
    prompt: Optional[str] = None,
    aspect_ratio: str = "9:16",
    fast_mode: bool = False,
) -> str:
    """Redraw one keyframe with the first character image as reference.

    Returns:
        Location of the new image.

    Raises:
        GenerationError: If the image service fails or returns no image.
    """
    result = image_client.generate_image(
        prompt=prompt or scene.prompt,
        output_path=output_path,
        aspect_ratio=aspect_ratio,
        reference_image=character_images[0] if character_images else None,
        fast_mode=fast_mode,
    )
    return first_image(result, f"keyframe for scene {scene.scene_number}")


class KeyframeCompositor:
    """Generates keyframes for a storyboard, grounded on the designed cast.

    All scenes fan out through the runner; a single failed scene fails the
    whole stage and no keyframes are returned.
    """

    def __init__(
        self,
        image_client: ImagenClient,
        output_dir: Path,
        runner: Optional[BatchRunner] = None,
    ) -> None:
        self.image_client = image_client
        self.output_dir = Path(output_dir)
        self.runner = runner or BatchRunner(batch_size=None, cooldown=0.0)

    def build_prompt(self, scene: StoryboardScene, art_style: str, mapping: SceneCharacterMapping) -> str:
        characters = mapping.for_scene(scene.scene_number)
        prompt = describe_characters(characters) + apply_style_sandwich(scene.prompt, art_style)
        return ensure_character_details(prompt, characters)

    def compose(
        self,
        storyboard: Storyboard,
        design: CharacterDesign,
        mapping: SceneCharacterMapping,
        fast_mode: bool = False,
        aspect_ratio: Optional[str] = None,
    ) -> Keyframes:
        """Generate one keyframe per storyboard scene.

        Raises:
            InputValidationError: If the storyboard has no scenes.
            GenerationError: If any scene's image fails.
        """
        if not storyboard.scenes:
            raise InputValidationError("storyboard must contain at least one scene")

        art_style = storyboard.art_style or DEFAULT_STYLE
        ratio = aspect_ratio or storyboard.aspect_ratio

        def draw(scene: StoryboardScene) -> KeyframeScene:
            prompt = self.build_prompt(scene, art_style, mapping)
            references = reference_images(scene.scene_number, design, mapping)
            logger.debug(
                f"Scene {scene.scene_number}: prompt length {len(prompt)}, "
                f"{len(references)} reference image(s)"
            )
            result = self.image_client.generate_image(
                prompt=prompt,
                output_path=self.output_dir / f"scene_{scene.scene_number:02d}.png",
                aspect_ratio=ratio,
                reference_image=references[0] if references else None,
                fast_mode=fast_mode,
            )
            image = first_image(result, f"keyframe for scene {scene.scene_number}")
            return KeyframeScene(scene_number=scene.scene_number, prompt=prompt, image=image)

        logger.info(f"Generating {len(storyboard.scenes)} keyframe(s) ({art_style}, {ratio})")
        report = self.runner.run(
            storyboard.scenes,
            draw,
            key=lambda scene: f"scene {scene.scene_number}",
        )
        return Keyframes(scenes=report.require_all("keyframe"))
