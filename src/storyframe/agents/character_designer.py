"""Character designer agent: cast extraction, text design and reference images."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from pydantic import Field

from ..batch import BatchRunner
from ..errors import InputValidationError, SchemaValidationError
from ..models import (
    CharacterDesign,
    CharacterInfo,
    DesignedCharacter,
    Script,
    UnifiedSetting,
)
from ..models.base import ArtifactModel
from ..services.imagen import ImagenClient, first_image
from ..styles import DEFAULT_STYLE, PHOTOREALISM_KEYWORDS, style_keywords
from .base import BaseAgent

logger = logging.getLogger(__name__)

FEMALE = "女"
MALE = "男"

_FEMALE_ANNOTATIONS = ("（女）", "(女)", "（女性）", "(女性)")
_MALE_ANNOTATIONS = ("（男）", "(男)", "（男性）", "(男性)")
_FEMALE_KINSHIP = ("母亲", "妈妈", "女儿", "姐妹", "妻子")
_MALE_KINSHIP = ("父亲", "爸爸", "儿子", "兄弟", "丈夫")

_MALE_ROLE = re.compile(r"父亲|儿子|\b(?:father|son)\b", re.IGNORECASE)
_FEMALE_ROLE = re.compile(r"母亲|女儿|\b(?:mother|daughter)\b", re.IGNORECASE)

MALE_KEYWORDS = "man, male, masculine"
FEMALE_KEYWORDS = "woman, female, feminine"

ETHNICITY_KEYWORDS = {
    "东亚人": "East Asian",
    "白人": "Caucasian",
    "黑人": "African",
    "拉丁裔": "Latino",
    "南亚人": "South Asian",
}
MIXED_ETHNICITY = "mixed race"

_ETHNICITY_PATTERN = re.compile(
    r"\b(East Asian|Caucasian|African|Latino|South Asian|mixed race)\b",
    re.IGNORECASE,
)


def collect_character_names(script: Script) -> List[str]:
    """Return unique character names in order of first appearance.

    Raises:
        InputValidationError: If no scene names any character.
    """
    names: List[str] = []
    for scene in script.scenes:
        for name in scene.characters:
            if name and name not in names:
                names.append(name)
    if not names:
        raise InputValidationError("no character information")
    return names


def gender_from_name(name: str) -> str:
    """Gender implied by an annotation or kinship word in a name, or ''."""
    if any(tag in name for tag in _FEMALE_ANNOTATIONS):
        return FEMALE
    if any(tag in name for tag in _MALE_ANNOTATIONS):
        return MALE
    if any(word in name for word in _FEMALE_KINSHIP):
        return FEMALE
    if any(word in name for word in _MALE_KINSHIP):
        return MALE
    return ""


def relationship_gender(relationship: str) -> str:
    """Gender of the role a relationship text names first, or ''.

    "母亲，儿子是小明" describes a mother, so the later 儿子 is ignored.
    """
    male = _MALE_ROLE.search(relationship)
    female = _FEMALE_ROLE.search(relationship)
    if male and (not female or male.start() < female.start()):
        return MALE
    if female:
        return FEMALE
    return ""


def _is_female(gender: str) -> bool:
    lowered = gender.lower()
    return FEMALE in lowered or "female" in lowered or "woman" in lowered


def _is_male(gender: str) -> bool:
    lowered = gender.lower()
    if _is_female(gender):
        return False
    return MALE in lowered or "male" in lowered or "man" in lowered


def correct_gender(character: CharacterInfo) -> CharacterInfo:
    """Make a character's gender agree with its name, or else its relationship."""
    annotated = gender_from_name(character.name)
    if annotated:
        if character.gender != annotated:
            logger.warning(f"Gender of {character.name} contradicts its name; using {annotated}")
            return character.model_copy(update={"gender": annotated})
        return character

    implied = relationship_gender(character.relationship)
    if implied == MALE and not _is_male(character.gender):
        logger.warning(f"{character.name} is a {character.relationship}; correcting gender to male")
        return character.model_copy(update={"gender": MALE})
    if implied == FEMALE and not _is_female(character.gender):
        logger.warning(f"{character.name} is a {character.relationship}; correcting gender to female")
        return character.model_copy(update={"gender": FEMALE})
    return character


def ethnicity_keyword(ethnicity: str) -> str:
    """English keyword for a unified ethnicity label."""
    if ethnicity in ETHNICITY_KEYWORDS.values():
        return ethnicity
    return ETHNICITY_KEYWORDS.get(ethnicity, MIXED_ETHNICITY)


def gender_keywords(character: CharacterInfo) -> str:
    """Leading gender keywords for an image prompt."""
    if _is_female(character.gender):
        return FEMALE_KEYWORDS
    if _is_male(character.gender):
        return MALE_KEYWORDS
    return FEMALE_KEYWORDS if gender_from_name(character.name) == FEMALE else MALE_KEYWORDS


def build_character_prompt(
    character: CharacterInfo,
    setting: UnifiedSetting,
    keywords: str,
    art_style: str,
) -> str:
    """Image prompt for a character reference sheet.

    Gender, ethnicity and family traits lead, the character's own prompt
    follows, and the art-style keywords wrap the whole thing.
    """
    core = ", ".join(
        part for part in (
            gender_keywords(character),
            ethnicity_keyword(setting.ethnicity or character.ethnicity),
            setting.family_traits,
        ) if part
    )
    return (
        f"CRITICAL ART STYLE: {keywords}. {core} "
        f"Character details: {character.prompt}. "
        f"Ensure the final image strictly adheres to the {art_style} art style."
    )


def build_regeneration_prompt(
    character: CharacterInfo,
    unified_keywords: str,
    strength: int = 80,
) -> str:
    """Prompt for redrawing one character's reference image."""
    prompt = character.prompt
    if strength / 100 < 0.5:
        prompt = f"{PHOTOREALISM_KEYWORDS}, {prompt}"
    if unified_keywords and unified_keywords.lower() not in prompt.lower():
        prompt = f"{unified_keywords}, {prompt}"
    return f"{prompt}, portrait orientation, 9:16 aspect ratio"


def regenerate_character_image(
    image_client: ImagenClient,
    character: CharacterInfo,
    unified_keywords: str,
    output_path: Path,
    strength: int = 80,
    aspect_ratio: str = "9:16",
    fast_mode: bool = False,
) -> str:
    """Redraw one character and return the new image location.

    Raises:
        GenerationError: If the image service fails or returns no image.
    """
    prompt = build_regeneration_prompt(character, unified_keywords, strength)
    result = image_client.generate_image(
        prompt=prompt,
        output_path=output_path,
        aspect_ratio=aspect_ratio,
        fast_mode=fast_mode,
    )
    return first_image(result, f"character image for {character.name}")


class CharacterSheet(ArtifactModel):
    """Shape of the designer's text reply."""

    unified_setting: UnifiedSetting = Field(default_factory=UnifiedSetting)
    characters: List[CharacterInfo] = Field(default_factory=list)


@dataclass
class CharacterInput:
    """Input data for the character designer."""

    script: Script
    art_style: str = DEFAULT_STYLE
    art_style_strength: int = 80
    fast_mode: bool = False
    aspect_ratio: str = "3:4"


class CharacterDesignerAgent(BaseAgent[CharacterInput, CharacterDesign]):
    """Agent that designs the cast and draws one reference image per character.

    The text design is a single call. Images fan out through the batch runner
    and the stage fails as a whole if any character image fails.
    """

    temperature = 0.5

    def __init__(
        self,
        client,
        image_client: ImagenClient,
        output_dir: Path,
        runner: Optional[BatchRunner] = None,
    ) -> None:
        super().__init__(client)
        self.image_client = image_client
        self.output_dir = Path(output_dir)
        self.runner = runner or BatchRunner()

    @property
    def name(self) -> str:
        return "CharacterDesignerAgent"

    @property
    def system_prompt(self) -> str:
        return """You are an award-winning character designer. Every character you create is
memorable, recognisable at a glance and visually distinct, while blood relatives share
a clear family resemblance.

Rules:
1. Keep every character name exactly as written in the script, including any gender
   annotation such as "(female)" or "（女）". Never change an annotated gender.
2. The whole cast shares one ethnicity (东亚人 / 白人 / 黑人 / 拉丁裔 / 南亚人) and 3-5
   family traits.
3. Give every character at least five distinct visual markers: hairstyle, facial
   features, accessories, outfit and posture.
4. Each "prompt" is an English image prompt that starts with "man, male" or
   "woman, female" and includes the art style keywords, the ethnicity and the family traits.

Return ONLY a JSON object:
{
  "unifiedSetting": {
    "ethnicity": "shared ethnicity",
    "artStyleKeywords": "art style keywords",
    "familyTraits": "shared family features"
  },
  "characters": [
    {
      "name": "name exactly as in the script",
      "role": "lead / antagonist / supporting / animal",
      "relationship": "relationship to the others",
      "ethnicity": "ethnicity (same as unifiedSetting)",
      "age": "age",
      "gender": "男 or 女",
      "description": "background, personality and arc",
      "appearance": "detailed appearance",
      "outfit": "outfit: colours, materials, signature items",
      "expression": "default expression",
      "prompt": "English image-generation prompt"
    }
  ]
}"""

    def run(self, input_data: CharacterInput) -> CharacterDesign:
        """Design every character in the script and draw their reference images.

        Raises:
            InputValidationError: If the script names no characters.
            SchemaValidationError: If the reply leaves a character out.
            GenerationError: If any character image fails.
        """
        script = input_data.script
        names = collect_character_names(script)
        keywords = style_keywords(input_data.art_style, input_data.art_style_strength)

        self._logger.info(f"Designing {len(names)} character(s): {', '.join(names)}")
        response = self._create_message(self._build_prompt(script, names, keywords))
        sheet = self._parse(response, CharacterSheet)

        setting = sheet.unified_setting
        if not setting.art_style_keywords:
            setting = setting.model_copy(update={"art_style_keywords": keywords})
        characters = self._ordered(sheet.characters, names)
        characters = [correct_gender(c) for c in characters]
        characters = self._unify_ethnicity(characters, setting)

        prompts = [
            build_character_prompt(c, setting, keywords, input_data.art_style)
            for c in characters
        ]

        def draw(index: int) -> str:
            character = characters[index]
            result = self.image_client.generate_image(
                prompt=prompts[index],
                output_path=self.output_dir / f"character_{index + 1:02d}.png",
                aspect_ratio=input_data.aspect_ratio,
                fast_mode=input_data.fast_mode,
            )
            return first_image(result, f"character image for {character.name}")

        mode = "fast" if input_data.fast_mode else "standard"
        self._logger.info(f"Generating {len(characters)} character image(s) in {mode} mode")
        report = self.runner.run(
            range(len(characters)),
            draw,
            key=lambda i: characters[i].name,
        )
        images = report.require_all("character image")

        return CharacterDesign(
            unified_setting=setting,
            cast=[
                DesignedCharacter(info=character, image=image)
                for character, image in zip(characters, images)
            ],
        )

    def _build_prompt(self, script: Script, names: List[str], keywords: str) -> str:
        lines = [
            "Story overview",
            f"Title: {script.title}",
            f"Genre: {script.genre}",
            f"Logline: {script.logline}",
            f"Summary: {script.summary}",
            f"Emotional arc: {script.emotional_arc}",
            f"Visual style: {script.visual_style}",
            "",
            "Character appearances",
        ]
        for name in names:
            scenes = [s for s in script.scenes if name in s.characters]
            lines.append(f"[{name}] appears in {len(scenes)} scene(s)")
            for s in scenes:
                lines.append(
                    f"  Scene {s.scene_number}: {s.location} ({s.time_of_day}); "
                    f"action: {s.action}; mood: {s.mood}; "
                    f"beat: {s.emotional_beat}; hook: {s.visual_hook}"
                )
        lines.extend([
            "",
            f"Art style keywords: {keywords}",
            f"Design exactly these characters, in this order: {', '.join(names)}",
        ])
        return "\n".join(lines)

    def _ordered(self, characters: List[CharacterInfo], names: List[str]) -> List[CharacterInfo]:
        by_name = {}
        for character in characters:
            by_name.setdefault(character.name.strip(), character)

        missing = [name for name in names if name.strip() not in by_name]
        if missing:
            raise SchemaValidationError(
                "could not validate against schema CharacterDesign",
                details=[f"missing character: {name}" for name in missing],
            )
        extras = set(by_name) - {name.strip() for name in names}
        if extras:
            self._logger.warning(f"Dropping characters not in the script: {', '.join(sorted(extras))}")

        ordered = []
        for name in names:
            character = by_name[name.strip()]
            if character.name != name:
                character = character.model_copy(update={"name": name})
            ordered.append(character)
        return ordered

    def _unify_ethnicity(
        self,
        characters: List[CharacterInfo],
        setting: UnifiedSetting,
    ) -> List[CharacterInfo]:
        if len({c.ethnicity for c in characters}) <= 1:
            return characters

        unified = setting.ethnicity or characters[0].ethnicity
        keyword = ethnicity_keyword(unified)
        self._logger.warning(f"Characters disagree on ethnicity; unifying to {unified}")
        return [
            c.model_copy(update={
                "ethnicity": unified,
                "prompt": _ETHNICITY_PATTERN.sub(keyword, c.prompt),
            })
            for c in characters
        ]
