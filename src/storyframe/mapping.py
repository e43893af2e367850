"""Scene-to-character mapping used to ground keyframe prompts."""

import logging

from .models import (
    CharacterDesign,
    MappedCharacter,
    SceneCharacterMapping,
    SceneCharacters,
    Script,
    Storyboard,
)

logger = logging.getLogger(__name__)

POSITION_HINTS = ("on the left", "on the right")
CENTER = "in the center"


def position_hint(index: int) -> str:
    """Frame position for the character at ``index`` within a scene."""
    return POSITION_HINTS[index] if index < len(POSITION_HINTS) else CENTER


def build_scene_character_mapping(
    script: Script,
    storyboard: Storyboard,
    design: CharacterDesign,
) -> SceneCharacterMapping:
    """Pair every storyboard scene with the designed characters it shows.

    Storyboard and script scenes are matched by position. Names the design
    does not know are kept with empty descriptors and ``resolved=False``.
    """
    entries = []
    for position, board_scene in enumerate(storyboard.scenes):
        names = script.scenes[position].characters if position < len(script.scenes) else []
        characters = []
        for index, name in enumerate(names):
            info = design.find(name)
            if info is None:
                logger.warning(f"Scene {board_scene.scene_number}: no design for '{name}'")
                characters.append(
                    MappedCharacter(name=name, position=position_hint(index), resolved=False)
                )
                continue
            characters.append(MappedCharacter(
                name=name,
                position=position_hint(index),
                gender=info.gender,
                age=info.age,
                ethnicity=info.ethnicity,
                appearance=info.appearance,
                outfit=info.outfit,
                expression=info.expression,
            ))
        entries.append(SceneCharacters(scene_number=board_scene.scene_number, characters=characters))
    return SceneCharacterMapping(scenes=entries)
