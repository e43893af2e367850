"""
Pytest Configuration and Fixtures

Shared fixtures and fake service clients for all tests. Nothing here
touches the network.
"""

import json
import threading
from pathlib import Path
from typing import List, Optional, Sequence, Union

import pytest

from storyframe.batch import BatchRunner
from storyframe.config import Config
from storyframe.errors import GenerationError
from storyframe.models import (
    CharacterDesign,
    CharacterInfo,
    DesignedCharacter,
    Script,
    Storyboard,
    UnifiedSetting,
)
from storyframe.services.imagen import ImageResult


class FakeTextClient:
    """Stands in for AnthropicClient: returns scripted replies in order.

    A reply that is an exception instance is raised instead of returned.
    """

    model = "fake-model"

    def __init__(self, replies: Sequence[Union[str, Exception]] = ()):
        self.replies = list(replies)
        self.calls: List[dict] = []

    def generate(self, messages, temperature=0.7, max_tokens=4096, timeout=None) -> str:
        self.calls.append({
            "messages": list(messages),
            "temperature": temperature,
            "max_tokens": max_tokens,
            "timeout": timeout,
        })
        if not self.replies:
            raise GenerationError("no scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def last_user_prompt(self) -> str:
        return self.calls[-1]["messages"][-1]["content"]


class FakeImageClient:
    """Stands in for ImagenClient: writes a small file per successful call.

    Any prompt containing one of ``fail_on`` gets an error result instead.
    """

    def __init__(self, fail_on: Sequence[str] = (), empty_on: Sequence[str] = ()):
        self.fail_on = list(fail_on)
        self.empty_on = list(empty_on)
        self.calls: List[dict] = []
        self._lock = threading.Lock()

    def generate_image(
        self,
        prompt: str,
        output_path: Path,
        aspect_ratio: str = "3:4",
        reference_image: Optional[str] = None,
        fast_mode: bool = False,
        watermark: bool = False,
    ) -> ImageResult:
        with self._lock:
            self.calls.append({
                "prompt": prompt,
                "output_path": Path(output_path),
                "aspect_ratio": aspect_ratio,
                "reference_image": reference_image,
                "fast_mode": fast_mode,
            })
        result = ImageResult(prompt=prompt)
        if any(marker in prompt for marker in self.fail_on):
            result.errors.append("upstream refused the prompt")
            return result
        if any(marker in prompt for marker in self.empty_on):
            return result
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(b"\x89PNG fake")
        result.images.append(str(output_path))
        return result

    def call_for(self, marker: str) -> dict:
        return next(c for c in self.calls if marker in c["prompt"])


@pytest.fixture
def config(tmp_path) -> Config:
    """Configuration with dummy credentials and a temporary workspace."""
    return Config(
        anthropic_api_key="test-key",
        google_cloud_project="test-project",
        workspace=tmp_path,
    )


@pytest.fixture
def sleeps() -> list:
    return []


@pytest.fixture
def runner(sleeps) -> BatchRunner:
    """Bounded runner that records cooldowns instead of sleeping."""
    return BatchRunner(batch_size=3, cooldown=1.0, sleep=sleeps.append)


@pytest.fixture
def script_payload() -> dict:
    """A five-scene script with two named characters."""
    return {
        "title": "Paper Boats",
        "genre": "family drama",
        "logline": "A daughter and her estranged father meet again at the river.",
        "summary": "Years after leaving home, Xiaofang returns and finds her father folding paper boats.",
        "emotionalArc": "distance - memory - reconciliation - hope",
        "targetAudience": "young adults",
        "visualStyle": "soft natural light",
        "scenes": [
            {
                "sceneNumber": 1,
                "location": "train station",
                "timeOfDay": "dusk",
                "mood": "lonely",
                "characters": ["小芳（女）"],
                "action": "Xiaofang steps off the train holding a faded paper boat.",
                "emotionalBeat": "hesitation",
                "visualHook": "a paper boat against the orange sky",
                "duration": "8s",
            },
            {
                "sceneNumber": 2,
                "location": "riverbank",
                "timeOfDay": "dusk",
                "mood": "tense",
                "characters": ["小芳（女）", "父亲"],
                "action": "She sees her father crouching by the water.",
                "dialogue": "Dad?",
                "emotionalBeat": "recognition",
                "visualHook": "two silhouettes divided by reeds",
                "duration": 10,
            },
            {
                "sceneNumber": 3,
                "location": "riverbank",
                "timeOfDay": "dusk",
                "mood": "quiet",
                "characters": ["父亲"],
                "action": "Father folds a new boat with shaking hands.",
                "emotionalBeat": "regret",
                "visualHook": "close-up of weathered fingers creasing paper",
                "duration": "8s",
            },
            {
                "sceneNumber": 4,
                "location": "river",
                "timeOfDay": "night",
                "mood": "dreamy",
                "characters": [],
                "action": "Dozens of paper boats drift downstream carrying candles.",
                "emotionalBeat": "release",
                "visualHook": "candle-lit boats on black water",
                "duration": "10s",
            },
            {
                "sceneNumber": 5,
                "location": "riverbank",
                "timeOfDay": "night",
                "mood": "warm",
                "characters": ["父亲", "小芳（女）"],
                "action": "They launch one last boat together and laugh.",
                "emotionalBeat": "hope",
                "visualHook": "two hands letting go of the same boat",
                "duration": "12s",
            },
        ],
    }


@pytest.fixture
def script(script_payload) -> Script:
    return Script.model_validate(script_payload)


@pytest.fixture
def script_reply(script_payload) -> str:
    """The script wrapped the way a generator often replies."""
    return "Here is your script:\n```json\n" + json.dumps(script_payload, ensure_ascii=False) + "\n```"


@pytest.fixture
def storyboard_payload() -> dict:
    scenes = []
    for n in range(1, 6):
        scenes.append({
            "sceneNumber": n,
            "shotType": "Medium Shot",
            "cameraAngle": "Eye Level",
            "cameraMovement": "Dolly In",
            "lighting": "golden hour backlight",
            "colorTemperature": "warm",
            "mood": "wistful",
            "transition": "Dissolve",
            "prompt": f"photorealistic, 8k, riverside scene {n}",
            "videoPrompt": f"slow dolly in on scene {n}",
        })
    return {
        "artStyle": "whatever the model picked",
        "aspectRatio": "9:16",
        "cameraStyle": "slow tracking",
        "lightingStyle": "natural light",
        "scenes": scenes,
    }


@pytest.fixture
def storyboard(storyboard_payload) -> Storyboard:
    data = dict(storyboard_payload, artStyle="写实风格")
    return Storyboard.model_validate(data)


@pytest.fixture
def design() -> CharacterDesign:
    return CharacterDesign(
        unified_setting=UnifiedSetting(
            ethnicity="东亚人",
            art_style_keywords="photorealistic, 8k, ultra detailed, realistic lighting, cinematic",
            family_traits="dark almond eyes, high cheekbones",
        ),
        cast=[
            DesignedCharacter(
                info=CharacterInfo(
                    name="小芳（女）",
                    gender="女",
                    ethnicity="东亚人",
                    appearance="shoulder-length black hair",
                    outfit="yellow raincoat",
                    expression="guarded",
                    prompt="woman, female, young East Asian woman in a yellow raincoat",
                ),
                image="/tmp/characters/character_01.png",
            ),
            DesignedCharacter(
                info=CharacterInfo(
                    name="父亲",
                    gender="男",
                    ethnicity="东亚人",
                    appearance="grey stubble, deep wrinkles",
                    outfit="faded blue work jacket",
                    expression="tired smile",
                    prompt="man, male, elderly East Asian man in a blue work jacket",
                ),
                image="/tmp/characters/character_02.png",
            ),
        ],
    )
