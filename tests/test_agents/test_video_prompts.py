"""
Tests for storyframe/agents/video_prompts.py
"""

import json

import pytest

from storyframe.agents import VideoPromptAgent, VideoPromptInput
from storyframe.errors import InputValidationError, ResponseParseError, SchemaValidationError
from storyframe.models import KeyframeScene, Keyframes, Storyboard

from conftest import FakeTextClient


@pytest.fixture
def keyframes():
    return Keyframes(scenes=[
        KeyframeScene(scene_number=n, prompt=f"prompt {n}", image=f"/tmp/scene_{n:02d}.png")
        for n in range(1, 6)
    ])


def video_reply(numbers=range(1, 6)) -> str:
    return json.dumps({
        "overallStyle": {"visualStyle": "cinematic, warm tones"},
        "scenes": [
            {
                "sceneNumber": n,
                "soraPrompt": f"sora {n}",
                "runwayPrompt": f"runway {n}",
                "klingPrompt": f"可灵 {n}",
                "duration": 5,
                "motionIntensity": "low",
            }
            for n in numbers
        ],
    }, ensure_ascii=False)


class TestVideoPromptAgent:
    """Tests for video prompt generation."""

    def test_generates_prompts(self, script, storyboard, keyframes):
        client = FakeTextClient([video_reply()])
        prompts = VideoPromptAgent(client).run(VideoPromptInput(script, storyboard, keyframes))

        assert len(prompts.scenes) == 5
        assert prompts.overall_style.visual_style == "cinematic, warm tones"
        assert prompts.scenes[0].duration == "5s"
        assert prompts.scenes[2].tool_prompts()["Kling"] == "可灵 3"
        assert client.calls[0]["temperature"] == 0.7

    def test_prompt_carries_script_beats(self, script, storyboard, keyframes):
        client = FakeTextClient([video_reply()])
        VideoPromptAgent(client).run(VideoPromptInput(script, storyboard, keyframes))

        prompt = client.last_user_prompt
        assert "- Title: Paper Boats" in prompt
        assert "- Camera: Dolly In" in prompt
        assert "- Visual hook: candle-lit boats on black water" in prompt

    @pytest.mark.parametrize("missing", ["script", "storyboard", "keyframes"])
    def test_missing_input_rejected(self, script, storyboard, keyframes, missing):
        values = {"script": script, "storyboard": storyboard, "keyframes": keyframes}
        values[missing] = None
        client = FakeTextClient()

        with pytest.raises(InputValidationError, match=f"missing required input: {missing}"):
            VideoPromptAgent(client).run(VideoPromptInput(**values))
        assert client.calls == []

    def test_empty_storyboard_rejected(self, script, keyframes):
        with pytest.raises(InputValidationError):
            VideoPromptAgent(FakeTextClient()).run(
                VideoPromptInput(script, Storyboard(), keyframes)
            )

    def test_bad_reply_is_parse_error(self, script, storyboard, keyframes):
        client = FakeTextClient(["no json at all"])
        with pytest.raises(ResponseParseError):
            VideoPromptAgent(client).run(VideoPromptInput(script, storyboard, keyframes))

    def test_reply_reordered_to_keyframe_order(self, script, storyboard, keyframes):
        client = FakeTextClient([video_reply([3, 1, 5, 2, 4])])
        prompts = VideoPromptAgent(client).run(VideoPromptInput(script, storyboard, keyframes))

        assert [s.scene_number for s in prompts.scenes] == [1, 2, 3, 4, 5]
        assert prompts.scenes[2].sora_prompt == "sora 3"

    @pytest.mark.parametrize("numbers", [[1, 9], [1, 2, 3, 4], [1, 2, 3, 4, 5, 6], [1, 2, 2, 3, 4, 5]])
    def test_reply_must_match_keyframes(self, script, storyboard, keyframes, numbers):
        client = FakeTextClient([video_reply(numbers)])

        with pytest.raises(SchemaValidationError) as exc_info:
            VideoPromptAgent(client).run(VideoPromptInput(script, storyboard, keyframes))
        assert exc_info.value.details == [f"expected scenes [1, 2, 3, 4, 5], got {numbers}"]
