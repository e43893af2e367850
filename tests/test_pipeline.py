"""
Tests for storyframe/pipeline.py
"""

import json

import pytest

from storyframe.batch import BatchRunner
from storyframe.errors import GenerationTimeout, InputValidationError
from storyframe.models import Project, ProjectState
from storyframe.pipeline import Pipeline, StageResponse

from conftest import FakeImageClient, FakeTextClient


def character_reply() -> str:
    return json.dumps({
        "unifiedSetting": {"ethnicity": "东亚人", "familyTraits": "dark almond eyes"},
        "characters": [
            {
                "name": "小芳（女）",
                "gender": "女",
                "ethnicity": "东亚人",
                "outfit": "yellow raincoat",
                "prompt": "woman, female, yellow raincoat",
            },
            {
                "name": "父亲",
                "gender": "男",
                "ethnicity": "东亚人",
                "outfit": "blue work jacket",
                "prompt": "man, male, blue work jacket",
            },
        ],
    }, ensure_ascii=False)


def enhancer_reply() -> str:
    return json.dumps({
        "prompts": [{"sceneNumber": n, "prompt": f"enhanced riverside {n}"} for n in range(1, 6)]
    })


def video_reply() -> str:
    return json.dumps({
        "overallStyle": {"visualStyle": "cinematic"},
        "scenes": [{"sceneNumber": n, "soraPrompt": f"sora {n}"} for n in range(1, 6)],
    })


@pytest.fixture
def project():
    return Project(requirement="  a daughter returns to her father  ", art_style="写实风格")


@pytest.fixture
def make_pipeline(config, runner):
    def make(replies, images=None):
        text = FakeTextClient(replies)
        images = images or FakeImageClient()
        pipeline = Pipeline(
            config,
            text_client=text,
            image_client=images,
            runner=runner,
            keyframe_runner=BatchRunner(batch_size=None, cooldown=0.0),
        )
        return pipeline, text, images
    return make


@pytest.fixture
def full_replies(script_reply, storyboard_payload):
    return [
        script_reply,
        json.dumps(storyboard_payload),
        character_reply(),
        enhancer_reply(),
        video_reply(),
    ]


class TestStageResponse:
    """Tests for the response envelope."""

    def test_success_dict(self, script):
        body = StageResponse.ok("script", script).to_dict()

        assert body["success"] is True
        assert body["script"]["title"] == "Paper Boats"
        assert body["script"]["scenes"][0]["sceneNumber"] == 1

    def test_known_error(self):
        response = StageResponse.failure("script", InputValidationError("requirement must not be empty"))

        assert response.status_code == 400
        assert response.to_dict() == {"success": False, "error": "requirement must not be empty"}

    def test_timeout_error(self):
        response = StageResponse.failure("storyboard", GenerationTimeout("too slow"))
        assert response.status_code == 504

    def test_unexpected_error(self):
        response = StageResponse.failure("script", KeyError("x"))

        assert response.status_code == 500
        assert response.details == {"type": "KeyError"}
        assert response.to_dict()["details"] == {"type": "KeyError"}


class TestPipelineStages:
    """Tests for individual stage calls."""

    def test_script_stage(self, make_pipeline, project, script_reply):
        pipeline, text, _ = make_pipeline([script_reply])
        response = pipeline.script(project)

        assert response.success
        assert project.script.title == "Paper Boats"
        assert project.state == ProjectState.SCRIPTED
        assert "User request: a daughter returns to her father" in text.last_user_prompt

    def test_script_revision_uses_previous(self, make_pipeline, project, script, script_reply):
        project.script = script
        pipeline, text, _ = make_pipeline([script_reply])
        pipeline.script(project, feedback="make it rain")

        assert "The user wants these changes: make it rain" in text.last_user_prompt

    def test_empty_requirement_is_400(self, make_pipeline):
        pipeline, text, _ = make_pipeline([])
        project = Project(requirement="   ")
        response = pipeline.script(project)

        assert not response.success
        assert response.status_code == 400
        assert text.calls == []
        assert project.errors == ["script: requirement must not be empty"]

    def test_unexpected_failure_is_500(self, make_pipeline, project):
        pipeline, _, _ = make_pipeline([RuntimeError("socket closed")])
        response = pipeline.script(project)

        assert response.status_code == 500
        assert response.error == "socket closed"
        assert response.details == {"type": "RuntimeError"}

    def test_storyboard_timeout_is_504(self, make_pipeline, project, script, config):
        project.script = script
        pipeline, text, _ = make_pipeline([GenerationTimeout("text generation timed out after 60s")])
        response = pipeline.storyboard(project)

        assert response.status_code == 504
        assert project.storyboard is None
        assert text.calls[0]["timeout"] == config.storyboard_timeout

    def test_storyboard_needs_script(self, make_pipeline, project):
        pipeline, _, _ = make_pipeline([])
        assert pipeline.storyboard(project).status_code == 400

    def test_keyframes_need_design(self, make_pipeline, project, script, storyboard):
        project.script, project.storyboard = script, storyboard
        pipeline, _, _ = make_pipeline([])
        response = pipeline.keyframes(project)

        assert response.status_code == 400
        assert "character design" in response.error

    def test_video_prompts_need_keyframes(self, make_pipeline, project, script, storyboard):
        project.script, project.storyboard = script, storyboard
        pipeline, _, _ = make_pipeline([])
        response = pipeline.video_prompts(project)

        assert response.status_code == 400
        assert response.error == "missing required input: keyframes"

    def test_previews(self, make_pipeline, tmp_path):
        pipeline, _, images = make_pipeline([], images=FakeImageClient(fail_on=["cyberpunk city"]))
        response = pipeline.previews(tmp_path / "previews")

        assert response.success
        body = response.to_dict()
        assert body["previews"]["succeeded"] == 17
        assert body["previews"]["failed"] == 1


class TestPipelineRun:
    """End-to-end runs against fake services."""

    def test_full_run(self, make_pipeline, project, full_replies):
        pipeline, text, images = make_pipeline(full_replies)
        pipeline.run(project)

        assert project.state == ProjectState.COMPLETED
        assert project.errors == []
        assert len(project.character_design.cast) == 2
        assert len(project.keyframes.scenes) == 5
        assert "enhanced riverside 2" in project.keyframes.scene(2).prompt
        assert project.scene_character_mapping.for_scene(2)[1].name == "父亲"
        assert len(project.video_prompts.scenes) == 5
        assert len(images.calls) == 7
        assert text.replies == []

    def test_enhancer_failure_keeps_original_prompts(self, make_pipeline, project, full_replies):
        full_replies[3] = "the enhancer is having a bad day"
        pipeline, _, _ = make_pipeline(full_replies)
        pipeline.run(project)

        assert project.state == ProjectState.COMPLETED
        assert "riverside scene 4" in project.keyframes.scene(4).prompt

    def test_stops_at_first_failure(self, make_pipeline, project, full_replies):
        images = FakeImageClient(fail_on=["riverside scene 3"])
        full_replies[3] = "skip enhancement"
        pipeline, text, _ = make_pipeline(full_replies, images=images)
        pipeline.run(project)

        assert project.state == ProjectState.FAILED
        assert project.keyframes is None
        assert project.video_prompts is None
        assert project.errors[-1].startswith("keyframes: failed to generate keyframe for scene 3")
        assert len(text.replies) == 1

    def test_empty_brief_fails_immediately(self, make_pipeline):
        project = Project(requirement="")
        pipeline, _, _ = make_pipeline([])
        pipeline.run(project)

        assert project.state == ProjectState.FAILED
        assert project.script is None


class TestRegeneration:
    """Single-slot regeneration after a full run."""

    @pytest.fixture
    def finished(self, make_pipeline, project, full_replies):
        pipeline, _, images = make_pipeline(full_replies)
        pipeline.run(project)
        return pipeline, project, images

    def test_regenerate_keyframe_changes_one_slot(self, finished):
        pipeline, project, images = finished
        before = {k.scene_number: k.image for k in project.keyframes.scenes}

        response = pipeline.regenerate_keyframe(project, 2, prompt="a brand new angle")

        assert response.success
        after = {k.scene_number: k.image for k in project.keyframes.scenes}
        assert after[2].endswith("scene_02_r1.png")
        assert {n: p for n, p in after.items() if n != 2} == {n: p for n, p in before.items() if n != 2}
        assert images.calls[-1]["prompt"] == "a brand new angle"
        assert images.calls[-1]["reference_image"] == project.character_design.character_images[0]

    def test_regenerate_keyframe_twice(self, finished):
        pipeline, project, _ = finished
        pipeline.regenerate_keyframe(project, 2)
        pipeline.regenerate_keyframe(project, 2)

        assert project.keyframes.scene(2).image.endswith("scene_02_r2.png")

    def test_regenerate_unknown_scene(self, finished):
        pipeline, project, _ = finished
        assert pipeline.regenerate_keyframe(project, 9).status_code == 400

    def test_regenerate_character_changes_one_slot(self, finished):
        pipeline, project, images = finished
        first = project.character_design.character_images[0]

        response = pipeline.regenerate_character(project, 1)

        assert response.success
        images_after = project.character_design.character_images
        assert images_after[0] == first
        assert images_after[1].endswith("character_02_r1.png")
        assert images.calls[-1]["prompt"].endswith("portrait orientation, 9:16 aspect ratio")

    def test_regenerate_character_out_of_range(self, finished):
        pipeline, project, _ = finished
        response = pipeline.regenerate_character(project, 5)

        assert response.status_code == 400


class TestKeyframesWithoutTextService:
    def test_enhancement_skipped_when_no_text_key(self, config, project, script, storyboard, design):
        project.script, project.storyboard, project.character_design = script, storyboard, design
        images = FakeImageClient()
        pipeline = Pipeline(
            config.model_copy(update={"anthropic_api_key": "", "use_custom_api": False}),
            image_client=images,
            keyframe_runner=BatchRunner(batch_size=None, cooldown=0.0),
        )

        response = pipeline.keyframes(project)

        assert response.success
        assert project.state == ProjectState.KEYFRAMED
        assert "riverside scene 3" in project.keyframes.scene(3).prompt
        assert len(images.calls) == 5
