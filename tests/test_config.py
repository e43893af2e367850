"""
Tests for storyframe/config.py
"""

import pytest

from storyframe.config import Config, ConfigStore, load_config


class TestConfig:
    """Tests for the configuration model."""

    def test_defaults_from_environment(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")
        monkeypatch.setenv("STORYFRAME_BATCH_COOLDOWN", "2.5")
        monkeypatch.delenv("STORYFRAME_KEYFRAME_BATCH_SIZE", raising=False)

        config = Config()

        assert config.anthropic_api_key == "env-key"
        assert config.batch_cooldown == 2.5
        assert config.batch_size == 3
        assert config.keyframe_batch_size is None
        assert config.storyboard_timeout > 0

    def test_keyframe_batch_size_from_environment(self, monkeypatch):
        monkeypatch.setenv("STORYFRAME_KEYFRAME_BATCH_SIZE", "4")
        assert Config().keyframe_batch_size == 4

    def test_custom_endpoint_only_when_enabled(self):
        config = Config(
            anthropic_api_key="main-key",
            custom_api_endpoint="https://proxy.example.com",
            custom_api_key="proxy-key",
        )
        assert config.text_base_url is None
        assert config.text_api_key == "main-key"

        enabled = config.model_copy(update={"use_custom_api": True})
        assert enabled.text_base_url == "https://proxy.example.com"
        assert enabled.text_api_key == "proxy-key"

    def test_validate_required(self):
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            Config(anthropic_api_key="").validate_required()

    def test_validate_image_required(self):
        with pytest.raises(ValueError, match="GOOGLE_CLOUD_PROJECT"):
            Config(google_cloud_project="").validate_image_required()

    def test_is_immutable(self):
        config = Config(anthropic_api_key="k")
        with pytest.raises(Exception):
            config.anthropic_api_key = "other"


class TestConfigStore:
    """Tests for the explicit configuration lifecycle."""

    def test_load_config_reads_env_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "from-env")
        env_file = tmp_path / ".env"
        env_file.write_text("GOOGLE_CLOUD_PROJECT=from-file\n")

        assert load_config(env_file).google_cloud_project == "from-file"

    def test_update_swaps_in_new_value(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")
        store = ConfigStore()
        before = store.current

        after = store.update(use_custom_api=True, custom_api_endpoint="https://proxy", custom_api_key=None)

        assert store.current is after
        assert after.text_base_url == "https://proxy"
        assert before.use_custom_api is False

    def test_update_ignores_none(self, monkeypatch):
        monkeypatch.setenv("STORYFRAME_CUSTOM_API_KEY", "kept")
        store = ConfigStore()
        assert store.update(custom_api_key=None).custom_api_key == "kept"

    def test_reset_drops_toggles(self):
        store = ConfigStore()
        store.update(use_custom_api=True)
        assert store.reset().use_custom_api is False

    def test_reload_rereads_environment(self, monkeypatch):
        monkeypatch.setenv("STORYFRAME_MODEL", "model-a")
        store = ConfigStore()
        monkeypatch.setenv("STORYFRAME_MODEL", "model-b")

        assert store.current.default_model == "model-a"
        assert store.reload().default_model == "model-b"
