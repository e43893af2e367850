"""
Tests for storyframe/parsing.py
"""

import pytest

from storyframe.errors import ResponseParseError, SchemaValidationError
from storyframe.models import Script
from storyframe.parsing import (
    extract_json_block,
    load_json_object,
    parse_reply,
    repair_json,
    strip_fences,
)


class TestExtractJsonBlock:
    """Tests for locating the JSON object in a reply."""

    def test_strips_fences(self):
        assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_returns_first_balanced_object(self):
        text = 'Sure! {"a": {"b": 1}} and then {"c": 2}'
        assert extract_json_block(text) == '{"a": {"b": 1}}'

    def test_ignores_braces_inside_strings(self):
        text = '{"title": "a } tricky { title", "n": 1} trailing'
        assert extract_json_block(text) == '{"title": "a } tricky { title", "n": 1}'

    def test_handles_escaped_quotes(self):
        text = r'{"line": "she said \"}\" loudly"}'
        assert extract_json_block(text) == text

    def test_no_object_raises(self):
        with pytest.raises(ResponseParseError, match="not parseable"):
            extract_json_block("I could not do that.")

    def test_unbalanced_object_raises(self):
        with pytest.raises(ResponseParseError, match="not parseable"):
            extract_json_block('{"a": {"b": 1}')


class TestRepairJson:
    """Tests for fixing common generator formatting slips."""

    def test_removes_trailing_commas(self):
        assert repair_json('{"a": [1, 2,], "b": 3,}') == '{"a": [1, 2], "b": 3}'

    def test_inserts_missing_colon(self):
        assert repair_json('{"title" "Night Train", "n": 1}') == '{"title": "Night Train", "n": 1}'

    def test_leaves_valid_json_alone(self):
        text = '{"items": ["a", "b"], "x": "y"}'
        assert repair_json(text) == text


class TestLoadJsonObject:
    """Tests for decoding with the repair fallback."""

    def test_repaired_text_is_used_when_needed(self):
        assert load_json_object('```json\n{"title" "x", "scenes": [],}\n```') == {
            "title": "x",
            "scenes": [],
        }

    def test_invalid_json_raises_parse_error(self):
        with pytest.raises(ResponseParseError):
            load_json_object('{"title": x}')


class TestParseReply:
    """Tests for parsing straight into an artifact model."""

    def test_parses_fenced_script(self, script_reply):
        script = parse_reply(script_reply, Script)
        assert script.title == "Paper Boats"
        assert len(script.scenes) == 5
        assert script.scenes[1].duration == "10s"

    def test_schema_error_carries_details(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            parse_reply('{"scenes": []}', Script)

        error = exc_info.value
        assert "could not validate against schema Script" in error.message
        assert any(d["loc"] == "title" for d in error.details)
        assert error.status_code == 500

    def test_schema_error_is_a_parse_error(self):
        with pytest.raises(ResponseParseError):
            parse_reply('{"title": "x", "scenes": [{"sceneNumber": 2}]}', Script)
