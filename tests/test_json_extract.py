"""Tests for storyscout.services.json_extract."""

import json

import pytest

from storyscout.services.json_extract import (
    NoJSONFoundError,
    extract_json_object,
    parse_json_object,
)


class TestExtractJsonObject:
    def test_object_wrapped_in_prose_and_fences(self):
        text = 'Here you go:\n```json\n{"userStories": []}\n```\nHope that helps!'
        assert extract_json_object(text) == '{"userStories": []}'

    def test_returns_first_of_several_objects(self):
        assert extract_json_object('{"a": 1} and then {"b": 2}') == '{"a": 1}'

    def test_nested_objects(self):
        text = 'prefix {"a": {"b": {"c": 1}}, "d": [{"e": 2}]} suffix'
        assert extract_json_object(text) == '{"a": {"b": {"c": 1}}, "d": [{"e": 2}]}'

    def test_braces_inside_strings_are_ignored(self):
        text = '{"step": "Navigate to {url} and click }"} trailing }'
        assert extract_json_object(text) == '{"step": "Navigate to {url} and click }"}'

    def test_escaped_quotes_inside_strings(self):
        text = r'{"title": "The \"best\" {shop}"}'
        assert extract_json_object(text) == text

    def test_skips_unbalanced_leading_brace(self):
        # The first brace never closes outside of a string, so scanning restarts
        text = 'broken { "x": "}  ... real: {"ok": true}'
        assert extract_json_object(text) == '{"ok": true}'

    @pytest.mark.parametrize("text", ["", "no json here", "only an opening {", "} backwards {"])
    def test_no_object(self, text):
        with pytest.raises(NoJSONFoundError):
            extract_json_object(text)

    def test_no_object_error_is_a_value_error(self):
        assert issubclass(NoJSONFoundError, ValueError)


class TestParseJsonObject:
    def test_decodes_embedded_object(self):
        assert parse_json_object('Sure! {"userStories": [{"id": "story-001"}]}') == {
            "userStories": [{"id": "story-001"}]
        }

    def test_invalid_json_in_balanced_span(self):
        with pytest.raises(json.JSONDecodeError):
            parse_json_object("{userStories: [trailing,]}")
