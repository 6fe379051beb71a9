"""Tests for afo.utils.parsing: strip_fences, the affirmation cascade, JSON objects, invoke_with_retry."""

from unittest.mock import patch, MagicMock

import httpx
import pytest

from afo.utils.parsing import (
    invoke_with_retry,
    parse_affirmations,
    parse_json_object,
    strip_fences,
)


# --- strip_fences ---

class TestStripFences:
    def test_strip_json_fences(self):
        text = '```json\n{"key": "value"}\n```'
        assert strip_fences(text) == '{"key": "value"}'

    def test_strip_plain_fences(self):
        text = '```\n["a"]\n```'
        assert strip_fences(text) == '["a"]'

    def test_no_fences_returns_stripped(self):
        assert strip_fences('  ["a"]  ') == '["a"]'


# --- parse_affirmations ---

class TestParseAffirmations:
    def test_clean_json_array(self):
        assert parse_affirmations('["a","b","c"]') == ["a", "b", "c"]

    def test_surrounding_whitespace(self):
        assert parse_affirmations('\n  ["I am calm", "I am enough"]  \n') == [
            "I am calm", "I am enough",
        ]

    def test_fenced_array(self):
        text = '```json\n["I am calm", "I am enough"]\n```'
        assert parse_affirmations(text) == ["I am calm", "I am enough"]

    def test_fenced_array_after_prose(self):
        assert parse_affirmations('Here you go:\n```json\n["x","y"]\n```') == ["x", "y"]

    def test_array_inside_prose(self):
        text = 'Here you go: ["I am calm", "I am enough"] Hope it helps.'
        assert parse_affirmations(text) == ["I am calm", "I am enough"]

    def test_non_string_elements_are_dropped(self):
        assert parse_affirmations('["I am calm", 3, null, "I rest"]') == ["I am calm", "I rest"]

    def test_empty_array_is_accepted(self):
        assert parse_affirmations("[]") == []

    def test_duplicates_are_kept(self):
        assert parse_affirmations('["I am calm", "I am calm"]') == ["I am calm", "I am calm"]

    def test_quoted_string_fallback(self):
        text = 'Affirmations:\n1. "I am capable of hard things"\n2. "I deserve rest"'
        assert parse_affirmations(text) == ["I am capable of hard things", "I deserve rest"]

    def test_quoted_fallback_drops_short_strings(self):
        text = 'Use "okay" and "I am worthy of love" please'
        assert parse_affirmations(text) == ["I am worthy of love"]

    def test_quoted_fallback_drops_overlong_strings(self):
        long = "x" * 200
        assert parse_affirmations(f'"{long}" and "I trust myself"') == ["I trust myself"]

    def test_broken_array_falls_back_to_quotes(self):
        text = '["I am steady", "I am learning",'
        assert parse_affirmations(text) == ["I am steady", "I am learning"]

    def test_empty_input(self):
        assert parse_affirmations("") == []

    def test_no_usable_content(self):
        assert parse_affirmations("Sorry, I cannot help with that.") == []

    def test_object_is_not_an_array(self):
        # A JSON object is not a list; only its long quoted strings survive.
        assert parse_affirmations('{"affirmations": "nope"}') == ["affirmations"]


# --- parse_json_object ---

def _require_question(data):
    if not isinstance(data, dict) or not isinstance(data.get("question"), str):
        raise ValueError("'question' must be a string.")
    return data


class TestParseJsonObject:
    def test_clean_object(self):
        assert parse_json_object('{"question": "Hi?"}', _require_question) == {"question": "Hi?"}

    def test_object_inside_prose(self):
        text = 'Sure! {"question": "Hi?"} Let me know.'
        assert parse_json_object(text, _require_question) == {"question": "Hi?"}

    def test_fenced_object(self):
        text = '```json\n{"question": "Hi?"}\n```'
        assert parse_json_object(text, _require_question) == {"question": "Hi?"}

    def test_invalid_shape_returns_none(self):
        assert parse_json_object('{"question": 3}', _require_question) is None

    def test_invalid_json_returns_none(self):
        assert parse_json_object('{"question": ', _require_question) is None

    def test_empty_returns_none(self):
        assert parse_json_object("", _require_question) is None

    def test_greedy_span_covers_nested_objects(self):
        text = 'x {"question": "Hi?", "meta": {"a": 1}} y'
        result = parse_json_object(text, _require_question)
        assert result["meta"] == {"a": 1}

    def test_two_objects_in_prose_returns_none(self):
        text = '{"question": "a"} and {"question": "b"}'
        # Trimmed text starts with "{" but is not valid JSON; the greedy span is the same.
        assert parse_json_object(text, _require_question) is None


# --- invoke_with_retry ---

class TestInvokeWithRetry:
    def _mock_llm(self, side_effect):
        llm = MagicMock()
        llm.invoke.side_effect = side_effect
        return llm

    @patch("afo.config._config", {"llm_max_retries": 0})
    def test_no_retry_by_default(self):
        llm = self._mock_llm([httpx.ConnectError("connection refused")])

        with pytest.raises(httpx.ConnectError):
            invoke_with_retry(llm, [{"role": "user", "content": "hi"}])

        assert llm.invoke.call_count == 1

    @patch("afo.config._config", {"llm_max_retries": 3})
    def test_succeeds_on_first_try(self):
        response = MagicMock()
        response.content = '["ok"]'
        llm = self._mock_llm([response])

        result = invoke_with_retry(llm, [{"role": "user", "content": "hi"}])

        assert result.content == '["ok"]'
        assert llm.invoke.call_count == 1

    @patch("time.sleep")
    @patch("afo.config._config", {"llm_max_retries": 3})
    def test_retries_on_connect_error(self, _sleep):
        response = MagicMock()
        response.content = '["ok"]'
        llm = self._mock_llm([httpx.ConnectError("connection refused"), response])

        result = invoke_with_retry(llm, [{"role": "user", "content": "hi"}])

        assert result.content == '["ok"]'
        assert llm.invoke.call_count == 2

    @patch("time.sleep")
    @patch("afo.config._config", {"llm_max_retries": 3})
    def test_retries_on_503(self, _sleep):
        response_503 = httpx.Response(503, request=httpx.Request("POST", "https://api.example.com"))
        response = MagicMock()
        response.content = '["ok"]'
        llm = self._mock_llm([
            httpx.HTTPStatusError("unavailable", request=response_503.request, response=response_503),
            response,
        ])

        assert invoke_with_retry(llm, []).content == '["ok"]'
        assert llm.invoke.call_count == 2

    @patch("time.sleep")
    @patch("afo.config._config", {"llm_max_retries": 2})
    def test_raises_after_max_retries(self, _sleep):
        llm = self._mock_llm([
            httpx.ConnectError("fail 1"),
            httpx.ConnectError("fail 2"),
            httpx.ConnectError("fail 3"),
        ])

        with pytest.raises(httpx.ConnectError):
            invoke_with_retry(llm, [{"role": "user", "content": "hi"}])

        assert llm.invoke.call_count == 3  # 1 initial + 2 retries

    @patch("afo.config._config", {"llm_max_retries": 3})
    def test_does_not_retry_on_auth_error(self):
        response_401 = httpx.Response(401, request=httpx.Request("POST", "https://api.example.com"))
        llm = self._mock_llm([
            httpx.HTTPStatusError("unauthorized", request=response_401.request, response=response_401),
        ])

        with pytest.raises(httpx.HTTPStatusError):
            invoke_with_retry(llm, [{"role": "user", "content": "hi"}])

        assert llm.invoke.call_count == 1
