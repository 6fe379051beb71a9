"""Tests for afo.main: argument handling, the interactive wizard and scripted runs."""

from unittest.mock import patch

import pytest

from afo.main import _pop_option, main, run_interactive, run_scripted
from afo.variants import get_variant


def _screen(ready):
    return {
        "reflectiveStatement": "",
        "question": "What's on your mind?",
        "initialChips": ["Rest", "Focus"],
        "expandedChips": ["Sleep"],
        "readyForAffirmations": ready,
    }


class TestPopOption:
    def test_removes_flag_and_value(self):
        args = ["--variant", "fo-11", "--answers", "a.yaml"]
        assert _pop_option(args, "--variant") == "fo-11"
        assert args == ["--answers", "a.yaml"]

    def test_absent_flag(self):
        assert _pop_option([], "--variant") is None

    def test_missing_value_exits(self):
        with pytest.raises(SystemExit):
            _pop_option(["--variant"], "--variant")


class TestRunInteractive:
    def test_wizard_session(self, mock_config, monkeypatch):
        replies = iter(["Sam", "2", "Work", "1", "tired", "2", "", "y", "n"])
        monkeypatch.setattr("builtins.input", lambda _prompt="": next(replies))
        with patch("afo.graph.generate_dynamic_screen", side_effect=[_screen(False), _screen(True)]), \
                patch("afo.graph.generate_affirmation_batch",
                      return_value={"affirmations": ["I rest easily"]}):
            state = run_interactive(get_variant("fo-04"))

        answers = [ex["answer"] for ex in state["context"]["exchanges"]]
        assert answers == [
            {"text": "tired", "selected_chips": ["Rest"]},
            {"text": "", "selected_chips": ["Focus"]},
        ]
        assert state["context"]["familiarity"] == "some"
        assert state["approved"] == ["I rest easily"]
        assert state["phase"] == "complete"

    def test_try_again_after_error(self, mock_config, monkeypatch):
        replies = iter(["Sam", "1", "Work", "y", "", "a", "", "", "y", "n"])
        monkeypatch.setattr("builtins.input", lambda _prompt="": next(replies))
        failed = {**_screen(False), "error": "Failed to parse agent response"}
        screens = [failed, _screen(False), _screen(True)]
        with patch("afo.graph.generate_dynamic_screen", side_effect=screens) as mock_gen, \
                patch("afo.graph.generate_affirmation_batch",
                      return_value={"affirmations": ["I rest easily"]}):
            state = run_interactive(get_variant("fo-04"))
        assert mock_gen.call_count == 3
        assert len(state["context"]["exchanges"]) == 2

    def test_declining_retry_exits(self, mock_config, monkeypatch):
        replies = iter(["Sam", "1", "Work", "n"])
        monkeypatch.setattr("builtins.input", lambda _prompt="": next(replies))
        failed = {**_screen(False), "error": "quota exceeded"}
        with patch("afo.graph.generate_dynamic_screen", return_value=failed):
            with pytest.raises(SystemExit):
                run_interactive(get_variant("fo-04"))


class TestRunScripted:
    def test_reads_answers_file(self, mock_config, tmp_path):
        answers = tmp_path / "answers.yaml"
        answers.write_text(
            "name: Sam\ninitial_topic: Work\nanswers:\n  - text: Deadlines\n  - text: Rest\n",
            encoding="utf-8",
        )
        with patch("afo.graph.generate_dynamic_screen", side_effect=[_screen(False), _screen(True)]), \
                patch("afo.graph.generate_affirmation_batch",
                      return_value={"affirmations": ["I rest easily"]}):
            state = run_scripted(get_variant("fo-04"), answers)
        assert [ex["answer"]["text"] for ex in state["context"]["exchanges"]] == ["Deadlines", "Rest"]
        assert state["affirmations"] == ["I rest easily"]


class TestMain:
    def test_unknown_variant_exits(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.argv", ["afo", "--variant", "fo-99"])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 2
        assert "Unknown variant 'fo-99'" in capsys.readouterr().err
