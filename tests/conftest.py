"""Shared fixtures for the AFO test suite."""

import pytest
from unittest.mock import MagicMock, patch

from afo.graph import new_session
from afo.variants import get_variant


@pytest.fixture
def mock_config():
    """Patch the config singleton with test-friendly values."""
    test_config = {
        "default_model": "gemini-2.0-flash",
        "default_temperature": 0.9,
        "llm_max_retries": 0,
        "min_screens": 2,
        "max_screens": 5,
        "default_variant": "fo-07",
        "default_implementation": "default",
        "kv_seeds_path": "seeds.yaml",
        "output_path": "./output/collection.md",
    }
    with patch("afo.config._config", test_config):
        yield test_config


@pytest.fixture
def empty_kv_store():
    """An empty KV store, so every agent uses its built-in prompt."""
    with patch("afo.services.kv_store._store", {}):
        yield


@pytest.fixture
def kv_store():
    """A KV store the test fills in; starts empty."""
    store = {}
    with patch("afo.services.kv_store._store", store):
        yield store


@pytest.fixture
def fo04():
    return get_variant("fo-04")


@pytest.fixture
def fo06():
    return get_variant("fo-06")


@pytest.fixture
def fo07():
    return get_variant("fo-07")


@pytest.fixture
def fo11():
    return get_variant("fo-11")


@pytest.fixture
def base_context():
    """A chip-variant context with one answered screen."""
    return {
        "name": "Sam",
        "familiarity": "some",
        "initial_topic": "Work stress",
        "exchanges": [
            {
                "question": "What's weighing on you?",
                "answer": {"text": "Deadlines", "selected_chips": ["Overwhelmed"]},
            }
        ],
        "screen_number": 2,
    }


@pytest.fixture
def empty_context():
    """A context before any screen was answered."""
    return {
        "name": "Sam",
        "familiarity": "some",
        "initial_topic": "Work stress",
        "exchanges": [],
        "screen_number": 1,
    }


@pytest.fixture
def base_state():
    """Fresh fo-04 session state."""
    return new_session("fo-04", "Sam", implementation="default",
                       familiarity="some", initial_topic="Work stress")


@pytest.fixture
def make_agent():
    """Factory for a mock Agent whose generate() returns the given texts in order."""
    def _make(*texts):
        agent = MagicMock()
        agent.generate.side_effect = [{"text": t} for t in texts]
        return agent
    return _make
