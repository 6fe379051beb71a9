"""Tests for afo.utils.validator and the variant registry."""

import pytest

from afo.utils.validator import validate_context, validate_discovery_step, validate_name
from afo.variants import VARIANTS, get_variant


class TestValidateName:
    def test_strips_whitespace(self):
        assert validate_name("  Sam ") == "Sam"

    @pytest.mark.parametrize("name", ["", "   ", None, 42])
    def test_rejects_missing_name(self, name):
        with pytest.raises(ValueError, match="Name is required"):
            validate_name(name)


class TestValidateContext:
    def test_valid_context(self, base_context, fo04):
        validate_context(base_context, fo04, require_exchanges=True)

    def test_topic_required_when_variant_asks_for_it(self, base_context, fo04):
        base_context["initial_topic"] = "  "
        with pytest.raises(ValueError, match="Initial topic is required"):
            validate_context(base_context, fo04)

    def test_topic_optional_for_open_variants(self, base_context, fo06):
        del base_context["initial_topic"]
        validate_context(base_context, fo06)

    def test_exchanges_required_for_generation(self, empty_context, fo04):
        with pytest.raises(ValueError, match="At least one exchange is required"):
            validate_context(empty_context, fo04, require_exchanges=True)

    def test_exchanges_optional_for_discovery(self, empty_context, fo04):
        validate_context(empty_context, fo04)


class TestValidateDiscoveryStep:
    @pytest.mark.parametrize("step", [5, 6, 7])
    def test_valid_steps(self, step, fo11):
        assert validate_discovery_step(step, fo11) == step

    @pytest.mark.parametrize("step", [0, 4, 8])
    def test_invalid_steps(self, step, fo11):
        with pytest.raises(ValueError, match=f"Invalid step number: {step}"):
            validate_discovery_step(step, fo11)


class TestVariants:
    def test_registry_ids(self):
        assert sorted(VARIANTS) == ["fo-04", "fo-05", "fo-06", "fo-07", "fo-09", "fo-11"]

    def test_unknown_variant(self):
        with pytest.raises(KeyError, match="fo-99"):
            get_variant("fo-99")

    @pytest.mark.parametrize("variant_id,size", [
        ("fo-04", 10), ("fo-05", 10), ("fo-06", 10), ("fo-07", 20), ("fo-09", 5), ("fo-11", 5),
    ])
    def test_batch_sizes(self, variant_id, size):
        assert get_variant(variant_id).batch_size == size

    def test_list_fields(self, fo07, fo06):
        assert fo07.list_fields == ("initialChips", "expandedChips")
        assert fo07.alternate_list_fields == ("initialFragments", "expandedFragments")
        assert fo06.selected_key == "selected_fragments"

    def test_only_step_five_is_skippable(self, fo11):
        assert fo11.discovery_steps == (5, 6, 7)
        assert fo11.skippable_steps == frozenset({5})

    def test_opening_question_uses_name(self, fo11):
        assert fo11.opening_question("Sam") == "What's your main goal with affirmations today, Sam?"

    def test_screen_bounds_from_config(self, mock_config, fo04):
        mock_config["min_screens"] = 3
        mock_config["max_screens"] = 6
        assert fo04.screen_bounds() == (3, 6)
