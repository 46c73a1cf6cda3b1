"""Tests for FillerCondition, FillerRule and rule loading."""

from typing import Any

import pytest
from pydantic import ValidationError

from delivery.filler_rules import (
    DEFAULT_RULES_PATH,
    FillerCondition,
    FillerRule,
    load_filler_rules,
    parse_filler_rules,
)
from utils.exceptions import ConfigurationError, FillerRuleError


class TestFillerCondition:
    """Tests for FillerCondition."""

    @pytest.fixture
    def window(self) -> dict[str, Any]:
        """A window around 'like' in 'it was, like, huge'."""
        return {
            "word": "like",
            "prev": {"word": "was"},
            "next": {"word": "huge", "phrase": "huge"},
            "sentence_start": False,
            "comma_before": True,
            "pause_after": True,
            "sentence_final": False,
            "question_after": False,
            "hyphen_before": False,
            "hyphen_after": False,
        }

    def test_to_dict(self):
        """Test FillerCondition conversion to dict."""
        condition = FillerCondition(field="next.word", operator="in", value=["A", "The"])
        assert condition.to_dict() == {
            "field": "next.word",
            "operator": "in",
            "value": ["a", "the"],
        }

    def test_eq(self, window):
        """Test the eq operator."""
        assert FillerCondition("comma_before", "eq", True).evaluate(window) is True
        assert FillerCondition("sentence_start", "eq", True).evaluate(window) is False

    def test_ne(self, window):
        """Test the ne operator."""
        assert FillerCondition("prev.word", "ne", "is").evaluate(window) is True

    def test_in_and_not_in(self, window):
        """Test the in and not_in operators."""
        assert FillerCondition("prev.word", "in", ["was", "is"]).evaluate(window) is True
        assert FillerCondition("prev.word", "not_in", ["was", "is"]).evaluate(window) is False

    def test_contains(self, window):
        """Test the contains operator."""
        assert FillerCondition("next.phrase", "contains", "hug").evaluate(window) is True

    def test_missing_neighbour_never_matches(self, window):
        """Test that a missing neighbour token never matches."""
        window["prev"]["word"] = None
        assert FillerCondition("prev.word", "not_in", ["look"]).evaluate(window) is False
        assert FillerCondition("prev.word", "ne", "look").evaluate(window) is False

    def test_unknown_field_rejected(self):
        """Test that unknown window fields are rejected."""
        with pytest.raises(ValidationError):
            FillerCondition("player.hp", "eq", 1)

    def test_unknown_operator_rejected(self):
        """Test that unknown operators are rejected."""
        with pytest.raises(ValidationError):
            FillerCondition("prev.word", "gt", 1)


class TestFillerRule:
    """Tests for FillerRule."""

    def test_phrases_normalized(self):
        """Test that match phrases are normalized."""
        rule = FillerRule(rule_id="r", name="R", match=["You  Know", "um"], tier="always")
        assert ("you", "know") in rule.phrases
        assert rule.phrases[0] == ("you", "know")

    def test_always_tier_ignores_when(self):
        """Test that always-tier rules ignore when groups."""
        rule = FillerRule(rule_id="r", name="R", match=["um"], tier="always")
        assert rule.evaluate({}) is True

    def test_unless_rejects(self):
        """Test that an unless condition rejects a match."""
        rule = FillerRule(
            rule_id="er",
            name="er",
            match=["er"],
            unless=[FillerCondition("hyphen_after", "eq", True)],
        )
        assert rule.evaluate({"hyphen_after": True}) is False
        assert rule.evaluate({"hyphen_after": False}) is True

    def test_when_groups_are_or_of_and(self):
        """Test that when groups combine as OR of AND."""
        rule = FillerRule(
            rule_id="like",
            name="like",
            match=["like"],
            when=[
                [FillerCondition("pause_after", "eq", True)],
                [
                    FillerCondition("prev.word", "eq", "was"),
                    FillerCondition("sentence_final", "eq", True),
                ],
            ],
        )
        assert rule.evaluate({"pause_after": True}) is True
        assert rule.evaluate({"prev": {"word": "was"}, "sentence_final": True}) is True
        assert rule.evaluate({"prev": {"word": "was"}, "sentence_final": False}) is False

    def test_disabled_rule_never_fires(self):
        """Test that a disabled rule never matches."""
        rule = FillerRule(rule_id="r", name="R", match=["um"], tier="always", enabled=False)
        assert rule.evaluate({}) is False

    def test_empty_match_rejected(self):
        """Test that a rule without match phrases is rejected."""
        with pytest.raises(ValidationError):
            FillerRule(rule_id="r", name="R", match=[])

    def test_to_dict(self):
        """Test FillerRule conversion to dict."""
        rule = FillerRule(rule_id="r", name="R", match=["um"], tier="always")
        result = rule.to_dict()
        assert result["id"] == "r"
        assert result["tier"] == "always"
        assert result["match"] == ["um"]


class TestLoadFillerRules:
    """Tests for rule loading and validation."""

    def test_packaged_rules_load(self):
        """Test loading the packaged rule file."""
        rules = load_filler_rules()
        ids = [rule.id for rule in rules]

        assert DEFAULT_RULES_PATH.exists()
        assert ids[0] == "hesitation_sounds"
        assert {"like", "so", "well", "right_tag", "hedged_i_think", "okay", "er"} <= set(ids)

    def test_discourse_markers_disabled_by_default(self):
        """Test that discourse marker rules ship disabled."""
        rules = {rule.id: rule for rule in load_filler_rules()}
        assert rules["discourse_markers"].enabled is False

    def test_custom_file(self, temp_rules_file):
        """Test loading rules from a custom file."""
        rules = load_filler_rules(temp_rules_file)
        assert [rule.id for rule in rules] == ["hesitation", "so"]

    def test_missing_file(self, temp_dir):
        """Test that a missing rule file raises FillerRuleError."""
        with pytest.raises(FillerRuleError):
            load_filler_rules(temp_dir / "missing.yaml")

    def test_invalid_yaml(self, temp_dir):
        """Test that malformed YAML raises FillerRuleError."""
        path = temp_dir / "bad.yaml"
        path.write_text("rules: [unclosed")
        with pytest.raises(FillerRuleError):
            load_filler_rules(path)

    def test_invalid_field_reports_rule_id(self):
        """Test that validation errors name the offending rule."""
        config = {"rules": [{
            "id": "broken",
            "name": "Broken",
            "match": ["like"],
            "unless": [{"field": "player.hp", "operator": "eq", "value": 1}],
        }]}
        with pytest.raises(FillerRuleError) as exc_info:
            parse_filler_rules(config)

        assert exc_info.value.rule_id == "broken"
        assert isinstance(exc_info.value, ConfigurationError)

    def test_missing_match(self):
        """Test that a rule without match raises FillerRuleError."""
        with pytest.raises(FillerRuleError):
            parse_filler_rules({"rules": [{"id": "no_match", "name": "No match"}]})

    def test_duplicate_ids(self):
        """Test that duplicate rule ids are rejected."""
        rule = {"id": "dup", "name": "Dup", "tier": "always", "match": ["um"]}
        with pytest.raises(FillerRuleError, match="Duplicate"):
            parse_filler_rules({"rules": [rule, dict(rule)]})

    def test_empty_rules(self):
        """Test that an empty rule list is rejected."""
        with pytest.raises(FillerRuleError):
            parse_filler_rules({"rules": []})
