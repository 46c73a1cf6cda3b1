"""Filler rule definitions and context-window condition evaluation."""

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from utils.exceptions import FillerRuleError

DEFAULT_RULES_PATH = Path(__file__).parent / "filler_rules.yaml"

# Fields a condition may reference in a token window
WINDOW_FIELDS = frozenset({
    "word",
    "prev.word",
    "next.word",
    "next.phrase",
    "sentence_start",
    "comma_before",
    "pause_after",
    "sentence_final",
    "question_after",
    "hyphen_before",
    "hyphen_after",
})


class OperatorType(str, Enum):
    """Valid comparison operators for filler conditions."""
    EQ = "eq"
    NE = "ne"
    IN = "in"
    NOT_IN = "not_in"
    CONTAINS = "contains"


class RuleTier(str, Enum):
    """Always-filler items need no context; contextual ones must pass their conditions."""
    ALWAYS = "always"
    CONTEXTUAL = "contextual"


class FillerConditionModel(BaseModel):
    """Pydantic model for filler condition validation."""

    model_config = ConfigDict(use_enum_values=True)

    field: str = Field(..., description="Window field (e.g. 'next.word')")
    operator: OperatorType = Field(..., description="Comparison operator")
    value: Any = Field(..., description="Value to compare against")

    @field_validator('field')
    @classmethod
    def validate_field(cls, v):
        """Validate the field is part of the token window."""
        if v not in WINDOW_FIELDS:
            raise ValueError(f"Field must be one of {sorted(WINDOW_FIELDS)}")
        return v

    @field_validator('value')
    @classmethod
    def normalize_value(cls, v):
        """Lowercase string values so rules match the lowercased transcript."""
        if isinstance(v, str):
            return v.lower()
        if isinstance(v, list):
            return [item.lower() if isinstance(item, str) else item for item in v]
        return v


class FillerRuleModel(BaseModel):
    """Pydantic model for filler rule validation."""

    model_config = ConfigDict(use_enum_values=True)

    rule_id: str = Field(..., min_length=1, description="Unique rule identifier")
    name: str = Field(..., min_length=1, description="Human-readable name")
    tier: RuleTier = Field(default=RuleTier.CONTEXTUAL)
    enabled: bool = Field(default=True)
    match: list[str] = Field(..., min_length=1, description="Words or phrases this rule matches")
    unless: list[FillerConditionModel] = Field(
        default_factory=list,
        description="Any true condition rejects the match"
    )
    when: list[list[FillerConditionModel]] = Field(
        default_factory=list,
        description="Condition groups; the match counts if any group fully holds"
    )

    @field_validator('match')
    @classmethod
    def validate_match(cls, v):
        """Normalize phrases to lowercase single-spaced form."""
        phrases = [" ".join(p.lower().split()) for p in v]
        if any(not p for p in phrases):
            raise ValueError("Match phrases must be non-empty")
        return phrases

    @field_validator('when')
    @classmethod
    def validate_when(cls, v):
        """Reject empty condition groups (they would always hold)."""
        if any(len(group) == 0 for group in v):
            raise ValueError("Condition groups must not be empty")
        return v


class FillerCondition:
    """Condition over a token window."""

    def __init__(self, field: str, operator: str, value: Any):
        """
        Initialize filler condition.

        Args:
            field: Window field (e.g. "prev.word", "sentence_start")
            operator: Comparison operator (eq, ne, in, not_in, contains)
            value: Value to compare against

        Raises:
            pydantic.ValidationError: If parameters are invalid
        """
        validated = FillerConditionModel(field=field, operator=operator, value=value)
        self.field = validated.field
        self.operator = validated.operator
        self.value = validated.value

    def evaluate(self, window: dict[str, Any]) -> bool:
        """
        Evaluate condition against a token window.

        Args:
            window: Token window dictionary built by the filler detector

        Returns:
            True if condition is met, False otherwise
        """
        current: Any = window
        for key in self.field.split('.'):
            if not isinstance(current, dict) or key not in current:
                return False
            current = current[key]

        # Missing neighbours never satisfy a condition
        if current is None:
            return False

        if self.operator == "eq":
            return current == self.value
        elif self.operator == "ne":
            return current != self.value
        elif self.operator == "in":
            return current in self.value if isinstance(self.value, (list, tuple)) else False
        elif self.operator == "not_in":
            return current not in self.value if isinstance(self.value, (list, tuple)) else True
        elif self.operator == "contains":
            return self.value in current if isinstance(current, (str, list, tuple)) else False
        else:
            return False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "field": self.field,
            "operator": self.operator,
            "value": self.value,
        }


class FillerRule:
    """Filler rule: phrases to match plus the context that qualifies them."""

    def __init__(
        self,
        rule_id: str,
        name: str,
        match: list[str],
        tier: str = RuleTier.CONTEXTUAL.value,
        enabled: bool = True,
        unless: list[FillerCondition] | None = None,
        when: list[list[FillerCondition]] | None = None,
    ):
        """
        Initialize filler rule.

        Args:
            rule_id: Unique rule identifier
            name: Human-readable name
            match: Words or phrases the rule matches (case-insensitive)
            tier: "always" or "contextual"
            enabled: Whether the rule is enabled
            unless: Conditions that reject a match when any is true
            when: Condition groups; a match counts if all conditions of any group hold

        Raises:
            pydantic.ValidationError: If parameters are invalid
        """
        unless = unless or []
        when = when or []
        validated = FillerRuleModel(
            rule_id=rule_id,
            name=name,
            tier=tier,
            enabled=enabled,
            match=match,
            unless=[c.to_dict() for c in unless],
            when=[[c.to_dict() for c in group] for group in when],
        )
        self.id = validated.rule_id
        self.name = validated.name
        self.tier = validated.tier
        self.enabled = validated.enabled
        self.phrases = [tuple(p.split()) for p in validated.match]
        self.unless = [FillerCondition(**c.model_dump()) for c in validated.unless]
        self.when = [
            [FillerCondition(**c.model_dump()) for c in group]
            for group in validated.when
        ]

        # Longest phrases first so "you know" wins over a shorter overlap
        self.phrases.sort(key=len, reverse=True)

    def evaluate(self, window: dict[str, Any]) -> bool:
        """
        Decide whether a matched phrase is a filler in its window.

        Args:
            window: Token window dictionary

        Returns:
            True if the occurrence counts as a filler
        """
        if not self.enabled:
            return False

        if any(condition.evaluate(window) for condition in self.unless):
            return False

        if self.tier == RuleTier.ALWAYS.value or not self.when:
            return True

        return any(
            all(condition.evaluate(window) for condition in group)
            for group in self.when
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "tier": self.tier,
            "enabled": self.enabled,
            "match": [" ".join(p) for p in self.phrases],
            "unless": [c.to_dict() for c in self.unless],
            "when": [[c.to_dict() for c in group] for group in self.when],
        }


def _parse_conditions(raw: list[dict[str, Any]] | None) -> list[FillerCondition]:
    return [FillerCondition(c['field'], c['operator'], c['value']) for c in raw or []]


def parse_filler_rules(config: dict[str, Any]) -> list[FillerRule]:
    """
    Parse a rules document into ordered FillerRule objects.

    Args:
        config: Mapping with a ``rules`` list

    Returns:
        Rules in document order (earlier rules claim tokens first)

    Raises:
        FillerRuleError: If a rule is malformed or an id is duplicated
    """
    rules: list[FillerRule] = []
    seen_ids: set[str] = set()

    for raw in config.get('rules') or []:
        rule_id = raw.get('id') if isinstance(raw, dict) else None
        try:
            rule = FillerRule(
                rule_id=raw['id'],
                name=raw.get('name', raw['id']),
                match=raw['match'],
                tier=raw.get('tier', RuleTier.CONTEXTUAL.value),
                enabled=raw.get('enabled', True),
                unless=_parse_conditions(raw.get('unless')),
                when=[_parse_conditions(group) for group in raw.get('when') or []],
            )
        except (KeyError, TypeError) as e:
            raise FillerRuleError(f"Malformed filler rule: missing {e}", rule_id=rule_id, cause=e) from e
        except ValidationError as e:
            raise FillerRuleError("Invalid filler rule", rule_id=rule_id, cause=e) from e

        if rule.id in seen_ids:
            raise FillerRuleError("Duplicate filler rule id", rule_id=rule.id)
        seen_ids.add(rule.id)
        rules.append(rule)

    if not rules:
        raise FillerRuleError("No filler rules defined")

    return rules


def load_filler_rules(config_path: str | Path | None = None) -> list[FillerRule]:
    """
    Load filler rules from YAML.

    Args:
        config_path: Path to a rules file; the packaged defaults when None

    Returns:
        Ordered list of FillerRule objects

    Raises:
        FillerRuleError: If the file is missing, malformed or invalid
    """
    path = Path(config_path) if config_path else DEFAULT_RULES_PATH
    try:
        with open(path) as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise FillerRuleError(
            "Could not read filler rules", context={"path": str(path)}, cause=e
        ) from e

    if not isinstance(config, dict):
        raise FillerRuleError("Filler rules document must be a mapping", context={"path": str(path)})

    return parse_filler_rules(config)
