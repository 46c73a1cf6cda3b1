"""Context-aware filler word detection over a tokenized transcript."""

import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from delivery.filler_rules import FillerRule, load_filler_rules
from utils.logger import get_logger

logger = get_logger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9]+(?:'[a-z0-9]+)*")
_TERMINAL_RE = re.compile(r"[.!?…]")
_PAUSE_MARKERS = (",", ";", "...", "--", "—", "–", "…")


@dataclass(frozen=True)
class Token:
    """Lowercased word token with the raw text between it and its neighbours."""
    text: str
    start: int
    end: int
    gap_before: str
    gap_after: str


@dataclass(frozen=True)
class FillerMatch:
    """A counted filler occurrence."""
    rule_id: str
    text: str
    start: int
    end: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "ruleId": self.rule_id,
            "text": self.text,
            "start": self.start,
            "end": self.end,
        }


def normalize_transcript(text: str) -> str:
    """Lowercase and fold typographic apostrophes to ASCII."""
    return text.lower().replace("’", "'").replace("‘", "'")


def tokenize(text: str) -> list[Token]:
    """
    Split a transcript into word tokens.

    Args:
        text: Raw transcript

    Returns:
        Tokens in order of appearance
    """
    normalized = normalize_transcript(text)
    spans = [(m.group(), m.start(), m.end()) for m in _TOKEN_RE.finditer(normalized)]

    tokens: list[Token] = []
    for i, (word, start, end) in enumerate(spans):
        prev_end = spans[i - 1][2] if i > 0 else 0
        next_start = spans[i + 1][1] if i + 1 < len(spans) else len(normalized)
        tokens.append(Token(
            text=word,
            start=start,
            end=end,
            gap_before=normalized[prev_end:start],
            gap_after=normalized[end:next_start],
        ))
    return tokens


def build_window(tokens: list[Token], first: int, last: int) -> dict[str, Any]:
    """
    Describe the context around tokens[first..last] for rule conditions.

    Args:
        tokens: Tokenized transcript
        first: Index of the first matched token
        last: Index of the last matched token

    Returns:
        Window dictionary with neighbour words and punctuation flags
    """
    gap_before = tokens[first].gap_before
    gap_after = tokens[last].gap_after

    prev_word = tokens[first - 1].text if first > 0 else None
    next_word = tokens[last + 1].text if last + 1 < len(tokens) else None
    next_phrase = next_word
    if last + 2 < len(tokens) and not tokens[last + 1].gap_after.strip():
        next_phrase = f"{next_word} {tokens[last + 2].text}"

    return {
        "word": " ".join(t.text for t in tokens[first:last + 1]),
        "prev": {"word": prev_word},
        "next": {"word": next_word, "phrase": next_phrase},
        "sentence_start": first == 0 or bool(_TERMINAL_RE.search(gap_before)),
        "comma_before": "," in gap_before,
        "pause_after": any(marker in gap_after for marker in _PAUSE_MARKERS),
        "sentence_final": last + 1 == len(tokens) or bool(_TERMINAL_RE.search(gap_after)),
        "question_after": gap_after.lstrip().startswith("?"),
        "hyphen_before": gap_before == "-",
        "hyphen_after": gap_after == "-",
    }


class FillerDetector:
    """
    Ordered rule engine that counts filler words and phrases.

    Rules are tried in order at every token position. A match claims its
    tokens; later matches overlapping a claimed token are discarded, so
    overlapping phrases never double count.

    Attributes:
        rules: Ordered list of FillerRule objects.
    """

    def __init__(self, rules: list[FillerRule] | None = None) -> None:
        """
        Initialize filler detector.

        Args:
            rules: Ordered rules; the packaged defaults when None.

        Raises:
            FillerRuleError: If the packaged rules are invalid.
        """
        self.rules: list[FillerRule] = rules if rules is not None else load_filler_rules()

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "FillerDetector":
        """Build a detector from a rules YAML file."""
        return cls(load_filler_rules(config_path))

    def detect(self, transcript: str) -> list[FillerMatch]:
        """
        Find filler occurrences in a transcript.

        Args:
            transcript: Raw transcript text

        Returns:
            Matches sorted by position
        """
        tokens = tokenize(transcript)
        if not tokens:
            return []

        claimed: set[int] = set()
        matches: list[FillerMatch] = []

        for rule in self.rules:
            if not rule.enabled:
                continue
            for first in range(len(tokens)):
                for phrase in rule.phrases:
                    last = first + len(phrase) - 1
                    if not self._phrase_at(tokens, first, phrase):
                        continue
                    if any(i in claimed for i in range(first, last + 1)):
                        continue
                    if not rule.evaluate(build_window(tokens, first, last)):
                        continue

                    claimed.update(range(first, last + 1))
                    matches.append(FillerMatch(
                        rule_id=rule.id,
                        text=" ".join(phrase),
                        start=tokens[first].start,
                        end=tokens[last].end,
                    ))
                    break

        matches.sort(key=lambda m: m.start)
        logger.debug(f"Detected {len(matches)} fillers in {len(tokens)} tokens")
        return matches

    def count(self, transcript: str) -> int:
        """Count filler occurrences in a transcript."""
        return len(self.detect(transcript))

    @staticmethod
    def _phrase_at(tokens: list[Token], first: int, phrase: tuple[str, ...]) -> bool:
        """Check a phrase matches consecutive tokens separated only by whitespace."""
        last = first + len(phrase) - 1
        if last >= len(tokens):
            return False
        for offset, word in enumerate(phrase):
            token = tokens[first + offset]
            if token.text != word:
                return False
            if offset > 0 and token.gap_before.strip():
                return False
        return True

    def get_rule_by_id(self, rule_id: str) -> FillerRule | None:
        """
        Get rule by ID.

        Args:
            rule_id: Rule identifier string.

        Returns:
            FillerRule object if found, None otherwise.
        """
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None

    def enable_rule(self, rule_id: str) -> bool:
        """Enable a rule. Returns False if the rule does not exist."""
        rule = self.get_rule_by_id(rule_id)
        if rule:
            rule.enabled = True
            return True
        return False

    def disable_rule(self, rule_id: str) -> bool:
        """Disable a rule. Returns False if the rule does not exist."""
        rule = self.get_rule_by_id(rule_id)
        if rule:
            rule.enabled = False
            return True
        return False

    def get_all_rules(self) -> list[dict[str, Any]]:
        """Get all rules as dictionaries."""
        return [rule.to_dict() for rule in self.rules]


@lru_cache(maxsize=1)
def _default_detector() -> FillerDetector:
    return FillerDetector()


def count_fillers(transcript: str) -> int:
    """Count fillers with the packaged default rules."""
    return _default_detector().count(transcript)
