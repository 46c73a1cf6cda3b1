"""Per-session performance analysis into a LearningSummary."""

import math
import re
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from learning.models import (
    CONTENT_SCORE_FIELDS,
    CommonMistake,
    ForgottenPoint,
    LearningSummary,
    MisusedTerm,
    PracticeSession,
    SessionAnswer,
    TagPerformance,
)
from utils import constants
from utils.config import EngineSettings
from utils.logger import get_logger

logger = get_logger(__name__)

# Low content field -> (mistake pattern, example label)
SCORE_PATTERNS = {
    "technical_accuracy": ("Lacks technical depth or accuracy", "Technical accuracy"),
    "terminology_usage": (
        "Uses generic terms instead of domain-specific language", "Terminology usage"
    ),
    "clarity": ("Unclear structure or organization", "Clarity score"),
    "impact": ("Missing specific metrics or impact statements", "Impact score"),
    "star": ("Incomplete STAR structure (missing Situation/Task/Action/Result)", "STAR score"),
}
UNANSWERED_PATTERN = "Answer doesn't fully address the question"
UNANSWERED_EXAMPLE = "Question not fully answered"
IMPRECISE_WORDING_PATTERN = "Could use more precise wording"

# (regex, groups reversed) for "incorrect -> correct" suggestions
TERMINOLOGY_PATTERNS = [
    (re.compile(
        r"instead of ['\"]([^'\"]+)['\"](?:,|\.)?\s*(?:say|use|better:)\s*['\"]([^'\"]+)['\"]",
        re.IGNORECASE,
    ), False),
    (re.compile(
        r"you said:\s*['\"]([^'\"]+)['\"]\s*\.?\s*better:\s*['\"]([^'\"]+)['\"]",
        re.IGNORECASE,
    ), False),
    (re.compile(
        r"better:\s*['\"]([^'\"]+)['\"]\s*\(?\s*(?:instead of|rather than)?\s*['\"]([^'\"]+)['\"]",
        re.IGNORECASE,
    ), True),
]

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


def normalize_key(text: str) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    return " ".join(text.lower().split())


def valid_score(value: Any) -> float | None:
    """Return a usable 0-5 score, or None for missing, malformed or out-of-range values."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    if not constants.CONTENT_SCORE_MIN <= value <= constants.CONTENT_SCORE_MAX:
        return None
    return float(value)


def round_half_up(value: float, digits: int = 1) -> float:
    """Round half away from zero for non-negative scores."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def parse_terminology_correction(suggestion: str) -> tuple[str, str] | None:
    """
    Extract an (incorrect, correct) term pair from a wording suggestion.

    Recognized forms:
        Instead of 'X', say 'Y'
        You said: 'X'. Better: 'Y'
        Better: 'Y' (instead of 'X')

    Args:
        suggestion: Free-text wording suggestion

    Returns:
        Tuple of (incorrect, correct) terms, or None if no pair was found
    """
    for pattern, reversed_groups in TERMINOLOGY_PATTERNS:
        match = pattern.search(suggestion)
        if not match:
            continue
        first, second = match.group(1).strip(), match.group(2).strip()
        incorrect, correct = (second, first) if reversed_groups else (first, second)
        if incorrect and correct:
            return incorrect, correct
        return None
    return None


@dataclass
class _PatternTally:
    """Frequency plus a few distinct examples for one normalized key."""
    frequency: int = 0
    examples: list[str] = field(default_factory=list)

    def add(self, example: str | None = None) -> None:
        self.frequency += 1
        if (
            example
            and example not in self.examples
            and len(self.examples) < constants.MAX_EXAMPLES_PER_PATTERN
        ):
            self.examples.append(example)


@dataclass
class _TermTally:
    incorrect_term: str
    correct_term: str
    frequency: int = 0
    questions: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    examples: list[str] = field(default_factory=list)


def _append_unique(items: list[str], values: Sequence[str]) -> None:
    for value in values:
        if value not in items:
            items.append(value)


def _format_score(value: float) -> str:
    return f"{value:g}"


class SessionPerformanceAnalyzer:
    """
    Builds a LearningSummary from all answers of one session.

    The analysis is a pure function of the answers: running it twice on the
    same session yields equal summaries.

    Attributes:
        terminology_glossary: Known incorrect -> correct term pairs matched
            against answer transcripts.
    """

    def __init__(self, terminology_glossary: dict[str, str] | None = None):
        """
        Initialize session analyzer.

        Args:
            terminology_glossary: Optional mapping of incorrect to correct terms
        """
        self.terminology_glossary = {
            incorrect.strip(): correct.strip()
            for incorrect, correct in (terminology_glossary or {}).items()
            if incorrect.strip() and correct.strip()
            and normalize_key(incorrect) != normalize_key(correct)
        }
        self._glossary_patterns = [
            (re.compile(rf"\b{re.escape(incorrect)}\b", re.IGNORECASE), incorrect, correct)
            for incorrect, correct in self.terminology_glossary.items()
        ]

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> "SessionPerformanceAnalyzer":
        """Build an analyzer using the configured terminology glossary."""
        return cls(terminology_glossary=dict(settings.terminology_glossary))

    def analyze(self, session: PracticeSession) -> LearningSummary:
        """
        Summarize a practice session.

        Args:
            session: Session with its answers

        Returns:
            LearningSummary keyed by the session id
        """
        return self.analyze_answers(
            session.answers,
            session_id=session.session_id,
            user_id=session.user_id,
            bank_id=session.bank_id,
            completed_at=session.completed_at,
        )

    def analyze_answers(
        self,
        answers: Sequence[SessionAnswer],
        session_id: str = "",
        user_id: str = "",
        bank_id: str | None = None,
        completed_at: datetime | None = None,
    ) -> LearningSummary:
        """
        Summarize a list of answers.

        Args:
            answers: Answers of one session
            session_id: Session key for the summary
            user_id: Owner of the session
            bank_id: Question bank of the session, if any
            completed_at: Completion time of the session

        Returns:
            LearningSummary
        """
        summary = LearningSummary(
            session_id=session_id,
            user_id=user_id,
            bank_id=bank_id,
            question_count=len(answers),
            completed_at=completed_at,
        )
        if not answers:
            return summary

        mistakes: dict[str, _PatternTally] = defaultdict(_PatternTally)
        terms: dict[str, _TermTally] = {}

        for answer in answers:
            self._collect_feedback_mistakes(answer, mistakes)
            self._collect_score_mistakes(answer, mistakes)
            self._collect_wording(answer, mistakes, terms)
            self._collect_glossary_terms(answer, terms)

        summary.common_mistakes = [
            CommonMistake(pattern=key, frequency=tally.frequency, examples=list(tally.examples))
            for key, tally in sorted(mistakes.items(), key=lambda kv: -kv[1].frequency)
        ][:constants.MAX_COMMON_MISTAKES]

        summary.frequently_misused_terms = [
            MisusedTerm(
                incorrect_term=t.incorrect_term,
                correct_term=t.correct_term,
                frequency=t.frequency,
                questions=list(t.questions),
                tags=list(t.tags),
                examples=list(t.examples),
            )
            for t in sorted(terms.values(), key=lambda t: -t.frequency)
        ][:constants.MAX_MISUSED_TERMS]

        summary.frequently_forgotten_points = self._forgotten_points(answers)

        self._score_tags(answers, summary)

        logger.info(
            f"Summarized session {session_id or '<anonymous>'}: {len(answers)} answers, "
            f"overall {summary.overall_score}, weak={summary.weak_tags}"
        )
        return summary

    def _collect_feedback_mistakes(
        self, answer: SessionAnswer, mistakes: dict[str, _PatternTally]
    ) -> None:
        for mistake in answer.what_was_wrong:
            key = normalize_key(mistake)
            if key:
                mistakes[key].add(mistake.strip())

    def _collect_score_mistakes(
        self, answer: SessionAnswer, mistakes: dict[str, _PatternTally]
    ) -> None:
        for field_name, (pattern, label) in SCORE_PATTERNS.items():
            score = valid_score(getattr(answer, field_name))
            if score is not None and score < constants.LOW_FIELD_SCORE_THRESHOLD:
                mistakes[normalize_key(pattern)].add(f"{label}: {_format_score(score)}/5")

        if answer.question_answered is False:
            mistakes[normalize_key(UNANSWERED_PATTERN)].add(UNANSWERED_EXAMPLE)

    def _collect_wording(
        self,
        answer: SessionAnswer,
        mistakes: dict[str, _PatternTally],
        terms: dict[str, _TermTally],
    ) -> None:
        for suggestion in answer.better_wording:
            pair = parse_terminology_correction(suggestion)
            if pair and normalize_key(pair[0]) != normalize_key(pair[1]):
                self._record_term(terms, pair[0], pair[1], answer, suggestion)
                continue

            lower = suggestion.lower()
            if pair or "instead of" in lower or "better:" in lower:
                mistakes[normalize_key(IMPRECISE_WORDING_PATTERN)].add(
                    suggestion[:constants.MAX_WORDING_EXAMPLE_CHARS]
                )

    def _collect_glossary_terms(self, answer: SessionAnswer, terms: dict[str, _TermTally]) -> None:
        if not self._glossary_patterns or not answer.transcript:
            return

        sentences = [s.strip() for s in _SENTENCE_SPLIT_RE.split(answer.transcript) if s.strip()]
        for pattern, incorrect, correct in self._glossary_patterns:
            for sentence in sentences:
                for _ in pattern.finditer(sentence):
                    self._record_term(terms, incorrect, correct, answer, sentence)

    @staticmethod
    def _record_term(
        terms: dict[str, _TermTally],
        incorrect: str,
        correct: str,
        answer: SessionAnswer,
        example: str,
    ) -> None:
        key = f"{normalize_key(incorrect)} -> {normalize_key(correct)}"
        tally = terms.get(key)
        if tally is None:
            tally = terms[key] = _TermTally(incorrect_term=incorrect, correct_term=correct)
        tally.frequency += 1
        _append_unique(tally.questions, [answer.question.id])
        _append_unique(tally.tags, answer.question.tags)
        if example not in tally.examples and len(tally.examples) < constants.MAX_EXAMPLES_PER_PATTERN:
            tally.examples.append(example)

    @staticmethod
    def _forgotten_points(answers: Sequence[SessionAnswer]) -> list[ForgottenPoint]:
        points: dict[str, ForgottenPoint] = {}
        for answer in answers:
            for raw_point in answer.dont_forget:
                key = normalize_key(raw_point)
                if not key:
                    continue
                point = points.get(key)
                if point is None:
                    point = points[key] = ForgottenPoint(point=key, frequency=0)
                point.frequency += 1
                _append_unique(point.questions, [answer.question.id])
                _append_unique(point.tags, answer.question.tags)

        return sorted(points.values(), key=lambda p: -p.frequency)

    @staticmethod
    def _score_tags(answers: Sequence[SessionAnswer], summary: LearningSummary) -> None:
        tag_scores: dict[str, list[float]] = defaultdict(list)
        tag_questions: dict[str, list[str]] = defaultdict(list)
        weighted_total = 0.0
        total_weight = 0

        for answer in answers:
            scores = [
                score for score in (
                    valid_score(getattr(answer, name)) for name in CONTENT_SCORE_FIELDS
                )
                if score is not None
            ]
            if not scores:
                continue

            composite = sum(scores) / len(scores)
            weighted_total += composite * len(scores)
            total_weight += len(scores)

            for tag in answer.question.tags:
                tag_scores[tag].append(composite)
                _append_unique(tag_questions[tag], [answer.question.id])

        internal_avgs = {tag: sum(s) / len(s) for tag, s in tag_scores.items()}

        summary.performance_by_tag = {
            tag: TagPerformance(
                avg_score=round_half_up(avg * constants.INTERNAL_TO_PUBLIC_FACTOR),
                count=len(tag_scores[tag]),
                questions=tag_questions[tag],
            )
            for tag, avg in internal_avgs.items()
        }
        summary.weak_tags = [
            tag for tag, avg in internal_avgs.items() if avg < constants.WEAK_TAG_THRESHOLD
        ]
        summary.strong_tags = [
            tag for tag, avg in internal_avgs.items() if avg >= constants.STRONG_TAG_THRESHOLD
        ]
        summary.recommended_focus = sorted(
            summary.weak_tags, key=lambda tag: (-len(tag_scores[tag]), internal_avgs[tag])
        )[:constants.MAX_RECOMMENDED_FOCUS]

        if total_weight:
            summary.overall_score = round_half_up(
                weighted_total / total_weight * constants.INTERNAL_TO_PUBLIC_FACTOR
            )
