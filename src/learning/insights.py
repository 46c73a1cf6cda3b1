"""Cross-session aggregation of learning summaries."""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from learning.models import (
    CommonMistake,
    LearningSummary,
    TagInsight,
    TopForgottenPoint,
    UserLearningInsight,
    as_utc,
)
from learning.session import normalize_key, round_half_up
from utils import constants
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class TagTally:
    """Per-tag accumulator folded over a user's summaries."""

    weak_count: int = 0
    strong_count: int = 0
    focus_count: int = 0
    score_samples: list[float] = field(default_factory=list)


@dataclass
class _MistakeTally:
    pattern: str
    frequency: int = 0
    examples: list[str] = field(default_factory=list)


@dataclass
class _PointTally:
    point: str
    total_frequency: int = 0
    sessions: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


class UserInsightAggregator:
    """
    Derives a UserLearningInsight from a set of LearningSummary records.

    Every call folds into fresh accumulators, so concurrent or repeated
    runs over the same summaries produce identical insights.
    """

    def aggregate(
        self,
        summaries: Iterable[LearningSummary],
        user_id: str | None = None,
        bank_id: str | None = None,
    ) -> UserLearningInsight:
        """
        Aggregate summaries into an insight.

        Args:
            summaries: The user's learning summaries
            user_id: Owner recorded on the insight
            bank_id: Restrict to summaries of this question bank when given

        Returns:
            UserLearningInsight; empty collections when no summaries match
        """
        selected = [
            s for s in summaries
            if bank_id is None or s.bank_id == bank_id
        ]
        insight = UserLearningInsight(user_id=user_id, bank_id=bank_id)
        if not selected:
            return insight

        tallies = self._fold_tags(selected)
        total = len(selected)
        share = total * constants.AGGREGATED_TAG_SHARE

        insight.aggregated_weak_tags = [
            tag for tag, tally in tallies.items() if tally.weak_count > share
        ]
        insight.aggregated_strong_tags = [
            tag for tag, tally in tallies.items() if tally.strong_count > share
        ]
        insight.top_focus_areas = [
            tag for tag, tally in sorted(
                ((t, tally) for t, tally in tallies.items() if tally.focus_count > 0),
                key=lambda item: -item[1].focus_count,
            )
        ][:constants.MAX_TOP_FOCUS_AREAS]
        insight.performance_by_tag = {
            tag: TagInsight(
                avg_score=round_half_up(sum(tally.score_samples) / len(tally.score_samples)),
                session_count=len(tally.score_samples),
            )
            for tag, tally in tallies.items()
            if tally.score_samples
        }

        insight.aggregated_mistakes = self._merge_mistakes(selected)
        insight.top_forgotten_points = self._merge_forgotten_points(selected)

        insight.average_overall_score = round_half_up(
            sum(s.overall_score for s in selected) / total
        )
        insight.total_sessions = total
        insight.total_questions = sum(s.question_count for s in selected)
        completed = [s.completed_at for s in selected if s.completed_at is not None]
        insight.last_updated = max(completed, key=as_utc) if completed else None

        logger.info(
            f"Aggregated {total} summaries for user {user_id or '<unknown>'}: "
            f"weak={insight.aggregated_weak_tags}, strong={insight.aggregated_strong_tags}"
        )
        return insight

    @staticmethod
    def _fold_tags(summaries: list[LearningSummary]) -> dict[str, TagTally]:
        tallies: dict[str, TagTally] = defaultdict(TagTally)
        for summary in summaries:
            for tag in dict.fromkeys(summary.weak_tags):
                tallies[tag].weak_count += 1
            for tag in dict.fromkeys(summary.strong_tags):
                tallies[tag].strong_count += 1
            for tag in dict.fromkeys(summary.recommended_focus):
                tallies[tag].focus_count += 1
            for tag, perf in summary.performance_by_tag.items():
                tallies[tag].score_samples.append(perf.avg_score)
        return tallies

    @staticmethod
    def _merge_mistakes(summaries: list[LearningSummary]) -> list[CommonMistake]:
        merged: dict[str, _MistakeTally] = {}
        for summary in summaries:
            for mistake in summary.common_mistakes:
                key = normalize_key(mistake.pattern)
                if not key:
                    continue
                tally = merged.setdefault(key, _MistakeTally(pattern=key))
                tally.frequency += mistake.frequency
                for example in mistake.examples:
                    if (
                        example not in tally.examples
                        and len(tally.examples) < constants.MAX_EXAMPLES_PER_PATTERN
                    ):
                        tally.examples.append(example)

        ranked = sorted(merged.values(), key=lambda t: -t.frequency)
        return [
            CommonMistake(pattern=t.pattern, frequency=t.frequency, examples=t.examples)
            for t in ranked[:constants.MAX_COMMON_MISTAKES]
        ]

    @staticmethod
    def _merge_forgotten_points(summaries: list[LearningSummary]) -> list[TopForgottenPoint]:
        merged: dict[str, _PointTally] = {}
        for summary in summaries:
            for point in summary.frequently_forgotten_points:
                key = normalize_key(point.point)
                if not key:
                    continue
                tally = merged.setdefault(key, _PointTally(point=key))
                tally.total_frequency += point.frequency
                if summary.session_id not in tally.sessions:
                    tally.sessions.append(summary.session_id)
                for tag in point.tags:
                    if tag not in tally.tags:
                        tally.tags.append(tag)

        ranked = sorted(merged.values(), key=lambda t: -t.total_frequency)
        return [
            TopForgottenPoint(
                point=t.point,
                total_frequency=t.total_frequency,
                session_count=len(t.sessions),
                tags=list(t.tags),
            )
            for t in ranked[:constants.MAX_TOP_FORGOTTEN_POINTS]
        ]
