"""Data models for practice sessions and learning analytics."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from delivery.conciseness import QuestionType, resolve_question_type

# Content score fields in SessionAnswer, paired with their public names
CONTENT_SCORE_FIELDS = {
    "star": "star",
    "impact": "impact",
    "clarity": "clarity",
    "technical_accuracy": "technicalAccuracy",
    "terminology_usage": "terminologyUsage",
}


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def as_utc(value: datetime) -> datetime:
    """Aware UTC view of a timestamp; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class Question:
    """A practice question."""

    id: str
    tags: list[str] = field(default_factory=list)
    difficulty: int = 1
    type: QuestionType = QuestionType.BEHAVIORAL
    text: str | None = None

    def __post_init__(self) -> None:
        # Tags behave as a set; keep first-seen order for stable output
        self.tags = list(dict.fromkeys(self.tags))
        self.type = resolve_question_type(self.type)


@dataclass
class SessionAnswer:
    """One answered question within a session, with its content verdict."""

    question: Question
    transcript: str = ""
    star: Any = None
    impact: Any = None
    clarity: Any = None
    technical_accuracy: Any = None
    terminology_usage: Any = None
    what_was_wrong: list[str] = field(default_factory=list)
    dont_forget: list[str] = field(default_factory=list)
    better_wording: list[str] = field(default_factory=list)
    question_answered: bool | None = None

    @classmethod
    def from_scorecard(cls, question: Question, transcript: str, scorecard: Any) -> "SessionAnswer":
        """
        Build an answer record from a delivery ScoreCard.

        Args:
            question: The question that was answered
            transcript: Transcript of the answer
            scorecard: ScoreCard returned by DeliveryAnalyzer.analyze

        Returns:
            SessionAnswer carrying the scorecard's content verdict
        """
        assessment = scorecard.assessment
        return cls(
            question=question,
            transcript=transcript,
            star=assessment.star,
            impact=assessment.impact,
            clarity=assessment.clarity,
            technical_accuracy=assessment.technical_accuracy,
            terminology_usage=assessment.terminology_usage,
            what_was_wrong=list(assessment.what_was_wrong),
            dont_forget=list(assessment.dont_forget),
            better_wording=list(assessment.better_wording),
            question_answered=assessment.question_answered,
        )


class SessionStatus(str, Enum):
    """Lifecycle state of a practice session."""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass
class PracticeSession:
    """A user's practice session."""

    session_id: str
    user_id: str
    bank_id: str | None = None
    answers: list[SessionAnswer] = field(default_factory=list)
    status: SessionStatus = SessionStatus.IN_PROGRESS
    completed_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED

    def mark_completed(self, completed_at: datetime | None = None) -> bool:
        """
        Transition to completed. The transition is one-way.

        Args:
            completed_at: Completion time; now when None

        Returns:
            True if the session changed state, False if it was already completed
        """
        if self.is_completed:
            return False
        self.status = SessionStatus.COMPLETED
        self.completed_at = completed_at or datetime.now(timezone.utc)
        return True


@dataclass
class CommonMistake:
    """A recurring mistake pattern."""

    pattern: str
    frequency: int
    examples: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern": self.pattern,
            "frequency": self.frequency,
            "examples": list(self.examples),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CommonMistake":
        return cls(
            pattern=data["pattern"],
            frequency=data.get("frequency", 0),
            examples=list(data.get("examples", [])),
        )


@dataclass
class ForgottenPoint:
    """A key point the user left out, with where it was missed."""

    point: str
    frequency: int
    questions: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "point": self.point,
            "frequency": self.frequency,
            "questions": list(self.questions),
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ForgottenPoint":
        return cls(
            point=data["point"],
            frequency=data.get("frequency", 0),
            questions=list(data.get("questions", [])),
            tags=list(data.get("tags", [])),
        )


@dataclass
class MisusedTerm:
    """An incorrect term and its correction."""

    incorrect_term: str
    correct_term: str
    frequency: int
    questions: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    examples: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "incorrectTerm": self.incorrect_term,
            "correctTerm": self.correct_term,
            "frequency": self.frequency,
            "questions": list(self.questions),
            "tags": list(self.tags),
            "examples": list(self.examples),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MisusedTerm":
        return cls(
            incorrect_term=data["incorrectTerm"],
            correct_term=data["correctTerm"],
            frequency=data.get("frequency", 0),
            questions=list(data.get("questions", [])),
            tags=list(data.get("tags", [])),
            examples=list(data.get("examples", [])),
        )


@dataclass
class TagPerformance:
    """Per-tag result within one session (avg_score on the 0-10 scale)."""

    avg_score: float
    count: int
    questions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "avgScore": self.avg_score,
            "count": self.count,
            "questions": list(self.questions),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TagPerformance":
        return cls(
            avg_score=data.get("avgScore", 0.0),
            count=data.get("count", 0),
            questions=list(data.get("questions", [])),
        )


@dataclass
class LearningSummary:
    """Per-session learning summary. Recomputable from the session's answers."""

    session_id: str
    user_id: str
    bank_id: str | None = None
    common_mistakes: list[CommonMistake] = field(default_factory=list)
    frequently_forgotten_points: list[ForgottenPoint] = field(default_factory=list)
    frequently_misused_terms: list[MisusedTerm] = field(default_factory=list)
    weak_tags: list[str] = field(default_factory=list)
    strong_tags: list[str] = field(default_factory=list)
    recommended_focus: list[str] = field(default_factory=list)
    performance_by_tag: dict[str, TagPerformance] = field(default_factory=dict)
    overall_score: float = 0.0
    question_count: int = 0
    completed_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "sessionId": self.session_id,
            "userId": self.user_id,
            "bankId": self.bank_id,
            "commonMistakes": [m.to_dict() for m in self.common_mistakes],
            "frequentlyForgottenPoints": [p.to_dict() for p in self.frequently_forgotten_points],
            "frequentlyMisusedTerms": [t.to_dict() for t in self.frequently_misused_terms],
            "weakTags": list(self.weak_tags),
            "strongTags": list(self.strong_tags),
            "recommendedFocus": list(self.recommended_focus),
            "performanceByTag": {
                tag: perf.to_dict() for tag, perf in self.performance_by_tag.items()
            },
            "overallScore": self.overall_score,
            "questionCount": self.question_count,
            "completedAt": _format_datetime(self.completed_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LearningSummary":
        """Rebuild a summary from its persisted dictionary form."""
        return cls(
            session_id=data["sessionId"],
            user_id=data["userId"],
            bank_id=data.get("bankId"),
            common_mistakes=[CommonMistake.from_dict(m) for m in data.get("commonMistakes", [])],
            frequently_forgotten_points=[
                ForgottenPoint.from_dict(p) for p in data.get("frequentlyForgottenPoints", [])
            ],
            frequently_misused_terms=[
                MisusedTerm.from_dict(t) for t in data.get("frequentlyMisusedTerms", [])
            ],
            weak_tags=list(data.get("weakTags", [])),
            strong_tags=list(data.get("strongTags", [])),
            recommended_focus=list(data.get("recommendedFocus", [])),
            performance_by_tag={
                tag: TagPerformance.from_dict(perf)
                for tag, perf in data.get("performanceByTag", {}).items()
            },
            overall_score=data.get("overallScore", 0.0),
            question_count=data.get("questionCount", 0),
            completed_at=_parse_datetime(data.get("completedAt")),
        )


@dataclass
class TopForgottenPoint:
    """A forgotten point merged across sessions."""

    point: str
    total_frequency: int
    session_count: int
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "point": self.point,
            "totalFrequency": self.total_frequency,
            "sessionCount": self.session_count,
            "tags": list(self.tags),
        }


@dataclass
class TagInsight:
    """Cross-session tag performance (avg_score on the 0-10 scale)."""

    avg_score: float
    session_count: int

    def to_dict(self) -> dict[str, Any]:
        return {"avgScore": self.avg_score, "sessionCount": self.session_count}


@dataclass
class UserLearningInsight:
    """Cross-session insight for a user. Derived, never hand-edited."""

    user_id: str | None = None
    bank_id: str | None = None
    aggregated_weak_tags: list[str] = field(default_factory=list)
    aggregated_strong_tags: list[str] = field(default_factory=list)
    top_focus_areas: list[str] = field(default_factory=list)
    aggregated_mistakes: list[CommonMistake] = field(default_factory=list)
    top_forgotten_points: list[TopForgottenPoint] = field(default_factory=list)
    performance_by_tag: dict[str, TagInsight] = field(default_factory=dict)
    average_overall_score: float | None = None
    total_sessions: int = 0
    total_questions: int = 0
    last_updated: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "userId": self.user_id,
            "bankId": self.bank_id,
            "aggregatedWeakTags": list(self.aggregated_weak_tags),
            "aggregatedStrongTags": list(self.aggregated_strong_tags),
            "topFocusAreas": list(self.top_focus_areas),
            "aggregatedMistakes": [m.to_dict() for m in self.aggregated_mistakes],
            "topForgottenPoints": [p.to_dict() for p in self.top_forgotten_points],
            "performanceByTag": {
                tag: insight.to_dict() for tag, insight in self.performance_by_tag.items()
            },
            "averageOverallScore": self.average_overall_score,
            "totalSessions": self.total_sessions,
            "totalQuestions": self.total_questions,
            "lastUpdated": _format_datetime(self.last_updated),
        }
