"""Learning analytics across practice sessions.

This package provides:
- Per-session learning summaries (weak/strong tags, mistakes, forgotten points)
- Cross-session user insights
- A keyed summary store and session completion/backfill helpers
"""

from learning.insights import TagTally, UserInsightAggregator
from learning.lifecycle import (
    BackfillResult,
    backfill_summaries,
    complete_session,
    refresh_user_insight,
)
from learning.models import (
    CommonMistake,
    ForgottenPoint,
    LearningSummary,
    MisusedTerm,
    PracticeSession,
    Question,
    SessionAnswer,
    SessionStatus,
    TagInsight,
    TagPerformance,
    TopForgottenPoint,
    UserLearningInsight,
)
from learning.session import SessionPerformanceAnalyzer, parse_terminology_correction
from learning.store import InMemorySummaryStore, SummaryStore

__all__ = [
    # Models
    "CommonMistake",
    "ForgottenPoint",
    "LearningSummary",
    "MisusedTerm",
    "PracticeSession",
    "Question",
    "SessionAnswer",
    "SessionStatus",
    "TagInsight",
    "TagPerformance",
    "TopForgottenPoint",
    "UserLearningInsight",
    # Analysis
    "SessionPerformanceAnalyzer",
    "parse_terminology_correction",
    "TagTally",
    "UserInsightAggregator",
    # Storage and lifecycle
    "SummaryStore",
    "InMemorySummaryStore",
    "BackfillResult",
    "backfill_summaries",
    "complete_session",
    "refresh_user_insight",
]
