"""Session completion, summary backfill and insight refresh."""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from learning.insights import UserInsightAggregator
from learning.models import LearningSummary, PracticeSession, UserLearningInsight
from learning.session import SessionPerformanceAnalyzer
from learning.store import SummaryStore
from utils.config import EngineSettings
from utils.exceptions import SpeechCoachError, SummaryStoreError
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class BackfillResult:
    """Outcome of a summary backfill run."""

    processed: int = 0
    skipped: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "processed": self.processed,
            "skipped": self.skipped,
            "errors": list(self.errors),
        }


async def complete_session(
    session: PracticeSession,
    store: SummaryStore,
    analyzer: SessionPerformanceAnalyzer | None = None,
    completed_at: datetime | None = None,
) -> LearningSummary:
    """
    Complete a session and store its learning summary.

    An already-completed session with a stored summary returns that summary
    without recomputation.

    Args:
        session: Session to complete
        store: Summary store
        analyzer: Session analyzer; defaults when None
        completed_at: Completion time; now when None

    Returns:
        The session's LearningSummary

    Raises:
        SummaryStoreError: If the store fails
    """
    if session.is_completed:
        existing = await _get_summary(store, session.session_id)
        if existing is not None:
            logger.info(f"Session {session.session_id} already completed; reusing summary")
            return existing

    session.mark_completed(completed_at)
    summary = (analyzer or SessionPerformanceAnalyzer()).analyze(session)
    await _upsert_summary(store, summary)

    logger.info(f"Completed session {session.session_id} with overall score {summary.overall_score}")
    return summary


async def backfill_summaries(
    sessions: Sequence[PracticeSession],
    store: SummaryStore,
    analyzer: SessionPerformanceAnalyzer | None = None,
    batch_size: int | None = None,
    only_missing: bool = True,
    settings: EngineSettings | None = None,
) -> BackfillResult:
    """
    Recompute summaries for completed sessions in bounded batches.

    A failure on one session is logged and recorded; the rest of the
    batch continues.

    Args:
        sessions: Sessions to process; in-progress sessions are skipped
        store: Summary store
        analyzer: Session analyzer; built from settings when None
        batch_size: Sessions processed concurrently; settings.backfill_batch_size when None
        only_missing: Skip sessions that already have a summary
        settings: Engine settings; defaults when None

    Returns:
        BackfillResult with counts and per-session errors
    """
    settings = settings or EngineSettings()
    if batch_size is None:
        batch_size = settings.backfill_batch_size
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")

    analyzer = analyzer or SessionPerformanceAnalyzer.from_settings(settings)
    result = BackfillResult()
    completed = [s for s in sessions if s.is_completed]
    result.skipped += len(sessions) - len(completed)

    async def process(session: PracticeSession) -> bool:
        if only_missing and await _get_summary(store, session.session_id) is not None:
            return False
        await _upsert_summary(store, analyzer.analyze(session))
        return True

    for start in range(0, len(completed), batch_size):
        batch = completed[start:start + batch_size]
        outcomes = await asyncio.gather(
            *(process(session) for session in batch), return_exceptions=True
        )
        for session, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error(f"Failed to backfill session {session.session_id}: {outcome}")
                result.errors.append({
                    "sessionId": session.session_id,
                    "error": str(outcome),
                    "type": type(outcome).__name__,
                })
            elif outcome:
                result.processed += 1
            else:
                result.skipped += 1

        logger.info(
            f"Backfill progress: {min(start + batch_size, len(completed))}/{len(completed)} "
            f"sessions, {len(result.errors)} errors"
        )

    return result


async def refresh_user_insight(
    store: SummaryStore,
    user_id: str,
    bank_id: str | None = None,
    aggregator: UserInsightAggregator | None = None,
) -> UserLearningInsight:
    """
    Recompute a user's insight from their stored summaries.

    Args:
        store: Summary store
        user_id: User to aggregate
        bank_id: Restrict to one question bank when given
        aggregator: Insight aggregator; defaults when None

    Returns:
        UserLearningInsight
    """
    try:
        summaries = await store.list_summaries(user_id, bank_id)
    except SpeechCoachError:
        raise
    except Exception as e:
        raise SummaryStoreError("Failed to list summaries", context={"user_id": user_id}, cause=e) from e

    return (aggregator or UserInsightAggregator()).aggregate(summaries, user_id=user_id, bank_id=bank_id)


async def _get_summary(store: SummaryStore, session_id: str) -> LearningSummary | None:
    try:
        return await store.get(session_id)
    except SpeechCoachError:
        raise
    except Exception as e:
        raise SummaryStoreError("Failed to read summary", session_id=session_id, cause=e) from e


async def _upsert_summary(store: SummaryStore, summary: LearningSummary) -> None:
    try:
        await store.upsert(summary)
    except SpeechCoachError:
        raise
    except Exception as e:
        raise SummaryStoreError(
            "Failed to store summary", session_id=summary.session_id, cause=e
        ) from e
