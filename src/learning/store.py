"""Keyed storage for learning summaries."""

import asyncio
import copy
from abc import ABC, abstractmethod

from learning.models import LearningSummary
from utils.exceptions import SummaryStoreError


class SummaryStore(ABC):
    """Async store of learning summaries keyed by session id."""

    @abstractmethod
    async def get(self, session_id: str) -> LearningSummary | None:
        """Return the summary for a session, or None if none exists."""

    @abstractmethod
    async def upsert(self, summary: LearningSummary) -> None:
        """Insert or replace the summary for its session."""

    @abstractmethod
    async def list_summaries(self, user_id: str, bank_id: str | None = None) -> list[LearningSummary]:
        """List a user's summaries, optionally limited to one question bank."""


class InMemorySummaryStore(SummaryStore):
    """Dictionary-backed store. Returns copies so callers cannot mutate stored state."""

    def __init__(self) -> None:
        self._summaries: dict[str, LearningSummary] = {}
        self._lock = asyncio.Lock()

    async def get(self, session_id: str) -> LearningSummary | None:
        async with self._lock:
            summary = self._summaries.get(session_id)
            return copy.deepcopy(summary) if summary else None

    async def upsert(self, summary: LearningSummary) -> None:
        if not summary.session_id:
            raise SummaryStoreError("Summary has no session id", session_id=summary.session_id)
        async with self._lock:
            self._summaries[summary.session_id] = copy.deepcopy(summary)

    async def list_summaries(self, user_id: str, bank_id: str | None = None) -> list[LearningSummary]:
        async with self._lock:
            return [
                copy.deepcopy(s) for s in self._summaries.values()
                if s.user_id == user_id and (bank_id is None or s.bank_id == bank_id)
            ]

    def __len__(self) -> int:
        return len(self._summaries)
