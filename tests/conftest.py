"""Common fixtures for tests."""

import sys
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# ============================================================================
# File System Fixtures
# ============================================================================

@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_rules_file(temp_dir: Path):
    """Create a minimal filler rules file."""
    rules_content = """
rules:
  - id: hesitation
    name: Hesitation
    tier: always
    match: [um, uh]
  - id: so
    name: Discourse so
    match: [so]
    when:
      - - {field: sentence_start, operator: eq, value: true}
"""
    rules_path = temp_dir / "rules.yaml"
    rules_path.write_text(rules_content)
    return rules_path


# ============================================================================
# Delivery Fixtures
# ============================================================================

@pytest.fixture
def filler_detector():
    """Create a FillerDetector with the packaged rules."""
    from delivery.fillers import FillerDetector
    return FillerDetector()


@pytest.fixture
def fast_settings():
    """Engine settings with no retry delay."""
    from utils.config import EngineSettings
    return EngineSettings(
        analyzer_timeout_seconds=1.0,
        analyzer_max_retries=1,
        analyzer_retry_delay_seconds=0.0,
    )


@pytest.fixture
def content_verdict() -> dict[str, Any]:
    """A content analyzer payload in its camelCase wire form."""
    return {
        "starScore": 4,
        "impactScore": 3,
        "clarityScore": 5,
        "technicalAccuracy": 4,
        "terminologyUsage": 3,
        "tips": ["Quantify the latency improvement"],
        "whatWasRight": ["Clear situation"],
        "whatWasWrong": ["Result was vague"],
        "betterWording": ["Instead of 'made it faster', say 'reduced p99 latency'"],
        "dontForget": ["Mention rollback plan"],
        "questionAnswered": True,
        "hasExcessiveRepetition": False,
    }


@pytest.fixture
def content_analyzer(content_verdict: dict[str, Any]):
    """Create a mock ContentAnalyzer returning a fixed verdict."""
    analyzer = AsyncMock()
    analyzer.analyze = AsyncMock(return_value=content_verdict)
    return analyzer


# ============================================================================
# Learning Fixtures
# ============================================================================

@pytest.fixture
def make_answer():
    """Factory for SessionAnswer objects."""
    from learning.models import Question, SessionAnswer

    def _make(question_id: str, tags: list[str], **kwargs: Any) -> SessionAnswer:
        return SessionAnswer(question=Question(id=question_id, tags=tags), **kwargs)

    return _make


@pytest.fixture
def completed_session(make_answer):
    """A completed session with one strong and one weak tag."""
    from learning.models import PracticeSession, SessionStatus

    return PracticeSession(
        session_id="session-1",
        user_id="user-1",
        bank_id="bank-1",
        answers=[
            make_answer("q1", ["system-design"], star=4, impact=4, clarity=4),
            make_answer("q2", ["databases"], star=2, impact=2, clarity=2),
        ],
        status=SessionStatus.COMPLETED,
        completed_at=datetime(2026, 3, 1, 12, 0, 0),
    )


@pytest.fixture
def summary_store():
    """Create an empty in-memory summary store."""
    from learning.store import InMemorySummaryStore
    return InMemorySummaryStore()
