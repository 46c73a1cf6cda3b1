"""Objective delivery metrics: word count, speaking rate, fillers and pauses."""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from delivery.fillers import FillerDetector, count_fillers
from delivery.models import WordTiming
from delivery.pauses import count_long_pauses
from utils import constants
from utils.config import EngineSettings


@dataclass(frozen=True)
class AnswerMetrics:
    """Delivery metrics for one answer."""
    words: int
    wpm: int
    filler_count: int
    filler_rate: float  # fillers per 100 words, 2dp
    long_pauses: int
    duration_seconds: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "words": self.words,
            "wpm": self.wpm,
            "fillerCount": self.filler_count,
            "fillerRate": self.filler_rate,
            "longPauses": self.long_pauses,
        }


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    if not text:
        return 0
    return len(text.split())


def calculate_wpm(words: int, duration_seconds: float) -> int:
    """
    Calculate words per minute.

    Args:
        words: Word count
        duration_seconds: Speaking duration

    Returns:
        WPM rounded half up; 0 when the duration is not positive
    """
    if duration_seconds <= 0:
        return 0
    return math.floor(words / duration_seconds * 60 + 0.5)


def calculate_filler_rate(filler_count: int, word_count: int) -> float:
    """Fillers per 100 words rounded to 2 decimals; 0 for an empty answer."""
    if word_count <= 0:
        return 0.0
    return round(filler_count / word_count * 100, 2)


def estimate_duration(word_count: int, timings: Sequence[WordTiming] | None = None) -> float:
    """
    Estimate answer duration in seconds.

    Args:
        word_count: Number of words spoken
        timings: Ordered word timings, if available

    Returns:
        End of the last timed word, otherwise a rate-based estimate with a floor
    """
    if timings:
        return timings[-1].end_seconds
    return max(
        float(constants.MIN_ESTIMATED_DURATION_SECONDS),
        word_count / constants.ESTIMATED_WORDS_PER_SECOND,
    )


def compute_answer_metrics(
    transcript: str,
    timings: Sequence[WordTiming] | None = None,
    duration_seconds: float | None = None,
    detector: FillerDetector | None = None,
    settings: EngineSettings | None = None,
) -> AnswerMetrics:
    """
    Compute all delivery metrics for one answer.

    Args:
        transcript: Raw transcript
        timings: Ordered word timings; pauses are estimated from text without them
        duration_seconds: Known duration; estimated when None
        detector: Filler detector; packaged rules when None
        settings: Engine settings for pause thresholds

    Returns:
        AnswerMetrics
    """
    settings = settings or EngineSettings()

    words = count_words(transcript)
    filler_count = detector.count(transcript) if detector else count_fillers(transcript)
    duration = duration_seconds if duration_seconds else estimate_duration(words, timings)

    long_pauses = count_long_pauses(
        transcript,
        timings,
        duration,
        threshold_ms=settings.long_pause_threshold_ms,
        escalation_start_ms=settings.escalation_start_ms,
        escalation_step_ms=settings.escalation_step_ms,
        baseline_wpm=settings.baseline_wpm,
    )

    return AnswerMetrics(
        words=words,
        wpm=calculate_wpm(words, duration),
        filler_count=filler_count,
        filler_rate=calculate_filler_rate(filler_count, words),
        long_pauses=long_pauses,
        duration_seconds=duration,
    )
