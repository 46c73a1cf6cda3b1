"""Transcript-driven confidence and intonation heuristics.

Both scores are deterministic, bounded to [0, 5] and rounded half up.
Word timings, when present, refine them with pause and word-duration
patterns; no audio signal is analyzed.
"""

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from delivery.metrics import AnswerMetrics
from delivery.models import WordTiming
from delivery.pauses import analyze_pause_patterns

MAX_SCORE = 5.0

CONFIDENCE_BASE = 3.0
INTONATION_BASE = 2.5
SHORT_ANSWER_WORDS = 50
SHORT_ANSWER_CAP = 3.5

_SENTENCE_END_RE = re.compile(r"[.!?]+")
_TRAILING_OFF_RE = re.compile(r"\.\.\.|--|—|\s+$")
_STRONG_STATEMENT_RE = re.compile(
    r"\b(I|We|The team)\s+(achieved|delivered|improved|reduced|increased|built|created|solved)",
    re.IGNORECASE,
)
_UNCERTAINTY_RE = re.compile(
    r"\b(maybe|perhaps|I think|I guess|sort of|kind of|probably|I'm not sure)",
    re.IGNORECASE,
)
_EMPHASIS_RE = re.compile(
    r"\b(really|very|absolutely|definitely|clearly|significantly|dramatically|substantially"
    r"|particularly|especially|notably|crucially|importantly|essentially|fundamentally)",
    re.IGNORECASE,
)
_CONTRACTION_RE = re.compile(
    r"\b(I'm|I've|I'll|I'd|we're|we've|we'll|don't|can't|won't|isn't|aren't|wasn't|weren't"
    r"|hasn't|haven't|doesn't|didn't|wouldn't|couldn't|shouldn't)",
    re.IGNORECASE,
)
_ACTION_VERB_RE = re.compile(
    r"\b(achieved|delivered|improved|reduced|increased|optimized|scaled|built|created|solved"
    r"|implemented|designed|developed|managed|led|executed|completed|accomplished)",
    re.IGNORECASE,
)
_NUMBER_RE = re.compile(r"\b\d+(?:\.\d+)?%?\b")

# (ratio lower bound, bonus), most generous first
_EXPRESSIVENESS_BANDS = ((0.15, 1.5), (0.08, 1.0), (0.03, 0.5))
_SENTENCE_VARIANCE_BANDS = ((0.5, 1.5), (0.3, 1.0), (0.15, 0.5))
_EMPHASIS_BANDS = ((0.03, 1.0), (0.015, 0.7), (0.005, 0.4))
_CONTRACTION_BANDS = ((0.04, 0.8), (0.02, 0.5), (0.01, 0.3))
_ACTION_VERB_BANDS = ((0.02, 0.7), (0.01, 0.4))
_NUMBER_BANDS = ((0.02, 0.5), (0.01, 0.3))


@dataclass(frozen=True)
class ParalinguisticScores:
    """Heuristic delivery scores on the 0-5 scale."""
    confidence: int
    intonation: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"confidence": self.confidence, "intonation": self.intonation}


def _finalize(score: float) -> int:
    """Round half up and clamp to [0, 5]."""
    return int(min(MAX_SCORE, max(0.0, math.floor(score + 0.5))))


def _band_bonus(ratio: float, bands: tuple[tuple[float, float], ...]) -> float:
    for bound, bonus in bands:
        if ratio >= bound:
            return bonus
    return 0.0


def _normalized_variance(values: Sequence[float]) -> float | None:
    """Population variance divided by the squared mean; None when undefined."""
    if not values:
        return None
    mean = float(np.mean(values))
    if mean == 0:
        return None
    return float(np.var(values)) / (mean * mean)


def score_confidence(
    transcript: str,
    filler_count: int,
    word_count: int,
    long_pauses: int,
    timings: Sequence[WordTiming] | None = None,
) -> int:
    """
    Estimate speaker confidence from the transcript.

    Args:
        transcript: Raw transcript
        filler_count: Detected fillers
        word_count: Words in the transcript
        long_pauses: Long pauses detected or estimated
        timings: Optional word timings for pause-pattern refinement

    Returns:
        Confidence score 0-5
    """
    score = CONFIDENCE_BASE

    sentence_count = len(_SENTENCE_END_RE.findall(transcript))
    if sentence_count > 0 and word_count > 0:
        avg_words_per_sentence = word_count / sentence_count
        if 10 <= avg_words_per_sentence <= 25:
            score += 0.5
        if len(_TRAILING_OFF_RE.findall(transcript)) > sentence_count * 0.3:
            score -= 0.5

    filler_rate = filler_count / word_count * 100 if word_count > 0 else 0.0
    if filler_rate < 2:
        score += 0.5
    elif filler_rate > 5:
        score -= 0.5

    if long_pauses == 0:
        score += 0.5
    elif long_pauses > 3:
        score -= 0.5

    if _STRONG_STATEMENT_RE.search(transcript):
        score += 0.3

    if len(_UNCERTAINTY_RE.findall(transcript)) > 2:
        score -= 0.5

    if timings:
        patterns = analyze_pause_patterns(timings)
        if patterns.natural_pauses > patterns.awkward_pauses:
            score += 0.5
        elif patterns.awkward_pauses > patterns.natural_pauses:
            score -= 0.5
        score += patterns.pause_distribution / 5

    return _finalize(score)


def score_intonation(
    transcript: str,
    word_count: int,
    timings: Sequence[WordTiming] | None = None,
) -> int:
    """
    Estimate vocal expressiveness from textual proxies.

    Args:
        transcript: Raw transcript
        word_count: Words in the transcript
        timings: Optional word timings for word-duration variance

    Returns:
        Intonation score 0-5
    """
    score = INTONATION_BASE
    factors = 0

    sentence_count = len(_SENTENCE_END_RE.findall(transcript))
    if sentence_count > 0:
        factors += 1
        expressive = transcript.count("!") + transcript.count("?")
        ratio = expressive / sentence_count
        if ratio == 0 and sentence_count >= 3:
            score -= 0.8
        else:
            score += _band_bonus(ratio, _EXPRESSIVENESS_BANDS)

    sentence_lengths = [
        len(part.split()) for part in _SENTENCE_END_RE.split(transcript) if part.split()
    ]
    if len(sentence_lengths) > 2:
        factors += 1
        variance = _normalized_variance(sentence_lengths)
        if variance is not None:
            if variance < 0.05:
                score -= 1.0
            else:
                score += _band_bonus(variance, _SENTENCE_VARIANCE_BANDS)

    if word_count > 0:
        factors += 3
        score += _band_bonus(len(_EMPHASIS_RE.findall(transcript)) / word_count, _EMPHASIS_BANDS)
        score += _band_bonus(
            len(_CONTRACTION_RE.findall(transcript)) / word_count, _CONTRACTION_BANDS
        )
        score += _band_bonus(
            len(_ACTION_VERB_RE.findall(transcript)) / word_count, _ACTION_VERB_BANDS
        )

        numbers = len(_NUMBER_RE.findall(transcript))
        if numbers > 0:
            factors += 1
            score += _band_bonus(numbers / word_count, _NUMBER_BANDS)

    if factors < 3 and word_count < SHORT_ANSWER_WORDS:
        score = min(score, SHORT_ANSWER_CAP)

    if timings:
        durations = [t.end_seconds - t.start_seconds for t in timings]
        variance = _normalized_variance(durations)
        if variance is not None:
            if 0.1 <= variance <= 0.4:
                score += 0.5
            elif variance < 0.05:
                score -= 0.5

    return _finalize(score)


def score_paralinguistics(
    transcript: str,
    metrics: AnswerMetrics,
    timings: Sequence[WordTiming] | None = None,
) -> ParalinguisticScores:
    """Score confidence and intonation for an answer with precomputed metrics."""
    return ParalinguisticScores(
        confidence=score_confidence(
            transcript, metrics.filler_count, metrics.words, metrics.long_pauses, timings
        ),
        intonation=score_intonation(transcript, metrics.words, timings),
    )
