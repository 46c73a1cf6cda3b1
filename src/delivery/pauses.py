"""Long-pause detection from word timings or transcript text."""

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from delivery.models import WordTiming
from utils import constants

_TERMINAL_PUNCT_RE = re.compile(r"[.!?]")
_HESITATION_RE = re.compile(r"\.\.\.|--|—")
_FILLER_PAUSE_RE = re.compile(
    r"\b(?i:um|uh|erm|er)\s*[.,!?;:]|\b(?i:um|uh|erm|er)\s+[A-Z]"
)
_BOUNDARY_END_RE = re.compile(r"[.!?,;:]$")

# Pause pattern analysis (milliseconds)
MIN_PATTERN_GAP_MS = 200
AWKWARD_GAP_MS = 800
DISTRIBUTION_VARIANCE_SCALE = 100000
DEFAULT_PAUSE_DISTRIBUTION = 3


@dataclass(frozen=True)
class PausePatterns:
    """Sentence-boundary vs mid-sentence pause summary."""
    natural_pauses: int
    awkward_pauses: int
    pause_distribution: int  # 0-5, higher = more consistent boundary pauses

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "naturalPauses": self.natural_pauses,
            "awkwardPauses": self.awkward_pauses,
            "pauseDistribution": self.pause_distribution,
        }


def _gaps_ms(timings: Sequence[WordTiming]) -> list[float]:
    return [
        (timings[i].start_seconds - timings[i - 1].end_seconds) * 1000
        for i in range(1, len(timings))
    ]


def detect_long_pauses(
    timings: Sequence[WordTiming],
    threshold_ms: int = constants.LONG_PAUSE_THRESHOLD_MS,
    escalation_start_ms: int = constants.ESCALATION_START_MS,
    escalation_step_ms: int = constants.ESCALATION_STEP_MS,
) -> int:
    """
    Count long pauses between consecutive words.

    A gap above the threshold counts once; gaps beyond the escalation start
    add one extra pause per full escalation step.

    Args:
        timings: Ordered word timings
        threshold_ms: Minimum gap counted as a long pause
        escalation_start_ms: Gap length where extra pauses start accruing
        escalation_step_ms: Extra pause granularity

    Returns:
        Number of long pauses
    """
    long_pauses = 0
    for gap in _gaps_ms(timings):
        if gap > threshold_ms:
            long_pauses += 1
            if gap > escalation_start_ms:
                long_pauses += int((gap - escalation_start_ms) // escalation_step_ms)
    return long_pauses


def estimate_pauses_from_transcript(
    transcript: str,
    duration_seconds: float,
    baseline_wpm: int = constants.BASELINE_WPM,
) -> int:
    """
    Estimate long pauses from text when no word timings are available.

    Combines terminal punctuation, hesitation markers (ellipses, dashes),
    punctuation next to fillers, and a deficit term for speech slower than
    the baseline rate.

    Args:
        transcript: Raw transcript
        duration_seconds: Actual or estimated answer duration
        baseline_wpm: Speaking rate below which slow speech implies pauses

    Returns:
        Estimated number of long pauses
    """
    word_count = len(transcript.split())
    if word_count == 0:
        return 0

    punctuation_pauses = len(_TERMINAL_PUNCT_RE.findall(transcript))
    hesitation_markers = len(_HESITATION_RE.findall(transcript))
    filler_pause_markers = len(_FILLER_PAUSE_RE.findall(transcript))

    slow_speech_pauses = 0
    if duration_seconds > 0:
        estimated_wpm = word_count / (duration_seconds / 60)
        if estimated_wpm < baseline_wpm:
            slow_speech_pauses = math.ceil(
                (baseline_wpm - estimated_wpm) / constants.SLOW_SPEECH_WPM_STEP
            )

    return punctuation_pauses + hesitation_markers + filler_pause_markers + slow_speech_pauses


def count_long_pauses(
    transcript: str,
    timings: Sequence[WordTiming] | None,
    duration_seconds: float,
    threshold_ms: int = constants.LONG_PAUSE_THRESHOLD_MS,
    escalation_start_ms: int = constants.ESCALATION_START_MS,
    escalation_step_ms: int = constants.ESCALATION_STEP_MS,
    baseline_wpm: int = constants.BASELINE_WPM,
) -> int:
    """Count long pauses from timings when present, otherwise estimate from text."""
    if timings:
        return detect_long_pauses(timings, threshold_ms, escalation_start_ms, escalation_step_ms)
    return estimate_pauses_from_transcript(transcript, duration_seconds, baseline_wpm)


def analyze_pause_patterns(timings: Sequence[WordTiming] | None) -> PausePatterns:
    """
    Classify pauses as natural (after a clause or sentence boundary) or awkward.

    Awkward pauses are long mid-clause silences; short mid-clause gaps are
    ignored.

    Args:
        timings: Ordered word timings

    Returns:
        PausePatterns; neutral distribution when fewer than two timings
    """
    if not timings or len(timings) < 2:
        return PausePatterns(0, 0, DEFAULT_PAUSE_DISTRIBUTION)

    natural_gaps: list[float] = []
    awkward = 0
    for i, gap in enumerate(_gaps_ms(timings), start=1):
        if gap <= MIN_PATTERN_GAP_MS:
            continue
        prev_word = timings[i - 1].word.strip().lower()
        if _BOUNDARY_END_RE.search(prev_word):
            natural_gaps.append(gap)
        elif gap > AWKWARD_GAP_MS:
            awkward += 1

    variance = float(np.var(natural_gaps)) if natural_gaps else 0.0
    distribution = max(0.0, min(5.0, 5 - variance / DISTRIBUTION_VARIANCE_SCALE))

    return PausePatterns(
        natural_pauses=len(natural_gaps),
        awkward_pauses=awkward,
        pause_distribution=math.floor(distribution + 0.5),
    )
