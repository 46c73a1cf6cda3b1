"""Delivery scoring for spoken answers.

This package provides:
- Context-aware filler detection driven by YAML rules
- Long-pause detection from word timings or transcript text
- Delivery metrics (word count, WPM, filler rate)
- Confidence, intonation and conciseness heuristics
- The ScoreCard pipeline around an external content analyzer
"""

from delivery.conciseness import (
    IDEAL_WORD_RANGES,
    QuestionType,
    calculate_conciseness_score,
)
from delivery.filler_rules import FillerCondition, FillerRule, load_filler_rules
from delivery.fillers import FillerDetector, FillerMatch, count_fillers
from delivery.metrics import (
    AnswerMetrics,
    calculate_filler_rate,
    calculate_wpm,
    compute_answer_metrics,
    count_words,
    estimate_duration,
)
from delivery.models import AnalyzeDeliveryRequest, ContentAssessment, WordTiming
from delivery.paralinguistic import (
    ParalinguisticScores,
    score_confidence,
    score_intonation,
    score_paralinguistics,
)
from delivery.pauses import (
    PausePatterns,
    analyze_pause_patterns,
    count_long_pauses,
    detect_long_pauses,
    estimate_pauses_from_transcript,
)
from delivery.scorecard import (
    ANALYZER_FAILURE_ASSESSMENT,
    SHORT_TRANSCRIPT_ASSESSMENT,
    AnswerScores,
    ContentAnalyzer,
    DeliveryAnalyzer,
    ScoreCard,
)

__all__ = [
    # Fillers
    "FillerCondition",
    "FillerRule",
    "FillerDetector",
    "FillerMatch",
    "count_fillers",
    "load_filler_rules",
    # Pauses
    "PausePatterns",
    "analyze_pause_patterns",
    "count_long_pauses",
    "detect_long_pauses",
    "estimate_pauses_from_transcript",
    # Metrics
    "AnswerMetrics",
    "calculate_filler_rate",
    "calculate_wpm",
    "compute_answer_metrics",
    "count_words",
    "estimate_duration",
    # Scoring
    "IDEAL_WORD_RANGES",
    "QuestionType",
    "calculate_conciseness_score",
    "ParalinguisticScores",
    "score_confidence",
    "score_intonation",
    "score_paralinguistics",
    # Pipeline
    "AnalyzeDeliveryRequest",
    "ContentAssessment",
    "WordTiming",
    "ANALYZER_FAILURE_ASSESSMENT",
    "SHORT_TRANSCRIPT_ASSESSMENT",
    "AnswerScores",
    "ContentAnalyzer",
    "DeliveryAnalyzer",
    "ScoreCard",
]
