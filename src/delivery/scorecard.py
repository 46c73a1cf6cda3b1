"""End-to-end delivery scoring for one spoken answer."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import ValidationError

from delivery.conciseness import calculate_conciseness_score
from delivery.fillers import FillerDetector
from delivery.metrics import AnswerMetrics, compute_answer_metrics
from delivery.models import AnalyzeDeliveryRequest, ContentAssessment
from delivery.paralinguistic import score_paralinguistics
from utils import constants
from utils.config import EngineSettings
from utils.exceptions import ContentAnalysisError, EmptyTranscriptError, InputValidationError
from utils.logger import get_logger
from utils.retry import async_retry_with_backoff

logger = get_logger(__name__)

SOURCE_ANALYZER = "analyzer"
SOURCE_SHORT_TRANSCRIPT = "short_transcript_fallback"
SOURCE_ANALYZER_FAILURE = "analyzer_failure_fallback"


def _fallback_assessment(score: int, tips: list[str]) -> ContentAssessment:
    return ContentAssessment(
        star=score,
        impact=score,
        clarity=score,
        technical_accuracy=score,
        terminology_usage=score,
        tips=tips,
    )


# Returned without calling the analyzer when the answer is too short to grade
SHORT_TRANSCRIPT_ASSESSMENT = _fallback_assessment(
    constants.SHORT_TRANSCRIPT_FALLBACK_SCORE,
    [
        "Please provide a longer response",
        "Try speaking for at least 30 seconds",
        "Structure your answer with clear examples",
        "Include specific details and outcomes",
        "Practice speaking clearly and confidently",
    ],
)

# Returned when the analyzer times out, raises or returns an unusable payload
ANALYZER_FAILURE_ASSESSMENT = _fallback_assessment(
    constants.ANALYZER_FAILURE_FALLBACK_SCORE,
    [
        "AI analysis temporarily unavailable",
        "Your response was recorded successfully",
        "Try speaking more clearly and structure your answer",
        "Use the STAR method: Situation, Task, Action, Result",
        "Include specific metrics and outcomes when possible",
    ],
)


class ContentAnalyzer(Protocol):
    """Grades answer content (STAR, impact, clarity, terminology)."""

    async def analyze(
        self,
        transcript: str,
        tags: list[str],
        role: str,
        priorities: list[str],
    ) -> ContentAssessment | dict[str, Any]:
        ...


@dataclass
class AnswerScores:
    """Delivery and content scores for one answer."""

    confidence: int  # 0-5
    intonation: int  # 0-5
    conciseness: float  # 0-10
    star: float | None = None
    impact: float | None = None
    clarity: float | None = None
    technical_accuracy: float | None = None
    terminology_usage: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "confidence": self.confidence,
            "intonation": self.intonation,
            "conciseness": self.conciseness,
            "star": self.star,
            "impact": self.impact,
            "clarity": self.clarity,
            "technicalAccuracy": self.technical_accuracy,
            "terminologyUsage": self.terminology_usage,
        }


@dataclass
class ScoreCard:
    """Complete scoring result for one answer."""

    metrics: AnswerMetrics
    scores: AnswerScores
    assessment: ContentAssessment
    assessment_source: str
    tips: list[str] = field(default_factory=list)

    @property
    def question_answered(self) -> bool | None:
        return self.assessment.question_answered

    @property
    def has_excessive_repetition(self) -> bool | None:
        return self.assessment.has_excessive_repetition

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "metrics": self.metrics.to_dict(),
            "scores": self.scores.to_dict(),
            "flags": {
                "questionAnswered": self.question_answered,
                "hasExcessiveRepetition": self.has_excessive_repetition,
            },
            "tips": list(self.tips),
            "assessmentSource": self.assessment_source,
        }


class DeliveryAnalyzer:
    """
    Turns a transcript (plus optional word timings) into a ScoreCard.

    Delivery metrics and paralinguistic scores are always computed locally.
    Content grading is delegated to a ContentAnalyzer, skipped for very
    short answers, and replaced by a fixed fallback when the analyzer fails.

    Attributes:
        content_analyzer: Collaborator that grades answer content.
        settings: Engine settings (timeouts, retries, role, priorities).
        detector: Filler detector shared across answers.
    """

    def __init__(
        self,
        content_analyzer: ContentAnalyzer | None = None,
        settings: EngineSettings | None = None,
        detector: FillerDetector | None = None,
    ):
        """
        Initialize delivery analyzer.

        Args:
            content_analyzer: Content grading collaborator; without one every
                gradable answer receives the analyzer-failure fallback
            settings: Engine settings; defaults when None
            detector: Filler detector; built from settings when None
        """
        self.content_analyzer = content_analyzer
        self.settings = settings or EngineSettings()
        if detector is None:
            detector = (
                FillerDetector.from_yaml(self.settings.filler_rules_path)
                if self.settings.filler_rules_path
                else FillerDetector()
            )
        self.detector = detector

    async def analyze(self, request: AnalyzeDeliveryRequest | dict[str, Any]) -> ScoreCard:
        """
        Score one answer.

        Args:
            request: Request model or a mapping accepted by AnalyzeDeliveryRequest

        Returns:
            ScoreCard with metrics, scores, flags and tips

        Raises:
            EmptyTranscriptError: If the transcript is empty or whitespace-only
            InputValidationError: If the request is malformed
        """
        if not isinstance(request, AnalyzeDeliveryRequest):
            try:
                request = AnalyzeDeliveryRequest.model_validate(request)
            except ValidationError as e:
                raise InputValidationError("Invalid delivery request", cause=e) from e

        transcript = request.transcript
        if not transcript or not transcript.strip():
            raise EmptyTranscriptError()

        timings = request.word_timings or None
        metrics = compute_answer_metrics(
            transcript,
            timings=timings,
            duration_seconds=request.duration_seconds,
            detector=self.detector,
            settings=self.settings,
        )
        delivery = score_paralinguistics(transcript, metrics, timings)

        assessment, source = await self.assess_content(transcript, request.tags, metrics.words)

        conciseness = calculate_conciseness_score(
            metrics.words,
            metrics.filler_rate,
            question_type=request.question_type,
            question_answered=assessment.question_answered,
            has_excessive_repetition=assessment.has_excessive_repetition,
        )

        scores = AnswerScores(
            confidence=delivery.confidence,
            intonation=delivery.intonation,
            conciseness=conciseness,
            star=assessment.star,
            impact=assessment.impact,
            clarity=assessment.clarity,
            technical_accuracy=assessment.technical_accuracy,
            terminology_usage=assessment.terminology_usage,
        )

        logger.info(
            f"Scored answer: {metrics.words} words, {metrics.wpm} wpm, "
            f"{metrics.filler_count} fillers, source={source}"
        )
        return ScoreCard(
            metrics=metrics,
            scores=scores,
            assessment=assessment,
            assessment_source=source,
            tips=list(assessment.tips),
        )

    async def assess_content(
        self,
        transcript: str,
        tags: list[str],
        word_count: int,
    ) -> tuple[ContentAssessment, str]:
        """
        Obtain a content verdict, applying the short-answer and failure policies.

        Args:
            transcript: Raw transcript
            tags: Question tags passed to the analyzer
            word_count: Words in the transcript

        Returns:
            Tuple of (assessment, assessment source)
        """
        if word_count < constants.MIN_WORDS_FOR_CONTENT_ANALYSIS:
            logger.info(f"Transcript has {word_count} words; skipping content analysis")
            return SHORT_TRANSCRIPT_ASSESSMENT.model_copy(deep=True), SOURCE_SHORT_TRANSCRIPT

        try:
            assessment = await self._call_analyzer(transcript, tags)
        except ContentAnalysisError as e:
            e.log()
            logger.warning(f"Content analysis failed, using fallback assessment: {e}")
            return ANALYZER_FAILURE_ASSESSMENT.model_copy(deep=True), SOURCE_ANALYZER_FAILURE

        return assessment, SOURCE_ANALYZER

    async def _call_analyzer(self, transcript: str, tags: list[str]) -> ContentAssessment:
        """
        Call the analyzer with a per-attempt timeout and retries.

        Raises:
            ContentAnalysisError: If no usable verdict could be obtained
        """
        if self.content_analyzer is None:
            raise ContentAnalysisError("No content analyzer configured", attempts=0)

        settings = self.settings
        attempts = 0

        @async_retry_with_backoff(
            max_retries=settings.analyzer_max_retries,
            base_delay=settings.analyzer_retry_delay_seconds,
        )
        async def attempt() -> ContentAssessment:
            nonlocal attempts
            attempts += 1
            raw = await asyncio.wait_for(
                self.content_analyzer.analyze(
                    transcript, list(tags), settings.role, list(settings.priorities)
                ),
                timeout=settings.analyzer_timeout_seconds,
            )
            if isinstance(raw, ContentAssessment):
                return raw
            return ContentAssessment.model_validate(raw)

        try:
            return await attempt()
        except Exception as e:
            raise ContentAnalysisError(
                "Content analyzer did not return a usable verdict", attempts=attempts, cause=e
            ) from e
