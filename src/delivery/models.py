"""Pydantic models for delivery analysis input and content verdicts."""

import math
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from delivery.conciseness import QuestionType, resolve_question_type
from utils import constants

CONTENT_SCORE_FIELDS = ("star", "impact", "clarity", "technical_accuracy", "terminology_usage")


class WordTiming(BaseModel):
    """Timing of one transcribed word, in seconds from the start of the recording."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    word: str = ""
    start_seconds: float = Field(
        ..., ge=0, validation_alias=AliasChoices("start_seconds", "startSeconds", "start")
    )
    end_seconds: float = Field(
        ..., ge=0, validation_alias=AliasChoices("end_seconds", "endSeconds", "end")
    )


class AnalyzeDeliveryRequest(BaseModel):
    """Input for a single spoken answer."""

    model_config = ConfigDict(populate_by_name=True)

    transcript: str
    word_timings: list[WordTiming] = Field(
        default_factory=list, validation_alias=AliasChoices("word_timings", "wordTimings")
    )
    question_type: QuestionType = Field(
        default=QuestionType.BEHAVIORAL,
        validation_alias=AliasChoices("question_type", "questionType"),
    )
    tags: list[str] = Field(default_factory=list)
    duration_seconds: float | None = Field(
        default=None, gt=0, validation_alias=AliasChoices("duration_seconds", "durationSeconds")
    )

    @field_validator("question_type", mode="before")
    @classmethod
    def default_unknown_question_type(cls, v):
        """Unknown question types score as BEHAVIORAL."""
        return resolve_question_type(v)


class ContentAssessment(BaseModel):
    """Verdict returned by the content analyzer.

    Score fields use the internal 0-5 scale. Values that are missing,
    non-numeric or non-finite are dropped to None rather than defaulted.
    """

    model_config = ConfigDict(populate_by_name=True)

    star: float | None = Field(default=None, validation_alias=AliasChoices("star", "starScore"))
    impact: float | None = Field(default=None, validation_alias=AliasChoices("impact", "impactScore"))
    clarity: float | None = Field(default=None, validation_alias=AliasChoices("clarity", "clarityScore"))
    technical_accuracy: float | None = Field(
        default=None, validation_alias=AliasChoices("technical_accuracy", "technicalAccuracy")
    )
    terminology_usage: float | None = Field(
        default=None, validation_alias=AliasChoices("terminology_usage", "terminologyUsage")
    )
    tips: list[str] = Field(default_factory=list)
    what_was_right: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("what_was_right", "whatWasRight")
    )
    what_was_wrong: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("what_was_wrong", "whatWasWrong")
    )
    better_wording: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("better_wording", "betterWording")
    )
    dont_forget: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("dont_forget", "dontForget")
    )
    question_answered: bool | None = Field(
        default=None, validation_alias=AliasChoices("question_answered", "questionAnswered")
    )
    has_excessive_repetition: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("has_excessive_repetition", "hasExcessiveRepetition"),
    )

    @field_validator(*CONTENT_SCORE_FIELDS, mode="before")
    @classmethod
    def drop_malformed_score(cls, v):
        """Exclude malformed or out-of-range scores instead of failing the whole verdict."""
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return None
        if not math.isfinite(v):
            return None
        if not constants.CONTENT_SCORE_MIN <= v <= constants.CONTENT_SCORE_MAX:
            return None
        return v

    def content_scores(self) -> dict[str, float]:
        """Present content scores keyed by field name."""
        scores = {name: getattr(self, name) for name in CONTENT_SCORE_FIELDS}
        return {name: value for name, value in scores.items() if value is not None}

    def to_dict(self) -> dict[str, Any]:
        """Convert to camelCase dictionary."""
        return {
            "star": self.star,
            "impact": self.impact,
            "clarity": self.clarity,
            "technicalAccuracy": self.technical_accuracy,
            "terminologyUsage": self.terminology_usage,
            "tips": list(self.tips),
            "whatWasRight": list(self.what_was_right),
            "whatWasWrong": list(self.what_was_wrong),
            "betterWording": list(self.better_wording),
            "dontForget": list(self.dont_forget),
            "questionAnswered": self.question_answered,
            "hasExcessiveRepetition": self.has_excessive_repetition,
        }
