"""Conciseness scoring by question type."""

import math
from enum import Enum


class QuestionType(str, Enum):
    """Question categories with distinct ideal answer lengths."""
    DEFINITION = "DEFINITION"
    BEHAVIORAL = "BEHAVIORAL"
    TECHNICAL = "TECHNICAL"
    SCENARIO = "SCENARIO"
    PITCH = "PITCH"


# Ideal answer length in words (inclusive)
IDEAL_WORD_RANGES: dict[QuestionType, tuple[int, int]] = {
    QuestionType.DEFINITION: (20, 100),
    QuestionType.BEHAVIORAL: (100, 350),
    QuestionType.TECHNICAL: (60, 300),
    QuestionType.SCENARIO: (80, 300),
    QuestionType.PITCH: (40, 180),
}

MAX_CONCISENESS_SCORE = 10.0

# (ratio upper bound, penalty) for answers below the minimum, most severe first
_SHORT_PENALTIES = ((0.3, 6), (0.5, 4), (0.75, 2))
_SHORT_PENALTY_MILD = 1

# (excess ratio lower bound, penalty) for answers above the maximum
_LONG_PENALTIES = ((3.0, 6), (2.0, 4), (1.5, 2))
_LONG_PENALTY_MILD = 1

# (filler rate % lower bound, penalty)
_FILLER_PENALTIES = ((8.0, 3), (5.0, 2), (3.0, 1))

REPETITION_PENALTY = 2
OFF_TOPIC_PENALTY = 2


def resolve_question_type(question_type: QuestionType | str | None) -> QuestionType:
    """Map a question type (or unknown value) to a QuestionType, defaulting to BEHAVIORAL."""
    if isinstance(question_type, QuestionType):
        return question_type
    if isinstance(question_type, str):
        try:
            return QuestionType(question_type.strip().upper())
        except ValueError:
            pass
    return QuestionType.BEHAVIORAL


def _length_penalty(word_count: int, min_words: int, max_words: int) -> int:
    if word_count < min_words:
        ratio = word_count / min_words
        for bound, penalty in _SHORT_PENALTIES:
            if ratio < bound:
                return penalty
        return _SHORT_PENALTY_MILD

    if word_count > max_words:
        excess_ratio = word_count / max_words
        for bound, penalty in _LONG_PENALTIES:
            if excess_ratio > bound:
                return penalty
        return _LONG_PENALTY_MILD

    return 0


def _filler_penalty(filler_rate: float) -> int:
    for bound, penalty in _FILLER_PENALTIES:
        if filler_rate > bound:
            return penalty
    return 0


def calculate_conciseness_score(
    word_count: int,
    filler_rate: float,
    question_type: QuestionType | str | None = None,
    question_answered: bool | None = None,
    has_excessive_repetition: bool | None = None,
) -> float:
    """
    Score how concise an answer is on a 0-10 scale.

    Args:
        word_count: Number of words in the answer
        filler_rate: Fillers per 100 words
        question_type: Question category; unknown values score as BEHAVIORAL
        question_answered: External verdict; only an explicit False is penalized
        has_excessive_repetition: External repetition flag

    Returns:
        Score rounded to the nearest 0.5, clamped to [0, 10]
    """
    min_words, max_words = IDEAL_WORD_RANGES[resolve_question_type(question_type)]

    score = MAX_CONCISENESS_SCORE
    score -= _length_penalty(word_count, min_words, max_words)
    if word_count > 0:
        score -= _filler_penalty(filler_rate)
    if has_excessive_repetition:
        score -= REPETITION_PENALTY
    if question_answered is False:
        score -= OFF_TOPIC_PENALTY

    rounded = math.floor(score * 2 + 0.5) / 2
    return min(MAX_CONCISENESS_SCORE, max(0.0, rounded))
