"""Tests for delivery metrics."""

import pytest

from delivery.metrics import (
    AnswerMetrics,
    calculate_filler_rate,
    calculate_wpm,
    compute_answer_metrics,
    count_words,
    estimate_duration,
)
from delivery.models import WordTiming


class TestCountWords:
    """Tests for count_words."""

    def test_empty(self):
        """Test counting words in an empty string."""
        assert count_words("") == 0

    def test_whitespace_only(self):
        """Test counting words in whitespace."""
        assert count_words("   \n\t ") == 0

    def test_collapses_whitespace(self):
        """Test that runs of whitespace separate words once."""
        assert count_words("  hello   world \n again ") == 3

    @pytest.mark.parametrize("text", ["a", "um, so.", "...", "one-two three"])
    def test_never_negative(self, text):
        """Test that word counts are never negative."""
        assert count_words(text) >= 0


class TestCalculateWpm:
    """Tests for calculate_wpm."""

    def test_one_word_per_second(self):
        """Test WPM at one word per second."""
        assert calculate_wpm(60, 60) == 60

    @pytest.mark.parametrize("words", [0, 1, 500])
    def test_zero_duration(self, words):
        """Test WPM with zero duration."""
        assert calculate_wpm(words, 0) == 0

    def test_negative_duration(self):
        """Test WPM with negative duration."""
        assert calculate_wpm(10, -5) == 0

    def test_rounds_half_up(self):
        """Test that WPM rounds half up."""
        # 1 word in 40s = 1.5 wpm
        assert calculate_wpm(1, 40) == 2


class TestCalculateFillerRate:
    """Tests for calculate_filler_rate."""

    def test_ten_percent(self):
        """Test a ten percent filler rate."""
        assert calculate_filler_rate(10, 100) == 10.00

    def test_no_words(self):
        """Test the filler rate with no words."""
        assert calculate_filler_rate(0, 0) == 0

    def test_two_decimals(self):
        """Test that the filler rate keeps two decimals."""
        assert calculate_filler_rate(1, 3) == 33.33


class TestEstimateDuration:
    """Tests for estimate_duration."""

    def test_uses_last_timing(self):
        """Test that duration comes from the last word timing."""
        timings = [
            WordTiming(word="hello", start=0.0, end=0.4),
            WordTiming(word="world", start=0.5, end=1.25),
        ]
        assert estimate_duration(2, timings) == 1.25

    def test_floor_without_timings(self):
        """Test the minimum estimated duration."""
        assert estimate_duration(10) == 30.0

    def test_rate_based_without_timings(self):
        """Test the word-rate duration estimate."""
        assert estimate_duration(100) == 50.0


class TestComputeAnswerMetrics:
    """Tests for compute_answer_metrics."""

    def test_composes_metrics(self):
        """Test that all metrics are computed together."""
        metrics = compute_answer_metrics("Um I built it um quickly", duration_seconds=6)

        assert isinstance(metrics, AnswerMetrics)
        assert metrics.words == 6
        assert metrics.filler_count == 2
        assert metrics.filler_rate == 33.33
        assert metrics.wpm == 60

    def test_long_pauses_from_timings(self):
        """Test long pauses from word timings."""
        timings = [
            WordTiming(word="first", start=0.0, end=0.5),
            WordTiming(word="second", start=1.5, end=2.0),
        ]
        metrics = compute_answer_metrics("first second", timings=timings)

        assert metrics.long_pauses == 1
        assert metrics.duration_seconds == 2.0
        assert metrics.wpm == 60

    def test_to_dict_uses_public_names(self):
        """Test AnswerMetrics conversion to camelCase dict."""
        metrics = compute_answer_metrics("Hello there", duration_seconds=60)

        assert metrics.to_dict() == {
            "words": 2,
            "wpm": 2,
            "fillerCount": 0,
            "fillerRate": 0.0,
            "longPauses": metrics.long_pauses,
        }
