"""Tests for SessionPerformanceAnalyzer."""

import pytest

from delivery.conciseness import QuestionType
from learning.models import LearningSummary, Question
from learning.session import (
    SessionPerformanceAnalyzer,
    parse_terminology_correction,
    round_half_up,
    valid_score,
)
from utils.config import EngineSettings


@pytest.fixture
def analyzer():
    """Create an analyzer without a glossary."""
    return SessionPerformanceAnalyzer()


class TestHelpers:
    """Tests for module-level helpers."""

    @pytest.mark.parametrize(
        "value", [None, "4", True, float("nan"), float("inf"), [3], 6, 5.5, -1, -0.1]
    )
    def test_invalid_scores(self, value):
        """Test that malformed and out-of-range scores are rejected."""
        assert valid_score(value) is None

    def test_valid_scores(self):
        """Test that scores within 0-5 pass through as floats."""
        assert valid_score(3) == 3.0
        assert valid_score(0) == 0.0
        assert valid_score(5) == 5.0
        assert valid_score(4.5) == 4.5

    def test_round_half_up(self):
        """Test rounding half up to one decimal."""
        assert round_half_up(6.25) == 6.3
        assert round_half_up(7.0) == 7.0


class TestParseTerminologyCorrection:
    """Tests for parse_terminology_correction."""

    def test_instead_of_say(self):
        """Test the "instead of ... say" form."""
        assert parse_terminology_correction(
            "Instead of 'made it faster', say 'reduced p99 latency'"
        ) == ("made it faster", "reduced p99 latency")

    def test_you_said_better(self):
        """Test the "you said ... better" form."""
        assert parse_terminology_correction(
            "You said: 'DB'. Better: 'database'"
        ) == ("DB", "database")

    def test_better_instead_of(self):
        """Test the "better ... instead of" form."""
        assert parse_terminology_correction(
            'Better: "idempotent" (instead of "repeatable")'
        ) == ("repeatable", "idempotent")

    def test_no_pair(self):
        """Test text with no term pair."""
        assert parse_terminology_correction("Quantify the results") is None


class TestSessionPerformanceAnalyzer:
    """Tests for analyze and analyze_answers."""

    def test_tag_classification(self, analyzer, completed_session):
        """Test weak, strong and focus tag classification."""
        summary = analyzer.analyze(completed_session)

        assert summary.strong_tags == ["system-design"]
        assert summary.weak_tags == ["databases"]
        assert summary.recommended_focus == ["databases"]
        assert summary.performance_by_tag["system-design"].avg_score == 8.0
        assert summary.performance_by_tag["databases"].avg_score == 4.0
        assert summary.performance_by_tag["databases"].questions == ["q2"]
        assert summary.overall_score == 6.0
        assert summary.question_count == 2

    def test_summary_keys(self, analyzer, completed_session):
        """Test that summaries carry session keys."""
        summary = analyzer.analyze(completed_session)

        assert summary.session_id == "session-1"
        assert summary.user_id == "user-1"
        assert summary.bank_id == "bank-1"
        assert summary.to_dict()["completedAt"] == "2026-03-01T12:00:00"

    def test_low_field_scores_become_mistakes(self, analyzer, completed_session):
        """Test that low field scores become mistakes."""
        summary = analyzer.analyze(completed_session)
        mistakes = {m.pattern: m for m in summary.common_mistakes}

        assert mistakes["unclear structure or organization"].examples == ["Clarity score: 2/5"]
        assert mistakes["missing specific metrics or impact statements"].frequency == 1
        assert len(summary.common_mistakes) == 3

    def test_forgotten_point_across_answers(self, analyzer, make_answer):
        """Test merging forgotten points across answers."""
        answers = [
            make_answer("q1", ["caching"], dont_forget=["Mention rollback plan"]),
            make_answer("q2", ["deploys"], dont_forget=["mention  rollback plan"]),
        ]

        summary = analyzer.analyze_answers(answers)
        point = summary.frequently_forgotten_points[0]

        assert point.point == "mention rollback plan"
        assert point.frequency >= 2
        assert point.questions == ["q1", "q2"]
        assert point.tags == ["caching", "deploys"]

    def test_feedback_mistakes_merged_case_insensitively(self, analyzer, make_answer):
        """Test that feedback mistakes merge case-insensitively."""
        variants = ["Vague result", "vague result", "VAGUE RESULT", "Vague  result", "vague result "]
        answers = [
            make_answer(f"q{i}", ["t"], what_was_wrong=[text]) for i, text in enumerate(variants)
        ]

        summary = analyzer.analyze_answers(answers)
        mistake = summary.common_mistakes[0]

        assert mistake.pattern == "vague result"
        assert mistake.frequency == 5
        assert len(mistake.examples) == 3

    def test_mistakes_capped(self, analyzer, make_answer):
        """Test the mistake cap."""
        answer = make_answer("q1", ["t"], what_was_wrong=[f"Problem {i}" for i in range(15)])
        summary = analyzer.analyze_answers([answer])
        assert len(summary.common_mistakes) == 10

    def test_mistakes_sorted_by_frequency(self, analyzer, make_answer):
        """Test that mistakes sort by frequency."""
        answers = [
            make_answer("q1", ["t"], what_was_wrong=["Rare issue", "Common issue"]),
            make_answer("q2", ["t"], what_was_wrong=["Common issue"]),
        ]
        summary = analyzer.analyze_answers(answers)
        assert [m.pattern for m in summary.common_mistakes] == ["common issue", "rare issue"]

    def test_unanswered_question(self, analyzer, make_answer):
        """Test the mistake for an unanswered question."""
        summary = analyzer.analyze_answers(
            [make_answer("q1", ["t"], question_answered=False)]
        )
        mistake = summary.common_mistakes[0]

        assert mistake.pattern == "answer doesn't fully address the question"
        assert mistake.examples == ["Question not fully answered"]

    def test_missing_and_malformed_scores_excluded(self, analyzer, make_answer):
        """Test that missing and malformed scores are excluded."""
        answers = [
            make_answer("q1", ["caching"], star="high", impact=float("nan"), clarity=4),
            make_answer("q2", ["unscored"]),
        ]

        summary = analyzer.analyze_answers(answers)

        assert summary.strong_tags == ["caching"]
        assert "unscored" not in summary.performance_by_tag
        assert summary.overall_score == 8.0

    def test_out_of_range_scores_excluded(self, analyzer, make_answer):
        """Test that scores above 5 or below 0 never reach tag or overall scores."""
        answers = [
            make_answer("q1", ["inflated"], star=9, impact=8, clarity=7),
            make_answer("q2", ["caching"], star=-3, clarity=4),
        ]

        summary = analyzer.analyze_answers(answers)

        assert "inflated" not in summary.performance_by_tag
        assert summary.performance_by_tag["caching"].avg_score == 8.0
        assert summary.strong_tags == ["caching"]
        assert summary.overall_score == 8.0
        assert summary.common_mistakes == []

    def test_only_out_of_range_scores(self, analyzer, make_answer):
        """Test that a session with only out-of-range scores has no overall score."""
        summary = analyzer.analyze_answers(
            [make_answer("q1", ["a"], star=9, impact=8, clarity=7)]
        )

        assert summary.performance_by_tag == {}
        assert summary.strong_tags == []
        assert summary.overall_score == 0.0

    def test_recommended_focus_order(self, analyzer, make_answer):
        """Test recommended focus ordering."""
        answers = [
            make_answer("q1", ["a", "c"], star=2),
            make_answer("q2", ["a"], star=2),
            make_answer("q3", ["c"], star=3),
            make_answer("q4", ["b"], star=1),
        ]

        summary = analyzer.analyze_answers(answers)

        # c averages 2.5 over two answers; b has a single answer
        assert summary.recommended_focus == ["a", "c", "b"]

    def test_misused_terms_from_wording(self, analyzer, make_answer):
        """Test misused terms from wording suggestions."""
        answers = [
            make_answer("q1", ["perf"], better_wording=["Instead of 'made it faster', say 'reduced p99 latency'"]),
            make_answer("q2", ["perf", "sre"], better_wording=["instead of 'Made it  faster', use 'cut latency'"]),
            make_answer("q3", ["sre"], better_wording=["Instead of 'made it faster', say 'reduced p99 latency'"]),
        ]

        summary = analyzer.analyze_answers(answers)
        top = summary.frequently_misused_terms[0]

        assert top.incorrect_term == "made it faster"
        assert top.correct_term == "reduced p99 latency"
        assert top.frequency == 2
        assert top.questions == ["q1", "q3"]
        assert top.tags == ["perf", "sre"]
        assert len(summary.frequently_misused_terms) == 2

    def test_unparsed_wording_becomes_imprecise_mistake(self, analyzer, make_answer):
        """Test that unparsed wording becomes an imprecise wording mistake."""
        summary = analyzer.analyze_answers([
            make_answer("q1", ["t"], better_wording=["Instead of saying it was fast, quantify it"])
        ])

        assert summary.frequently_misused_terms == []
        assert summary.common_mistakes[0].pattern == "could use more precise wording"

    def test_glossary_terms(self, make_answer):
        """Test misused terms from the glossary."""
        analyzer = SessionPerformanceAnalyzer({"rest api": "RESTful API"})
        answer = make_answer(
            "q1", ["apis"], transcript="We built a REST API. The rest api was slow."
        )

        summary = analyzer.analyze_answers([answer])
        term = summary.frequently_misused_terms[0]

        assert term.incorrect_term == "rest api"
        assert term.correct_term == "RESTful API"
        assert term.frequency == 2
        assert term.examples == ["We built a REST API.", "The rest api was slow."]

    def test_glossary_from_settings(self):
        """Test building the glossary from settings."""
        settings = EngineSettings(terminology_glossary={"Same": "same", "master node": "control plane node"})
        analyzer = SessionPerformanceAnalyzer.from_settings(settings)
        assert analyzer.terminology_glossary == {"master node": "control plane node"}

    def test_idempotent(self, analyzer, completed_session):
        """Test that analysis is repeatable."""
        assert analyzer.analyze(completed_session) == analyzer.analyze(completed_session)

    def test_empty_session(self, analyzer):
        """Test analyzing a session with no answers."""
        summary = analyzer.analyze_answers([], session_id="empty", user_id="u")

        assert isinstance(summary, LearningSummary)
        assert summary.question_count == 0
        assert summary.overall_score == 0.0
        assert summary.performance_by_tag == {}
        assert summary.common_mistakes == []

    def test_round_trip_dict(self, analyzer, completed_session):
        """Test LearningSummary dict round trip."""
        summary = analyzer.analyze(completed_session)
        assert LearningSummary.from_dict(summary.to_dict()) == summary


class TestQuestion:
    """Tests for Question normalization."""

    def test_tags_deduplicated_and_type_resolved(self):
        """Test tag deduplication and type resolution."""
        question = Question(id="q1", tags=["dbs", "sql", "dbs"], type="pitch")

        assert question.tags == ["dbs", "sql"]
        assert question.type == QuestionType.PITCH

    def test_unknown_type(self):
        """Test that an unknown question type becomes BEHAVIORAL."""
        assert Question(id="q1", type="TRIVIA").type == QuestionType.BEHAVIORAL
