"""
Quality Scorer Tests

Validates the heuristic scoring of provider responses.

Test Categories:
1. TestToolContext - Context parsing and fallback
2. TestEmptyAndFailed - Zero scores for empty text and failed outcomes
3. TestGeneralScoring - Weighting, pros and cons in the general context
4. TestSpecializedScoring - Higher base and domain bonuses
5. TestDeterminism - Same input, same result
"""

import pytest

from promptarena.scoring import QualityScorer, ScoreResult, ToolContext
from promptarena.scoring.scorer import EMPTY_CON, UNAVAILABLE_CON

from tests.fixtures import (
    PHOTOSYNTHESIS_ANSWER,
    REAL_ESTATE_ANSWER,
    SHORT_ANSWER,
    SHORT_TWO_SENTENCES,
)


@pytest.fixture
def scorer():
    return QualityScorer()


class TestToolContext:
    """Tests for ToolContext.parse()."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("general", ToolContext.GENERAL),
            ("FINANCIAL", ToolContext.FINANCIAL),
            ("Real Estate", ToolContext.REAL_ESTATE),
            ("real-estate", ToolContext.REAL_ESTATE),
            ("professional", ToolContext.PROFESSIONAL),
        ],
    )
    def test_known_values(self, value, expected):
        assert ToolContext.parse(value) is expected

    @pytest.mark.parametrize("value", [None, "", "astrology"])
    def test_unknown_falls_back_to_general(self, value):
        assert ToolContext.parse(value) is ToolContext.GENERAL

    def test_only_general_is_not_specialized(self):
        assert not ToolContext.GENERAL.is_specialized
        assert ToolContext.FINANCIAL.is_specialized
        assert ToolContext.REAL_ESTATE.is_specialized


class TestEmptyAndFailed:
    """Empty text and failed outcomes score zero."""

    @pytest.mark.parametrize("text", [None, "", "   ", "\n\t\n"])
    def test_empty_text_scores_zero(self, scorer, text):
        result = scorer.score(text)

        assert result.score == 0.0
        assert result.word_count == 0
        assert result.sentences == 0
        assert result.paragraphs == 0
        assert result.pros == ()
        assert result.cons == (EMPTY_CON,)

    def test_failed_outcome_is_unavailable(self, scorer, make_outcome):
        outcome = make_outcome("gemini", error="timeout")

        result = scorer.score_outcome(outcome)

        assert result == ScoreResult.unavailable()
        assert result.score == 0.0
        assert result.cons == (UNAVAILABLE_CON,)

    def test_successful_outcome_is_scored_on_text(self, scorer, make_outcome):
        outcome = make_outcome("claude", PHOTOSYNTHESIS_ANSWER)

        assert scorer.score_outcome(outcome) == scorer.score(PHOTOSYNTHESIS_ANSWER)


class TestGeneralScoring:
    """Weighting, pros and cons in the general context."""

    def test_long_structured_answer_scores_high(self, scorer):
        result = scorer.score(PHOTOSYNTHESIS_ANSWER)

        assert result.score >= 9.0
        assert result.score <= 10.0
        assert result.word_count > 75
        assert result.paragraphs == 4
        assert result.pros == (
            "Detailed and comprehensive",
            "Well-structured format",
            "Clear and coherent",
        )
        assert result.cons == ()

    def test_short_unstructured_answer(self, scorer):
        result = scorer.score(SHORT_ANSWER)

        assert 5.0 <= result.score <= 6.5
        assert result.cons == ("Quite brief", "Could use better formatting")
        assert result.paragraphs == 1
        assert result.sentences == 1

    def test_two_short_sentences_are_coherent(self, scorer):
        result = scorer.score(SHORT_TWO_SENTENCES)

        assert result.score == 6.0
        assert result.pros == ("Clear and coherent",)
        assert result.cons == ("Quite brief", "Could use better formatting")

    def test_medium_answer_could_be_more_detailed(self, scorer):
        text = " ".join(["word"] * 60) + "."

        result = scorer.score(text)

        assert result.word_count == 60
        assert result.cons[0] == "Could be more detailed"

    def test_metrics_are_counted(self, scorer):
        text = "First point. Second point!\n\nThird point?"

        result = scorer.score(text)

        assert result.word_count == 6
        assert result.sentences == 3
        assert result.paragraphs == 2
        assert result.length == len(text)

    def test_examples_and_actionable_bonuses(self, scorer):
        plain = scorer.score("Water boils at high heat. Steam rises.")
        richer = scorer.score(
            "Water boils at high heat, for example in a kettle. I suggest a lid."
        )

        assert richer.score == plain.score + 1.0
        assert "Includes helpful examples" in richer.pros
        assert "Provides actionable advice" in richer.pros

    @pytest.mark.parametrize(
        "text",
        [
            "Steps: 1. mix flour 2. add water 3. bake it",
            "Bring flour - water - salt and mix them",
            "Use *fresh* yeast for this bread",
        ],
    )
    def test_inline_markers_count_as_structure(self, scorer, text):
        result = scorer.score(text)

        assert "Well-structured format" in result.pros
        assert "Could use better formatting" not in result.cons

    def test_decimal_number_is_not_a_list_marker(self, scorer):
        result = scorer.score("The loaf costs 3.5 dollars at the bakery")

        assert "Could use better formatting" in result.cons

    def test_at_most_three_pros_and_two_cons(self, scorer):
        for text in [PHOTOSYNTHESIS_ANSWER, SHORT_ANSWER, REAL_ESTATE_ANSWER, "x"]:
            result = scorer.score(text)
            assert len(result.pros) <= 3
            assert len(result.cons) <= 2

    def test_score_is_capped_at_ten(self, scorer):
        result = scorer.score(PHOTOSYNTHESIS_ANSWER * 3, ToolContext.FINANCIAL)

        assert result.score == 10.0


class TestSpecializedScoring:
    """Specialized contexts use a higher base and domain bonuses."""

    def test_domain_answer_scores_higher_in_its_context(self, scorer):
        general = scorer.score(REAL_ESTATE_ANSWER, ToolContext.GENERAL)
        real_estate = scorer.score(REAL_ESTATE_ANSWER, ToolContext.REAL_ESTATE)

        assert real_estate.score > general.score
        assert real_estate.score >= 9.5

    def test_specialized_base_is_six(self, scorer):
        result = scorer.score(SHORT_ANSWER, "professional")

        assert result.score == 6.0

    def test_specialized_needs_more_words_to_be_detailed(self, scorer):
        text = " ".join(["word"] * 100) + "."

        general = scorer.score(text, ToolContext.GENERAL)
        financial = scorer.score(text, ToolContext.FINANCIAL)

        assert "Detailed and comprehensive" in general.pros
        assert "Detailed and comprehensive" not in financial.pros

    def test_string_context_is_accepted(self, scorer):
        assert scorer.score(REAL_ESTATE_ANSWER, "real_estate") == scorer.score(
            REAL_ESTATE_ANSWER, ToolContext.REAL_ESTATE
        )


class TestDeterminism:
    """Same text and context always give the same result."""

    @pytest.mark.parametrize(
        "text", [PHOTOSYNTHESIS_ANSWER, SHORT_ANSWER, REAL_ESTATE_ANSWER, ""]
    )
    def test_repeated_scoring_is_identical(self, scorer, text):
        first = scorer.score(text, ToolContext.FINANCIAL)

        for _ in range(3):
            assert scorer.score(text, ToolContext.FINANCIAL) == first
            assert QualityScorer().score(text, ToolContext.FINANCIAL) == first
