"""Tests for OKR text extraction."""

from okr_coach.services.extraction import extract_key_results, extract_objective


class TestExtractObjective:
    def test_labelled_objective(self):
        text = "Our objective is: Become the most trusted payments platform in Europe."

        assert extract_objective(text) == "Become the most trusted payments platform in Europe"

    def test_intent_statement_is_capitalized(self):
        assert (
            extract_objective("We want to improve onboarding for new customers")
            == "Improve onboarding for new customers"
        )

    def test_short_text_ignored(self):
        assert extract_objective("ok") is None
        assert extract_objective("Objective: grow") is None


class TestExtractKeyResults:
    def test_inline_list(self):
        text = (
            "Key results could be: increase MAU from 10K to 20K, "
            "reduce churn from 5% to 3% and launch 3 features"
        )

        assert extract_key_results(text) == [
            "Increase MAU from 10K to 20K",
            "Reduce churn from 5% to 3%",
            "Launch 3 features",
        ]

    def test_bulleted_lines(self):
        text = (
            "Here is what I have:\n"
            "- Increase NPS from 30 to 50 by Q3 2024\n"
            "- Ship faster\n"
            "3. Grow revenue 20%"
        )

        assert extract_key_results(text) == [
            "Increase NPS from 30 to 50 by Q3 2024",
            "Grow revenue 20%",
        ]

    def test_conversational_sentence(self):
        text = "I think we should increase trial conversion from 2% to 4% by Q2 2024. That seems doable."

        assert extract_key_results(text) == ["Increase trial conversion from 2% to 4% by Q2 2024"]

    def test_unbulleted_text_needs_a_verb(self):
        assert extract_key_results("Revenue was 20% lower last year") == []

    def test_duplicates_removed(self):
        text = "Increase MAU from 10K to 20K\nincrease MAU from 10K to 20K"

        assert extract_key_results(text) == ["Increase MAU from 10K to 20K"]
