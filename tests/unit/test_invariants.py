"""
Unit tests for the cross-field invariant checks.
"""

import copy
from datetime import datetime, timezone

from src.domain.invariants import check_assessment, check_event, check_question, check_summary


class TestCheckSummary:
    def test_valid(self, sample_summary_doc):
        assert check_summary(sample_summary_doc) == []

    def test_token_total_mismatch(self, sample_summary_doc):
        sample_summary_doc["token_usage"]["total_tokens"] = 999

        violations = check_summary(sample_summary_doc)

        assert violations == ["token_usage.total_tokens is 999, expected 120"]

    def test_partial_token_usage_ignored(self, sample_summary_doc):
        sample_summary_doc["token_usage"] = {"prompt_tokens": 10}
        assert check_summary(sample_summary_doc) == []


class TestCheckAssessment:
    def test_valid(self, sample_assessment_doc):
        assert check_assessment(sample_assessment_doc) == []

    def test_total_questions_mismatch(self, sample_assessment_doc):
        sample_assessment_doc["total_questions"] = 5

        violations = check_assessment(sample_assessment_doc)

        assert violations == ["total_questions is 5, but there are 2 questions"]

    def test_total_points_mismatch(self, sample_assessment_doc):
        sample_assessment_doc["total_points"] = 12

        violations = check_assessment(sample_assessment_doc)

        assert "total_points is 12, but questions sum to 10" in violations

    def test_passing_score_above_total(self, sample_assessment_doc):
        sample_assessment_doc["passing_score"] = 11

        violations = check_assessment(sample_assessment_doc)

        assert violations == ["passing_score 11 exceeds the 10 available points"]

    def test_distribution_mismatch(self, sample_assessment_doc):
        sample_assessment_doc["difficulty_distribution"] = {"easy": 2, "medium": 0, "hard": 0}

        violations = check_assessment(sample_assessment_doc)

        assert len(violations) == 2
        assert violations[0].startswith("difficulty_distribution.easy is 2")

    def test_duplicate_question_order(self, sample_assessment_doc):
        sample_assessment_doc["questions"][1]["order"] = 1

        assert "question order values are not unique" in check_assessment(sample_assessment_doc)

    def test_question_violations_included(self, sample_assessment_doc):
        sample_assessment_doc["questions"][0]["options"][0]["is_correct"] = True

        violations = check_assessment(sample_assessment_doc)

        assert violations == ["question 1: expected exactly one correct option, found 2"]


class TestCheckQuestion:
    def _mc(self, *correct):
        return {
            "type": "multiple_choice",
            "order": 3,
            "options": [
                {"id": f"opt-{i}", "text": f"Option {i}", "is_correct": i in correct, "order": i}
                for i in range(1, 5)
            ],
        }

    def test_single_correct_option(self):
        assert check_question(self._mc(2)) == []

    def test_no_correct_option(self):
        assert check_question(self._mc()) == ["question 3: expected exactly one correct option, found 0"]

    def test_missing_options(self):
        violations = check_question({"type": "multiple_choice", "order": 1})

        assert "question 1: multiple_choice needs at least 2 options" in violations

    def test_duplicate_option_order(self):
        question = self._mc(1)
        question["options"][1]["order"] = 1

        assert check_question(question) == ["question 3: option order values are not unique"]

    def test_true_false_answer(self):
        assert check_question({"type": "true_false", "order": 1, "correct_answer": "false"}) == []
        assert check_question({"type": "true_false", "order": 1, "correct_answer": "yes"}) == [
            "question 1: true_false needs correct_answer 'true' or 'false'"
        ]

    def test_open_question_unconstrained(self):
        assert check_question({"type": "open", "order": 1}) == []


class TestCheckEvent:
    def _event(self, **fields):
        event = {"event_type": "material_uploaded", "payload": {}, "status": "pending"}
        event.update(fields)
        return event

    def test_pending(self):
        assert check_event(self._event()) == []

    def test_failed_needs_error_message(self):
        assert check_event(self._event(status="failed")) == ["failed event has no error_message"]
        assert check_event(self._event(status="failed", error_message="boom")) == []

    def test_completed_needs_processed_at(self):
        processed = datetime.now(timezone.utc)
        assert check_event(self._event(status="completed")) == ["completed event has no processed_at"]
        assert check_event(self._event(status="completed", processed_at=processed)) == []

    def test_processing_with_processed_at(self):
        event = self._event(status="processing", processed_at=datetime.now(timezone.utc))
        assert check_event(event) == ["processing event already has processed_at"]

    def test_input_not_modified(self):
        event = self._event(status="failed")
        before = copy.deepcopy(event)
        check_event(event)
        assert event == before
