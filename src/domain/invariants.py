"""
Application-level invariants.

The store validator checks each field in isolation. These checks cover the
rules that span fields, which the worker must uphold itself:

- total_questions equals the number of questions
- total_points equals the sum of question points
- a multiple_choice question has exactly one correct option
- difficulty_distribution, when present, matches the questions
- a failed event carries an error_message

Each check takes a raw document and returns a list of violations
(empty when the document is consistent).
"""

from __future__ import annotations

from collections import Counter
from typing import Any

from src.domain.models import count_words


def check_summary(doc: dict[str, Any]) -> list[str]:
    violations = []

    word_count = doc.get("word_count")
    summary = doc.get("summary") or ""
    if isinstance(word_count, int) and word_count < 1:
        violations.append("word_count must be >= 1")
    if summary and not count_words(summary):
        violations.append("summary has no words")

    usage = doc.get("token_usage") or {}
    if usage and {"prompt_tokens", "completion_tokens", "total_tokens"} <= usage.keys():
        expected = usage["prompt_tokens"] + usage["completion_tokens"]
        if usage["total_tokens"] != expected:
            violations.append(
                f"token_usage.total_tokens is {usage['total_tokens']}, expected {expected}"
            )

    return violations


def check_question(question: dict[str, Any]) -> list[str]:
    violations = []
    label = f"question {question.get('order', '?')}"
    qtype = question.get("type")
    options = question.get("options") or []

    if qtype == "multiple_choice":
        if len(options) < 2:
            violations.append(f"{label}: multiple_choice needs at least 2 options")
        correct = sum(1 for opt in options if opt.get("is_correct") is True)
        if correct != 1:
            violations.append(f"{label}: expected exactly one correct option, found {correct}")
    elif qtype == "true_false":
        if question.get("correct_answer") not in ("true", "false"):
            violations.append(f"{label}: true_false needs correct_answer 'true' or 'false'")

    orders = [opt.get("order") for opt in options]
    if len(orders) != len(set(orders)):
        violations.append(f"{label}: option order values are not unique")

    return violations


def check_assessment(doc: dict[str, Any]) -> list[str]:
    violations = []
    questions = doc.get("questions") or []

    if doc.get("total_questions") != len(questions):
        violations.append(
            f"total_questions is {doc.get('total_questions')}, but there are {len(questions)} questions"
        )

    points = sum(q.get("points", 0) for q in questions)
    if doc.get("total_points") != points:
        violations.append(f"total_points is {doc.get('total_points')}, but questions sum to {points}")

    passing = doc.get("passing_score")
    if isinstance(passing, int) and passing > points:
        violations.append(f"passing_score {passing} exceeds the {points} available points")

    distribution = doc.get("difficulty_distribution")
    if distribution:
        actual = Counter(q.get("difficulty") for q in questions)
        for level in ("easy", "medium", "hard"):
            if distribution.get(level, 0) != actual.get(level, 0):
                violations.append(
                    f"difficulty_distribution.{level} is {distribution.get(level, 0)}, "
                    f"but {actual.get(level, 0)} questions are {level}"
                )

    orders = [q.get("order") for q in questions]
    if len(orders) != len(set(orders)):
        violations.append("question order values are not unique")

    for question in questions:
        violations.extend(check_question(question))

    return violations


def check_event(doc: dict[str, Any]) -> list[str]:
    violations = []
    status = doc.get("status")

    if status == "failed" and not doc.get("error_message"):
        violations.append("failed event has no error_message")
    if status == "completed" and not doc.get("processed_at"):
        violations.append("completed event has no processed_at")
    if status in ("pending", "processing") and doc.get("processed_at"):
        violations.append(f"{status} event already has processed_at")

    return violations
