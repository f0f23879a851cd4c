"""
Tests: ESAT question catalogue and pure analytics helpers.
"""

import pytest

from command_center.services import esat_analytics as ea
from command_center.utils.helpers import round_half_up


def _answer(category, value, response_id=1):
    return {"response_id": response_id, "category": category, "answer_value": value}


class TestCatalogue:
    def test_twenty_likert_questions(self):
        assert ea.likert_question_count() == 20

    def test_question_codes_unique(self):
        codes = [q["code"] for q in ea.QUESTIONS]
        assert len(codes) == len(set(codes)) == 22

    def test_open_ended_questions_are_text(self):
        assert {q["type"] for q in ea.questions_by_category("open_ended")} == {"text"}

    def test_catalogue_grouped_in_display_order(self):
        data = ea.catalogue()
        assert [c["category"] for c in data["categories"]] == list(ea.CATEGORIES)
        assert [s["value"] for s in data["likert_scale"]] == [1, 2, 3, 4, 5]
        workload = next(c for c in data["categories"] if c["category"] == "workload")
        assert len(workload["questions"]) == 6


class TestScores:
    def test_category_average_rounds_half_up(self):
        answers = [_answer("scope", 4), _answer("scope", 4), _answer("scope", 4), _answer("scope", 5),
                   _answer("scope", 5), _answer("scope", 5), _answer("scope", 4), _answer("scope", 4)]
        # 35 / 8 = 4.375
        assert ea.category_average(answers, "scope") == 4.38

    def test_category_average_ignores_text_answers(self):
        answers = [_answer("scope", 3), {"category": "scope", "answer_value": None, "answer_text": "x"}]
        assert ea.category_average(answers, "scope") == 3

    def test_empty_category_is_zero(self):
        assert ea.category_average([], "workload") == 0
        assert ea.overall_score([]) == 0

    def test_overall_score(self):
        answers = [_answer("scope", 5), _answer("workload", 2), _answer("process", 4)]
        assert ea.overall_score(answers) == 3.67

    def test_all_category_averages_has_every_category(self):
        averages = ea.all_category_averages([_answer("pm_direction", 5)])
        assert set(averages) == set(ea.CATEGORIES)
        assert averages["pm_direction"] == 5
        assert averages["open_ended"] == 0


class TestCompletion:
    def test_completion_rate(self):
        responses = [{"is_complete": True}, {"is_complete": False}, {"is_complete": True}]
        assert ea.completion_rate(responses) == 66.7

    def test_completion_rate_empty(self):
        assert ea.completion_rate([]) == 0

    def test_response_completion(self):
        answers = [_answer("scope", 3) for _ in range(5)]
        assert ea.response_completion(answers) == 25.0

    def test_responses_with_answers(self):
        responses = [{"id": 1}, {"id": 2}]
        answers = [_answer("scope", 3, response_id=1), _answer("scope", 4, response_id=1)]
        joined = ea.responses_with_answers(responses, answers)
        assert [len(j["answers"]) for j in joined] == [2, 0]

    def test_group_by_category(self):
        grouped = ea.group_by_category([_answer("scope", 3), _answer("bogus", 1)])
        assert len(grouped["scope"]) == 1
        assert "bogus" not in grouped


@pytest.mark.parametrize("score,band", [
    (4.5, "excellent"),
    (4.49, "good"),
    (3.5, "good"),
    (2.5, "neutral"),
    (1.5, "poor"),
    (1.0, "critical"),
])
def test_score_band(score, band):
    assert ea.score_band(score) == band


@pytest.mark.parametrize("value,places,expected", [
    (2.5, 0, 3.0),
    (4.125, 2, 4.13),
    (70.25, 1, 70.3),
    (0.5, 0, 1.0),
])
def test_round_half_up(value, places, expected):
    assert round_half_up(value, places) == expected
