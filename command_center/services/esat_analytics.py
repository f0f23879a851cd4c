"""
ESAT question catalogue and survey analytics.

The catalogue is fixed: 20 Likert (1-5) questions in five categories plus
two open-ended text questions. Analytics are pure functions over
serialized answers / responses (plain dicts), so they can be unit tested
without a database.

Rounding follows the dashboard's display rules: averages to 2 decimals,
percentages to 1 decimal, halves rounded away from zero.
"""

from __future__ import annotations

from command_center.utils.helpers import round_half_up

LIKERT_MIN = 1
LIKERT_MAX = 5

CATEGORIES = ("scope", "workload", "collaboration", "process", "pm_direction", "open_ended")
LIKERT_CATEGORIES = CATEGORIES[:-1]

CATEGORY_LABELS = {
    "scope": "Scope of Work",
    "workload": "Workload",
    "collaboration": "Team Collaboration",
    "process": "Work Process & Tools",
    "pm_direction": "PM Direction",
    "open_ended": "Additional Questions",
}

LIKERT_SCALE = (
    (1, "Strongly disagree"),
    (2, "Disagree"),
    (3, "Neutral"),
    (4, "Agree"),
    (5, "Strongly agree"),
)


def _q(code, category, text, qtype="likert"):
    return {"code": code, "category": category, "type": qtype, "text": text}


QUESTIONS = (
    _q("scope_1", "scope", "I clearly understand my role and responsibilities on the project"),
    _q("scope_2", "scope", "The scope of work was communicated clearly from the start"),
    _q("scope_3", "scope", "Project targets and expectations are realistic"),
    _q("scope_4", "scope", "Requirement changes do not disrupt the main focus of my work"),
    _q("workload_1", "workload", "My current workload is within reasonable limits"),
    _q("workload_2", "workload", "Tasks are distributed fairly"),
    _q("workload_3", "workload", "The tasks I hold match my capacity"),
    _q("workload_4", "workload", "The project timeline lets me finish my work without overtime"),
    _q("workload_5", "workload", "Task priorities are clear when several tasks run at once"),
    _q("workload_6", "workload", "I have enough time to keep the quality of my work high"),
    _q("collaboration_1", "collaboration", "Communication within the project team is effective"),
    _q("collaboration_2", "collaboration", "The team helps out when a member has a heavy workload"),
    _q("collaboration_3", "collaboration", "I feel safe raising my problems with the team or the PM"),
    _q("process_1", "process", "Our tools and systems support efficient work"),
    _q("process_2", "process", "The project workflow helps reduce my workload"),
    _q("process_3", "process", "Technical documentation helps me finish tasks faster"),
    _q("pm_1", "pm_direction", "The PM gives clear direction and priorities"),
    _q("pm_2", "pm_direction", "The PM responds quickly to technical blockers or overload"),
    _q("pm_3", "pm_direction", "The PM is open to discussing workload and timeline"),
    _q("pm_4", "pm_direction", "The PM appreciates the team's effort"),
    _q("open_1", "open_ended", "What helps you most when working on the project?", "text"),
    _q("open_2", "open_ended", "What should be improved so the work runs better?", "text"),
)

QUESTIONS_BY_CODE = {q["code"]: q for q in QUESTIONS}


def likert_question_count() -> int:
    return sum(1 for q in QUESTIONS if q["type"] == "likert")


def questions_by_category(category: str) -> list[dict]:
    return [q for q in QUESTIONS if q["category"] == category]


def catalogue() -> dict:
    """Questions grouped by category, in display order."""
    return {
        "likert_scale": [{"value": v, "label": label} for v, label in LIKERT_SCALE],
        "categories": [
            {
                "category": c,
                "label": CATEGORY_LABELS[c],
                "questions": questions_by_category(c),
            }
            for c in CATEGORIES
        ],
        "likert_question_count": likert_question_count(),
    }


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


def _scored(answers):
    return [a for a in answers if a.get("answer_value") is not None]


def category_average(answers: list[dict], category: str) -> float:
    """Mean Likert value for one category (2 decimals); 0 when unanswered."""
    values = [a["answer_value"] for a in _scored(answers) if a.get("category") == category]
    if not values:
        return 0
    return round_half_up(sum(values) / len(values), 2)


def overall_score(answers: list[dict]) -> float:
    """Mean of every Likert answer (2 decimals); 0 when unanswered."""
    values = [a["answer_value"] for a in _scored(answers)]
    if not values:
        return 0
    return round_half_up(sum(values) / len(values), 2)


def completion_rate(responses: list[dict]) -> float:
    """Share of responses marked complete, as a percentage (1 decimal)."""
    if not responses:
        return 0
    done = sum(1 for r in responses if r.get("is_complete"))
    return round_half_up(done / len(responses) * 100, 1)


def response_completion(answers: list[dict]) -> float:
    """Answered Likert questions / total Likert questions, as a percentage (1 decimal)."""
    total = likert_question_count()
    if total == 0:
        return 0
    return round_half_up(len(_scored(answers)) / total * 100, 1)


def group_by_category(answers: list[dict]) -> dict[str, list[dict]]:
    grouped: dict[str, list[dict]] = {c: [] for c in CATEGORIES}
    for a in answers:
        if a.get("category") in grouped:
            grouped[a["category"]].append(a)
    return grouped


def all_category_averages(answers: list[dict]) -> dict[str, float]:
    averages = {c: category_average(answers, c) for c in LIKERT_CATEGORIES}
    averages["open_ended"] = 0
    return averages


def responses_with_answers(responses: list[dict], answers: list[dict]) -> list[dict]:
    by_response: dict = {}
    for a in answers:
        by_response.setdefault(a["response_id"], []).append(a)
    return [
        {"response": r, "answers": by_response.get(r["id"], [])}
        for r in responses
    ]


def score_band(score: float) -> str:
    if score >= 4.5:
        return "excellent"
    if score >= 3.5:
        return "good"
    if score >= 2.5:
        return "neutral"
    if score >= 1.5:
        return "poor"
    return "critical"
