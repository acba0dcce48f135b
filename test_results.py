"""Result aggregation, bands and the per-question review."""
from datetime import datetime, timezone

import pytest

from quizforge.models import DescriptiveQuestion, MultipleChoiceQuestion, QuestionSet, UserAnswer, round_half_up, score_band
from quizforge.results import aggregate, format_elapsed, option_label, review_rows
from quizforge.scorer import score


def _five_question_set():
    questions = tuple(
        MultipleChoiceQuestion(id=f"q{i}", prompt=f"Q{i}", options=("x", "y"), correct_answer=0)
        for i in range(1, 6)
    )
    return QuestionSet(id="s5", title="Five", genre="Mixed", difficulty="easy", questions=questions, user_id="u1")


def test_five_question_aggregate_is_average():
    qs = _five_question_set()
    scores = [1, 1, 0, 0.5, 1]
    answers = [
        UserAnswer(question_id=f"q{i}", is_correct=s >= 0.5, score=float(s), selected_answer=0)
        for i, s in enumerate(scores, start=1)
    ]
    completed = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
    result = aggregate(qs, answers, 125.0, "u1", completed_at=completed)

    assert result.total_score == 3.5
    assert result.max_score == 5
    assert result.percentage == 70
    assert result.band == "Average"
    assert result.question_set_id == "s5"
    assert result.user_id == "u1"
    assert result.time_spent_sec == 125.0
    assert result.completed_at == completed
    assert result.correct_count == 4


def test_total_is_sum_of_scores_in_question_order(question_set):
    answers = [score(question_set.questions[1], "energy"), score(question_set.questions[0], 1)]
    result = aggregate(question_set, answers, 10, "user-1")
    assert [a.question_id for a in result.answers] == ["q1", "q2"]
    assert result.total_score == pytest.approx(1 + 1 / 3)
    assert result.percentage == round_half_up(100 * (1 + 1 / 3) / 2)


def test_unanswered_questions_count_as_zero():
    qs = _five_question_set()
    answers = [UserAnswer(question_id="q1", is_correct=True, score=1.0, selected_answer=0)]
    result = aggregate(qs, answers, 0, "u1")
    assert result.total_score == 1.0
    assert result.max_score == 5
    assert result.percentage == 20


@pytest.mark.parametrize(
    "percentage,band",
    [
        (100, "Excellent"),
        (90, "Excellent"),
        (89, "Good"),
        (80, "Good"),
        (79, "Average"),
        (70, "Average"),
        (69, "Below Average"),
        (60, "Below Average"),
        (59, "Needs Improvement"),
        (0, "Needs Improvement"),
    ],
)
def test_score_bands(percentage, band):
    assert score_band(percentage) == band


def test_percentage_rounds_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(66.666) == 67
    assert round_half_up(70.0) == 70


@pytest.mark.parametrize("seconds,text", [(0, "0:00"), (59.9, "0:59"), (61, "1:01"), (3600, "60:00"), (-3, "0:00")])
def test_format_elapsed(seconds, text):
    assert format_elapsed(seconds) == text


def test_review_rows(question_set):
    answers = [score(question_set.questions[0], 2), score(question_set.questions[1], "The mitochondria produces energy.")]
    rows = review_rows(question_set, answers)

    assert [r["number"] for r in rows] == [1, 2]
    mc, desc = rows
    assert mc["your_answer"] == "O(n^2)"
    assert mc["correct_answer"] == "O(log n)"
    assert not mc["is_correct"]
    assert mc["explanation"] == "Binary search halves the range each step"

    assert desc["type"] == "descriptive"
    assert desc["matched_keywords"] == ["mitochondria", "energy"]
    assert desc["missing_keywords"] == ["ATP"]
    assert desc["score_percent"] == 67
    assert desc["correct_answer"].startswith("It produces energy")


def test_review_skips_unanswered(question_set):
    rows = review_rows(question_set, [score(question_set.questions[1], "")])
    assert len(rows) == 1
    assert rows[0]["number"] == 2
    assert rows[0]["your_answer"] == "No answer provided"


def test_review_percent_rounds_half_up():
    keywords = tuple(f"k{i}" for i in range(8))
    question = DescriptiveQuestion(id="d1", prompt="List them.", correct_answer_text="k0..k7", keywords=keywords)
    qs = QuestionSet(id="s8", title="Eight", genre="Mixed", difficulty="easy", questions=(question,), user_id="u1")

    answer = score(question, "k0x")
    assert answer.score == 0.125
    [row] = review_rows(qs, [answer])
    assert row["score_percent"] == 13


def test_every_option_gets_a_label():
    options = tuple(f"choice {i}" for i in range(12))
    question = MultipleChoiceQuestion(id="m12", prompt="Pick the last.", options=options, correct_answer=11)
    labels = [option_label(i) for i in range(len(options))]

    assert labels[:3] == ["A", "B", "C"]
    assert labels[11] == "L"
    assert len(set(labels)) == 12
    assert option_label(26) == "27"
    assert score(question, 11).is_correct


@pytest.mark.parametrize("title,filename", [
    ("Bio & CS: 101", "bio___cs__101.json"),
    ("World Capitals", "world_capitals.json"),
    ("", ".json"),
])
def test_export_filename(title, filename):
    qs = QuestionSet(title=title, genre="g", difficulty="easy", questions=(), user_id="u1")
    assert qs.export_filename == filename


def test_type_label(question_set):
    mc, desc = question_set.questions
    only_mc = QuestionSet(title="t", genre="g", difficulty="easy", questions=(mc,), user_id="u1")
    only_desc = QuestionSet(title="t", genre="g", difficulty="easy", questions=(desc,), user_id="u1")

    assert only_mc.type_label == "Multiple Choice"
    assert only_desc.type_label == "Descriptive"
    assert question_set.type_label == "Mixed"
