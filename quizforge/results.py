"""
Result aggregation and per-question review for the results screen.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from quizforge.models import (
    DescriptiveQuestion,
    MultipleChoiceQuestion,
    QuestionSet,
    QuizResult,
    UserAnswer,
    answers_in_order,
    round_half_up,
)

logger = logging.getLogger(__name__)


def aggregate(
    question_set: QuestionSet,
    answers: Sequence[UserAnswer],
    elapsed_sec: float,
    user_id: str,
    completed_at: Optional[datetime] = None,
) -> QuizResult:
    """
    Build the final result of a quiz attempt.

    total_score is the raw sum of answer scores; max_score is the number of
    questions in the set, so unanswered questions count as zero.
    """
    by_id = {a.question_id: a for a in answers}
    ordered = answers_in_order(list(question_set.questions), by_id)
    total = sum(a.score for a in ordered)

    result = QuizResult(
        question_set_id=question_set.id,
        user_id=user_id,
        answers=tuple(ordered),
        total_score=total,
        max_score=len(question_set.questions),
        completed_at=completed_at or datetime.now(timezone.utc),
        time_spent_sec=elapsed_sec,
    )
    logger.info(
        f"Quiz result for set {question_set.id}: {total:.2f}/{result.max_score} "
        f"({result.percentage}%, {result.band})"
    )
    return result


def format_elapsed(seconds: float) -> str:
    """m:ss display of an elapsed time."""
    total = max(0, int(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}"


def option_label(index: int) -> str:
    """A, B, C ... Z, then 27, 28 ... for very long option lists."""
    if 0 <= index < 26:
        return chr(ord("A") + index)
    return str(index + 1)


def review_rows(question_set: QuestionSet, answers: Sequence[UserAnswer]) -> List[Dict]:
    """
    Question-by-question review of an attempt.

    Returns:
        One dict per answered question, in quiz order, with keys:
        number, question_id, type, prompt, your_answer, correct_answer,
        is_correct, score_percent, matched_keywords, missing_keywords, explanation
    """
    by_id = {a.question_id: a for a in answers}
    rows = []
    for number, question in enumerate(question_set.questions, start=1):
        answer = by_id.get(question.id)
        if answer is None:
            continue
        row = {
            "number": number,
            "question_id": question.id,
            "type": question.type,
            "prompt": question.prompt,
            "is_correct": answer.is_correct,
            "score_percent": round_half_up(answer.score * 100),
            "explanation": question.explanation,
            "matched_keywords": [],
            "missing_keywords": [],
        }
        if isinstance(question, MultipleChoiceQuestion):
            sel = answer.selected_answer
            row["your_answer"] = question.options[sel] if sel is not None else "No answer selected"
            row["correct_answer"] = question.correct_option_text
        elif isinstance(question, DescriptiveQuestion):
            row["your_answer"] = answer.text_answer or "No answer provided"
            row["correct_answer"] = question.correct_answer_text
            matched = set(answer.keyword_matches or ())
            row["matched_keywords"] = [k for k in question.keywords if k in matched]
            row["missing_keywords"] = [k for k in question.keywords if k not in matched]
        rows.append(row)
    return rows
