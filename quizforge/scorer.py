"""
Answer scoring. Pure functions, no state.

Multiple choice: 1.0 for the correct option, 0.0 otherwise (no partial credit).
Descriptive: fraction of keywords found in the answer text, matched as
case-folded substrings anywhere in the text ("art" matches "start").
"""
from typing import Tuple, Union

import engine
from quizforge.errors import InvalidResponse
from quizforge.models import DescriptiveQuestion, MultipleChoiceQuestion, Question, UserAnswer


def matched_keywords(text: str, keywords: Tuple[str, ...]) -> Tuple[str, ...]:
    folded = text.casefold()
    return tuple(k for k in keywords if k.casefold() in folded)


def score_multiple_choice(question: MultipleChoiceQuestion, selected: int) -> UserAnswer:
    if isinstance(selected, bool) or not isinstance(selected, int):
        raise InvalidResponse(f"Question {question.id} expects an option index, got {selected!r}")
    if not 0 <= selected < len(question.options):
        raise InvalidResponse(
            f"Option {selected} is out of range for question {question.id} "
            f"({len(question.options)} options)"
        )
    is_correct = selected == question.correct_answer
    return UserAnswer(
        question_id=question.id,
        selected_answer=selected,
        is_correct=is_correct,
        score=engine.MC_CORRECT_SCORE if is_correct else engine.MC_INCORRECT_SCORE,
    )


def score_descriptive(question: DescriptiveQuestion, text: str) -> UserAnswer:
    if not isinstance(text, str):
        raise InvalidResponse(f"Question {question.id} expects a text answer, got {type(text).__name__}")
    matches = matched_keywords(text, question.keywords)
    score = len(matches) / len(question.keywords) if question.keywords else 0.0
    return UserAnswer(
        question_id=question.id,
        text_answer=text,
        is_correct=score >= engine.DESCRIPTIVE_CORRECT_THRESHOLD,
        score=score,
        keyword_matches=matches,
    )


def score(question: Question, response: Union[int, str]) -> UserAnswer:
    """Score one response against its question."""
    if isinstance(question, MultipleChoiceQuestion):
        return score_multiple_choice(question, response)
    return score_descriptive(question, response)
