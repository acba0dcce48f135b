"""
Quiz data model: questions (two variants), question sets, answers and results.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple, Union

import engine

MULTIPLE_CHOICE = "multiple_choice"
DESCRIPTIVE = "descriptive"

TYPE_LABELS = {
    MULTIPLE_CHOICE: "Multiple Choice",
    DESCRIPTIVE: "Descriptive",
}


@dataclass(frozen=True)
class MultipleChoiceQuestion:
    id: str
    prompt: str
    options: Tuple[str, ...]
    correct_answer: int
    explanation: str = ""

    @property
    def type(self) -> str:
        return MULTIPLE_CHOICE

    @property
    def correct_option_text(self) -> str:
        return self.options[self.correct_answer]


@dataclass(frozen=True)
class DescriptiveQuestion:
    id: str
    prompt: str
    correct_answer_text: str
    keywords: Tuple[str, ...] = ()
    explanation: str = ""

    @property
    def type(self) -> str:
        return DESCRIPTIVE


Question = Union[MultipleChoiceQuestion, DescriptiveQuestion]


@dataclass(frozen=True)
class QuestionSet:
    """An ordered, immutable list of questions plus owner metadata."""
    title: str
    genre: str
    difficulty: str
    questions: Tuple[Question, ...]
    user_id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: Optional[str] = None
    imported: bool = False

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def type_label(self) -> str:
        types = {q.type for q in self.questions}
        if len(types) > 1:
            return "Mixed"
        if not types:
            return ""
        return TYPE_LABELS[types.pop()]

    @property
    def export_filename(self) -> str:
        return re.sub(r"[^a-z0-9]", "_", self.title, flags=re.IGNORECASE).lower() + ".json"

    def question_by_id(self, question_id: str) -> Optional[Question]:
        return next((q for q in self.questions if q.id == question_id), None)


@dataclass(frozen=True)
class UserAnswer:
    question_id: str
    is_correct: bool
    score: float
    selected_answer: Optional[int] = None
    text_answer: Optional[str] = None
    keyword_matches: Optional[Tuple[str, ...]] = None

    def to_dict(self) -> Dict:
        """Document shape used by the store: camelCase keys, absent fields omitted."""
        d = {
            "questionId": self.question_id,
            "isCorrect": self.is_correct,
            "score": self.score,
        }
        if self.selected_answer is not None:
            d["selectedAnswer"] = self.selected_answer
        if self.text_answer is not None:
            d["textAnswer"] = self.text_answer
        if self.keyword_matches is not None:
            d["keywordMatches"] = list(self.keyword_matches)
        return d

    @staticmethod
    def from_dict(d: Dict) -> "UserAnswer":
        matches = d.get("keywordMatches")
        return UserAnswer(
            question_id=str(d["questionId"]),
            is_correct=bool(d.get("isCorrect", False)),
            score=float(d.get("score", 0.0)),
            selected_answer=d.get("selectedAnswer"),
            text_answer=d.get("textAnswer"),
            keyword_matches=tuple(matches) if matches is not None else None,
        )


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def score_band(percentage: int) -> str:
    for threshold, label in engine.SCORE_BANDS:
        if percentage >= threshold:
            return label
    return engine.LOWEST_BAND


@dataclass(frozen=True)
class QuizResult:
    question_set_id: Optional[str]
    user_id: str
    answers: Tuple[UserAnswer, ...]
    total_score: float
    max_score: int
    completed_at: datetime
    time_spent_sec: float
    id: Optional[str] = None

    @property
    def percentage(self) -> int:
        if self.max_score <= 0:
            return 0
        return round_half_up(100 * self.total_score / self.max_score)

    @property
    def band(self) -> str:
        return score_band(self.percentage)

    @property
    def correct_count(self) -> int:
        return sum(1 for a in self.answers if a.is_correct)


@dataclass
class UserProfile:
    user_id: str
    email: Optional[str] = None
    monthly_prompt_count: int = 0
    last_reset_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def answers_in_order(questions: List[Question], answers: Dict[str, UserAnswer]) -> List[UserAnswer]:
    """Answers arranged in question order; unanswered questions are skipped."""
    return [answers[q.id] for q in questions if q.id in answers]
