"""
Quiz Session Engine: linear progression through a question set, answer recording and completion.
A session walks questions in order, one at a time; no skipping ahead, going back is allowed.
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Union
from uuid import uuid4

from quizforge import scorer
from quizforge.errors import AnswerOutOfOrder, AtStart, InvalidInput, SessionCompleted, Unanswered
from quizforge.models import Question, UserAnswer, answers_in_order

logger = logging.getLogger(__name__)

IN_PROGRESS = "in_progress"
COMPLETED = "completed"


class QuizSession:
    """Manages a single quiz attempt: position, recorded answers and completion."""

    def __init__(self, questions: Sequence[Question], started_at: Optional[datetime] = None):
        """
        Start a session at the first question.

        Args:
            questions: Ordered questions; order defines the quiz sequence
            started_at: Wall-clock start (defaults to now, UTC)

        Raises:
            InvalidInput: if the question list is empty or has duplicate ids
        """
        if not questions:
            raise InvalidInput("Cannot start a quiz with no questions")
        ids = [q.id for q in questions]
        if len(set(ids)) != len(ids):
            raise InvalidInput("Question ids must be unique within a question set")

        self.session_id = uuid4()
        self.questions: List[Question] = list(questions)
        self.answers: Dict[str, UserAnswer] = {}

        self.started_at = started_at or datetime.now(timezone.utc)
        self.completed_at: Optional[datetime] = None
        self.status = IN_PROGRESS

        self.position = 0
        self._lock = threading.Lock()

    # ============= Derived state =============

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    @property
    def current_question(self) -> Question:
        return self.questions[self.position]

    @property
    def current_answer(self) -> Optional[UserAnswer]:
        return self.answers.get(self.current_question.id)

    @property
    def is_last_question(self) -> bool:
        return self.position == len(self.questions) - 1

    @property
    def has_answered_current(self) -> bool:
        return self.current_question.id in self.answers

    def progress_fraction(self) -> float:
        """(position + 1) / total, for the progress bar."""
        return (self.position + 1) / len(self.questions)

    def answered_count(self) -> int:
        return len(self.answers)

    def ordered_answers(self) -> List[UserAnswer]:
        return answers_in_order(self.questions, self.answers)

    def elapsed_seconds(self, now: Optional[datetime] = None) -> float:
        """Wall-clock seconds since start; frozen at completion."""
        end = self.completed_at or now or datetime.now(timezone.utc)
        return (end - self.started_at).total_seconds()

    # ============= Transitions =============

    def _require_in_progress(self):
        if self.status == COMPLETED:
            raise SessionCompleted("This quiz is already completed; start a retake instead")

    def record_answer(self, question_id: str, response: Union[int, str]) -> UserAnswer:
        """
        Score and record the answer to the question currently displayed.

        Replaces any earlier answer to the same question. Does not move position.

        Raises:
            AnswerOutOfOrder: if question_id is not the current question
            InvalidResponse: if the response does not fit the question
            SessionCompleted: if the session has finished
        """
        with self._lock:
            self._require_in_progress()
            question = self.current_question
            if question_id != question.id:
                raise AnswerOutOfOrder(
                    f"Answer for question {question_id} rejected: question {question.id} is displayed"
                )
            answer = scorer.score(question, response)
            self.answers[question.id] = answer
            logger.debug(f"Answer recorded: Q={question.id}, Correct={answer.is_correct}, Score={answer.score:.3f}")
            return answer

    def advance(self) -> Optional[List[UserAnswer]]:
        """
        Move to the next question, or complete the quiz from the last one.

        Returns:
            The ordered answers when the quiz completes, otherwise None

        Raises:
            Unanswered: if the current question has no recorded answer
        """
        with self._lock:
            self._require_in_progress()
            if self.current_question.id not in self.answers:
                raise Unanswered(f"Answer question {self.position + 1} before moving on")
            if self.position == len(self.questions) - 1:
                self.status = COMPLETED
                self.completed_at = datetime.now(timezone.utc)
                logger.info(
                    f"Session {self.session_id} completed: {len(self.answers)}/{len(self.questions)} answered "
                    f"in {self.elapsed_seconds():.0f}s"
                )
                return self.ordered_answers()
            self.position += 1
            return None

    def retreat(self):
        """Go back one question. Recorded answers are kept."""
        with self._lock:
            self._require_in_progress()
            if self.position == 0:
                raise AtStart("Already at the first question")
            self.position -= 1

    def retake(self) -> "QuizSession":
        """A brand-new session over the same questions."""
        return QuizSession(self.questions)
