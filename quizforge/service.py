"""
Application flows tying the engine to its collaborators: creating, importing
and deleting question sets, and finishing a quiz.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Callable, Optional, Tuple

import engine
from quizforge.database import DatabaseClient
from quizforge.engine import QuizSession
from quizforge.errors import InvalidInput, InvalidImport, PersistenceFailure, QuotaExceeded
from quizforge.generator import GenerationRequest, generate_questions
from quizforge.models import QuestionSet, QuizResult
from quizforge.question_io import import_document
from quizforge.quota import PromptQuota
from quizforge.results import aggregate

logger = logging.getLogger(__name__)

# A save that times out keeps its worker until the store answers; the others stay free
_persist_pool = ThreadPoolExecutor(max_workers=engine.PERSIST_WORKERS, thread_name_prefix="quiz-persist")


def create_question_set(
    db: DatabaseClient,
    quota: PromptQuota,
    user_id: str,
    request: GenerationRequest,
    title: str = "",
    generate: Callable[[GenerationRequest], tuple] = generate_questions,
) -> QuestionSet:
    """
    Generate a new question set and store it.

    The quota is checked and incremented before generation; when either fails,
    generation is never called.

    Raises:
        QuotaExceeded: monthly limit reached
        InvalidInput / InvalidGeneration: bad request or bad model output
        PersistenceFailure: the set could not be stored
    """
    request.validate()
    if not quota.can_use_prompt():
        raise QuotaExceeded(f"Monthly prompt limit reached ({quota.used}/{quota.limit}). Try again next month.")
    if not quota.increment_prompt_count():
        raise QuotaExceeded("Monthly prompt limit reached.")

    questions = generate(request)
    question_set = QuestionSet(
        title=title.strip() or f"{request.genre.strip()} - {request.difficulty}",
        genre=request.genre.strip(),
        difficulty=request.difficulty,
        questions=tuple(questions),
        user_id=user_id,
    )
    return db.create_question_set(question_set)


def import_question_set(db: DatabaseClient, user_id: str, title: str, text: str) -> QuestionSet:
    """
    Store a question set from an uploaded JSON document. Imports don't use the quota.

    Raises:
        InvalidImport: missing title or malformed document
        PersistenceFailure: the set could not be stored
    """
    if not title or not title.strip():
        raise InvalidImport("Please enter a title for the imported question set")
    questions, genre, difficulty = import_document(text)
    question_set = QuestionSet(
        title=title.strip(),
        genre=genre,
        difficulty=difficulty,
        questions=questions,
        user_id=user_id,
        imported=True,
    )
    return db.create_question_set(question_set)


def delete_question_set(db: DatabaseClient, question_set: QuestionSet, user_id: str):
    if question_set.user_id != user_id:
        raise InvalidInput("Only the owner can delete a question set")
    db.delete_question_set(question_set.id, user_id)


def start_quiz(question_set: QuestionSet) -> QuizSession:
    """Fresh session over the set's questions (also used for retakes)."""
    return QuizSession(question_set.questions)


def finish_quiz(
    db: Optional[DatabaseClient],
    session: QuizSession,
    question_set: QuestionSet,
    user_id: str,
    timeout: float = engine.PERSIST_TIMEOUT_SEC,
) -> Tuple[QuizResult, Optional[str]]:
    """
    Aggregate a completed session and save it.

    The in-memory result is returned whatever happens to the save; a failed or
    timed-out save only produces a notice for the user.

    Returns:
        (result, notice) where notice is None when the save succeeded
    """
    if not session.is_completed:
        raise InvalidInput("The quiz is not completed yet")
    result = aggregate(
        question_set,
        session.ordered_answers(),
        session.elapsed_seconds(),
        user_id,
        completed_at=session.completed_at,
    )
    if db is None:
        return result, "Result was not saved: no database connection."

    future = _persist_pool.submit(db.save_quiz_result, result)
    try:
        future.result(timeout=timeout)
    except FutureTimeout:
        logger.warning(f"Saving quiz result timed out after {timeout}s")
        return result, "Saving your result is taking too long; it may not appear in your history."
    except PersistenceFailure as e:
        logger.error(f"Error saving quiz result: {e}")
        return result, "Your result could not be saved, but here it is."
    return result, None
