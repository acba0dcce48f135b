"""
Database operations for QuizForge AI.
Handles Supabase CRUD for question sets, quiz results and user profiles (prompt quota).
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from supabase import Client

from quizforge.errors import InvalidImport, PersistenceFailure
from quizforge.models import QuestionSet, QuizResult, UserAnswer, UserProfile
from quizforge.question_io import parse_questions, questions_to_list

logger = logging.getLogger(__name__)


def _parse_ts(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if not value:
        return datetime.now(timezone.utc)
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def question_set_to_row(question_set: QuestionSet) -> Dict:
    row = {
        "user_id": question_set.user_id,
        "title": question_set.title,
        "genre": question_set.genre,
        "difficulty": question_set.difficulty,
        "questions": questions_to_list(question_set.questions),
        "total_questions": question_set.total_questions,
        "imported": question_set.imported,
        "created_at": question_set.created_at.isoformat(),
    }
    if question_set.id:
        row["id"] = question_set.id
    return row


def question_set_from_row(row: Dict) -> QuestionSet:
    # Stored documents went through the same validation on the way in
    questions = parse_questions({"questions": row.get("questions")}, InvalidImport)
    return QuestionSet(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        title=row.get("title") or "",
        genre=row.get("genre") or "",
        difficulty=row.get("difficulty") or "medium",
        questions=questions,
        created_at=_parse_ts(row.get("created_at")),
        imported=bool(row.get("imported", False)),
    )


def quiz_result_to_row(result: QuizResult) -> Dict:
    return {
        "question_set_id": result.question_set_id,
        "user_id": result.user_id,
        "answers": [a.to_dict() for a in result.answers],
        "total_score": result.total_score,
        "max_score": result.max_score,
        "completed_at": result.completed_at.isoformat(),
        "time_spent_sec": result.time_spent_sec,
    }


def quiz_result_from_row(row: Dict) -> QuizResult:
    return QuizResult(
        id=str(row["id"]) if row.get("id") is not None else None,
        question_set_id=row.get("question_set_id"),
        user_id=str(row["user_id"]),
        answers=tuple(UserAnswer.from_dict(a) for a in row.get("answers") or []),
        total_score=float(row.get("total_score", 0)),
        max_score=int(row.get("max_score", 0)),
        completed_at=_parse_ts(row.get("completed_at")),
        time_spent_sec=float(row.get("time_spent_sec", 0)),
    )


class DatabaseClient:
    """Wrapper around a Supabase client with QuizForge-specific operations."""

    def __init__(self, client: Client):
        self.client = client

    # ============= Question sets =============

    def create_question_set(self, question_set: QuestionSet) -> QuestionSet:
        """
        Insert a question set.

        Returns:
            The stored set, carrying its new id
        """
        try:
            response = self.client.table("question_sets").insert(question_set_to_row(question_set)).execute()
        except Exception as e:
            logger.error(f"Error creating question set: {e}")
            raise PersistenceFailure(f"Could not save question set: {e}") from e
        if not response.data:
            raise PersistenceFailure("Could not save question set: no row returned")
        stored = question_set_from_row(response.data[0])
        logger.info(f"Created question set {stored.id} ({stored.total_questions} questions) for {stored.user_id}")
        return stored

    def get_question_set(self, set_id: str) -> Optional[QuestionSet]:
        """Fetch one question set by id; None if it does not exist."""
        try:
            response = self.client.table("question_sets").select("*").eq("id", str(set_id)).limit(1).execute()
        except Exception as e:
            logger.error(f"Error fetching question set {set_id}: {e}")
            raise PersistenceFailure(f"Could not load question set: {e}") from e
        if not response.data:
            return None
        try:
            return question_set_from_row(response.data[0])
        except InvalidImport as e:
            logger.error(f"Stored question set {set_id} is unreadable: {e}")
            raise PersistenceFailure(f"Question set {set_id} is corrupted: {e}") from e

    def list_question_sets(self, user_id: str, limit: int = 100) -> List[QuestionSet]:
        """Owner's question sets, newest first."""
        try:
            response = (
                self.client.table("question_sets")
                .select("*")
                .eq("user_id", str(user_id))
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error listing question sets: {e}")
            raise PersistenceFailure(f"Could not load question sets: {e}") from e
        sets = []
        for r in response.data or []:
            try:
                sets.append(question_set_from_row(r))
            except InvalidImport as e:
                logger.warning(f"Skipping unreadable question set {r.get('id')}: {e}")
        return sets

    def delete_question_set(self, set_id: str, user_id: str):
        """Delete a set; only its owner's rows match."""
        try:
            self.client.table("question_sets").delete().eq("id", str(set_id)).eq("user_id", str(user_id)).execute()
        except Exception as e:
            logger.error(f"Error deleting question set {set_id}: {e}")
            raise PersistenceFailure(f"Could not delete question set: {e}") from e
        logger.info(f"Deleted question set {set_id}")

    # ============= Quiz results =============

    def save_quiz_result(self, result: QuizResult) -> Optional[str]:
        """Insert a quiz result; returns the new row id."""
        try:
            response = self.client.table("quiz_results").insert(quiz_result_to_row(result)).execute()
        except Exception as e:
            logger.error(f"Error saving quiz result: {e}")
            raise PersistenceFailure(f"Could not save quiz result: {e}") from e
        if response.data:
            return str(response.data[0].get("id"))
        return None

    def list_quiz_results(self, user_id: str, question_set_id: Optional[str] = None, limit: int = 50) -> List[QuizResult]:
        """User's quiz history, newest first, optionally for one set."""
        try:
            query = self.client.table("quiz_results").select("*").eq("user_id", str(user_id))
            if question_set_id:
                query = query.eq("question_set_id", str(question_set_id))
            response = query.order("completed_at", desc=True).limit(limit).execute()
        except Exception as e:
            logger.error(f"Error fetching quiz results: {e}")
            raise PersistenceFailure(f"Could not load quiz history: {e}") from e
        return [quiz_result_from_row(r) for r in response.data or []]

    # ============= User profiles =============

    def get_user_profile(self, user_id: str) -> Optional[UserProfile]:
        try:
            response = self.client.table("user_profiles").select("*").eq("user_id", str(user_id)).limit(1).execute()
        except Exception as e:
            logger.error(f"Error fetching user profile: {e}")
            raise PersistenceFailure(f"Could not load user profile: {e}") from e
        if not response.data:
            return None
        row = response.data[0]
        return UserProfile(
            user_id=str(row["user_id"]),
            email=row.get("email"),
            monthly_prompt_count=int(row.get("monthly_prompt_count") or 0),
            last_reset_date=_parse_ts(row.get("last_reset_date")),
        )

    def upsert_user_profile(self, profile: UserProfile):
        row = {
            "user_id": profile.user_id,
            "email": profile.email,
            "monthly_prompt_count": profile.monthly_prompt_count,
            "last_reset_date": profile.last_reset_date.isoformat(),
        }
        try:
            self.client.table("user_profiles").upsert(row, on_conflict="user_id").execute()
        except Exception as e:
            logger.error(f"Error saving user profile: {e}")
            raise PersistenceFailure(f"Could not save user profile: {e}") from e
