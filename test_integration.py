#!/usr/bin/env python3
"""
Integration test: Generation + Engine + Database workflow.
Demonstrates:
1. Quota-checked question set creation
2. Linear quiz session with scoring
3. Result aggregation and persistence
"""
import json
import logging

from conftest import FakeSupabase
from quizforge.database import DatabaseClient
from quizforge.generator import GenerationRequest, generate_questions
from quizforge.quota import PromptQuota
from quizforge.results import format_elapsed, review_rows
from quizforge.service import create_question_set, finish_quiz, start_quiz

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

MODEL_OUTPUT = {
    "questions": [
        {
            "id": "q1",
            "type": "multiple_choice",
            "question": "What is 2 + 2?",
            "options": ["3", "4", "5", "6"],
            "correctAnswer": 1,
            "correctAnswerText": None,
            "explanation": "Basic arithmetic: 2 + 2 = 4",
            "keywords": [],
        },
        {
            "id": "q2",
            "type": "descriptive",
            "question": "What does the mitochondria do?",
            "options": [],
            "correctAnswer": None,
            "correctAnswerText": "It produces energy for the cell as ATP.",
            "explanation": "Mitochondria are the powerhouse of the cell",
            "keywords": ["mitochondria", "energy", "ATP"],
        },
        {
            "id": "q3",
            "type": "multiple_choice",
            "question": "What is the time complexity of binary search?",
            "options": ["O(n)", "O(log n)", "O(n^2)", "O(1)"],
            "correctAnswer": 1,
            "correctAnswerText": None,
            "explanation": "Binary search has O(log n) complexity",
            "keywords": [],
        },
    ]
}


def test_quiz_workflow():
    """Full end-to-end test of set creation, answering, and scoring."""

    logger.info("=" * 70)
    logger.info("QuizForge AI - Integration Test")
    logger.info("=" * 70)

    db = DatabaseClient(FakeSupabase())
    user_id = "user-42"
    quota = PromptQuota(db, user_id, email="student@example.com")

    def llm(prompt):
        return "Here are your questions:\n" + json.dumps(MODEL_OUTPUT)

    request = GenerationRequest(genre="General Science", difficulty="easy", question_count=3)
    question_set = create_question_set(
        db, quota, user_id, request,
        generate=lambda req: generate_questions(req, llm=llm),
    )
    logger.info(f"\n✓ Created set {question_set.title!r} with {question_set.total_questions} questions")
    logger.info(f"✓ Prompts used this month: {quota.used}/{quota.limit}")
    assert quota.used == 1
    assert question_set.type_label == "Mixed"

    session = start_quiz(question_set)
    logger.info(f"✓ Started session {session.session_id}")

    logger.info("\n--- Answering Questions ---")
    responses = [1, "The mitochondria produces energy.", 2]
    for response in responses:
        q = session.current_question
        answer = session.record_answer(q.id, response)
        status = "✓ CORRECT" if answer.is_correct else "✗ INCORRECT"
        logger.info(f"{status} | {q.id} | Score: {answer.score:.3f} | Progress: {session.progress_fraction():.0%}")
        finished = session.advance()

    assert finished is not None
    assert session.is_completed

    result, notice = finish_quiz(db, session, question_set, user_id)
    assert notice is None

    logger.info("\n--- Quiz Results ---")
    logger.info(f"  Score: {result.total_score:.2f}/{result.max_score}")
    logger.info(f"  Percentage: {result.percentage}% ({result.band})")
    logger.info(f"  Time: {format_elapsed(result.time_spent_sec)}")

    assert result.total_score == 1 + 2 / 3
    assert result.percentage == 56
    assert result.band == "Needs Improvement"

    logger.info("\n--- Review ---")
    for row in review_rows(question_set, result.answers):
        logger.info(f"  Q{row['number']}: {row['your_answer'][:40]:<40} | correct: {row['correct_answer'][:30]}")

    history = db.list_quiz_results(user_id)
    assert len(history) == 1
    assert history[0].question_set_id == question_set.id

    logger.info("\n" + "=" * 70)
    logger.info("✓ Integration test completed successfully")
    logger.info("=" * 70)


if __name__ == "__main__":
    test_quiz_workflow()
