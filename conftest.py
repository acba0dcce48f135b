"""Shared fixtures: sample questions and an in-memory stand-in for the Supabase table API."""
import copy
from uuid import uuid4

import pytest

from quizforge.database import DatabaseClient
from quizforge.models import DescriptiveQuestion, MultipleChoiceQuestion, QuestionSet


class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    """Chainable query: table(...).select().eq().order().limit().execute()."""

    def __init__(self, db, table, op, payload=None, on_conflict=None):
        self.db = db
        self.table = table
        self.op = op
        self.payload = payload
        self.on_conflict = on_conflict
        self.filters = []
        self.order_by = None
        self.max_rows = None

    def select(self, *columns, **kwargs):
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def _matches(self, row):
        return all(str(row.get(c)) == str(v) for c, v in self.filters)

    def execute(self):
        if self.table in self.db.failing_tables:
            raise RuntimeError(f"connection refused ({self.table})")
        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "select":
            out = [r for r in rows if self._matches(r)]
            if self.order_by:
                column, desc = self.order_by
                out.sort(key=lambda r: r.get(column) or "", reverse=desc)
            if self.max_rows is not None:
                out = out[: self.max_rows]
            return FakeResponse(copy.deepcopy(out))

        if self.op == "insert":
            row = copy.deepcopy(self.payload)
            row.setdefault("id", str(uuid4()))
            rows.append(row)
            return FakeResponse([copy.deepcopy(row)])

        if self.op == "upsert":
            row = copy.deepcopy(self.payload)
            key = self.on_conflict or "id"
            for i, existing in enumerate(rows):
                if existing.get(key) == row.get(key):
                    rows[i] = {**existing, **row}
                    return FakeResponse([copy.deepcopy(rows[i])])
            rows.append(row)
            return FakeResponse([copy.deepcopy(row)])

        if self.op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            return FakeResponse(removed)

        raise ValueError(self.op)


class FakeTable:
    def __init__(self, db, name):
        self.db = db
        self.name = name

    def select(self, *columns, **kwargs):
        return FakeQuery(self.db, self.name, "select")

    def insert(self, row):
        return FakeQuery(self.db, self.name, "insert", payload=row)

    def upsert(self, row, on_conflict=None):
        return FakeQuery(self.db, self.name, "upsert", payload=row, on_conflict=on_conflict)

    def delete(self):
        return FakeQuery(self.db, self.name, "delete")


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.failing_tables = set()

    def table(self, name):
        return FakeTable(self, name)


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def db(fake_supabase):
    return DatabaseClient(fake_supabase)


@pytest.fixture
def mc_question():
    return MultipleChoiceQuestion(
        id="q1",
        prompt="What is the time complexity of binary search?",
        options=("O(n)", "O(log n)", "O(n^2)", "O(1)"),
        correct_answer=1,
        explanation="Binary search halves the range each step",
    )


@pytest.fixture
def descriptive_question():
    return DescriptiveQuestion(
        id="q2",
        prompt="What does the mitochondria do?",
        correct_answer_text="It produces energy for the cell in the form of ATP.",
        keywords=("mitochondria", "energy", "ATP"),
        explanation="Mitochondria are the powerhouse of the cell",
    )


@pytest.fixture
def question_set(mc_question, descriptive_question):
    return QuestionSet(
        id="set-1",
        title="Biology & CS basics",
        genre="Science",
        difficulty="medium",
        questions=(mc_question, descriptive_question),
        user_id="user-1",
    )


@pytest.fixture
def questions_doc():
    """A valid interchange document, as generation or an import file would supply it."""
    return {
        "questions": [
            {
                "id": "q1",
                "type": "multiple_choice",
                "question": "What is the capital of France?",
                "options": ["London", "Berlin", "Paris", "Madrid"],
                "correctAnswer": 2,
                "correctAnswerText": None,
                "explanation": "Paris is the capital of France",
                "keywords": [],
            },
            {
                "id": "q2",
                "type": "descriptive",
                "question": "Explain photosynthesis.",
                "options": [],
                "correctAnswer": None,
                "correctAnswerText": "Plants turn light, water and CO2 into glucose and oxygen.",
                "explanation": "Happens in chloroplasts",
                "keywords": ["light", "glucose", "oxygen"],
            },
        ]
    }
