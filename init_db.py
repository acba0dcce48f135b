"""Initialize Supabase database schema for QuizForge AI."""
import os

from dotenv import load_dotenv

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL")

# SQL schema
SCHEMA_SQL = """
-- Question sets (questions stored as the interchange JSON array)
CREATE TABLE IF NOT EXISTS question_sets (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL,
    title TEXT NOT NULL,
    genre TEXT NOT NULL,
    difficulty VARCHAR(10) NOT NULL CHECK (difficulty IN ('easy', 'medium', 'hard')),
    questions JSONB NOT NULL,
    total_questions INT NOT NULL CHECK (total_questions > 0),
    imported BOOLEAN DEFAULT FALSE,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- Completed quiz attempts
CREATE TABLE IF NOT EXISTS quiz_results (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    question_set_id UUID REFERENCES question_sets(id) ON DELETE SET NULL,
    user_id UUID NOT NULL,
    answers JSONB NOT NULL,
    total_score DOUBLE PRECISION NOT NULL,
    max_score INT NOT NULL,
    completed_at TIMESTAMPTZ DEFAULT NOW(),
    time_spent_sec DOUBLE PRECISION
);

-- Monthly prompt quota
CREATE TABLE IF NOT EXISTS user_profiles (
    user_id UUID PRIMARY KEY,
    email TEXT,
    monthly_prompt_count INT DEFAULT 0,
    last_reset_date TIMESTAMPTZ DEFAULT NOW()
);

-- Create indexes for performance
CREATE INDEX IF NOT EXISTS idx_question_sets_user_created ON question_sets(user_id, created_at DESC);
CREATE INDEX IF NOT EXISTS idx_quiz_results_user_completed ON quiz_results(user_id, completed_at DESC);
CREATE INDEX IF NOT EXISTS idx_quiz_results_set ON quiz_results(question_set_id);
"""


if __name__ == "__main__":
    print("Initializing Supabase schema...")
    print(f"URL: {SUPABASE_URL}")

    statements = [s.strip() for s in SCHEMA_SQL.split(";") if s.strip()]
    for i, stmt in enumerate(statements, 1):
        first = next(line for line in stmt.splitlines() if line and not line.startswith("--"))
        print(f"Statement {i}/{len(statements)}: {first[:60]}...")

    print("\nNote: Due to Supabase client limitations, run this SQL in Supabase SQL Editor:")
    print(SCHEMA_SQL)
