"""Pure quiz constants: scoring thresholds, result bands, quota and timeouts. No UI."""
# Descriptive: score = matched keywords / keywords, correct when score >= threshold
# Bands are checked top-down against the rounded percentage

MC_CORRECT_SCORE = 1.0
MC_INCORRECT_SCORE = 0.0
DESCRIPTIVE_CORRECT_THRESHOLD = 0.5

SCORE_BANDS = (
    (90, "Excellent"),
    (80, "Good"),
    (70, "Average"),
    (60, "Below Average"),
)
LOWEST_BAND = "Needs Improvement"

MONTHLY_PROMPT_LIMIT = 10

DIFFICULTIES = ("easy", "medium", "hard")
QUESTION_TYPES = ("multiple_choice", "descriptive", "mixed")
MIN_QUESTION_COUNT = 3
MAX_QUESTION_COUNT = 20
DEFAULT_QUESTION_COUNT = 5

GENERATION_TIMEOUT_SEC = 60
PERSIST_TIMEOUT_SEC = 10
PERSIST_WORKERS = 4
