"""QuizForge AI - AI-generated quizzes with scored results."""
import sys
from pathlib import Path
from datetime import timezone

# Ensure project root is in path
project_root = Path(__file__).resolve().parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import streamlit as st

from db import get_database, sign_in, sign_out, sign_up
from engine import DEFAULT_QUESTION_COUNT, DIFFICULTIES, MAX_QUESTION_COUNT, MIN_QUESTION_COUNT, QUESTION_TYPES
from quizforge.errors import PersistenceFailure, QuizError
from quizforge.generator import GenerationRequest
from quizforge.models import MultipleChoiceQuestion, TYPE_LABELS
from quizforge.question_io import export_document
from quizforge.quota import PromptQuota
from quizforge.results import format_elapsed, option_label, review_rows
from quizforge.service import create_question_set, delete_question_set, finish_quiz, import_question_set, start_quiz

PAGES = ["Dashboard", "Create Set", "Import", "Quiz", "History"]
TYPE_CHOICES = {"multiple_choice": "Multiple Choice Only", "descriptive": "Descriptive Only", "mixed": "Mixed (Both Types)"}

st.set_page_config(page_title="QuizForge AI", layout="wide")
st.sidebar.title("QuizForge AI")

# ----- Auth -----
if "user" not in st.session_state:
    st.session_state["user"] = None

if st.session_state["user"] is None:
    st.header("Sign in")
    mode = st.radio("Account", ["Sign in", "Sign up"], horizontal=True, label_visibility="collapsed")
    with st.form("auth"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button(mode, type="primary")
    if submitted:
        try:
            user = sign_in(email, password) if mode == "Sign in" else sign_up(email, password)
            if user is None:
                st.info("Check your inbox to confirm your email, then sign in.")
            else:
                st.session_state["user"] = {"id": str(user.id), "email": user.email}
                st.rerun()
        except Exception as e:
            st.error(f"{mode} failed: {e}")
    st.stop()

user = st.session_state["user"]
user_id = user["id"]
st.sidebar.caption(f"Signed in as {user['email']}")
if st.sidebar.button("Sign out"):
    try:
        sign_out()
    finally:
        for k in list(st.session_state.keys()):
            del st.session_state[k]
    st.rerun()

db = get_database()

# Quota is only needed to generate; a failure here doesn't block anything else
quota = None
try:
    quota = PromptQuota(db, user_id, email=user["email"])
    st.sidebar.metric("Prompts this month", f"{quota.used}/{quota.limit}")
except PersistenceFailure as e:
    st.sidebar.warning(f"Prompt quota unavailable: {e}")

# Allow URL to open a specific page (e.g. after "Start Quiz")
default_page = st.query_params.get("page", "Dashboard")
if default_page not in PAGES:
    default_page = "Dashboard"
page = st.sidebar.radio("Navigate", PAGES, index=PAGES.index(default_page), label_visibility="collapsed")


def _go(target: str):
    st.query_params["page"] = target
    st.rerun()


def _begin_quiz(question_set):
    st.session_state["quiz_set"] = question_set
    st.session_state["quiz_session"] = start_quiz(question_set)
    st.session_state["quiz_result"] = None
    st.session_state["quiz_notice"] = None


# ----- Dashboard -----
if page == "Dashboard":
    st.header("Your question sets")
    try:
        sets = db.list_question_sets(user_id)
    except PersistenceFailure as e:
        st.error(str(e))
        st.stop()

    if not sets:
        st.info("No question sets yet. Generate one or import a JSON file.")
        col1, col2 = st.columns(2)
        with col1:
            if st.button("Create Question Set", type="primary", use_container_width=True):
                _go("Create Set")
        with col2:
            if st.button("Import JSON", use_container_width=True):
                _go("Import")

    for qs in sets:
        with st.container(border=True):
            col1, col2 = st.columns([3, 1])
            with col1:
                st.subheader(qs.title)
                st.caption(f"{qs.created_at:%b %d, %Y} · {qs.genre} · {qs.difficulty} · "
                           f"{qs.total_questions} questions · {qs.type_label}")
            with col2:
                if st.button("Start Quiz", key=f"start_{qs.id}", type="primary", use_container_width=True):
                    _begin_quiz(qs)
                    _go("Quiz")
                st.download_button(
                    "Export",
                    data=export_document(qs.questions),
                    file_name=qs.export_filename,
                    mime="application/json",
                    key=f"export_{qs.id}",
                    use_container_width=True,
                )
                confirm = st.checkbox("Confirm delete", key=f"confirm_{qs.id}")
                if st.button("Delete", key=f"delete_{qs.id}", disabled=not confirm, use_container_width=True):
                    try:
                        delete_question_set(db, qs, user_id)
                        st.success(f"Deleted {qs.title}")
                        st.rerun()
                    except QuizError as e:
                        st.error(f"Failed to delete question set: {e}")

# ----- Create Set -----
elif page == "Create Set":
    st.header("Generate a question set")
    if st.session_state.get("create_notice"):
        st.success(st.session_state.pop("create_notice"))
    can_generate = quota is not None and quota.can_use_prompt()
    if quota is not None and not quota.can_use_prompt():
        st.warning(f"Monthly prompt limit reached ({quota.used}/{quota.limit}). "
                   "You can still take and retake your existing sets.")

    with st.form("create_set"):
        col1, col2 = st.columns(2)
        with col1:
            title = st.text_input("Title (Optional)", placeholder="Custom title for your question set")
            difficulty = st.selectbox("Difficulty Level", DIFFICULTIES, index=1, format_func=str.title)
        with col2:
            genre = st.text_input("Subject/Genre", placeholder="e.g., Mathematics, History, Science")
            question_type = st.selectbox("Question Type", QUESTION_TYPES, index=2, format_func=TYPE_CHOICES.get)
        count = st.slider("Number of Questions", MIN_QUESTION_COUNT, MAX_QUESTION_COUNT, DEFAULT_QUESTION_COUNT)
        submitted = st.form_submit_button("Generate Questions", type="primary", disabled=not can_generate)

    if submitted:
        request = GenerationRequest(genre=genre, difficulty=difficulty, question_count=count, question_type=question_type)
        with st.spinner("Generating questions..."):
            try:
                created = create_question_set(db, quota, user_id, request, title=title)
            except QuizError as e:
                st.error(e.message)
            else:
                st.session_state["create_notice"] = f"Question set created: {created.title} ({created.total_questions} questions)"
                st.rerun()

# ----- Import -----
elif page == "Import":
    st.header("Import question set")
    st.info('JSON file must contain a "questions" array. Each question must have: '
            "id, type, question, and the answer fields for its type.")
    import_title = st.text_input("Title for Imported Set", placeholder="Enter a title for the imported question set")
    uploaded = st.file_uploader("Select JSON File", type=["json"])
    if st.button("Import", type="primary", disabled=uploaded is None or not import_title.strip()):
        try:
            text = uploaded.getvalue().decode("utf-8")
            stored = import_question_set(db, user_id, import_title, text)
            st.success(f"Imported {stored.total_questions} questions as {stored.title}")
        except UnicodeDecodeError:
            st.error("File is not UTF-8 text")
        except QuizError as e:
            st.error(e.message)
    with st.expander("Expected JSON format"):
        st.code(
            '{\n  "questions": [\n    {\n      "id": "q1",\n      "type": "multiple_choice",\n'
            '      "question": "Question text",\n      "options": ["A", "B", "C", "D"],\n'
            '      "correctAnswer": 0,\n      "correctAnswerText": null,\n'
            '      "explanation": "Explanation",\n      "keywords": []\n    }\n  ]\n}',
            language="json",
        )

# ----- Quiz -----
elif page == "Quiz":
    question_set = st.session_state.get("quiz_set")
    session = st.session_state.get("quiz_session")
    if question_set is None or session is None:
        st.info("Pick a question set on the Dashboard to start a quiz.")
        if st.button("Back to Dashboard"):
            _go("Dashboard")
        st.stop()

    st.header(question_set.title)
    st.caption(f"{question_set.genre} · {question_set.difficulty.title()} · {question_set.total_questions} Questions")

    # Results
    result = st.session_state.get("quiz_result")
    if result is not None:
        notice = st.session_state.get("quiz_notice")
        if notice:
            st.warning(notice)
        st.subheader(f"Quiz Results · {result.band}")
        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("Total Score", f"{result.total_score:.1f}/{result.max_score}")
        with col2:
            st.metric("Percentage", f"{result.percentage}%")
        with col3:
            st.metric("Time Spent", format_elapsed(result.time_spent_sec))
        st.progress(min(100, result.percentage) / 100)

        st.subheader("Detailed Results")
        for row in review_rows(question_set, result.answers):
            with st.container(border=True):
                verdict = "✓" if row["is_correct"] else "✗"
                badge = f"{row['score_percent']}%" if row["type"] == "descriptive" else (
                    "Correct" if row["is_correct"] else "Incorrect")
                st.markdown(f"**{verdict} Question {row['number']}:** {row['prompt']}  \n*{TYPE_LABELS[row['type']]} · {badge}*")
                st.write(f"Your answer: {row['your_answer']}")
                if row["type"] == "descriptive":
                    st.write(f"Sample correct answer: {row['correct_answer']}")
                    total_kw = len(row["matched_keywords"]) + len(row["missing_keywords"])
                    st.caption(f"Matched {len(row['matched_keywords'])} of {total_kw} key concepts: "
                               + ", ".join(row["matched_keywords"] or ["none"]))
                elif not row["is_correct"]:
                    st.write(f"Correct answer: {row['correct_answer']}")
                if row["explanation"]:
                    st.info(row["explanation"])

        col1, col2 = st.columns(2)
        with col1:
            if st.button("Back to Dashboard", use_container_width=True):
                _go("Dashboard")
        with col2:
            if st.button("Retake Quiz", type="primary", use_container_width=True):
                _begin_quiz(question_set)
                st.rerun()
        st.stop()

    # In progress
    q = session.current_question
    current = session.current_answer
    st.progress(session.progress_fraction())
    st.caption(f"Question {session.position + 1} of {session.total_questions} · "
               f"{session.answered_count()} answered · {format_elapsed(session.elapsed_seconds())} elapsed")

    st.subheader(q.prompt)
    st.caption(TYPE_LABELS[q.type])

    try:
        if isinstance(q, MultipleChoiceQuestion):
            choice = st.radio(
                "Choose one:",
                range(len(q.options)),
                format_func=lambda i: f"{option_label(i)}. {q.options[i]}",
                index=current.selected_answer if current is not None else None,
                key=f"mc_{session.session_id}_{q.id}",
            )
            if choice is not None and (current is None or current.selected_answer != choice):
                session.record_answer(q.id, choice)
                st.rerun()
        else:
            text = st.text_area(
                "Your Answer:",
                value=current.text_answer if current is not None else "",
                height=160,
                key=f"text_{session.session_id}_{q.id}",
                placeholder="Type your answer here...",
            )
            if q.keywords:
                st.caption(f"Hint: your answer should include concepts related to: {', '.join(q.keywords)}")
            if st.button("Save answer"):
                session.record_answer(q.id, text)
                st.rerun()
    except QuizError as e:
        st.error(e.message)

    col1, col2, col3 = st.columns([1, 2, 1])
    with col1:
        if st.button("← Previous", disabled=session.position == 0):
            session.retreat()
            st.rerun()
    with col2:
        if session.has_answered_current:
            st.success("Answer saved")
    with col3:
        label = "Complete Quiz" if session.is_last_question else "Next →"
        if st.button(label, type="primary", disabled=not session.has_answered_current):
            try:
                if session.advance() is not None:
                    result, notice = finish_quiz(db, session, question_set, user_id)
                    st.session_state["quiz_result"] = result
                    st.session_state["quiz_notice"] = notice
                st.rerun()
            except QuizError as e:
                st.error(e.message)

# ----- History -----
elif page == "History":
    st.header("Quiz history")
    try:
        results = db.list_quiz_results(user_id)
        titles = {qs.id: qs.title for qs in db.list_question_sets(user_id)}
    except PersistenceFailure as e:
        st.error(str(e))
        st.stop()
    if not results:
        st.info("No completed quizzes yet.")
    for r in results:
        title = titles.get(r.question_set_id, "Deleted set")
        completed = r.completed_at.astimezone(timezone.utc) if r.completed_at.tzinfo else r.completed_at
        st.write(f"**{title}** · {completed:%b %d, %Y %H:%M} UTC · "
                 f"{r.total_score:.1f}/{r.max_score} ({r.percentage}%, {r.band}) · {format_elapsed(r.time_spent_sec)}")
