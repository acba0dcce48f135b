"""Import a questions .json file into a user's library, or export a stored set back to .json."""
import argparse
import logging
import sys
from pathlib import Path

from db import get_database_uncached
from quizforge.errors import QuizError
from quizforge.question_io import export_document, import_document
from quizforge.service import import_question_set


def run_import(path: Path, user_id: str, title: str | None = None, dry_run: bool = False):
    if not path.exists():
        raise FileNotFoundError(f"JSON not found: {path}")
    text = path.read_text(encoding="utf-8")
    title = title or path.stem.replace("_", " ").title()
    if dry_run:
        questions, genre, difficulty = import_document(text)
        print(f"Dry run: would import {len(questions)} questions as {title!r} ({genre}, {difficulty})")
        return
    stored = import_question_set(get_database_uncached(), user_id, title, text)
    print(f"Imported {stored.total_questions} questions as {stored.title!r} (id {stored.id})")


def run_export(set_id: str, out: Path | None = None):
    question_set = get_database_uncached().get_question_set(set_id)
    if question_set is None:
        raise FileNotFoundError(f"Question set not found: {set_id}")
    out = out or Path(question_set.export_filename)
    out.write_text(export_document(question_set.questions), encoding="utf-8")
    print(f"Exported {question_set.total_questions} questions to {out}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    parser = argparse.ArgumentParser(description="Import/export QuizForge question sets as JSON.")
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Import a .json file into Supabase")
    p_import.add_argument("json", help="Path to .json with a questions array")
    p_import.add_argument("--user-id", required=True, help="Owner user id")
    p_import.add_argument("--title", default=None, help="Set title (default: file name)")
    p_import.add_argument("--dry-run", action="store_true", help="Validate only, do not store")

    p_export = sub.add_parser("export", help="Export a stored set to .json")
    p_export.add_argument("set_id", help="Question set id")
    p_export.add_argument("--out", default=None, help="Output path (default: derived from title)")

    args = parser.parse_args()
    try:
        if args.command == "import":
            run_import(Path(args.json), args.user_id, title=args.title, dry_run=args.dry_run)
        else:
            run_export(args.set_id, Path(args.out) if args.out else None)
    except (QuizError, FileNotFoundError) as e:
        logging.getLogger(__name__).error(str(e))
        sys.exit(1)
