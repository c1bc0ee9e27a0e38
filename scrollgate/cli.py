"""CLI entry point for scrollgate."""

import argparse
import logging
import sys
from pathlib import Path

from scrollgate.config import load_config
from scrollgate.errors import NoPuzzleError, PageNotFoundError
from scrollgate.models import Progress
from scrollgate.puzzle import check_answer
from scrollgate.session import StorySession


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Puzzle-gated scroll story tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("-c", "--config", type=Path, default=None, help="Path to config.yaml")
    sub = parser.add_subparsers(dest="command")

    # pages command
    sub.add_parser("pages", help="List parsed pages and load failures")

    # show command
    show_parser = sub.add_parser("show", help="Dump one parsed page as JSON")
    show_parser.add_argument("index", type=int, help="Page index (0-based)")

    # progress command
    sub.add_parser("progress", help="Show saved reading progress")

    # answer command
    answer_parser = sub.add_parser("answer", help="Submit a puzzle answer")
    answer_parser.add_argument("index", type=int, help="Page index (0-based)")
    answer_parser.add_argument("answer", help="Answer text")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    config = load_config(args.config)
    session = StorySession.open(config)

    try:
        if args.command == "pages":
            if session.is_empty:
                print(f"No pages could be loaded from {config.resolved_story_dir}")
                return 1
            for page in session.pages:
                kinds = ", ".join(f"{e.kind.value}:{e.variable_name}" for e in page.elements)
                flag = " [puzzle]" if page.has_puzzle else ""
                solved = " (solved)" if page.index in session.progress.completed_puzzles else ""
                print(f"  {page.index}: {kinds}{flag}{solved}")
                for warning in page.warnings:
                    print(f"    warning: {warning}")
            if session.failures:
                print(f"\nFailed ({len(session.failures)}):")
                for index, reason in sorted(session.failures.items()):
                    print(f"  {index}: {reason}")

        elif args.command == "show":
            page = session.page(args.index)
            print(page.model_dump_json(indent=2))

        elif args.command == "progress":
            p = session.progress
            print(f"Scroll position: {p.scroll_position}")
            print(f"Solved puzzles: {sorted(p.completed_puzzles) or 'none'}")

        elif args.command == "answer":
            page = session.page(args.index)
            completed = session.progress.completed_puzzles
            result = check_answer(page, args.answer, completed, config.puzzle)
            print(result.message)
            if result.newly_solved:
                session.save_progress(Progress(
                    scroll_position=session.progress.scroll_position,
                    completed_puzzles=completed | {page.index},
                ))
            if not result.solved:
                return 1

        else:
            parser.print_help()
    except (PageNotFoundError, NoPuzzleError) as exc:
        print(exc)
        return 1
    finally:
        session.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
