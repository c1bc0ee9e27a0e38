"""Answer checking for puzzle pages."""

import logging
from collections.abc import Collection

from scrollgate.config import PuzzleConfig
from scrollgate.errors import NoPuzzleError
from scrollgate.models import Element, Page, PuzzleResult

logger = logging.getLogger(__name__)


def _first_present(content: dict, keys: list[str]) -> str | None:
    for key in keys:
        value = content.get(key)
        if isinstance(value, str):
            return value
    return None


def expected_answer(element: Element, config: PuzzleConfig | None = None) -> str | None:
    """The configured answer of a puzzle element, or None if unset.

    A puzzle bound to a plain string uses that string as its answer.
    """
    config = config or PuzzleConfig()
    if isinstance(element.content, str):
        return element.content
    if isinstance(element.content, dict):
        return _first_present(element.content, config.answer_keys)
    return None


def error_message(element: Element, config: PuzzleConfig | None = None) -> str:
    config = config or PuzzleConfig()
    if isinstance(element.content, dict):
        message = _first_present(element.content, config.error_message_keys)
        if message:
            return message
    return config.wrong_answer_message


def check_answer(
    page: Page,
    answer: str,
    completed: Collection[int],
    config: PuzzleConfig | None = None,
) -> PuzzleResult:
    """Check a submitted answer. A wrong answer is a result, not an error."""
    config = config or PuzzleConfig()
    element = page.puzzle
    if element is None:
        raise NoPuzzleError(f"Page {page.index} has no puzzle")

    if page.index in completed:
        return PuzzleResult(page_index=page.index, solved=True, message=config.success_message)

    correct = expected_answer(element, config)
    if correct is None:
        logger.warning("Puzzle %r on page %d has no answer configured", element.variable_name, page.index)

    if correct is not None and answer.strip() == correct:
        logger.info("Puzzle on page %d solved", page.index)
        return PuzzleResult(
            page_index=page.index,
            solved=True,
            message=config.success_message,
            newly_solved=True,
        )

    return PuzzleResult(page_index=page.index, solved=False, message=error_message(element, config))
