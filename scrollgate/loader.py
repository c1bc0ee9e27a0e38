"""Load a story directory of page files into Page models."""

import logging
import re
from pathlib import Path

from PIL import Image

from scrollgate.config import StoryConfig
from scrollgate.models import Element, ElementKind, Page, PageLoadResult
from scrollgate.parser import PageParser

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = {".txt", ".md"}
URL_PREFIXES = ("http://", "https://", "data:")


def _pattern_regex(pattern: str) -> re.Pattern[str]:
    return re.compile(re.escape(pattern).replace(re.escape("{n}"), r"(\d+)"))


def discover_page_numbers(story_dir: Path, pattern: str) -> list[int]:
    """Page numbers of every file in story_dir matching pattern, ascending."""
    if not story_dir.is_dir():
        logger.warning("Story directory %s does not exist", story_dir)
        return []
    regex = _pattern_regex(pattern)
    numbers = []
    for path in story_dir.iterdir():
        match = regex.fullmatch(path.name)
        if match and path.is_file():
            numbers.append(int(match.group(1)))
    return sorted(numbers)


def _resolve_text(element: Element, story_dir: Path, config: StoryConfig) -> None:
    content = element.content
    if not isinstance(content, str):
        return
    try:
        candidate = story_dir / content
        is_file = candidate.is_file()
    except (OSError, ValueError):
        is_file = False

    if is_file:
        try:
            if candidate.stat().st_size > config.max_text_bytes:
                logger.warning("Text asset %s is over %d bytes", candidate, config.max_text_bytes)
                element.resolved = config.text_load_failure
                return
            element.resolved = candidate.read_text(encoding="utf-8", errors="replace")
        except OSError:
            logger.exception("Failed to read text asset %s", candidate)
            element.resolved = config.text_load_failure
    elif Path(content).suffix.lower() in TEXT_SUFFIXES:
        logger.warning("Text asset %s not found", candidate)
        element.resolved = config.text_load_failure
    else:
        element.resolved = content


def _resolve_image(element: Element, story_dir: Path) -> None:
    content = element.content
    if not isinstance(content, str) or not content:
        return
    if content.startswith(URL_PREFIXES):
        element.resolved = content
        return

    path = story_dir / content
    element.resolved = str(path)
    try:
        with Image.open(path) as img:
            element.image_size = img.size
    except OSError:
        logger.warning("Could not open image %s; size unknown", path)


def resolve_assets(page: Page, story_dir: Path, config: StoryConfig | None = None) -> Page:
    """Fill Element.resolved for text and image elements in place."""
    config = config or StoryConfig()
    for element in page.elements:
        if element.kind == ElementKind.TEXT:
            _resolve_text(element, story_dir, config)
        elif element.kind == ElementKind.IMAGE:
            _resolve_image(element, story_dir)
    return page


def load_pages(
    story_dir: Path,
    config: StoryConfig | None = None,
    parser: PageParser | None = None,
) -> PageLoadResult:
    """Read, parse and resolve every page of a story.

    Unreadable pages are left out and recorded in failures; the rest still load.
    """
    config = config or StoryConfig()
    parser = parser or PageParser()

    if config.page_count is not None:
        numbers = list(range(1, config.page_count + 1))
    else:
        numbers = discover_page_numbers(story_dir, config.page_pattern)

    result = PageLoadResult()
    for n in numbers:
        index = n - 1
        path = story_dir / config.page_pattern.format(n=n)
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Failed to load page %d from %s: %s", n, path, exc)
            result.failures[index] = str(exc)
            continue
        page = parser.parse(raw, index)
        result.pages.append(resolve_assets(page, story_dir, config))

    if result.is_empty:
        logger.error("No pages loaded from %s", story_dir)
    else:
        logger.info(
            "Loaded %d pages from %s (%d failed)",
            len(result.pages), story_dir, len(result.failures),
        )
    return result
