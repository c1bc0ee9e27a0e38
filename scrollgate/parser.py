"""Parse page description files into Page models.

A page file declares its elements one per line and binds them in a
brace-delimited config block:

    <txt>{intro}</txt>
    <pic>{cover}</pic>
    <inputbox>{riddle}</inputbox>
    {
    intro = "text/p1.txt"
    cover = "img/p1.png"
    riddle = {
        谜底 = "42"
        错误提示文案 = "再想想"
    }
    }

Unknown lines are skipped. Parsing never raises.
"""

import logging
import re
from typing import Any

from scrollgate.models import Element, ElementKind, Page

logger = logging.getLogger(__name__)

TAG_PATTERNS = {
    ElementKind.TEXT: re.compile(r"<txt>\{([^{}]+)\}</txt>"),
    ElementKind.IMAGE: re.compile(r"<pic>\{([^{}]+)\}</pic>"),
    ElementKind.PUZZLE: re.compile(r"<inputbox>\{([^{}]+)\}</inputbox>"),
}

QUOTES = "\"'"

UNTERMINATED_BLOCK = "config block opened on line {line} is never closed"


def _unquote(value: str) -> str:
    value = value.strip()
    for q in QUOTES:
        value = value.replace(q, "")
    return value.strip()


def _brace_delta(line: str) -> int:
    """Net brace depth change of one line."""
    return line.count("{") - line.count("}")


def _matching_brace(text: str, open_pos: int) -> int:
    """Index of the brace closing text[open_pos], or len(text) if unterminated."""
    depth = 0
    for i in range(open_pos, len(text)):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    logger.warning("Nested config block is never closed; taking the rest of the block")
    return len(text)


def _line_end(text: str, pos: int) -> int:
    end = text.find("\n", pos)
    return len(text) if end == -1 else end


def parse_config(text: str) -> dict[str, Any]:
    """Parse a config block body into a (possibly nested) mapping.

    Values are quoted strings, bare scalars running to the end of the line,
    or nested { ... } blocks that may span several lines.
    """
    config: dict[str, Any] = {}
    pos = 0
    n = len(text)

    while pos < n:
        ch = text[pos]
        if ch.isspace() or ch == "}":
            pos += 1
            continue

        eol = _line_end(text, pos)
        eq = text.find("=", pos, eol)
        if eq == -1:
            logger.debug("Skipping config line without '=': %r", text[pos:eol])
            pos = eol
            continue

        key = _unquote(text[pos:eq])
        pos = eq + 1
        while pos < eol and text[pos] in " \t":
            pos += 1

        value: Any
        if pos < n and text[pos] == "{":
            close = _matching_brace(text, pos)
            value = parse_config(text[pos + 1:close])
            pos = close + 1
        elif pos < eol and text[pos] in QUOTES:
            close = text.find(text[pos], pos + 1, eol)
            if close == -1:
                close = eol
            value = _unquote(text[pos + 1:close])
            pos = close + 1
        else:
            end = text.find("}", pos, eol)
            if end == -1:
                end = eol
            value = _unquote(text[pos:end])
            pos = end

        if not key:
            logger.debug("Skipping config assignment with empty key")
            continue
        config[key] = value

    return config


def _match_element(line: str) -> Element | None:
    for kind, pattern in TAG_PATTERNS.items():
        match = pattern.fullmatch(line)
        if match:
            return Element(kind=kind, variable_name=match.group(1).strip())
    return None


class PageParser:
    """Turns raw page text into a Page. Holds no state between calls."""

    def parse(self, raw_text: str, page_index: int) -> Page:
        elements: list[Element] = []
        config: dict[str, Any] = {}
        warnings: list[str] = []

        block: list[str] | None = None
        block_start = 0
        depth = 0

        for lineno, raw_line in enumerate(raw_text.splitlines(), start=1):
            line = raw_line.strip()

            if block is not None:
                depth += _brace_delta(line)
                if depth > 0:
                    block.append(line)
                    continue
                # Closing line; keep anything before its last brace
                head = line[:line.rfind("}")].strip() if "}" in line else line
                if head:
                    block.append(head)
                config.update(parse_config("\n".join(block)))
                block = None
                continue

            if line == "{":
                block = []
                block_start = lineno
                depth = 1
                continue

            element = _match_element(line)
            if element is not None:
                elements.append(element)
            elif line:
                logger.debug("Page %d: skipping unrecognized line %d: %r", page_index, lineno, line)

        if block is not None:
            message = UNTERMINATED_BLOCK.format(line=block_start)
            logger.warning("Page %d: %s; treating it as closed at end of input", page_index, message)
            warnings.append(message)
            config.update(parse_config("\n".join(block)))

        for element in elements:
            if element.variable_name in config:
                element.content = config[element.variable_name]

        unbound = [e.variable_name for e in elements if e.content is None]
        if unbound:
            logger.debug("Page %d: no config for %s", page_index, ", ".join(unbound))

        return Page(index=page_index, elements=elements, warnings=warnings)
