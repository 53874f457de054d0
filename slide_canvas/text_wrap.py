"""Greedy word wrapping used by the layout engine."""
from typing import List

# Fixed, independent of font size and zoom.
MAX_CHARS_PER_LINE = 60


def wrap_text(text: str, max_chars: int = MAX_CHARS_PER_LINE) -> List[str]:
    """
    Wrap ``text`` into lines of at most ``max_chars`` characters.

    Words are accumulated while ``len(line) + 1 + len(word) <= max_chars``;
    the word that would overflow starts a new line. A single word longer
    than the limit is kept whole on its own line.
    """
    lines: List[str] = []
    current = ""

    for word in text.split():
        if len(current) + len(word) + 1 <= max_chars:
            current = f"{current} {word}" if current else word
        else:
            if current:
                lines.append(current)
            current = word

    if current:
        lines.append(current)

    return lines


def wrap_code(content: str, max_chars: int = MAX_CHARS_PER_LINE) -> List[str]:
    """
    Wrap a code block line by line.

    Source lines that fit are kept verbatim, indentation included. Blank
    source lines are returned as ``""`` so callers can keep vertical rhythm.
    """
    lines: List[str] = []
    for source_line in content.splitlines():
        source_line = source_line.rstrip()
        if len(source_line) <= max_chars:
            lines.append(source_line)
            continue
        indent = source_line[: len(source_line) - len(source_line.lstrip())]
        wrapped = wrap_text(source_line, max_chars - len(indent))
        lines.extend(indent + line for line in wrapped)
    return lines
