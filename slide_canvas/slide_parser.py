"""
Grammar parser that turns markdown or loosely formatted prose into
:class:`AbstractSlide` records.
"""
import enum
import logging
import re
from typing import List, Optional

from markdown_it import MarkdownIt

from .models import AbstractSlide, CodeBlock

logger = logging.getLogger(__name__)

FRAME_MARKER = re.compile(r'\*\*Frame \d+:.*?\*\*')
NUMBERED_SLIDE = re.compile(r'^Slide \d+:[ \t]*(.*)$', re.MULTILINE)

BOLD_TITLE = re.compile(r'^\*\*(.+?)\*\*$')
BULLET = re.compile(r'^(?:[-*•]|\d+\.)\s+(.+)$')
IMAGE = re.compile(r'^!\[.*\]\((.*)\)$')
ASTERISKS_ONLY = re.compile(r'^\*+$')
CUE_PREFIX = re.compile(r'^(?:Narration|Visuals?):\s*', re.IGNORECASE)
NOTE_PREFIX = '???'
CODE_FENCE = '```'

_inline_md = MarkdownIt('commonmark')


def strip_inline_markup(text: str) -> str:
    """
    Drop inline emphasis (and other inline markup) keeping only the text.

    ``**bold** and *italic*`` becomes ``bold and italic``. Inline code keeps
    its content, links keep their label.
    """
    parts = []
    for token in _inline_md.parseInline(text):
        for child in token.children or []:
            if child.type in ('text', 'text_special', 'code_inline', 'html_inline'):
                parts.append(child.content)
            elif child.type in ('softbreak', 'hardbreak'):
                parts.append(' ')
            elif child.type == 'image':
                parts.append(child.content)
    return ''.join(parts).strip()


class ParserState(enum.Enum):
    SEEKING_TITLE = "seeking_title"
    IN_BODY = "in_body"
    IN_BULLETS = "in_bullets"
    IN_CODE_BLOCK = "in_code_block"


class SlideParser:
    """
    Deterministic line-oriented parser.

    Input is split into chunks on delimiter lines (``---`` by default), or on
    ``**Frame N: ...**`` markers when the text contains them. Each chunk is
    parsed into at most one slide; chunks without a title, body, bullets or
    code are dropped.
    """

    def __init__(self, slide_delimiter: str = "---", title_prefix: str = "#"):
        self.slide_delimiter = slide_delimiter or "---"
        self.title_prefix = title_prefix or "#"
        self._delimiter_re = re.compile(
            rf'^{re.escape(self.slide_delimiter)}[ \t]*$', re.MULTILINE
        )
        self._heading_re = re.compile(rf'^(?:{re.escape(self.title_prefix)})+\s*(.+)$')

    def parse(self, text: str) -> List[AbstractSlide]:
        slides = []
        for index, chunk in enumerate(self.split_into_chunks(text)):
            slide = self.parse_chunk(chunk)
            if slide.has_content():
                slides.append(slide)
            else:
                logger.debug("Dropping chunk %d: no title, content, bullets or code", index)
        return slides

    def split_into_chunks(self, text: str) -> List[str]:
        """Split raw text into slide-candidate chunks."""
        text = text.replace('\r\n', '\n').replace('\r', '\n')

        if FRAME_MARKER.search(text):
            pieces = FRAME_MARKER.split(text)
        else:
            pieces = self._delimiter_re.split(text)

        return [piece.strip() for piece in pieces if piece.strip()]

    def parse_chunk(self, chunk: str) -> AbstractSlide:
        """Run the line state machine over one chunk."""
        slide = AbstractSlide()
        state = ParserState.SEEKING_TITLE
        code_language = "text"
        code_lines: List[str] = []
        bullets: List[str] = []
        notes: List[str] = []

        for raw_line in chunk.split('\n'):
            line = raw_line.strip()

            if state is ParserState.IN_CODE_BLOCK:
                if line.startswith(CODE_FENCE):
                    slide.code = CodeBlock(language=code_language, content='\n'.join(code_lines))
                    state = ParserState.IN_BODY
                else:
                    code_lines.append(raw_line.rstrip())
                continue

            # Narration separators, and delimiters left over when chunking by frame marker
            if ASTERISKS_ONLY.match(line) or line == self.slide_delimiter:
                continue

            if slide.title is None:
                title = self._match_title(line)
                if title:
                    slide.title = title
                    state = ParserState.IN_BODY
                    continue

            if line.startswith(CODE_FENCE):
                code_language = line[len(CODE_FENCE):].strip() or "text"
                code_lines = []
                state = ParserState.IN_CODE_BLOCK
                continue

            bullet_match = BULLET.match(line)
            if bullet_match:
                bullet = strip_inline_markup(bullet_match.group(1))
                if bullet:
                    bullets.append(bullet)
                    state = ParserState.IN_BULLETS
                continue

            if state is ParserState.IN_BULLETS:
                # Blank or non-bullet line closes the run
                state = ParserState.IN_BODY
                if not line:
                    continue

            image_match = IMAGE.match(line)
            if image_match:
                slide.image = image_match.group(1)
                continue

            if line.startswith(NOTE_PREFIX):
                note = line[len(NOTE_PREFIX):].strip()
                if note:
                    notes.append(note)
                continue

            if line:
                body = CUE_PREFIX.sub('', strip_inline_markup(line))
                if body and not ASTERISKS_ONLY.match(body):
                    slide.content.append(body)
                    state = ParserState.IN_BODY

        if state is ParserState.IN_CODE_BLOCK and code_lines:
            logger.debug("Unterminated code fence; keeping %d captured lines", len(code_lines))
            slide.code = CodeBlock(language=code_language, content='\n'.join(code_lines))

        if bullets:
            slide.bullets = bullets
        if notes:
            slide.notes = ' '.join(notes)

        return slide

    def _match_title(self, line: str) -> Optional[str]:
        bold = BOLD_TITLE.match(line)
        if bold:
            return bold.group(1).strip() or None
        if line.startswith(self.title_prefix):
            heading = self._heading_re.match(line)
            if heading:
                return heading.group(1).strip() or None
        return None


def parse_markdown_to_slides(text: str) -> List[AbstractSlide]:
    """Parse markdown-style input with the default delimiter."""
    return SlideParser().parse(text)


def parse_numbered_slides(text: str) -> List[AbstractSlide]:
    """
    Parse text whose slides are introduced by ``Slide N:`` lines. The rest of
    such a line becomes the slide title.
    """
    def _to_heading(match):
        title = match.group(1).strip()
        return f"---\n# {title}" if title else "---"

    return SlideParser().parse(NUMBERED_SLIDE.sub(_to_heading, text))
