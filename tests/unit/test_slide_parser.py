"""Test the grammar slide parser."""

import pytest

from slide_canvas.slide_parser import (
    SlideParser,
    parse_markdown_to_slides,
    parse_numbered_slides,
    strip_inline_markup,
)


@pytest.fixture
def parser():
    return SlideParser()


def test_title_bullets_and_body(parser):
    """Heading, bullet run and trailing paragraph land in their own fields."""
    slides = parser.parse("# Title\n- a\n- b\n\nBody text")

    assert len(slides) == 1
    slide = slides[0]
    assert slide.title == "Title"
    assert slide.bullets == ["a", "b"]
    assert slide.content == ["Body text"]


def test_delimiter_splits_slides(parser):
    text = """# One

First slide.

---

# Two

Second slide.

---

# Three
"""
    slides = parser.parse(text)

    assert [slide.title for slide in slides] == ["One", "Two", "Three"]
    assert slides[0].content == ["First slide."]
    assert slides[2].content == []


def test_delimiter_must_be_alone_on_line(parser):
    slides = parser.parse("# One\nsome --- text\n---\n# Two")
    assert [slide.title for slide in slides] == ["One", "Two"]
    assert slides[0].content == ["some --- text"]


def test_crlf_input(parser):
    slides = parser.parse("# One\r\nBody\r\n---\r\n# Two\r\n")
    assert [slide.title for slide in slides] == ["One", "Two"]
    assert slides[0].content == ["Body"]


def test_frame_markers_take_precedence(parser):
    """When frame markers are present the --- delimiter is ignored."""
    text = """**Frame 1: Opening**
Narration: Welcome to the show
---
**Frame 2: Closing**
Visuals: A sunset over the sea
"""
    slides = parser.parse(text)

    assert len(slides) == 2
    assert slides[0].content == ["Welcome to the show"]
    assert slides[1].content == ["A sunset over the sea"]


def test_bold_line_becomes_title(parser):
    slides = parser.parse("**Big Idea**\nWhy it matters")
    assert slides[0].title == "Big Idea"
    assert slides[0].content == ["Why it matters"]


def test_only_first_heading_is_title(parser):
    slides = parser.parse("# First\n# Second\ntext")
    assert slides[0].title == "First"
    assert slides[0].content == ["# Second", "text"]


def test_bullet_markers(parser):
    text = "# List\n- dash\n* star\n• dot\n1. numbered\n12. more"
    slides = parser.parse(text)
    assert slides[0].bullets == ["dash", "star", "dot", "numbered", "more"]


def test_emphasis_is_stripped(parser):
    slides = parser.parse("# T\n- **bold** item\nSome *italic* and __strong__ words")
    assert slides[0].bullets == ["bold item"]
    assert slides[0].content == ["Some italic and strong words"]


def test_cue_prefix_after_emphasis(parser):
    slides = parser.parse("# T\n**Narration:** spoken words")
    assert slides[0].content == ["spoken words"]


def test_code_block_verbatim(parser):
    text = """# Code

```python
def hello():
    return "hi"
```

After code.
"""
    slide = parser.parse(text)[0]

    assert slide.code.language == "python"
    assert slide.code.content == 'def hello():\n    return "hi"'
    assert slide.content == ["After code."]


def test_code_language_defaults_to_text(parser):
    slide = parser.parse("```\nplain\n```")[0]
    assert slide.code.language == "text"
    assert slide.code.content == "plain"
    assert slide.title is None


def test_markup_inside_code_is_untouched(parser):
    slide = parser.parse("# T\n```md\n# not a title\n- not a bullet\n```")[0]
    assert slide.bullets is None
    assert slide.code.content == "# not a title\n- not a bullet"


def test_unterminated_code_fence_keeps_lines(parser):
    slide = parser.parse("# T\n```js\nconsole.log(1)")[0]
    assert slide.code.language == "js"
    assert slide.code.content == "console.log(1)"


def test_image_reference(parser):
    slide = parser.parse("# Pic\n![diagram](https://example.com/a.png)")[0]
    assert slide.image == "https://example.com/a.png"
    assert slide.content == []


def test_speaker_notes(parser):
    slide = parser.parse("# T\nBody\n??? remember to smile\n??? and breathe")[0]
    assert slide.notes == "remember to smile and breathe"
    assert slide.content == ["Body"]


def test_asterisk_separators_are_skipped(parser):
    slide = parser.parse("# T\n***\nBody\n*****")[0]
    assert slide.content == ["Body"]


def test_empty_chunks_are_dropped(parser):
    """Chunks with only images or notes have no slide content."""
    slides = parser.parse("# One\n---\n![img](a.png)\n---\n??? only notes\n---\n\n---\n# Two")
    assert [slide.title for slide in slides] == ["One", "Two"]


def test_empty_text(parser):
    assert parser.parse("") == []
    assert parser.parse("   \n\n  ") == []


def test_parse_is_idempotent(parser):
    text = "# A\n- x\n- y\n---\n**B**\nbody\n```py\nprint(1)\n```"
    assert parser.parse(text) == parser.parse(text)


def test_custom_delimiter_and_prefix():
    parser = SlideParser(slide_delimiter="===", title_prefix="!")
    slides = parser.parse("! First\nbody\n===\n! Second")
    assert [slide.title for slide in slides] == ["First", "Second"]


def test_parse_markdown_to_slides_helper():
    slides = parse_markdown_to_slides("# A\n---\n# B")
    assert len(slides) == 2


def test_parse_numbered_slides():
    text = "Slide 1: Welcome\nHello there\nSlide 2: Agenda\n- one\n- two"
    slides = parse_numbered_slides(text)

    assert [slide.title for slide in slides] == ["Welcome", "Agenda"]
    assert slides[0].content == ["Hello there"]
    assert slides[1].bullets == ["one", "two"]


def test_strip_inline_markup():
    assert strip_inline_markup("**bold** and *italic*") == "bold and italic"
    assert strip_inline_markup("use `code` here") == "use code here"
    assert strip_inline_markup("[link](http://x.y)") == "link"
