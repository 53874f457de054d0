"""Test greedy word wrapping."""

from slide_canvas.text_wrap import MAX_CHARS_PER_LINE, wrap_code, wrap_text


def test_short_text_single_line():
    assert wrap_text("hello world") == ["hello world"]


def test_lines_never_exceed_limit():
    text = " ".join(["word"] * 50)
    lines = wrap_text(text)

    assert len(lines) > 1
    assert all(len(line) <= MAX_CHARS_PER_LINE for line in lines)
    assert " ".join(lines) == text


def test_boundary_is_inclusive():
    """A line may reach exactly the limit."""
    assert wrap_text("aaaa bbbb", max_chars=9) == ["aaaa bbbb"]
    assert wrap_text("aaaa bbbbb", max_chars=9) == ["aaaa", "bbbbb"]


def test_long_word_kept_whole():
    word = "x" * 80
    assert wrap_text(f"a {word} b") == ["a", word, "b"]


def test_whitespace_is_collapsed():
    assert wrap_text("  spaced \n out\ttext ") == ["spaced out text"]
    assert wrap_text("") == []


def test_wrap_code_keeps_indentation_and_blank_lines():
    code = "def f():\n\n    return 1\n"
    assert wrap_code(code) == ["def f():", "", "    return 1"]


def test_wrap_code_long_line_keeps_indent():
    code = "    " + " ".join(["token"] * 20)
    lines = wrap_code(code, max_chars=30)

    assert len(lines) > 1
    assert all(line.startswith("    ") for line in lines)
    assert all(len(line) <= 30 for line in lines)
