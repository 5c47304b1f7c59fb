import pytest

from deepchat.rendering import clean_response, normalize_math, render_markdown


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        (r"\[\frac{1}{2}\]", r"$$\frac{1}{2}$$"),
        (r"where \(a + b\) holds", "where $a + b$ holds"),
        ("2 ^ 10 = 1024", "2^{ 10 } = 1024"),
        ("x^2 + x^10", "x^{2} + x^{10}"),
        ("no math here", "no math here"),
    ],
)
def test_normalize_math(source: str, expected: str) -> None:
    assert normalize_math(source) == expected


def test_normalize_math_is_idempotent() -> None:
    source = r"Solve \(x^2 = 4\) and \[2 ^ 3 = 8\] then x^3."
    once = normalize_math(source)

    assert normalize_math(once) == once


def test_clean_response_squeezes_whitespace() -> None:
    assert clean_response("  hello\n\n\n\n   world  \n") == "hello\n\nworld"


def test_render_markdown_formats_text() -> None:
    rendered = render_markdown("**bold** and *it*\n\n- one\n- two")

    assert "<strong>bold</strong>" in rendered
    assert "<em>it</em>" in rendered
    assert "<li>one</li>" in rendered


def test_render_markdown_keeps_math_intact() -> None:
    rendered = render_markdown(r"Area is \(a_1 * b_2\) and *c*")

    assert "$a_1 * b_2$" in rendered
    assert "<em>c</em>" in rendered


def test_render_markdown_escapes_math_markup() -> None:
    rendered = render_markdown("$$x < y$$")

    assert "$$x &lt; y$$" in rendered


def test_render_markdown_display_math_from_brackets() -> None:
    rendered = render_markdown(r"\[x^2\]")

    assert "$$x^{2}$$" in rendered


def test_render_markdown_fenced_code() -> None:
    rendered = render_markdown("```python\nprint('hi')\n```")

    assert "<code" in rendered
    assert "print(" in rendered


def test_render_markdown_is_deterministic() -> None:
    text = "## Result\n\nThe value of \\(x^2\\) is **4**."

    assert render_markdown(text) == render_markdown(text)
    assert render_markdown(normalize_math(text)) == render_markdown(text)


def test_render_markdown_leaves_placeholder_lookalikes_alone() -> None:
    rendered = render_markdown("The token @@MATH3@@ appears in a log line")

    assert "@@MATH3@@" in rendered


def test_render_markdown_lookalike_next_to_real_math() -> None:
    rendered = render_markdown(r"see @@MATH0@@ and \(y_1\)")

    assert "@@MATH0@@" in rendered
    assert "$y_1$" in rendered


def test_render_markdown_escapes_raw_html() -> None:
    rendered = render_markdown("Look: <img src=x onerror=alert(1)>\n\n<script>alert(2)</script>")

    assert "<img" not in rendered
    assert "<script" not in rendered
    assert "&lt;img" in rendered
    assert "&lt;script&gt;" in rendered
