from pathlib import Path

import pytest

from bookpress.config import Config
from bookpress.linkparse import LineRange, find_links
from bookpress.links import (
    LinkPreprocessor,
    render_link,
    replace_all,
    take_anchored_lines,
    take_lines,
    take_rustdoc_include_anchored_lines,
    take_rustdoc_include_lines,
)
from bookpress.preprocessor import Chapter, PreprocessorContext

LOREM = "Lorem\nipsum\ndolor\nsit\namet"


def test_replace_all_escaped():
    start = (
        "\n        Some text over here.\n        ```hbs\n"
        "        \\{{#include file.rs}} << an escaped link!\n        ```"
    )
    end = (
        "\n        Some text over here.\n        ```hbs\n"
        "        {{#include file.rs}} << an escaped link!\n        ```"
    )
    text, title = replace_all(start, "", "", 0, "test_replace_all_escaped")
    assert text == end
    assert title == "test_replace_all_escaped"


def test_set_chapter_title():
    start = "{{#title My Title}}\n        # My Chapter\n        "
    end = "\n        # My Chapter\n        "
    text, title = replace_all(start, "", "", 0, "test_set_chapter_title")
    assert text == end
    assert title == "My Title"


@pytest.mark.parametrize(
    "line_range, expected",
    [
        (LineRange(1, 3), "ipsum\ndolor"),
        (LineRange(3, None), "sit\namet"),
        (LineRange(None, 3), "Lorem\nipsum\ndolor"),
        (LineRange(), LOREM),
        (LineRange(4, 3), ""),
        (LineRange(None, 100), LOREM),
    ],
)
def test_take_lines(line_range, expected):
    assert take_lines(LOREM, line_range) == expected


def test_take_lines_ignores_trailing_newline():
    assert take_lines("a\nb\n", LineRange()) == "a\nb"


def test_take_anchored_lines():
    assert take_anchored_lines(LOREM, "test") == ""
    s = "Lorem\nipsum\ndolor\nANCHOR_END: test\nsit\namet"
    assert take_anchored_lines(s, "test") == ""
    s = "Lorem\nipsum\nANCHOR: test\ndolor\nsit\namet"
    assert take_anchored_lines(s, "test") == "dolor\nsit\namet"
    assert take_anchored_lines(s, "something") == ""
    s = "Lorem\nipsum\nANCHOR: test\ndolor\nsit\namet\nANCHOR_END: test\nlorem\nipsum"
    assert take_anchored_lines(s, "test") == "dolor\nsit\namet"
    s = "Lorem\nANCHOR: test\nipsum\nANCHOR: test\ndolor\nsit\namet\nANCHOR_END: test\nlorem\nipsum"
    assert take_anchored_lines(s, "test") == "ipsum\ndolor\nsit\namet"


def test_take_nested_anchored_lines():
    s = (
        "Lorem\nANCHOR: test2\nipsum\nANCHOR: test\ndolor\nsit\namet\n"
        "ANCHOR_END: test\nlorem\nANCHOR_END:test2\nipsum"
    )
    assert take_anchored_lines(s, "test2") == "ipsum\ndolor\nsit\namet\nlorem"
    assert take_anchored_lines(s, "test") == "dolor\nsit\namet"


def test_take_rustdoc_include_lines():
    s = "a\nb\nc\nd"
    assert take_rustdoc_include_lines(s, LineRange(1, 3)) == "# a\nb\nc\n# d"
    assert take_rustdoc_include_lines(s, LineRange()) == s
    assert take_rustdoc_include_lines(s, LineRange(2, None)) == "# a\n# b\nc\nd"


def test_take_rustdoc_include_anchored_lines():
    s = "a\nANCHOR: x\nb\nANCHOR_END: x\nc"
    assert take_rustdoc_include_anchored_lines(s, "x") == "# a\nb\n# c"
    s = "a\nANCHOR: y\nb\nANCHOR_END: y\nc"
    assert take_rustdoc_include_anchored_lines(s, "x") == "# a\n# b\n# c"


def test_render_escaped_link():
    (link,) = find_links("\\{{#include x.md}}")
    assert render_link(link, "", "T") == ("{{#include x.md}}", "T")


def test_render_missing_file_raises(tmp_path):
    (link,) = find_links("{{#include nope.md}}")
    with pytest.raises(OSError):
        render_link(link, tmp_path, "T")


def test_render_playground(tmp_path):
    (tmp_path / "ex.rs").write_text("fn main() {}")
    (link,) = find_links("{{#playground ex.rs editable no_run}}")
    text, _ = render_link(link, tmp_path, "T")
    assert text == "```rust,editable,no_run\nfn main() {}\n```\n"


def test_render_playground_without_properties(tmp_path):
    (tmp_path / "ex.rs").write_text("fn main() {}\n")
    (link,) = find_links("{{#playground ex.rs}}")
    text, _ = render_link(link, tmp_path, "T")
    assert text == "```rust\nfn main() {}\n```\n"


def test_include_with_range_and_anchor(tmp_path):
    (tmp_path / "data.txt").write_text(LOREM)
    (tmp_path / "anch.rs").write_text("x\n// ANCHOR: part\ninside\n// ANCHOR_END: part\ny")
    text, _ = replace_all(
        "[{{#include data.txt:2:3}}] [{{#include anch.rs:part}}]",
        tmp_path,
        "ch.md",
        0,
        "T",
    )
    assert text == "[ipsum\ndolor] [inside]"


def test_rustdoc_include(tmp_path):
    (tmp_path / "code.rs").write_text("a\nb\nc")
    text, _ = replace_all("{{#rustdoc_include code.rs:2}}", tmp_path, "ch.md", 0, "T")
    assert text == "# a\nb\n# c"


def test_missing_include_is_left_in_place(tmp_path):
    src = "before {{#include missing.md}} after"
    text, _ = replace_all(src, tmp_path, "ch.md", 0, "T")
    assert text == src


def test_nested_includes_are_relative(tmp_path):
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "a.md").write_text("A:{{#include b.md}}")
    (sub / "b.md").write_text("B")
    text, _ = replace_all("{{#include sub/a.md}}", tmp_path, "ch.md", 0, "T")
    assert text == "A:B"


def test_recursive_includes_are_capped(tmp_path):
    (tmp_path / "r.md").write_text("Around the world\n{{#include r.md}}")
    text, _ = replace_all("{{#include r.md}}", tmp_path, "ch.md", 0, "T")
    assert text.count("Around the world") == 10
    assert "{{#include" not in text


def test_preprocessor_run(tmp_path):
    src = tmp_path / "src"
    (src / "part").mkdir(parents=True)
    (src / "part" / "data.txt").write_text("included")
    chapter = Chapter(
        name="Old",
        content="{{#title New}}body {{#include data.txt}}",
        path=Path("part/ch.md"),
    )
    draft = Chapter(name="Draft", content="{{#include data.txt}}")
    ctx = PreprocessorContext(root=tmp_path, config=Config(), renderer="html")

    book = LinkPreprocessor().run(ctx, [chapter, draft])

    assert book[0].content == "body included"
    assert ctx.chapter_titles == {Path("part/ch.md"): "New"}
    assert book[1].content == "{{#include data.txt}}"
    assert LinkPreprocessor().name == "links"