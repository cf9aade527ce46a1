"""Preprocessor expanding `{{#include}}`, `{{#playground}}` and related helpers."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from bookpress.linkparse import LineRange, Link, LinkKind, find_links
from bookpress.preprocessor import (
    Chapter,
    Preprocessor,
    PreprocessorContext,
    iter_chapters,
)

__all__ = [
    "LinkPreprocessor",
    "render_link",
    "replace_all",
    "take_lines",
    "take_anchored_lines",
    "take_rustdoc_include_lines",
    "take_rustdoc_include_anchored_lines",
]

log = logging.getLogger(__name__)

MAX_LINK_NESTED_DEPTH = 10

_ANCHOR_START = re.compile(r"ANCHOR:\s*(?P<anchor_name>[\w_-]+)")
_ANCHOR_END = re.compile(r"ANCHOR_END:\s*(?P<anchor_name>[\w_-]+)")


def _lines(text: str) -> list[str]:
    """Split into lines on `\\n`, dropping a trailing `\\r` and a final empty line."""
    if not text:
        return []
    parts = text.split("\n")
    if text.endswith("\n"):
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


def _in_range(index: int, line_range: LineRange) -> bool:
    if line_range.start is not None and index < line_range.start:
        return False
    if line_range.end is not None and index >= line_range.end:
        return False
    return True


def _anchor_name(pattern: re.Pattern, line: str) -> str | None:
    match = pattern.search(line)
    return match.group("anchor_name") if match else None


def take_lines(text: str, line_range: LineRange) -> str:
    """Return the lines of `text` inside `line_range`, joined by newlines."""
    return "\n".join(_lines(text)[line_range.to_slice()])


def take_anchored_lines(text: str, anchor: str) -> str:
    """Return the lines between `ANCHOR: anchor` and `ANCHOR_END: anchor`.

    Other anchor markers inside the section are left out.
    """
    retained: list[str] = []
    found = False
    for line in _lines(text):
        if found:
            end_name = _anchor_name(_ANCHOR_END, line)
            if end_name is not None:
                if end_name == anchor:
                    break
            elif _ANCHOR_START.search(line) is None:
                retained.append(line)
        elif _anchor_name(_ANCHOR_START, line) == anchor:
            found = True
    return "\n".join(retained)


def take_rustdoc_include_lines(text: str, line_range: LineRange) -> str:
    """Return all of `text`, hiding lines outside `line_range` behind `# `."""
    return "\n".join(
        line if _in_range(index, line_range) else f"# {line}"
        for index, line in enumerate(_lines(text))
    )


def take_rustdoc_include_anchored_lines(text: str, anchor: str) -> str:
    """Return `text` with lines outside the anchored section hidden behind `# `.

    Anchor marker lines themselves are left out.
    """
    output: list[str] = []
    within = False
    for line in _lines(text):
        if within:
            end_name = _anchor_name(_ANCHOR_END, line)
            if end_name is not None:
                if end_name == anchor:
                    within = False
            elif _ANCHOR_START.search(line) is None:
                output.append(line)
            continue
        start_name = _anchor_name(_ANCHOR_START, line)
        if start_name is not None:
            if start_name == anchor:
                within = True
        elif _ANCHOR_END.search(line) is None:
            output.append(f"# {line}")
    return "\n".join(output)


def _read_target(link: Link, target: Path) -> str:
    try:
        return target.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise OSError(
            f"Could not read file for link {link.link_text} ({target}): {exc}"
        ) from exc


def render_link(
    link: Link, base: str | os.PathLike, chapter_title: str
) -> tuple[str, str]:
    """Render one link relative to `base`.

    Returns the replacement text and the chapter title, which a `title`
    link changes. Raises OSError when a linked file cannot be read.
    """
    base = Path(base)
    link_type = link.link_type
    kind = link_type.kind

    if kind is LinkKind.ESCAPED:
        return link.link_text[1:], chapter_title
    if kind is LinkKind.TITLE:
        return "", link_type.title or ""

    target = base / link_type.path
    contents = _read_target(link, target)

    if kind is LinkKind.INCLUDE:
        target_part = link_type.range_or_anchor
        if isinstance(target_part, LineRange):
            return take_lines(contents, target_part), chapter_title
        return take_anchored_lines(contents, target_part), chapter_title

    if kind is LinkKind.RUSTDOC_INCLUDE:
        target_part = link_type.range_or_anchor
        if isinstance(target_part, LineRange):
            return take_rustdoc_include_lines(contents, target_part), chapter_title
        return take_rustdoc_include_anchored_lines(contents, target_part), chapter_title

    # playground
    attrs = link_type.properties
    ftype = "rust," if attrs else "rust"
    if not contents.endswith("\n"):
        contents += "\n"
    return f"```{ftype}{','.join(attrs)}\n{contents}```\n", chapter_title


def replace_all(
    s: str,
    path: str | os.PathLike,
    source: str | os.PathLike,
    depth: int,
    chapter_title: str,
) -> tuple[str, str]:
    """Expand every link in `s`, following nested links up to a fixed depth.

    Returns the expanded text and the possibly updated chapter title. Links
    whose files cannot be read are left in the text as they were.
    """
    path = Path(path)
    pieces: list[str] = []
    previous_end = 0

    for link in find_links(s):
        pieces.append(s[previous_end:link.start_index])
        try:
            new_content, chapter_title = render_link(link, path, chapter_title)
        except OSError as exc:
            log.error('Error updating "%s", %s', link.link_text, exc)
            previous_end = link.start_index
            continue

        if depth < MAX_LINK_NESTED_DEPTH:
            rel_path = link.link_type.relative_path(path)
            if rel_path is not None:
                nested, chapter_title = replace_all(
                    new_content, rel_path, source, depth + 1, chapter_title
                )
                pieces.append(nested)
            else:
                pieces.append(new_content)
        else:
            log.error(
                "Stack depth exceeded in %s. Check for cyclic includes", source
            )
        previous_end = link.end_index

    pieces.append(s[previous_end:])
    return "".join(pieces), chapter_title


class LinkPreprocessor(Preprocessor):
    """Expands `include`, `rustdoc_include`, `playground` and `title` helpers."""

    name = "links"

    def run(self, ctx: PreprocessorContext, book: list[Chapter]) -> list[Chapter]:
        """Expand the helpers in every chapter that has a source file."""
        src_dir = ctx.root / ctx.config.book.src
        for chapter in iter_chapters(book):
            chapter_path = chapter.path
            if chapter_path is None:
                continue
            base = src_dir / chapter_path.parent
            content, title = replace_all(
                chapter.content, base, chapter_path, 0, chapter.name
            )
            chapter.content = content
            if title != chapter.name:
                ctx.chapter_titles[chapter_path] = title
        return book