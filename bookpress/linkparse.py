"""Finding and parsing `{{#...}}` helper links in chapter text."""

from __future__ import annotations

import enum
import logging
import os
import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

__all__ = [
    "LineRange",
    "LinkKind",
    "LinkType",
    "Link",
    "find_links",
    "parse_range_or_anchor",
    "parse_include_path",
    "parse_rustdoc_include_path",
]

log = logging.getLogger(__name__)

_ESCAPE_CHAR = "\\"
_USIZE_MAX = (1 << 64) - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")

_LINK_RE = re.compile(
    r"""
    \\\{\{\#.*\}\}      # escaped link
    |
    \{\{\s*             # opening braces and whitespace
    \#([a-zA-Z0-9_]+)   # link type
    \s+                 # separating whitespace
    ([^}]+)             # target path and space separated properties
    \}\}                # closing braces
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class LineRange:
    """A zero-based, end-exclusive range of lines; None means unbounded."""

    start: int | None = None
    end: int | None = None

    def to_slice(self) -> slice:
        """Return the range as a slice over a sequence of lines."""
        return slice(self.start, self.end)


class LinkKind(enum.Enum):
    """The kinds of helper link recognised in chapter text."""

    ESCAPED = "escaped"
    INCLUDE = "include"
    PLAYGROUND = "playground"
    RUSTDOC_INCLUDE = "rustdoc_include"
    TITLE = "title"


@dataclass(frozen=True)
class LinkType:
    """What a link does, with the target and options it carries."""

    kind: LinkKind
    path: Path | None = None
    range_or_anchor: LineRange | str | None = None
    properties: tuple[str, ...] = ()
    title: str | None = None

    def relative_path(self, base: str | os.PathLike) -> Path | None:
        """Directory of the linked file under `base`, or None for links without a file."""
        if self.kind in (LinkKind.ESCAPED, LinkKind.TITLE) or self.path is None:
            return None
        return (Path(base) / self.path).parent


@dataclass(frozen=True)
class Link:
    """A link found in some text, with its position and original text."""

    start_index: int
    end_index: int
    link_type: LinkType
    link_text: str


def _parse_usize(text: str) -> int | None:
    if _UNSIGNED.fullmatch(text) is None:
        return None
    value = int(text)
    return value if value <= _USIZE_MAX else None


def parse_range_or_anchor(parts: str | None) -> LineRange | str:
    """Parse the part after the path: `start:end` line numbers or an anchor name."""
    pieces = (parts or "").split(":", 2)
    first = pieces[0]
    value = _parse_usize(first)
    if value is not None:
        # line numbers begin at 1
        start: int | None = max(value - 1, 0)
    elif first == "":
        start = None
    else:
        return first

    end_text = pieces[1] if len(pieces) > 1 else None
    end = _parse_usize(end_text) if end_text is not None else None

    if start is not None:
        if end_text is None:
            return LineRange(start, start + 1)
        return LineRange(start, end)
    if end is not None:
        return LineRange(None, end)
    return LineRange()


def _split_path(path: str) -> tuple[Path, LineRange | str]:
    file_part, sep, rest = path.partition(":")
    return Path(file_part), parse_range_or_anchor(rest if sep else None)


def parse_include_path(path: str) -> LinkType:
    """Parse the target of an `include` link."""
    file_path, target = _split_path(path)
    return LinkType(LinkKind.INCLUDE, path=file_path, range_or_anchor=target)


def parse_rustdoc_include_path(path: str) -> LinkType:
    """Parse the target of a `rustdoc_include` link."""
    file_path, target = _split_path(path)
    return LinkType(LinkKind.RUSTDOC_INCLUDE, path=file_path, range_or_anchor=target)


def _link_type_from_match(match: re.Match) -> LinkType | None:
    typ, rest = match.group(1), match.group(2)
    if typ is not None and rest is not None:
        if typ == "title":
            return LinkType(LinkKind.TITLE, title=rest)
        words = rest.split()
        if not words:
            return None
        file_arg, props = words[0], tuple(words[1:])
        if typ == "include":
            return parse_include_path(file_arg)
        if typ == "playground":
            return LinkType(LinkKind.PLAYGROUND, path=Path(file_arg), properties=props)
        if typ == "playpen":
            log.warning(
                "the {{#playpen}} expression has been renamed to {{#playground}}, "
                "please update your book to use the new name"
            )
            return LinkType(LinkKind.PLAYGROUND, path=Path(file_arg), properties=props)
        if typ == "rustdoc_include":
            return parse_rustdoc_include_path(file_arg)
        return None
    if typ is None and rest is None and match.group(0).startswith(_ESCAPE_CHAR):
        return LinkType(LinkKind.ESCAPED)
    return None


def find_links(contents: str) -> Iterator[Link]:
    """Yield every recognised link in `contents`, in order of appearance."""
    for match in _LINK_RE.finditer(contents):
        link_type = _link_type_from_match(match)
        if link_type is not None:
            yield Link(match.start(), match.end(), link_type, match.group(0))