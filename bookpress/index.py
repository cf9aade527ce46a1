"""Preprocessor turning README chapters into index pages."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from bookpress.preprocessor import (
    Chapter,
    Preprocessor,
    PreprocessorContext,
    iter_chapters,
)

__all__ = ["IndexPreprocessor", "is_readme_file"]

log = logging.getLogger(__name__)

_README = re.compile(r"readme", re.IGNORECASE)


def is_readme_file(path: str | os.PathLike) -> bool:
    """Whether the file stem is exactly `readme`, ignoring case."""
    return _README.fullmatch(Path(path).stem) is not None


def _warn_readme_name_conflict(readme_path: Path, index_path: Path) -> None:
    file_name = readme_path.name
    parent_dir = index_path.parent
    log.warning(
        "It seems that there are both %r and index.md under \"%s\".",
        file_name,
        parent_dir,
    )
    log.warning(
        "%r is converted into index.html by default. It may cause", file_name
    )
    log.warning("unexpected behavior if putting both files under the same directory.")
    log.warning("To solve the warning, try to rearrange the book structure or disable")
    log.warning("the \"index\" preprocessor to stop the conversion.")


class IndexPreprocessor(Preprocessor):
    """Renames `README.md` chapters to `index.md`, the usual index page."""

    name = "index"

    def run(self, ctx: PreprocessorContext, book: list[Chapter]) -> list[Chapter]:
        """Rename every README chapter path to `index.md` in place."""
        source_dir = ctx.root / ctx.config.book.src
        for chapter in iter_chapters(book):
            path = chapter.path
            if path is None or not is_readme_file(path):
                continue
            renamed = path.with_name("index.md")
            index_md = source_dir / renamed
            if index_md.exists():
                _warn_readme_name_conflict(path, index_md)
            chapter.path = renamed
        return book