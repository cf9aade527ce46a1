"""Book chapters, the context handed to preprocessors, and the preprocessor interface."""

from __future__ import annotations

import abc
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from bookpress.config import Config
from bookpress.settings import BookConfig, BuildConfig, RustConfig, SettingsError

__all__ = [
    "VERSION",
    "Chapter",
    "PreprocessorContext",
    "Preprocessor",
    "iter_chapters",
]

VERSION = "0.1.0"
"""The version reported to preprocessors so they can check compatibility."""


def _expect(value: Any, kind: type | tuple[type, ...], what: str) -> Any:
    if isinstance(value, bool) and bool not in (kind if isinstance(kind, tuple) else (kind,)):
        raise ValueError(f"invalid type for `{what}`: found bool")
    if not isinstance(value, kind):
        raise ValueError(
            f"invalid type for `{what}`: found {type(value).__name__}"
        )
    return value


@dataclass
class Chapter:
    """A chapter of the book, with its nested sub-chapters."""

    name: str
    content: str = ""
    number: list[int] | None = None
    path: Path | None = None
    sub_items: list[Chapter] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.path is not None:
            self.path = Path(self.path)

    def iter_chapters(self) -> Iterator[Chapter]:
        """Yield this chapter and then every nested chapter, depth first."""
        yield self
        for child in self.sub_items:
            yield from child.iter_chapters()

    def to_dict(self) -> dict[str, Any]:
        """Return the chapter as a JSON-ready mapping."""
        return {
            "name": self.name,
            "content": self.content,
            "number": list(self.number) if self.number is not None else None,
            "path": str(self.path) if self.path is not None else None,
            "sub_items": [child.to_dict() for child in self.sub_items],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Chapter:
        """Build a chapter from a mapping produced by `to_dict`."""
        _expect(data, Mapping, "chapter")
        if "name" not in data:
            raise ValueError("missing field `name`")
        name = _expect(data["name"], str, "name")
        content = _expect(data.get("content", ""), str, "content")
        number = data.get("number")
        if number is not None:
            _expect(number, list, "number")
            number = [_expect(part, int, "number") for part in number]
        path = data.get("path")
        if path is not None:
            path = Path(_expect(path, str, "path"))
        sub_items = _expect(data.get("sub_items", []), list, "sub_items")
        return cls(
            name=name,
            content=content,
            number=number,
            path=path,
            sub_items=[cls.from_dict(child) for child in sub_items],
        )


def iter_chapters(book: Iterable[Chapter]) -> Iterator[Chapter]:
    """Yield every chapter in the book, depth first, in reading order."""
    for chapter in book:
        yield from chapter.iter_chapters()


def _config_from_dict(data: Any) -> Config:
    _expect(data, Mapping, "config")
    rest = dict(data)
    try:
        cfg = Config(
            book=BookConfig.from_dict(rest.pop("book", {})),
            build=BuildConfig.from_dict(rest.pop("build", {})),
            rust=RustConfig.from_dict(rest.pop("rust", {})),
        )
    except SettingsError as exc:
        raise ValueError(f"invalid configuration: {exc}") from exc
    for key, value in rest.items():
        cfg.set(key, value)
    return cfg


@dataclass
class PreprocessorContext:
    """Extra information given to a preprocessor while it processes a book."""

    root: Path
    config: Config
    renderer: str
    mdbook_version: str = VERSION
    chapter_titles: dict[Path, str] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self.root = Path(self.root)

    def to_dict(self) -> dict[str, Any]:
        """Return the context as a JSON-ready mapping; chapter titles are not included."""
        return {
            "root": str(self.root),
            "config": self.config.to_dict(),
            "renderer": self.renderer,
            "mdbook_version": self.mdbook_version,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PreprocessorContext:
        """Build a context from a mapping produced by `to_dict`."""
        _expect(data, Mapping, "context")
        for key in ("root", "config", "renderer", "mdbook_version"):
            if key not in data:
                raise ValueError(f"missing field `{key}`")
        return cls(
            root=Path(_expect(data["root"], str, "root")),
            config=_config_from_dict(data["config"]),
            renderer=_expect(data["renderer"], str, "renderer"),
            mdbook_version=_expect(data["mdbook_version"], str, "mdbook_version"),
        )


class Preprocessor(abc.ABC):
    """An operation run on a loaded book before it is rendered.

    Subclasses provide a `name` and implement `run`.
    """

    name: str

    @abc.abstractmethod
    def run(self, ctx: PreprocessorContext, book: list[Chapter]) -> list[Chapter]:
        """Process the book and return the updated book."""

    def supports_renderer(self, renderer: str) -> bool:
        """Whether this preprocessor works with `renderer`; true by default."""
        return True