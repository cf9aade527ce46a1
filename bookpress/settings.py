"""Typed sections of the book configuration and their table conversions."""

from __future__ import annotations

import enum
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, ClassVar

__all__ = [
    "SettingsError",
    "RustEdition",
    "BookConfig",
    "BuildConfig",
    "RustConfig",
    "Print",
    "Fold",
    "Playground",
    "Search",
    "HtmlConfig",
]


class SettingsError(ValueError):
    """Raised when a configuration table cannot be turned into a section."""


Converter = Callable[[Any, str], Any]


def _kind(value: Any) -> str:
    return type(value).__name__


def _string(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise SettingsError(
            f"invalid type for `{key}`: expected a string, found {_kind(value)}"
        )
    return value


def _boolean(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise SettingsError(
            f"invalid type for `{key}`: expected a boolean, found {_kind(value)}"
        )
    return value


def _uint(bits: int) -> Converter:
    limit = (1 << bits) - 1

    def convert(value: Any, key: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise SettingsError(
                f"invalid type for `{key}`: expected an integer, found {_kind(value)}"
            )
        if not 0 <= value <= limit:
            raise SettingsError(
                f"invalid value for `{key}`: {value} is not in the range 0..={limit}"
            )
        return value

    return convert


def _path(value: Any, key: str) -> Path:
    if isinstance(value, (str, os.PathLike)):
        return Path(value)
    raise SettingsError(
        f"invalid type for `{key}`: expected a path, found {_kind(value)}"
    )


def _optional(convert: Converter) -> Converter:
    def wrapped(value: Any, key: str) -> Any:
        return None if value is None else convert(value, key)

    return wrapped


def _list_of(convert: Converter) -> Converter:
    def wrapped(value: Any, key: str) -> list:
        if not isinstance(value, (list, tuple)):
            raise SettingsError(
                f"invalid type for `{key}`: expected an array, found {_kind(value)}"
            )
        return [convert(item, f"{key}[{pos}]") for pos, item in enumerate(value)]

    return wrapped


def _string_map(value: Any, key: str) -> dict[str, str]:
    if not isinstance(value, Mapping):
        raise SettingsError(
            f"invalid type for `{key}`: expected a table, found {_kind(value)}"
        )
    return {
        _string(name, key): _string(target, f"{key}.{name}")
        for name, target in value.items()
    }


def _nested(section: type) -> Converter:
    def wrapped(value: Any, key: str) -> Any:
        try:
            return section.from_dict(value)
        except SettingsError as exc:
            raise SettingsError(f"in `{key}`: {exc}") from exc

    return wrapped


def _edition(value: Any, key: str) -> "RustEdition":
    if not isinstance(value, str):
        raise SettingsError(
            f"invalid type for `{key}`: expected a string, found {_kind(value)}"
        )
    try:
        return RustEdition(value)
    except ValueError:
        names = ", ".join(f"`{e.value}`" for e in RustEdition)
        raise SettingsError(
            f"unknown variant `{value}` for `{key}`, expected one of {names}"
        ) from None


def _dump(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return value.to_dict()
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, list):
        return [_dump(item) for item in value]
    if isinstance(value, dict):
        return {name: _dump(item) for name, item in value.items()}
    return value


def _load(cls: type, data: Any, schema: Mapping[str, Converter], all_required: bool = False):
    """Build a dataclass section from a kebab-case table."""
    if not isinstance(data, Mapping):
        raise SettingsError(
            f"expected a table for {cls.__name__}, found {_kind(data)}"
        )
    values = {}
    for spec in fields(cls):
        key = spec.name.replace("_", "-")
        if key in data:
            values[spec.name] = schema[spec.name](data[key], key)
        elif all_required:
            raise SettingsError(f"missing field `{key}`")
    return cls(**values)


def _store(section: Any) -> dict[str, Any]:
    """Return a dataclass section as a kebab-case table, leaving out unset options."""
    return {
        spec.name.replace("_", "-"): _dump(getattr(section, spec.name))
        for spec in fields(section)
        if getattr(section, spec.name) is not None
    }


class RustEdition(enum.Enum):
    """Language edition used for code snippets."""

    E2021 = "2021"
    E2018 = "2018"
    E2015 = "2015"


@dataclass
class BookConfig:
    """Metadata about the book, needed to load it from disk."""

    title: str | None = None
    authors: list[str] = field(default_factory=list)
    description: str | None = None
    src: Path = field(default_factory=lambda: Path("src"))
    multilingual: bool = False
    language: str | None = "en"

    _SCHEMA: ClassVar[dict[str, Converter]] = {
        "title": _optional(_string),
        "authors": _list_of(_string),
        "description": _optional(_string),
        "src": _path,
        "multilingual": _boolean,
        "language": _optional(_string),
    }

    @classmethod
    def from_dict(cls, data):
        """Build the section from a table; missing keys take their defaults."""
        return _load(cls, data, cls._SCHEMA)

    def to_dict(self) -> dict[str, Any]:
        """Return the section as a kebab-case table."""
        return _store(self)


@dataclass
class BuildConfig:
    """Settings for the build procedure."""

    build_dir: Path = field(default_factory=lambda: Path("book"))
    create_missing: bool = True
    use_default_preprocessors: bool = True

    _SCHEMA: ClassVar[dict[str, Converter]] = {
        "build_dir": _path,
        "create_missing": _boolean,
        "use_default_preprocessors": _boolean,
    }

    @classmethod
    def from_dict(cls, data):
        """Build the section from a table; missing keys take their defaults."""
        return _load(cls, data, cls._SCHEMA)

    def to_dict(self) -> dict[str, Any]:
        """Return the section as a kebab-case table."""
        return _store(self)


@dataclass
class RustConfig:
    """Settings for compiling code snippets."""

    edition: RustEdition | None = None

    _SCHEMA: ClassVar[dict[str, Converter]] = {
        "edition": _optional(_edition),
    }

    @classmethod
    def from_dict(cls, data):
        """Build the section from a table; missing keys take their defaults."""
        return _load(cls, data, cls._SCHEMA)

    def to_dict(self) -> dict[str, Any]:
        """Return the section as a kebab-case table, leaving out an unset edition."""
        return _store(self)


@dataclass
class Print:
    """How the print icon, print page and print stylesheet are rendered."""

    enable: bool = True
    page_break: bool = True

    _SCHEMA: ClassVar[dict[str, Converter]] = {
        "enable": _boolean,
        "page_break": _boolean,
    }

    @classmethod
    def from_dict(cls, data):
        """Build the section from a table; every key must be present."""
        return _load(cls, data, cls._SCHEMA, all_required=True)

    def to_dict(self) -> dict[str, Any]:
        """Return the section as a kebab-case table."""
        return _store(self)


@dataclass
class Fold:
    """How chapters in the sidebar are folded."""

    enable: bool = False
    level: int = 0

    _SCHEMA: ClassVar[dict[str, Converter]] = {
        "enable": _boolean,
        "level": _uint(8),
    }

    @classmethod
    def from_dict(cls, data):
        """Build the section from a table; missing keys take their defaults."""
        return _load(cls, data, cls._SCHEMA)

    def to_dict(self) -> dict[str, Any]:
        """Return the section as a kebab-case table."""
        return _store(self)


@dataclass
class Playground:
    """How the HTML renderer handles runnable snippets."""

    editable: bool = False
    copyable: bool = True
    copy_js: bool = True
    line_numbers: bool = False

    _SCHEMA: ClassVar[dict[str, Converter]] = {
        "editable": _boolean,
        "copyable": _boolean,
        "copy_js": _boolean,
        "line_numbers": _boolean,
    }

    @classmethod
    def from_dict(cls, data):
        """Build the section from a table; missing keys take their defaults."""
        return _load(cls, data, cls._SCHEMA)

    def to_dict(self) -> dict[str, Any]:
        """Return the section as a kebab-case table."""
        return _store(self)


@dataclass
class Search:
    """Settings of the HTML renderer's search feature."""

    enable: bool = True
    limit_results: int = 30
    teaser_word_count: int = 30
    use_boolean_and: bool = False
    boost_title: int = 2
    boost_hierarchy: int = 1
    boost_paragraph: int = 1
    expand: bool = True
    heading_split_level: int = 3
    copy_js: bool = True

    _SCHEMA: ClassVar[dict[str, Converter]] = {
        "enable": _boolean,
        "limit_results": _uint(32),
        "teaser_word_count": _uint(32),
        "use_boolean_and": _boolean,
        "boost_title": _uint(8),
        "boost_hierarchy": _uint(8),
        "boost_paragraph": _uint(8),
        "expand": _boolean,
        "heading_split_level": _uint(8),
        "copy_js": _boolean,
    }

    @classmethod
    def from_dict(cls, data):
        """Build the section from a table; missing keys take their defaults."""
        return _load(cls, data, cls._SCHEMA)

    def to_dict(self) -> dict[str, Any]:
        """Return the section as a kebab-case table."""
        return _store(self)


@dataclass
class HtmlConfig:
    """Settings of the HTML renderer."""

    theme: Path | None = None
    default_theme: str | None = None
    preferred_dark_theme: str | None = None
    curly_quotes: bool = False
    mathjax_support: bool = False
    copy_fonts: bool = True
    google_analytics: str | None = None
    additional_css: list[Path] = field(default_factory=list)
    additional_js: list[Path] = field(default_factory=list)
    fold: Fold = field(default_factory=Fold)
    playground: Playground = field(default_factory=Playground)
    print: Print = field(default_factory=Print)
    no_section_label: bool = False
    search: Search | None = None
    git_repository_url: str | None = None
    git_repository_icon: str | None = None
    input_404: str | None = None
    site_url: str | None = None
    cname: str | None = None
    edit_url_template: str | None = None
    livereload_url: str | None = None
    redirect: dict[str, str] = field(default_factory=dict)

    _SCHEMA: ClassVar[dict[str, Converter]] = {
        "theme": _optional(_path),
        "default_theme": _optional(_string),
        "preferred_dark_theme": _optional(_string),
        "curly_quotes": _boolean,
        "mathjax_support": _boolean,
        "copy_fonts": _boolean,
        "google_analytics": _optional(_string),
        "additional_css": _list_of(_path),
        "additional_js": _list_of(_path),
        "fold": _nested(Fold),
        "playground": _nested(Playground),
        "print": _nested(Print),
        "no_section_label": _boolean,
        "search": _optional(_nested(Search)),
        "git_repository_url": _optional(_string),
        "git_repository_icon": _optional(_string),
        "input_404": _optional(_string),
        "site_url": _optional(_string),
        "cname": _optional(_string),
        "edit_url_template": _optional(_string),
        "livereload_url": _optional(_string),
        "redirect": _string_map,
    }

    @classmethod
    def from_dict(cls, data):
        """Build the HTML settings, accepting `playpen` as the old name of `playground`."""
        if isinstance(data, Mapping) and "playpen" in data:
            if "playground" in data:
                raise SettingsError("duplicate field `playground`")
            data = {**data, "playground": data["playpen"]}
        return _load(cls, data, cls._SCHEMA)

    def to_dict(self) -> dict[str, Any]:
        """Return the settings as a kebab-case table, leaving out unset options."""
        return _store(self)

    def theme_dir(self, root) -> Path:
        """Return the theme directory under `root`, `theme` when none is set."""
        root = Path(root)
        return root / self.theme if self.theme is not None else root / "theme"