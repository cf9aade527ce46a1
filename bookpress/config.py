"""The book configuration: typed sections plus free-form tables for plugins."""

from __future__ import annotations

import copy
import datetime
import enum
import json
import logging
import os
import tomllib
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from bookpress.settings import (
    BookConfig,
    BuildConfig,
    HtmlConfig,
    RustConfig,
    SettingsError,
)

__all__ = ["ConfigError", "Config", "parse_env"]

log = logging.getLogger(__name__)

_ENV_PREFIX = "MDBOOK_"
_LEGACY_ITEMS = (
    "title",
    "authors",
    "source",
    "description",
    "output.html.destination",
)
_MISSING = object()


class ConfigError(ValueError):
    """Raised when the configuration cannot be loaded or updated."""


def parse_env(key: str) -> str | None:
    """Turn an environment variable name into a dotted config key, or None."""
    if not key.startswith(_ENV_PREFIX):
        return None
    return key[len(_ENV_PREFIX):].lower().replace("__", ".").replace("_", "-")


def _read(table: Any, key: str) -> Any:
    current = table
    for part in key.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def _insert(table: MutableMapping, key: str, value: Any) -> None:
    *parents, last = key.split(".")
    current = table
    for part in parents:
        child = current.get(part)
        if not isinstance(child, MutableMapping):
            child = {}
            current[part] = child
        current = child
    current[last] = value


def _delete(table: MutableMapping, key: str) -> Any:
    *parents, last = key.split(".")
    current = _read(table, ".".join(parents)) if parents else table
    if not isinstance(current, MutableMapping):
        return None
    return current.pop(last, None)


def _to_toml(value: Any) -> Any:
    """Convert a Python value into something a TOML document can hold."""
    if isinstance(value, (bool, int, float, str, datetime.date, datetime.time)):
        return value
    if isinstance(value, os.PathLike):
        return os.fspath(value)
    if isinstance(value, enum.Enum):
        return _to_toml(value.value)
    if hasattr(value, "to_dict") and callable(value.to_dict):
        return _to_toml(value.to_dict())
    if isinstance(value, Mapping):
        table = {}
        for name, item in value.items():
            if isinstance(name, os.PathLike):
                name = os.fspath(name)
            if not isinstance(name, str):
                raise ConfigError(
                    "Unable to represent the item as a TOML value: "
                    f"table keys must be strings, found {type(name).__name__}"
                )
            table[name] = _to_toml(item)
        return table
    if isinstance(value, (list, tuple)):
        return [_to_toml(item) for item in value]
    raise ConfigError(
        "Unable to represent the item as a TOML value: "
        f"unsupported type {type(value).__name__}"
    )


def _is_legacy_format(table: Mapping) -> bool:
    return any(_read(table, item) is not None for item in _LEGACY_ITEMS)


def _update_section(section: Any, key: str, value: Any) -> Any:
    """Return `section` with `key` set to `value`, or unchanged if that is invalid."""
    raw = section.to_dict()
    _insert(raw, key, value)
    try:
        return type(section).from_dict(raw)
    except SettingsError:
        return section


@dataclass
class Config:
    """In-memory form of `book.toml`: known sections plus arbitrary tables."""

    book: BookConfig = field(default_factory=BookConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    rust: RustConfig = field(default_factory=RustConfig)
    _rest: dict = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def from_str(cls, src: str) -> "Config":
        """Load a configuration from TOML text."""
        try:
            raw = tomllib.loads(src)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid configuration file: {exc}") from exc
        if _is_legacy_format(raw):
            log.warning("It looks like you are using the legacy book.toml format.")
            log.warning(
                "Move top level entries like `title`, `authors` and `description` "
                "under a `[book]` table, and `output.html.destination` to "
                "`build.build-dir`."
            )
            return cls._from_legacy(raw)
        try:
            book = BookConfig.from_dict(raw.pop("book", {}))
            build = BuildConfig.from_dict(raw.pop("build", {}))
            rust = RustConfig.from_dict(raw.pop("rust", {}))
        except SettingsError as exc:
            raise ConfigError(f"Invalid configuration file: {exc}") from exc
        cfg = cls(book=book, build=build, rust=rust)
        cfg._rest = raw
        return cfg

    @classmethod
    def from_disk(cls, config_file) -> "Config":
        """Load the configuration file from disk."""
        try:
            with open(config_file, "rb") as handle:
                data = handle.read()
        except OSError as exc:
            raise ConfigError(
                f"Unable to open the configuration file: {exc}"
            ) from exc
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ConfigError(f"Couldn't read the file: {exc}") from exc
        return cls.from_str(text)

    @classmethod
    def _from_legacy(cls, table: dict) -> "Config":
        cfg = cls()

        title = table.pop("title", _MISSING)
        if isinstance(title, str):
            cfg.book.title = title
        authors = table.pop("authors", _MISSING)
        if isinstance(authors, list) and all(isinstance(a, str) for a in authors):
            cfg.book.authors = list(authors)
        source = table.pop("source", _MISSING)
        if isinstance(source, str):
            cfg.book.src = Path(source)
        description = table.pop("description", _MISSING)
        if isinstance(description, str):
            cfg.book.description = description

        destination = _delete(table, "output.html.destination")
        if isinstance(destination, str):
            cfg.build.build_dir = Path(destination)

        cfg._rest = table
        return cfg

    def update_from_env(self, environ=None) -> None:
        """Apply overrides from `MDBOOK_*` variables, values parsed as JSON when possible."""
        log.debug("Updating the config from environment variables")
        if environ is None:
            environ = os.environ

        def reject_constant(name: str) -> Any:
            raise ValueError(name)

        for name, raw_value in list(environ.items()):
            key = parse_env(name)
            if key is None:
                continue
            log.debug("%s => %s", key, raw_value)
            try:
                value = json.loads(raw_value, parse_constant=reject_constant)
            except ValueError:
                value = raw_value

            if key in ("book", "build") and isinstance(value, dict):
                for sub_key, item in value.items():
                    self.set(f"{key}.{sub_key}", item)
                return

            self.set(key, value)

    def get(self, key: str) -> Any:
        """Fetch an item by dotted key; the returned value may be mutated in place."""
        return _read(self._rest, key)

    def get_deserialized(self, name: str) -> Any:
        """Return a copy of the item at `name`, raising if it is not present."""
        value = self.get(name)
        if value is None:
            raise ConfigError(f"Key not found, {name!r}")
        return copy.deepcopy(value)

    def set(self, index: str, value: Any) -> None:
        """Set a config key, clobbering any existing values along the way."""
        value = _to_toml(value)
        if index.startswith("book."):
            self.book = _update_section(self.book, index[len("book."):], value)
        elif index.startswith("build."):
            self.build = _update_section(self.build, index[len("build."):], value)
        else:
            _insert(self._rest, index, value)

    def get_renderer(self, index: str) -> dict | None:
        """Return the table for a renderer, if there is one."""
        table = self.get(f"output.{index}")
        return table if isinstance(table, dict) else None

    def get_preprocessor(self, index: str) -> dict | None:
        """Return the table for a preprocessor, if there is one."""
        table = self.get(f"preprocessor.{index}")
        return table if isinstance(table, dict) else None

    def html_config(self) -> HtmlConfig | None:
        """Return the HTML renderer's settings, or None if absent or invalid."""
        raw = self.get("output.html")
        if raw is None:
            return None
        try:
            return HtmlConfig.from_dict(raw)
        except SettingsError as exc:
            log.error("Parsing configuration [output.html]: %s", exc)
            return None

    def to_dict(self) -> dict:
        """Return the whole configuration as a TOML-ready table."""
        table = copy.deepcopy(self._rest)
        table["book"] = self.book.to_dict()
        if self.build != BuildConfig():
            table["build"] = self.build.to_dict()
        if self.rust != RustConfig():
            table["rust"] = self.rust.to_dict()
        return table