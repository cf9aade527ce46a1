# bookpress

Configuration handling and chapter preprocessing for books written as a
collection of markdown files. It has no dependencies outside the standard
library.

## Installing

    pip install .

To run the test suite:

    pip install ".[test]"
    pytest

## Configuration

A book is described by a `book.toml` file. `bookpress.config.Config` loads it
(`Config.from_str` for text, `Config.from_disk` for a file) and gives typed
access to the `[book]`, `[build]` and `[rust]` tables plus dotted-key access
to every other table:

```python
from bookpress.config import Config

cfg = Config.from_str('''
[book]
title = "My Book"
authors = ["Jane Doe"]

[other-table.foo]
bar = 123
''')

cfg.get("other-table.foo.bar")           # 123
cfg.set("output.html.theme", "./themes")
cfg.html_config().theme                  # Path("themes")
cfg.book.title                           # "My Book"
```

- `get(key)` returns the stored value (or `None`); it may be changed in place.
- `get_deserialized(name)` returns a copy and raises `ConfigError` when the
  key is absent.
- `set(index, value)` clobbers anything in the way. Keys under `book.` and
  `build.` update the typed sections; a value those sections reject is
  ignored.
- `get_renderer(name)` and `get_preprocessor(name)` return the
  `output.<name>` and `preprocessor.<name>` tables.
- `html_config()` returns an `HtmlConfig`, or `None` when `[output.html]` is
  missing or invalid.
- `to_dict()` returns the whole configuration as a TOML-ready table; the
  `[build]` and `[rust]` tables are only included when they differ from
  their defaults.

Invalid TOML, or wrongly typed values in the typed tables, raise
`ConfigError` with a message beginning "Invalid configuration file".

Older files that put `title`, `authors`, `source` and `description` at the
top level (and `destination` under `[output.html]`) are still accepted, with
a logged warning.

`Config.update_from_env(environ=None)` applies overrides from `MDBOOK_*`
variables, read from `os.environ` unless a mapping is given:
`MDBOOK_BOOK__TITLE` sets `book.title`, `MDBOOK_FOO_BAR` sets `foo-bar`.
Values are parsed as JSON where possible and used as plain strings
otherwise. `bookpress.config.parse_env` performs the name conversion.

The typed tables (`BookConfig`, `BuildConfig`, `RustConfig`, `HtmlConfig`,
`Playground`, `Search`, `Print`, `Fold`) and the `RustEdition` enum live in
`bookpress.settings`. Each has `from_dict` and `to_dict` working on
kebab-case tables; bad input raises `SettingsError`.

## Preprocessors

A book is a list of `bookpress.preprocessor.Chapter` objects, each with a
name, content, optional path and nested `sub_items`. A preprocessor takes a
`PreprocessorContext` and a book and returns the updated book.

- `bookpress.index.IndexPreprocessor` renames `README.md` chapters
  (any case, any extension) to `index.md`.
- `bookpress.links.LinkPreprocessor` expands `{{#include file}}`,
  `{{#rustdoc_include file}}`, `{{#playground file}}` and `{{#title ...}}`
  helpers, including line ranges (`file.rs:10:20`, `file.rs:10:`,
  `file.rs::20`) and anchors (`file.rs:anchor`). A leading backslash escapes
  a helper. Nested includes are followed up to ten levels deep. Titles set
  with `{{#title}}` are recorded in `ctx.chapter_titles`.
- `bookpress.command.CmdPreprocessor` runs an external program, sending the
  context and book to it as JSON on stdin and reading the processed book
  back from stdout. `supports_renderer` runs `<cmd> supports <renderer>`.
  Failures raise `PreprocessorError`.

```python
from bookpress.config import Config
from bookpress.links import LinkPreprocessor
from bookpress.preprocessor import Chapter, PreprocessorContext

ctx = PreprocessorContext(root="/path/to/book", config=Config(), renderer="html")
book = [Chapter(name="Intro", content="{{#include example.rs}}", path="intro.md")]
book = LinkPreprocessor().run(ctx, book)
```

The lower-level pieces are available too: `bookpress.linkparse` finds and
parses helper links (`find_links`, `parse_include_path`, ...), and
`bookpress.links` exposes `replace_all`, `render_link` and the
`take_lines` / `take_anchored_lines` family.

## What this package does not do

It handles configuration and preprocessing only. It does not read a
`SUMMARY.md` or load a book's chapters from disk, does not render HTML or any
other output, and has no command-line tool; building the list of chapters
and doing something with the result is up to the caller.