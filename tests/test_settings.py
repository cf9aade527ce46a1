from pathlib import Path

import pytest

from bookpress.settings import (
    BookConfig,
    BuildConfig,
    Fold,
    HtmlConfig,
    Playground,
    Print,
    RustConfig,
    RustEdition,
    Search,
    SettingsError,
)

COMPLEX_BOOK = {
    "title": "Some Book",
    "authors": ["Jane Doe <jane@example.com>"],
    "description": "A completely useless book",
    "multilingual": True,
    "src": "source",
    "language": "ja",
}

COMPLEX_HTML = {
    "theme": "./themedir",
    "default-theme": "rust",
    "curly-quotes": True,
    "google-analytics": "123456",
    "additional-css": ["./foo/bar/baz.css"],
    "git-repository-url": "https://example.com/",
    "git-repository-icon": "fa-code-fork",
    "playground": {"editable": True, "editor": "ace"},
    "redirect": {
        "index.html": "overview.html",
        "nexted/page.md": "https://example.com/page",
    },
}


def test_load_complex_book_section():
    got = BookConfig.from_dict(COMPLEX_BOOK)
    assert got == BookConfig(
        title="Some Book",
        authors=["Jane Doe <jane@example.com>"],
        description="A completely useless book",
        multilingual=True,
        src=Path("source"),
        language="ja",
    )


def test_load_complex_build_section():
    got = BuildConfig.from_dict(
        {"build-dir": "outputs", "create-missing": False, "use-default-preprocessors": True}
    )
    assert got == BuildConfig(
        build_dir=Path("outputs"), create_missing=False, use_default_preprocessors=True
    )


def test_load_complex_html_section():
    got = HtmlConfig.from_dict(COMPLEX_HTML)
    expected = HtmlConfig(
        curly_quotes=True,
        google_analytics="123456",
        additional_css=[Path("./foo/bar/baz.css")],
        theme=Path("./themedir"),
        default_theme="rust",
        playground=Playground(editable=True, copyable=True, copy_js=True, line_numbers=False),
        git_repository_url="https://example.com/",
        git_repository_icon="fa-code-fork",
        redirect={
            "index.html": "overview.html",
            "nexted/page.md": "https://example.com/page",
        },
    )
    assert got == expected


def test_legacy_style_html_section_ignores_unknown_keys():
    got = HtmlConfig.from_dict(
        {
            "destination": "my-book",
            "theme": "my-theme",
            "curly-quotes": True,
            "google-analytics": "123456",
            "additional-css": ["custom.css", "custom2.css"],
            "additional-js": ["custom.js"],
        }
    )
    assert got == HtmlConfig(
        theme=Path("my-theme"),
        curly_quotes=True,
        google_analytics="123456",
        additional_css=[Path("custom.css"), Path("custom2.css")],
        additional_js=[Path("custom.js")],
    )


def test_book_defaults():
    book = BookConfig()
    assert book.title is None
    assert book.authors == []
    assert book.src == Path("src")
    assert book.multilingual is False
    assert book.language == "en"


def test_partial_book_keeps_defaults():
    got = BookConfig.from_dict({"title": "Doc", "src": "./source"})
    assert got == BookConfig(title="Doc", src=Path("./source"))
    assert got.language == "en"


def test_build_defaults():
    assert BuildConfig() == BuildConfig(Path("book"), True, True)


@pytest.mark.parametrize(
    "value, edition",
    [("2015", RustEdition.E2015), ("2018", RustEdition.E2018), ("2021", RustEdition.E2021)],
)
def test_editions(value, edition):
    assert RustConfig.from_dict({"edition": value}) == RustConfig(edition=edition)


def test_rust_default_has_no_edition():
    assert RustConfig.from_dict({}).edition is None


def test_invalid_rust_edition():
    with pytest.raises(SettingsError, match="1999"):
        RustConfig.from_dict({"edition": "1999"})


def test_invalid_language_type():
    with pytest.raises(SettingsError, match="language"):
        BookConfig.from_dict({"title": "Doc", "language": ["en", "pt-br"]})


def test_invalid_title_type():
    with pytest.raises(SettingsError, match="title"):
        BookConfig.from_dict({"title": 20})


def test_invalid_build_dir_type():
    with pytest.raises(SettingsError, match="build-dir"):
        BuildConfig.from_dict({"build-dir": 99, "create-missing": False})


def test_non_table_input_is_rejected():
    with pytest.raises(SettingsError):
        BookConfig.from_dict(["not", "a", "table"])


def test_html_default_values():
    html = HtmlConfig()
    assert html.copy_fonts is True
    assert html.print == Print(enable=True, page_break=True)
    assert html.playground == Playground(False, True, True, False)
    assert html.fold == Fold(enable=False, level=0)
    assert html.search is None
    assert html.input_404 is None


def test_print_requires_all_fields():
    with pytest.raises(SettingsError, match="page-break"):
        Print.from_dict({"enable": False})
    assert Print.from_dict({"enable": False, "page-break": False}) == Print(False, False)


def test_playpen_is_accepted_as_playground():
    got = HtmlConfig.from_dict({"playpen": {"editable": True}})
    assert got.playground.editable is True


def test_playpen_and_playground_together_is_error():
    with pytest.raises(SettingsError):
        HtmlConfig.from_dict({"playpen": {}, "playground": {}})


def test_search_defaults_and_override():
    got = HtmlConfig.from_dict({"search": {"limit-results": 10}}).search
    assert got == Search(limit_results=10)
    assert got.teaser_word_count == 30
    assert got.boost_title == 2
    assert got.heading_split_level == 3


def test_u8_overflow_rejected():
    with pytest.raises(SettingsError):
        Fold.from_dict({"level": 256})
    with pytest.raises(SettingsError):
        Fold.from_dict({"level": True})


def test_nested_error_mentions_key():
    with pytest.raises(SettingsError, match="fold"):
        HtmlConfig.from_dict({"fold": {"enable": "yes"}})


def test_theme_dir_default_and_custom():
    root = Path("/books/root")
    assert HtmlConfig().theme_dir(root) == root / "theme"
    assert HtmlConfig(theme=Path("custom")).theme_dir(root) == root / "custom"


def test_book_to_dict_skips_unset_options():
    assert BookConfig().to_dict() == {
        "authors": [],
        "src": "src",
        "multilingual": False,
        "language": "en",
    }


def test_build_to_dict_uses_kebab_case():
    assert BuildConfig(build_dir=Path("out")).to_dict() == {
        "build-dir": "out",
        "create-missing": True,
        "use-default-preprocessors": True,
    }


def test_rust_to_dict_writes_edition_string():
    assert RustConfig(edition=RustEdition.E2018).to_dict() == {"edition": "2018"}
    assert RustConfig().to_dict() == {}


def test_html_round_trip():
    original = HtmlConfig.from_dict(COMPLEX_HTML)
    assert HtmlConfig.from_dict(original.to_dict()) == original


def test_book_round_trip():
    original = BookConfig.from_dict(COMPLEX_BOOK)
    assert BookConfig.from_dict(original.to_dict()) == original