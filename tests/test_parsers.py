"""Tests for text, Markdown and EPUB loaders."""

from pathlib import Path

import pytest

from voicequeue.parser import load_source
from voicequeue.parser.epub import html_to_text, parse_epub
from voicequeue.parser.text import extract_frontmatter, parse_text, strip_markdown


class TestHtmlToText:
    def test_simple_paragraph(self):
        assert html_to_text("<p>Hello world.</p>") == "Hello world."

    def test_paragraphs_separated(self):
        text = html_to_text("<p>First paragraph.</p><p>Second paragraph.</p>")
        assert text == "First paragraph.\n\nSecond paragraph."

    def test_strips_scripts_and_styles(self):
        html = "<p>Text</p><script>alert('bad')</script><style>p {color: red}</style><p>More</p>"
        text = html_to_text(html)
        assert "alert" not in text
        assert "color" not in text
        assert "More" in text

    def test_inline_markup_kept_inline(self):
        assert html_to_text("<p>A <em>very</em> good day.</p>") == "A very good day."


class TestFrontmatter:
    def test_extracts_metadata(self):
        meta, rest = extract_frontmatter('---\ntitle: "My Story"\nauthor: Rumi\n---\nBody text.')
        assert meta == {"title": "My Story", "author": "Rumi"}
        assert rest == "Body text."

    def test_no_frontmatter(self):
        meta, rest = extract_frontmatter("Just text.")
        assert meta == {}
        assert rest == "Just text."


class TestStripMarkdown:
    def test_headings_emphasis_links(self):
        text = "# Title\nSome **bold** and _soft_ words, see [the site](http://x)."
        assert strip_markdown(text) == "Title\nSome bold and soft words, see the site."


class TestParseText:
    def test_txt(self, tmp_path: Path):
        path = tmp_path / "story.txt"
        path.write_text("  আমি ভাত খাই।  \n", encoding="utf-8")
        meta, text = parse_text(path)
        assert meta["title"] == "story"
        assert text == "আমি ভাত খাই।"

    def test_markdown_with_frontmatter(self, tmp_path: Path):
        path = tmp_path / "notes.md"
        path.write_text("---\ntitle: Notes\n---\n## Part\nHello *there*.", encoding="utf-8")
        meta, text = parse_text(path)
        assert meta["title"] == "Notes"
        assert text == "Part\nHello there."

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            parse_text(tmp_path / "nope.txt")


def _write_epub(path: Path) -> None:
    from ebooklib import epub

    book = epub.EpubBook()
    book.set_identifier("voicequeue-test")
    book.set_title("Test Book")
    book.set_language("en")
    book.add_author("A. Writer")

    chapters = []
    for i, body in enumerate(["<p>First chapter text.</p>", "<p>Second chapter text.</p>"], 1):
        chapter = epub.EpubHtml(title=f"Chapter {i}", file_name=f"ch{i}.xhtml", lang="en")
        chapter.content = f"<html><body>{body}</body></html>"
        book.add_item(chapter)
        chapters.append(chapter)

    book.toc = chapters
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = chapters
    epub.write_epub(str(path), book)


class TestParseEpub:
    def test_sections_in_spine_order(self, tmp_path: Path):
        path = tmp_path / "book.epub"
        _write_epub(path)

        meta, sections = parse_epub(path)

        assert meta["title"] == "Test Book"
        assert meta["author"] == "A. Writer"
        assert sections == ["First chapter text.", "Second chapter text."]

    def test_min_words_filter(self, tmp_path: Path):
        path = tmp_path / "book.epub"
        _write_epub(path)
        _, sections = parse_epub(path, min_section_words=10)
        assert sections == []

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            parse_epub(tmp_path / "nope.epub")


class TestLoadSource:
    def test_epub_sections_joined(self, tmp_path: Path):
        path = tmp_path / "book.epub"
        _write_epub(path)
        _, text = load_source(path)
        assert text == "First chapter text.\n\nSecond chapter text."

    def test_text(self, tmp_path: Path):
        path = tmp_path / "a.txt"
        path.write_text("Hi.", encoding="utf-8")
        assert load_source(path) == ({"title": "a"}, "Hi.")

    def test_unsupported(self, tmp_path: Path):
        with pytest.raises(ValueError, match="Unsupported input format"):
            load_source(tmp_path / "a.pdf")
