"""
EPUB loader for voicequeue.

Extracts reading-order text and metadata from EPUB files using ebooklib.
"""

import logging
import re
from html.parser import HTMLParser
from io import StringIO
from pathlib import Path

logger = logging.getLogger("voicequeue.parser")


class HTMLTextExtractor(HTMLParser):
    """Plain text from XHTML, one blank line between block elements."""

    BLOCK_TAGS = {
        "p", "div", "h1", "h2", "h3", "h4", "h5", "h6",
        "li", "tr", "blockquote", "pre", "br", "hr",
    }

    SKIP_TAGS = {"script", "style", "head", "nav", "footer"}

    def __init__(self):
        super().__init__()
        self.output = StringIO()
        self.skip_depth = 0
        self._at_block = False

    def handle_starttag(self, tag: str, attrs: list) -> None:
        if tag in self.SKIP_TAGS:
            self.skip_depth += 1
        elif tag in self.BLOCK_TAGS:
            self._at_block = True

    def handle_endtag(self, tag: str) -> None:
        if tag in self.SKIP_TAGS:
            self.skip_depth = max(0, self.skip_depth - 1)
        elif tag in self.BLOCK_TAGS:
            self._at_block = True

    def handle_data(self, data: str) -> None:
        if self.skip_depth > 0:
            return
        words = " ".join(data.split())
        if not words:
            return
        if self._at_block and self.output.tell():
            self.output.write("\n\n")
        self._at_block = False
        self.output.write(words + " ")

    def get_text(self) -> str:
        text = re.sub(r" +\n", "\n", self.output.getvalue())
        text = re.sub(r" +", " ", text)
        return text.strip()


def html_to_text(html_content: str) -> str:
    """Convert an XHTML document to paragraph-separated plain text."""
    extractor = HTMLTextExtractor()
    extractor.feed(html_content)
    extractor.close()
    return extractor.get_text()


def parse_epub(path: Path, min_section_words: int = 1) -> tuple[dict, list[str]]:
    """
    Load the text sections of an EPUB in spine order.

    Args:
        path: Path to EPUB file
        min_section_words: Sections with fewer words are skipped

    Returns:
        Tuple of (metadata dict, list of section texts)

    Raises:
        ImportError: If ebooklib is not installed
        FileNotFoundError: If file doesn't exist
    """
    try:
        import ebooklib
        from ebooklib import epub
    except ImportError:
        raise ImportError(
            "ebooklib is required for EPUB input. "
            "Install with: pip install ebooklib"
        )

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"EPUB not found: {path}")

    book = epub.read_epub(str(path))

    metadata = {}
    for key in ("title", "creator", "language"):
        values = book.get_metadata("DC", key)
        if values:
            metadata["author" if key == "creator" else key] = values[0][0]
    metadata.setdefault("title", path.stem)

    sections = []
    for spine_item in book.spine:
        item_id = spine_item[0] if isinstance(spine_item, tuple) else spine_item
        item = book.get_item_with_id(item_id)
        if item is None or item.get_type() != ebooklib.ITEM_DOCUMENT:
            continue

        content = item.get_content()
        if isinstance(content, bytes):
            content = content.decode("utf-8", errors="replace")

        text = html_to_text(content)
        word_count = len(text.split())
        if word_count < min_section_words:
            logger.info(
                f"Skipping short section: {item.get_name()!r} "
                f"({word_count} words < {min_section_words} threshold)"
            )
            continue
        sections.append(text)

    logger.info(f"PARSE_EPUB: path={path} sections={len(sections)}")
    return metadata, sections
