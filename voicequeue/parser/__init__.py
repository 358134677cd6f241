"""
Input loaders for voicequeue.

Supported formats:
- EPUB (.epub)
- Plain text (.txt)
- Markdown (.md)
"""

from pathlib import Path

from voicequeue.parser.epub import parse_epub
from voicequeue.parser.text import parse_text

TEXT_SUFFIXES = (".txt", ".md", ".markdown")


def load_source(path: Path) -> tuple[dict, str]:
    """
    Load any supported input file as (metadata, text).

    EPUB sections are joined with blank lines.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".epub":
        metadata, sections = parse_epub(path)
        return metadata, "\n\n".join(sections)
    if suffix in TEXT_SUFFIXES:
        return parse_text(path)
    raise ValueError(
        f"Unsupported input format: {suffix or path.name}. "
        f"Supported: .epub, {', '.join(TEXT_SUFFIXES)}"
    )


__all__ = ["load_source", "parse_epub", "parse_text"]
