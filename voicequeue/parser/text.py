"""
Text/Markdown loader for voicequeue.

Reads plain text and Markdown files, stripping optional YAML-style
frontmatter and light Markdown markup that should not be spoken.
"""

import logging
import re
from pathlib import Path

logger = logging.getLogger("voicequeue.parser")

_HEADING = re.compile(r"^\s{0,3}#{1,6}\s+", re.MULTILINE)
_EMPHASIS = re.compile(r"(\*\*|__|\*|_)(\S(?:.*?\S)?)\1")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")


def extract_frontmatter(text: str) -> tuple[dict, str]:
    """
    Extract YAML frontmatter if present.

    Returns:
        Tuple of (metadata dict, remaining text)
    """
    metadata = {}

    if text.startswith("---"):
        end_match = re.search(r"\n---\s*\n", text[3:])
        if end_match:
            frontmatter = text[3:end_match.start() + 3]
            remaining = text[end_match.end() + 3:]

            # Simple key: value pairs only
            for line in frontmatter.split("\n"):
                if ":" in line:
                    key, value = line.split(":", 1)
                    metadata[key.strip().lower()] = value.strip().strip('"').strip("'")

            return metadata, remaining

    return metadata, text


def strip_markdown(text: str) -> str:
    """Drop heading marks, emphasis markers and link targets."""
    text = _HEADING.sub("", text)
    text = _LINK.sub(r"\1", text)
    return _EMPHASIS.sub(r"\2", text)


def parse_text(path: Path) -> tuple[dict, str]:
    """
    Load a text or Markdown file.

    Args:
        path: Path to .txt or .md file

    Returns:
        Tuple of (metadata dict, text to narrate)
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Text file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        text = f.read()

    metadata, text = extract_frontmatter(text)
    if "title" not in metadata:
        metadata["title"] = path.stem

    if path.suffix.lower() in (".md", ".markdown"):
        text = strip_markdown(text)

    text = text.strip()
    logger.info(f"PARSE_TEXT: path={path} chars={len(text)}")
    return metadata, text
