"""
Deterministic normalization and merge rules.

This file exists to make the fixed contracts explicit and enforceable:
encoding order, allowed control characters and comment header styles.
"""

from __future__ import annotations

from typing import NamedTuple

CANONICAL_ENCODING = "utf-8"

# Multi-byte decoders first: single-byte code pages map every byte to
# something and would shadow them.
LEGACY_ENCODINGS = (
    "utf-16-le",
    "utf-16-be",
    "windows-1251",
    "windows-1252",
    "iso-8859-1",
    "iso-8859-5",
    "koi8-r",
)

UTF16_BOMS = {
    "utf-16-le": b"\xff\xfe",
    "utf-16-be": b"\xfe\xff",
}

ALLOWED_CONTROL_CHARS = frozenset("\t\n\r\f")

# str.isspace() counts these as whitespace; they are controls
INFORMATION_SEPARATORS = frozenset("\x1c\x1d\x1e\x1f")


class CommentStyle(NamedTuple):
    prefix: str
    suffix: str = ""
    spaced: bool = True


LINE_HASH = CommentStyle("#")
LINE_SLASH = CommentStyle("//")
BLOCK_HTML = CommentStyle("<!--", "-->", spaced=True)
BLOCK_CSS = CommentStyle("/*", "*/", spaced=False)

DEFAULT_COMMENT_STYLE = LINE_HASH

SPECIAL_BASENAMES = {
    "dockerfile": LINE_HASH,
    "makefile": LINE_HASH,
}

COMMENT_STYLES = {
    ".md": BLOCK_HTML,
    ".html": BLOCK_HTML,
    ".css": BLOCK_CSS,
    ".js": LINE_SLASH,
    ".go": LINE_SLASH,
    ".cpp": LINE_SLASH,
    ".java": LINE_SLASH,
    ".json": LINE_SLASH,
}

SUPPORTED_EXTENSIONS = frozenset({
    ".md", ".txt", ".yaml", ".yml", ".json", ".cpp",
    ".go", ".py", ".html", ".css", ".js", ".sh",
})

HEADER_TERMINATOR = "\n\n"
MERGE_SEPARATOR = "\n\n\n"
