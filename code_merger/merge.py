"""
Merge formatting: one output stream, one comment header per file.

The header layout is a byte-exact contract:

    <!-- notes.md -->      spaced block comment (.md, .html)
    /*site.css*/           unspaced block comment (.css)
    // main.go             line comment (table entries)
    # script.sh            default line comment

Each header is followed by a blank line, and consecutive files are
separated by two blank lines.
"""

from __future__ import annotations

from typing import Iterable

from .models import MergeItem
from .rules import (
    CANONICAL_ENCODING,
    COMMENT_STYLES,
    DEFAULT_COMMENT_STYLE,
    HEADER_TERMINATOR,
    MERGE_SEPARATOR,
    SPECIAL_BASENAMES,
    CommentStyle,
)
from .validate import base_name, file_extension


def comment_style_for(filename: str) -> CommentStyle:
    special = SPECIAL_BASENAMES.get(base_name(filename))
    if special is not None:
        return special
    return COMMENT_STYLES.get(file_extension(filename), DEFAULT_COMMENT_STYLE)


def format_header(filename: str) -> str:
    style = comment_style_for(filename)
    if not style.suffix:
        return f"{style.prefix} {filename}{HEADER_TERMINATOR}"
    if style.spaced:
        return f"{style.prefix} {filename} {style.suffix}{HEADER_TERMINATOR}"
    return f"{style.prefix}{filename}{style.suffix}{HEADER_TERMINATOR}"


def merge_text(items: Iterable[MergeItem]) -> str:
    return MERGE_SEPARATOR.join(
        format_header(item.filename) + item.content for item in items
    )


def merge_files(items: Iterable[MergeItem]) -> bytes:
    """Concatenate items in order. Inputs are assumed to be validated text."""
    return merge_text(items).encode(CANONICAL_ENCODING)
