"""
Text validity and upload gate checks.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import Iterable

from .errors import SizeExceeded, UnsupportedExtension
from .rules import (
    ALLOWED_CONTROL_CHARS,
    INFORMATION_SEPARATORS,
    SPECIAL_BASENAMES,
    SUPPORTED_EXTENSIONS,
)


def is_text(text: str) -> bool:
    """
    Reject content that looks binary.

    Runs on already-normalized text only. A character passes if it is
    printable, whitespace (vertical tab and NEL included, the 0x1C-0x1F
    separators excluded), or an allowed control character (tab, newline,
    carriage return, form feed).
    """
    for ch in text:
        if ch in ALLOWED_CONTROL_CHARS or ch.isprintable():
            continue
        if ch.isspace() and ch not in INFORMATION_SEPARATORS:
            continue
        return False
    return True


def file_extension(filename: str) -> str:
    """Suffix from the last dot of the final path element, dotfiles included."""
    name = PurePath(filename).name
    dot = name.rfind(".")
    if dot == -1:
        return ""
    return name[dot:].lower()


def base_name(filename: str) -> str:
    return PurePath(filename).name.lower()


def is_supported_filename(filename: str) -> bool:
    ext = file_extension(filename)
    if not ext:
        return base_name(filename) in SPECIAL_BASENAMES
    return ext in SUPPORTED_EXTENSIONS


def validate_upload(filename: str, raw: bytes, max_file_size: int) -> None:
    if len(raw) > max_file_size:
        raise SizeExceeded(
            f"{filename}: file size {len(raw)} exceeds limit of {max_file_size} bytes"
        )
    if not is_supported_filename(filename):
        raise UnsupportedExtension(
            f"{filename}: unsupported file extension '{file_extension(filename)}'"
        )


def validate_total_size(sizes: Iterable[int], max_total_size: int) -> None:
    total = sum(sizes)
    if total > max_total_size:
        raise SizeExceeded(
            f"total upload size {total} exceeds limit of {max_total_size} bytes"
        )
