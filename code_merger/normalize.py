"""
Encoding normalization to UTF-8.

Responsibilities:
- pass through content that is already UTF-8
- otherwise try the fixed, ordered list of legacy encodings and accept the
  first one that yields valid canonical text
- never silently accept a guess: if nothing decodes cleanly, report failure

Known limitation: a UTF-16 byte-order mark is stripped, but a UTF-8 one is
kept as part of the content, and validate.is_text then rejects the file as
binary. BOM-prefixed UTF-8 (as saved by Notepad) is therefore refused.
"""

from __future__ import annotations

import unicodedata
from typing import Iterable, Optional, Tuple

from charset_normalizer import from_bytes

from .rules import (
    ALLOWED_CONTROL_CHARS,
    CANONICAL_ENCODING,
    LEGACY_ENCODINGS,
    UTF16_BOMS,
)

# surrogate, private use, unassigned
_INVALID_CATEGORIES = frozenset({"Cs", "Co", "Cn"})


def is_canonical_text(text: str) -> bool:
    """True when text encodes cleanly to UTF-8 and uses only assigned code points."""
    try:
        text.encode(CANONICAL_ENCODING)
    except UnicodeEncodeError:
        return False
    return not any(unicodedata.category(ch) in _INVALID_CATEGORIES for ch in text)


def _plausible_utf16(text: str) -> bool:
    # Text read with the wrong byte order (or single-byte text read as
    # UTF-16) lands almost entirely outside ASCII; real UTF-16 text without
    # a BOM nearly always has some spaces, digits or newlines.
    has_ascii = False
    for ch in text:
        code = ord(ch)
        if code < 0x20 or code == 0x7F:
            if ch not in ALLOWED_CONTROL_CHARS:
                return False
            has_ascii = True
        elif code < 0x80:
            has_ascii = True
    return has_ascii


def _try_decode(raw: bytes, encoding: str) -> Optional[str]:
    bom = UTF16_BOMS.get(encoding)
    has_bom = bom is not None and raw.startswith(bom)
    if has_bom:
        raw = raw[len(bom):]

    try:
        text = raw.decode(encoding)
    except UnicodeDecodeError:
        return None

    if not is_canonical_text(text):
        return None
    if bom is not None and not has_bom and not _plausible_utf16(text):
        return None
    return text


def decode_to_utf8(
    raw: bytes, candidates: Iterable[str] = LEGACY_ENCODINGS
) -> Tuple[str, Optional[str]]:
    """
    Decode raw bytes into canonical text.

    Returns (text, encoding_used). encoding_used is None when no candidate
    produced valid text; text is then empty.
    """
    try:
        return raw.decode(CANONICAL_ENCODING), CANONICAL_ENCODING
    except UnicodeDecodeError:
        pass

    for encoding in candidates:
        text = _try_decode(raw, encoding)
        if text is not None:
            return text, encoding

    return "", None


def normalize_to_utf8(
    raw: bytes, candidates: Iterable[str] = LEGACY_ENCODINGS
) -> Tuple[str, bool]:
    text, encoding = decode_to_utf8(raw, candidates)
    return text, encoding is not None


def guess_encoding(raw: bytes) -> Optional[str]:
    """Best-effort guess via charset-normalizer, for diagnostics only."""
    match = from_bytes(raw).best()
    if match is None:
        return None
    return match.encoding
