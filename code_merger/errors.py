"""
Typed, recoverable errors raised by the merger core and the upload gate.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    ENCODING_UNRECOGNIZED = "encoding_unrecognized"
    BINARY_CONTENT_REJECTED = "binary_content_rejected"
    RECORD_NOT_FOUND = "record_not_found"
    SIZE_EXCEEDED = "size_exceeded"
    UNSUPPORTED_EXTENSION = "unsupported_extension"


class MergerError(Exception):
    kind: ErrorKind
    status_code: int = 400
    message: str = "request failed"

    def __init__(self, details: Optional[str] = None):
        super().__init__(details or self.message)
        self.details = details


class EncodingUnrecognized(MergerError):
    kind = ErrorKind.ENCODING_UNRECOGNIZED
    status_code = 422
    message = "unrecognized encoding"


class BinaryContentRejected(MergerError):
    kind = ErrorKind.BINARY_CONTENT_REJECTED
    status_code = 422
    message = "binary content rejected"


class RecordNotFound(MergerError):
    kind = ErrorKind.RECORD_NOT_FOUND
    status_code = 404
    message = "file not found"

    def __init__(self, file_id: str):
        super().__init__(f"file not found: {file_id}")
        self.file_id = file_id


class SizeExceeded(MergerError):
    kind = ErrorKind.SIZE_EXCEEDED
    status_code = 413
    message = "size limit exceeded"


class UnsupportedExtension(MergerError):
    kind = ErrorKind.UNSUPPORTED_EXTENSION
    status_code = 422
    message = "unsupported file extension"
