"""Per-file conversion errors."""

from __future__ import annotations

from typing import Literal

ErrorKind = Literal["INVALID_FILE_TYPE", "PARSING_ERROR", "EMPTY_FILE", "UNKNOWN"]


class ConversionError(Exception):
    """Base class for errors that reject a single input file.

    None of these abort a batch; the file is reported and skipped.
    """

    kind: ErrorKind = "UNKNOWN"

    def __init__(self, message: str, file_name: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.file_name = file_name


class InvalidFileType(ConversionError):
    kind: ErrorKind = "INVALID_FILE_TYPE"


class ParsingError(ConversionError):
    kind: ErrorKind = "PARSING_ERROR"


class EmptyFile(ConversionError):
    kind: ErrorKind = "EMPTY_FILE"
