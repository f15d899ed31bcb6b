"""IO helpers for reading uploaded delimited text into pandas DataFrames."""

from __future__ import annotations

import csv
import hashlib
import io
from dataclasses import dataclass
from typing import List

import pandas as pd

from .logging import get_logger

LOGGER = get_logger("utils.io")

ENCODINGS = ("utf-8-sig", "utf-8")


class UnreadableFileError(ValueError):
    """Raised when bytes cannot be decoded or parsed as delimited text."""


@dataclass
class ParsedTable:
    frame: pd.DataFrame
    malformed_lines: List[List[str]]

    @property
    def headers(self) -> List[str]:
        return [str(col) for col in self.frame.columns]


def decode_text(raw: bytes) -> str:
    for encoding in ENCODINGS:
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise UnreadableFileError("File is not valid UTF-8 text")


def read_delimited(raw: bytes) -> ParsedTable:
    """Parse CSV bytes with a header row, keeping every cell as text.

    Header strings and column order are preserved, blank lines are skipped
    and cells are never converted to NaN. Lines with more fields than the
    header are set aside in ``malformed_lines`` rather than failing the file.
    """

    text = decode_text(raw)
    if not text.strip():
        raise UnreadableFileError("File is empty")

    malformed: List[List[str]] = []

    def _keep_bad_line(fields: List[str]) -> None:
        malformed.append(fields)
        return None

    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=_keep_bad_line,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, csv.Error) as exc:
        raise UnreadableFileError(f"Could not parse delimited text: {exc}") from exc
    LOGGER.debug("csv_parsed rows=%d columns=%d malformed=%d", len(df.index), len(df.columns), len(malformed))
    return ParsedTable(frame=df, malformed_lines=malformed)


def bytes_sha256(raw: bytes) -> str:
    """Compute a sha256 hash for provenance tracking."""

    return hashlib.sha256(raw).hexdigest()


__all__ = ["ParsedTable", "UnreadableFileError", "decode_text", "read_delimited", "bytes_sha256"]
