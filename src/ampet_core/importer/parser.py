"""
Tabular parser for uploaded spreadsheets.

Turns the raw bytes of a delimited upload into a ``ParsedTable``.
Cell contents are not validated here; that happens per row in the importer.
"""

import csv
import io
import logging
import os
from typing import List, Optional, Union

from ..exceptions import (
    EmptyFileError,
    FileTooLargeError,
    MalformedFileError,
    UnsupportedFileError,
)
from ..utils.config import ImportSettings
from .types import ParsedTable

logger = logging.getLogger(__name__)

UTF8_BOM = "\ufeff"
SNIFF_DELIMITERS = ",;\t|"
SNIFF_SAMPLE_CHARS = 8192


def check_upload(
    filename: str, size: int, settings: Optional[ImportSettings] = None
) -> None:
    """
    Reject uploads the parser will not read.

    Args:
        filename: Name of the uploaded file
        size: Size of the upload in bytes
        settings: Import settings, defaults are used when omitted

    Raises:
        UnsupportedFileError: If the extension is not an allowed one
        FileTooLargeError: If the upload exceeds the size ceiling
    """
    settings = settings or ImportSettings()

    extension = os.path.splitext(filename)[1].lower()
    if extension not in settings.allowed_extensions:
        raise UnsupportedFileError(filename, settings.allowed_extensions)

    if size > settings.max_upload_bytes:
        raise FileTooLargeError(filename, size, settings.max_upload_bytes)


def decode_content(content: Union[bytes, str], filename: Optional[str] = None) -> str:
    """Decode upload bytes as UTF-8 and drop a leading byte order mark."""
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedFileError(
                "File is not valid UTF-8 text", filename, original_error=e
            )
    else:
        text = content

    if "\x00" in text:
        raise MalformedFileError("File contains binary data", filename)

    if text.startswith(UTF8_BOM):
        text = text[len(UTF8_BOM) :]
    return text


def detect_delimiter(text: str) -> str:
    """
    Guess the cell delimiter from the first lines of ``text``.

    Spreadsheets exported with a Portuguese locale use ``;``; anything the
    sniffer cannot decide on (a single column, ragged rows) is read as
    comma-separated.
    """
    try:
        dialect = csv.Sniffer().sniff(text[:SNIFF_SAMPLE_CHARS], SNIFF_DELIMITERS)
    except csv.Error:
        return ","
    return dialect.delimiter


def parse_table(
    content: Union[bytes, str],
    delimiter: Optional[str] = None,
    filename: Optional[str] = None,
) -> ParsedTable:
    """
    Parse delimited text into a header row and data rows.

    Quoted cells may contain the delimiter and line breaks. Lines whose
    cells are all blank are skipped. Data rows shorter than the header are
    padded with empty strings and longer rows are cut to the header width.

    Args:
        content: Raw file content
        delimiter: Cell delimiter; detected from the content when None
        filename: Name of the upload, used in error details

    Returns:
        ParsedTable with trimmed header cells

    Raises:
        MalformedFileError: If the content cannot be decoded or tokenized
        EmptyFileError: If fewer than two non-empty lines remain
    """
    text = decode_content(content, filename)
    if delimiter is None:
        delimiter = detect_delimiter(text)

    records: List[List[str]] = []
    try:
        reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
        for record in reader:
            if not any(cell.strip() for cell in record):
                continue
            records.append(record)
    except csv.Error as e:
        raise MalformedFileError(
            f"Could not tokenize file: {e}", filename, original_error=e
        )

    if len(records) < 2:
        raise EmptyFileError(filename=filename, line_count=len(records))

    headers = tuple(cell.strip() for cell in records[0])
    width = len(headers)

    rows = []
    for record in records[1:]:
        if len(record) < width:
            record = record + [""] * (width - len(record))
        rows.append(tuple(record[:width]))

    logger.debug(
        f"Parsed {filename or 'upload'}: {width} columns, {len(rows)} data rows"
    )
    return ParsedTable(headers=headers, rows=tuple(rows))


def read_upload(
    filename: str,
    content: Union[bytes, str],
    settings: Optional[ImportSettings] = None,
) -> ParsedTable:
    """Run the upload gate and parse the file in one step."""
    settings = settings or ImportSettings()
    size = len(content.encode("utf-8")) if isinstance(content, str) else len(content)
    check_upload(filename, size, settings)
    return parse_table(content, delimiter=settings.delimiter, filename=filename)
