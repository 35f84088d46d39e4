"""
Schema parser for submitted EAS files.

Splits a seekable character stream into CSV records, checks the header
and every record's field count, then types the columns with Polars and
converts each record into a RawRow. Parsing fails fast: the first
structural problem (unreadable stream, header mismatch, ragged or
unparseable row) aborts the parse and yields a single Fileformat_01
error with no rows.

Blank lines are skipped, not treated as malformed. Quoted fields may
span lines, blank ones included.

Usage:
    from eas_pipeline.engine.parser import EasFileParser

    parser = EasFileParser()
    parsed = parser.parse(stream)
    if parsed.failed:
        ...  # parsed.error is the Fileformat_01 error
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterator
from decimal import Decimal, InvalidOperation
from typing import TextIO

import polars as pl

from eas_pipeline.contracts.bundles import ParsedFileBundle
from eas_pipeline.contracts.config import PipelineConfig
from eas_pipeline.contracts.errors import file_format_error
from eas_pipeline.contracts.records import RawRow
from eas_pipeline.contracts.validation import validate_header
from eas_pipeline.data.schemas import EAS_FILE_SCHEMA

logger = logging.getLogger(__name__)


class MalformedFileError(Exception):
    """Raised internally when the file shape cannot be parsed."""


class EasFileParser:
    """
    Parse EAS files into RawRow records.

    Implements SchemaParserProtocol. All cells are kept as strings and
    typed afterwards so that an unparseable cell aborts the parse instead
    of becoming a null.
    """

    def __init__(self, config: PipelineConfig | None = None) -> None:
        self._config = config or PipelineConfig.eas_1819()

    def parse(self, stream: TextIO) -> ParsedFileBundle:
        """
        Parse a submitted file.

        Args:
            stream: Seekable text stream; rewound to its start before reading

        Returns:
            ParsedFileBundle with rows in file order, or with a single
            Fileformat_01 error and no rows
        """
        try:
            rows = self._read_rows(stream)
        except (MalformedFileError, csv.Error, pl.exceptions.PolarsError, OSError, ValueError) as e:
            # ValueError covers closed streams and decode failures
            logger.warning("File format check failed: %s", e)
            return ParsedFileBundle(error=file_format_error())

        logger.info("Parsed %d rows", len(rows))
        return ParsedFileBundle(rows=tuple(rows))

    def _read_rows(self, stream: TextIO) -> list[RawRow]:
        stream.seek(0)
        records = _non_blank_records(stream)

        first = next(records, None)
        if first is None:
            raise MalformedFileError("File is empty")
        _, header = first

        header_errors = validate_header(header, self._config.expected_columns)
        if header_errors:
            raise MalformedFileError("; ".join(header_errors))

        line_numbers: list[int] = []
        cells: list[list[str]] = []
        for line_number, fields in records:
            if len(fields) != len(header):
                raise MalformedFileError(
                    f"Line {line_number}: expected {len(header)} fields, found {len(fields)}"
                )
            line_numbers.append(line_number)
            cells.append(fields)

        frame = pl.DataFrame(
            cells,
            schema=[(name, pl.String) for name in header],
            orient="row",
        )
        typed = _cast_columns(frame)

        return [
            _to_raw_row(record, line_number)
            for record, line_number in zip(typed.iter_rows(named=True), line_numbers)
        ]


def _non_blank_records(stream: TextIO) -> Iterator[tuple[int, list[str]]]:
    """Yield each non-blank CSV record with the source line it starts on."""
    reader = csv.reader(stream)
    next_line = 1
    for fields in reader:
        start_line = next_line
        next_line = reader.line_num + 1
        if len(fields) <= 1 and not "".join(fields).strip():
            continue
        yield start_line, fields


def _cast_columns(frame: pl.DataFrame) -> pl.DataFrame:
    """
    Cast string columns to the EAS file schema.

    Strict casts raise on unparseable or empty integers; the whole parse
    then fails.
    """
    return frame.select([
        pl.col(name).str.strip_chars().cast(dtype, strict=True).alias(name)
        if dtype != pl.String
        else pl.col(name)
        for name, dtype in EAS_FILE_SCHEMA.items()
    ])


def _to_raw_row(record: dict, line_number: int) -> RawRow:
    return RawRow(
        funding_line=record["FundingLine"],
        adjustment_type=record["AdjustmentType"],
        calendar_year=record["CalendarYear"],
        calendar_month=record["CalendarMonth"],
        value=_parse_value(record["Value"], line_number),
        line_number=line_number,
    )


def _parse_value(raw: str, line_number: int) -> Decimal | None:
    if not raw.strip():
        return None
    try:
        value = Decimal(raw.strip())
    except InvalidOperation as e:
        raise MalformedFileError(f"Line {line_number}: invalid Value '{raw}'") from e
    if not value.is_finite():
        raise MalformedFileError(f"Line {line_number}: invalid Value '{raw}'")
    return value
