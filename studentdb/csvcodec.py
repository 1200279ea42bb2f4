"""CSV import/export for the record table.

Export format:
    ID,Name,Programme,Mark
    2301234,"Brian Goh","Digital Supply Chain",88.8

Text fields are always quoted and embedded quotes are doubled; id and mark
are never quoted. Import accepts bare or quoted fields, skips header lines
wherever they appear, and skips (but reports) any line that does not split
into exactly four fields. Existing ids are never overwritten.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Tuple

from .errors import CsvParseError, StorageError
from .paths import ensure_dir_for
from .store import Record, RecordStore
from .text import equals_ignore_case, parse_float, parse_int, trim_spaces

logger = logging.getLogger(__name__)

HEADER = ("ID", "Name", "Programme", "Mark")
FIELD_COUNT = 4


def quote_field(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def encode_record(r: Record) -> str:
    return f"{r.id},{quote_field(r.name)},{quote_field(r.programme)},{r.mark:.1f}"


def encode(records: Iterable[Record]) -> Iterator[str]:
    """Yield the header and one line per record, without newlines."""
    yield ",".join(HEADER)
    for r in records:
        yield encode_record(r)


def _skip_blanks(line: str, pos: int) -> int:
    while pos < len(line) and line[pos] in " \t":
        pos += 1
    return pos


def split_csv_fields(line: str) -> List[str]:
    """Split one CSV line into exactly four fields.

    Raises:
        CsvParseError: on an unclosed quote, text between a closing quote and
            the next comma, a missing comma, or content after the 4th field.
    """
    fields: List[str] = []
    pos = 0
    n = len(line)
    for col in range(FIELD_COUNT):
        last = col == FIELD_COUNT - 1
        pos = _skip_blanks(line, pos)

        if pos < n and line[pos] == '"':
            pos += 1
            buf = []
            while True:
                if pos >= n:
                    raise CsvParseError(f"unterminated quote in field {col + 1}")
                ch = line[pos]
                if ch == '"':
                    if pos + 1 < n and line[pos + 1] == '"':
                        buf.append('"')
                        pos += 2
                        continue
                    pos = _skip_blanks(line, pos + 1)
                    break
                buf.append(ch)
                pos += 1
            fields.append("".join(buf))
        else:
            start = pos
            while pos < n and line[pos] not in ",\r\n":
                pos += 1
            fields.append(line[start:pos])

        if not last:
            if pos >= n or line[pos] != ",":
                raise CsvParseError(f"expected ',' after field {col + 1}")
            pos += 1

    if line[pos:].strip(" \t\r\n"):
        raise CsvParseError("unexpected text after field 4")
    return fields


def is_header(fields: List[str]) -> bool:
    return len(fields) == FIELD_COUNT and all(
        equals_ignore_case(f, h) for f, h in zip(fields, HEADER)
    )


@dataclass
class ImportReport:
    imported: int = 0
    duplicates: int = 0
    headers: int = 0
    malformed: List[Tuple[int, str]] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return self.duplicates + len(self.malformed)


def decode_into(store: RecordStore, lines: Iterable[str]) -> ImportReport:
    """Feed CSV lines into the store. One bad line never stops the import."""
    report = ImportReport()
    for lineno, raw in enumerate(lines, start=1):
        line = trim_spaces(raw)
        if not line:
            continue
        try:
            fields = split_csv_fields(line)
        except CsvParseError as e:
            report.malformed.append((lineno, str(e)))
            logger.warning("Malformed CSV line %d: %s", lineno, e)
            continue

        if is_header(fields):
            report.headers += 1
            continue

        record_id = parse_int(fields[0])
        mark = parse_float(fields[3])
        if record_id is None or mark is None:
            reason = "invalid ID" if record_id is None else "invalid Mark"
            report.malformed.append((lineno, reason))
            logger.warning("Malformed CSV line %d: %s", lineno, reason)
            continue

        if store.insert(record_id, fields[1], fields[2], mark):
            report.imported += 1
        else:
            report.duplicates += 1
            logger.info("CSV line %d: ID=%d already exists, skipped", lineno, record_id)
    return report


def import_csv(store: RecordStore, path: str) -> ImportReport:
    try:
        with open(path, "r", encoding="utf-8", newline="") as fh:
            lines = fh.readlines()
    except OSError as e:
        logger.error("Cannot read %s: %s", path, e.strerror or e)
        raise StorageError(f"{path}: {e.strerror or e}") from e
    except UnicodeDecodeError as e:
        logger.error("Cannot decode %s: %s", path, e)
        raise StorageError(f"{path}: not a UTF-8 text file ({e.reason} at byte {e.start})") from e
    if not lines:
        raise StorageError(f"{path}: file is empty")

    report = decode_into(store, lines)
    logger.info("Imported %d record(s) from %s (%d duplicate, %d malformed)",
                report.imported, path, report.duplicates, len(report.malformed))
    return report


def export_csv(store: RecordStore, path: str) -> int:
    """Write every record in store order. Returns the number of rows written."""
    records = store.records()
    try:
        ensure_dir_for(path)
        with open(path, "w", encoding="utf-8", newline="") as fh:
            for line in encode(records):
                fh.write(line + "\n")
    except OSError as e:
        logger.error("Cannot write %s: %s", path, e.strerror or e)
        raise StorageError(f"{path}: {e.strerror or e}") from e
    logger.info("Exported %d record(s) to %s", len(records), path)
    return len(records)
