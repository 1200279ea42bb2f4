"""Native database file: one record per line, ID<TAB>Name<TAB>Programme<TAB>Mark.

No header, quoting or escaping. Text containing a tab or newline cannot be
stored faithfully; this is not checked.
"""

import logging

from .errors import StorageError
from .paths import ensure_dir_for
from .store import RecordStore
from .text import parse_float, parse_int, trim_spaces

logger = logging.getLogger(__name__)


def format_line(record) -> str:
    return f"{record.id}\t{record.name}\t{record.programme}\t{record.mark:.1f}\n"


def load_tsv(store: RecordStore, path: str) -> int:
    """Replace the store's contents with the records in `path`.

    The store is only cleared once the file has been read. Returns the number
    of records loaded.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            lines = fh.readlines()
    except OSError as e:
        logger.error("Cannot open %s: %s", path, e.strerror or e)
        raise StorageError(f"{path}: {e.strerror or e}") from e
    except UnicodeDecodeError as e:
        logger.error("Cannot decode %s: %s", path, e)
        raise StorageError(f"{path}: not a UTF-8 text file ({e.reason} at byte {e.start})") from e

    store.clear()
    loaded = 0
    for lineno, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        if not trim_spaces(line):
            continue
        # empty Name/Programme keep their place between two tabs
        tokens = line.split("\t")
        if len(tokens) < 4:
            logger.warning("Skipping malformed line %d in %s", lineno, path)
            continue
        record_id = parse_int(tokens[0])
        mark = parse_float(tokens[3])
        if record_id is None or mark is None:
            logger.warning("Skipping line %d in %s: bad number", lineno, path)
            continue
        if store.insert(record_id, tokens[1], tokens[2], mark):
            loaded += 1
        else:
            logger.warning("Skipping line %d in %s: duplicate ID=%d", lineno, path, record_id)

    logger.info("Loaded %d record(s) from %s", loaded, path)
    return loaded


def save_tsv(store: RecordStore, path: str) -> int:
    """Overwrite `path` with every record in store order."""
    records = store.records()
    try:
        ensure_dir_for(path)
        with open(path, "w", encoding="utf-8") as fh:
            for r in records:
                fh.write(format_line(r))
    except OSError as e:
        logger.error("Cannot write %s: %s", path, e.strerror or e)
        raise StorageError(f"{path}: {e.strerror or e}") from e
    logger.info("Saved %d record(s) to %s", len(records), path)
    return len(records)
