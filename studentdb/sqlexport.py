import logging

from .errors import StorageError
from .paths import ensure_dir_for
from .store import RecordStore

logger = logging.getLogger(__name__)

SCHEMA = """\
-- SQL dump generated by studentdb
DROP TABLE IF EXISTS StudentRecords;
CREATE TABLE StudentRecords (
  id INTEGER PRIMARY KEY,
  name TEXT NOT NULL,
  programme TEXT NOT NULL,
  mark REAL NOT NULL
);
"""


def sql_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def insert_statement(record) -> str:
    return ("INSERT INTO StudentRecords(id,name,programme,mark) "
            f"VALUES({record.id},{sql_quote(record.name)},"
            f"{sql_quote(record.programme)},{record.mark:.1f});\n")


def export_sql(store: RecordStore, path: str) -> int:
    records = store.records()
    try:
        ensure_dir_for(path)
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(SCHEMA)
            for r in records:
                fh.write(insert_statement(r))
    except OSError as e:
        logger.error("Cannot write %s: %s", path, e.strerror or e)
        raise StorageError(f"{path}: {e.strerror or e}") from e
    logger.info("Exported %d record(s) as SQL to %s", len(records), path)
    return len(records)
