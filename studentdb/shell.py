"""Command shell: turns one line of text into an operation on the record store.

Verbs are matched case-insensitively at the start of the line. Arguments
for INSERT/QUERY/UPDATE/DELETE are read with `args.read_key_value`, so their
order does not matter and quoted values may contain spaces.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from . import csvcodec, paths, sqlexport, tsv
from .args import ArgStatus, parse_arguments, read_key_value
from .errors import StudentDBError
from .store import RecordStore, SortDirection, SortField
from .text import parse_float, parse_int, trim_spaces

logger = logging.getLogger(__name__)

PROMPT = "studentdb: "
TABLE_HEADER = "ID Name Programme Mark"

HELP_TEXT = """\
Commands (examples included!):

OPEN / SAVE
  OPEN <file>                 e.g.  OPEN db.txt
  SAVE                        (saves back to last OPEN file)
  SAVE <file>                 e.g.  SAVE db.txt

VIEW
  SHOW ALL                    list all rows
  SHOW ALL SORT BY ID ASC     or DESC
  SHOW ALL SORT BY MARK ASC   or DESC
  SHOW SUMMARY                show count/average/highest/lowest

ADD / LOOKUP / EDIT / REMOVE
  INSERT ID=<int> Name="..." Programme="..." Mark=<float>
    e.g. INSERT ID=2501066 Name="Brian Goh" Programme="Digital Supply Chain" Mark=88.8
  QUERY ID=<int>              e.g. QUERY ID=2501066
  UPDATE ID=<int> [Name=...] [Programme=...] [Mark=<float>]
    e.g. UPDATE ID=2501066 Programme="Game Development" Mark=95.5
  DELETE ID=<int>             comes with Y/N confirmation

SEARCH
  FIND NAME "..."             e.g. FIND NAME "brian"
  FIND PROGRAMME "..."        e.g. FIND PROGRAMME "Digital Supply Chain"

IMPORT / EXPORT / BACKUP
  IMPORT CSV <file.csv>       Header in CSV must be: ID,Name,Programme,Mark
  EXPORT CSV <file.csv>       Open in Excel/Sheets to verify
  EXPORT SQL <file.sql>       SQLite/MySQL compatible INSERTs
  BACKUP                      writes <stem>.bak-YYYYMMDD-HHMMSS.txt

OTHER
  HELP
  EXIT
"""


def say(message: str) -> None:
    print(f"CMS: {message}")


def unquote(text: str) -> str:
    """Strip an opening quote and everything from the last quote on."""
    if text.startswith('"'):
        text = text[1:]
        end = text.rfind('"')
        if end != -1:
            text = text[:end]
    return text


def _input_confirm(prompt: str) -> str:
    return input(prompt)


class Session:
    """One user session. Owns the record store and the current database file."""

    def __init__(self, store: Optional[RecordStore] = None, home: str = ".",
                 confirm: Callable[[str], str] = _input_confirm):
        self.store = store if store is not None else RecordStore()
        self.home = home
        self.confirm = confirm
        self.db_file: Optional[str] = None
        self._commands = [
            ("EXIT", self.cmd_exit),
            ("QUIT", self.cmd_exit),
            ("HELP", self.cmd_help),
            ("OPEN", self.cmd_open),
            ("SAVE", self.cmd_save),
            ("SHOW ALL", self.cmd_show_all),
            ("SHOW SUMMARY", self.cmd_show_summary),
            ("INSERT", self.cmd_insert),
            ("QUERY", self.cmd_query),
            ("UPDATE", self.cmd_update),
            ("DELETE", self.cmd_delete),
            ("EXPORT CSV", self.cmd_export_csv),
            ("EXPORT SQL", self.cmd_export_sql),
            ("IMPORT CSV", self.cmd_import_csv),
            ("FIND NAME", self.cmd_find_name),
            ("FIND PROGRAMME", self.cmd_find_programme),
            ("BACKUP", self.cmd_backup),
        ]

    # --- dispatch ---

    def execute(self, line: str) -> bool:
        """Run one command line. Returns False when the session should end."""
        line = trim_spaces(line)
        if not line:
            return True
        upper = line.upper()
        for verb, handler in self._commands:
            if upper.startswith(verb):
                try:
                    return handler(line, line[len(verb):].strip()) is not False
                except StudentDBError as e:
                    logger.debug("%s failed: %s", verb, e)
                    say(str(e))
                    return True
        say("Unknown command. Type HELP.")
        return True

    def run_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            if not self.execute(line):
                break

    def interactive(self, read: Callable[[str], str] = input) -> None:
        print("Type HELP for available commands.\n")
        while True:
            try:
                line = read(PROMPT)
            except EOFError:
                print()
                break
            if not self.execute(line):
                break

    # --- helpers ---

    def _require_id(self, line: str) -> Optional[int]:
        result = read_key_value(line, "ID")
        if result.status is ArgStatus.MALFORMED:
            say("Unterminated quote in ID=")
            return None
        if not result.found:
            say("Missing ID=")
            return None
        record_id = parse_int(result.value)
        if record_id is None:
            say("Invalid ID.")
        return record_id

    def _print_rows(self, records) -> None:
        print(TABLE_HEADER)
        for r in records:
            print(r.row())

    # --- commands ---

    def cmd_exit(self, line, rest):
        return False

    def cmd_help(self, line, rest):
        print(HELP_TEXT)

    def cmd_open(self, line, rest):
        if not rest:
            say("Please provide a filename.")
            return
        file_name = unquote(rest)
        path = paths.path_for_read(file_name, self.home)
        try:
            tsv.load_tsv(self.store, path)
        except StudentDBError as e:
            say(f'Failed to open file "{file_name}": {e}')
            return
        self.db_file = file_name
        say(f'The database file "{file_name}" is successfully opened.')

    def cmd_save(self, line, rest):
        file_name = unquote(rest) if rest else self.db_file
        if not file_name:
            say("Failed to save. Please OPEN a file first or provide a filename.")
            return
        try:
            tsv.save_tsv(self.store, paths.path_for_write(file_name, self.home))
        except StudentDBError as e:
            say(f"Failed to save: {e}")
            return
        self.db_file = file_name
        say("The database file is successfully saved.")

    def cmd_show_all(self, line, rest):
        upper = line.upper()
        field = SortField.NONE
        if "SORT BY ID" in upper:
            field = SortField.ID
        elif "SORT BY MARK" in upper:
            field = SortField.MARK
        direction = SortDirection.DESC if field is not SortField.NONE and "DESC" in upper else SortDirection.ASC
        say('Here are all the records found in the table "StudentRecords".')
        self._print_rows(self.store.snapshot(field, direction))

    def cmd_show_summary(self, line, rest):
        summary = self.store.summary()
        if summary is None:
            say("No records loaded.")
            return
        say("SUMMARY")
        print(f"Total students: {summary.total}")
        print(f"Average mark: {summary.average:.2f}")
        print(f"Highest: {summary.highest.mark:.1f} ({summary.highest.name})")
        print(f"Lowest : {summary.lowest.mark:.1f} ({summary.lowest.name})")

    def cmd_insert(self, line, rest):
        values = {}
        for key in ("ID", "Name", "Programme", "Mark"):
            result = read_key_value(line, key)
            if result.status is ArgStatus.MALFORMED:
                say(f"Unterminated quote in {key}=")
                return
            if not result.found:
                say(f"Missing {key}=")
                return
            values[key] = result.value

        record_id = parse_int(values["ID"])
        if record_id is None:
            say("Invalid ID.")
            return
        mark = parse_float(values["Mark"])
        if mark is None:
            say("Invalid Mark.")
            return

        if self.store.insert(record_id, values["Name"], values["Programme"], mark):
            say(f"A new record with ID={record_id} is successfully inserted.")
        else:
            say(f"The record with ID={record_id} already exists.")

    def cmd_query(self, line, rest):
        record_id = self._require_id(line)
        if record_id is None:
            return
        record = self.store.find(record_id)
        if record is None:
            say(f"The record with ID={record_id} does not exist.")
            return
        say(f"The record with ID={record_id} is found in the data table.")
        self._print_rows([record])

    def cmd_update(self, line, rest):
        record_id = self._require_id(line)
        if record_id is None:
            return

        # MalformedArgumentError is reported by execute()
        given = parse_arguments(line, ("Name", "Programme", "Mark"))
        changes = {key.lower(): value for key, value in given.items()}

        if "mark" in changes:
            mark = parse_float(changes["mark"])
            if mark is None:
                say("Invalid Mark.")
                return
            changes["mark"] = mark

        if self.store.update(record_id, **changes):
            say(f"The record with ID={record_id} is successfully updated.")
        else:
            say(f"The record with ID={record_id} does not exist.")

    def cmd_delete(self, line, rest):
        record_id = self._require_id(line)
        if record_id is None:
            return
        if record_id not in self.store:
            say(f"The record with ID={record_id} does not exist.")
            return
        try:
            answer = trim_spaces(self.confirm("CMS: Type Y to Confirm or N to cancel: "))
        except EOFError:
            print()
            return
        if answer[:1] in ("Y", "y"):
            if self.store.delete(record_id):
                say(f"The record with ID={record_id} is successfully deleted.")
            else:
                say("Delete failed.")
        else:
            say("Delete cancelled.")

    def cmd_export_csv(self, line, rest):
        if not rest:
            say("Please provide CSV filename.")
            return
        path = paths.path_for_write(unquote(rest), self.home)
        try:
            csvcodec.export_csv(self.store, path)
        except StudentDBError as e:
            say(f"Failed to export CSV: {e}")
            return
        say(f'CSV exported to "{path}".')

    def cmd_export_sql(self, line, rest):
        if not rest:
            say("Please provide SQL filename.")
            return
        path = paths.path_for_write(unquote(rest), self.home)
        try:
            sqlexport.export_sql(self.store, path)
        except StudentDBError as e:
            say(f"Failed to export SQL: {e}")
            return
        say(f'SQL exported to "{path}".')

    def cmd_import_csv(self, line, rest):
        if not rest:
            say("Please provide CSV filename.")
            return
        path = paths.path_for_read(unquote(rest), self.home)
        try:
            report = csvcodec.import_csv(self.store, path)
        except StudentDBError as e:
            say(f"Failed to import CSV: {e}")
            return
        say(f'CSV imported from "{path}".')
        if report.skipped:
            say(f"{report.imported} record(s) imported, {report.duplicates} duplicate ID(s) "
                f"and {len(report.malformed)} malformed line(s) skipped.")
            for lineno, reason in report.malformed:
                print(f"  line {lineno}: {reason}")

    def _find(self, label: str, field: str, rest: str):
        needle = unquote(rest)
        if not needle:
            say("Please provide a search string.")
            return
        say(f'Search results for {label} contains "{needle}":')
        hits = self.store.search(field, needle)
        self._print_rows(hits)
        if not hits:
            print("(no matches)")

    def cmd_find_name(self, line, rest):
        self._find("NAME", "name", rest)

    def cmd_find_programme(self, line, rest):
        self._find("PROGRAMME", "programme", rest)

    def cmd_backup(self, line, rest):
        if not self.db_file:
            say("Backup failed. Please OPEN and SAVE first.")
            return
        path = paths.path_for_write(paths.backup_name(self.db_file), self.home)
        try:
            tsv.save_tsv(self.store, path)
        except StudentDBError as e:
            say(f"Backup failed: {e}")
            return
        say(f'Backup file created: "{path}".')
