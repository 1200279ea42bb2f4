import pytest

from studentdb.shell import Session, unquote


@pytest.fixture
def session(tmp_path):
    answers = []
    s = Session(home=str(tmp_path), confirm=lambda prompt: answers.pop(0))
    s.answers = answers
    return s


def run(session, capsys, *lines):
    for line in lines:
        session.execute(line)
    return capsys.readouterr().out


def ids(session):
    return [r.id for r in session.store.records()]


def test_unquote():
    assert unquote('"my db.txt"') == "my db.txt"
    assert unquote("plain.txt") == "plain.txt"
    assert unquote('"open') == "open"


class TestInsertQueryUpdate:
    def test_insert_and_query(self, session, capsys):
        out = run(session, capsys,
                  'INSERT ID=7 Name="A B" Programme="X" Mark=9.5',
                  "query id=7")
        assert "A new record with ID=7 is successfully inserted." in out
        assert "7 A B X 9.5" in out
        r = session.store.find(7)
        assert (r.name, r.programme, r.mark) == ("A B", "X", 9.5)

    def test_insert_duplicate(self, session, capsys):
        out = run(session, capsys,
                  'INSERT ID=7 Name="A" Programme="X" Mark=1',
                  'INSERT ID=7 Name="B" Programme="Y" Mark=2')
        assert "The record with ID=7 already exists." in out
        assert session.store.find(7).name == "A"

    @pytest.mark.parametrize("line,message", [
        ('INSERT Name="A" Programme="X" Mark=1', "Missing ID="),
        ('INSERT ID=1 Programme="X" Mark=1', "Missing Name="),
        ('INSERT ID=1 Name="A" Mark=1', "Missing Programme="),
        ('INSERT ID=1 Name="A" Programme="X"', "Missing Mark="),
        ('INSERT ID=abc Name="A" Programme="X" Mark=1', "Invalid ID."),
        ('INSERT ID=1 Name="A" Programme="X" Mark=high', "Invalid Mark."),
        ('INSERT ID=1 Name="A Programme=X Mark=1', "Unterminated quote in Name="),
        ('INSERT VALIDID=5 Name="A" Programme="X" Mark=1', "Missing ID="),
    ])
    def test_insert_errors(self, session, capsys, line, message):
        out = run(session, capsys, line)
        assert f"CMS: {message}" in out
        assert len(session.store) == 0

    def test_update_only_given_fields(self, session, capsys):
        out = run(session, capsys,
                  'INSERT ID=7 Name="A B" Programme="X" Mark=9.5',
                  "UPDATE ID=7 Mark=10.0")
        assert "The record with ID=7 is successfully updated." in out
        r = session.store.find(7)
        assert (r.name, r.programme, r.mark) == ("A B", "X", 10.0)

    def test_update_invalid_mark_changes_nothing(self, session, capsys):
        out = run(session, capsys,
                  'INSERT ID=7 Name="A" Programme="X" Mark=9.5',
                  'UPDATE ID=7 Name="Z" Mark=oops')
        assert "Invalid Mark." in out
        assert session.store.find(7).name == "A"

    def test_update_and_query_missing(self, session, capsys):
        out = run(session, capsys, "UPDATE ID=3 Mark=1", "QUERY ID=3")
        assert out.count("The record with ID=3 does not exist.") == 2


class TestDelete:
    def _fill(self, session):
        for i in (1, 2, 3, 4):
            session.store.insert(i, f"n{i}", "p", float(i))

    def test_confirmed(self, session, capsys):
        self._fill(session)
        session.answers.append("y")
        out = run(session, capsys, "DELETE ID=2")
        assert "successfully deleted" in out
        assert ids(session) == [1, 3, 4]

    def test_cancelled(self, session, capsys):
        self._fill(session)
        session.answers.append("N")
        out = run(session, capsys, "DELETE ID=2")
        assert "Delete cancelled." in out
        assert ids(session) == [1, 2, 3, 4]

    def test_missing_is_not_confirmed(self, session, capsys):
        out = run(session, capsys, "DELETE ID=9")
        assert "does not exist" in out


class TestViews:
    def test_show_all_sorted(self, session, capsys):
        session.store.insert(3, "C", "p", 70.0)
        session.store.insert(1, "A", "p", 90.0)
        session.store.insert(2, "B", "p", 70.0)
        out = run(session, capsys, "show all sort by mark desc")
        rows = [l for l in out.splitlines() if l[:1].isdigit()]
        assert rows == ["1 A p 90.0", "3 C p 70.0", "2 B p 70.0"]

        out = run(session, capsys, "SHOW ALL SORT BY ID ASC")
        rows = [l for l in out.splitlines() if l[:1].isdigit()]
        assert [r.split()[0] for r in rows] == ["1", "2", "3"]

    def test_summary(self, session, capsys):
        assert "No records loaded." in run(session, capsys, "SHOW SUMMARY")
        session.store.insert(1, "Ann", "p", 80.0)
        session.store.insert(2, "Bob", "p", 60.0)
        out = run(session, capsys, "SHOW SUMMARY")
        assert "Total students: 2" in out
        assert "Average mark: 70.00" in out
        assert "Highest: 80.0 (Ann)" in out
        assert "Lowest : 60.0 (Bob)" in out

    def test_find(self, session, capsys):
        session.store.insert(1, "Brian Goh", "Digital Supply Chain", 88.8)
        session.store.insert(2, "Han Yong", "Game Development", 70.0)
        out = run(session, capsys, 'FIND NAME "brian"')
        assert "1 Brian Goh Digital Supply Chain 88.8" in out
        assert "Han Yong" not in out
        out = run(session, capsys, 'FIND PROGRAMME "nothing"')
        assert "(no matches)" in out
        assert "Please provide a search string." in run(session, capsys, "FIND NAME")

    def test_unknown_and_exit(self, session, capsys):
        assert "Unknown command. Type HELP." in run(session, capsys, "FROBNICATE")
        assert session.execute("exit") is False
        assert session.execute("   ") is True


class TestFiles:
    def test_save_open_round_trip(self, session, capsys, tmp_path):
        run(session, capsys,
            'INSERT ID=1 Name="Ann" Programme="CS" Mark=9.5',
            'INSERT ID=2 Name="Bob" Programme="CS" Mark=8.5',
            "SAVE db.txt")
        assert (tmp_path / "db.txt").exists()

        other = Session(home=str(tmp_path))
        out = run(other, capsys, "OPEN db.txt")
        assert 'The database file "db.txt" is successfully opened.' in out
        assert other.store.records() == session.store.records()

    def test_save_without_file(self, session, capsys):
        out = run(session, capsys, "SAVE")
        assert "Please OPEN a file first" in out

    def test_open_missing_reports_error(self, session, capsys):
        session.store.insert(1, "Ann", "CS", 1.0)
        out = run(session, capsys, "OPEN nothing.txt")
        assert 'Failed to open file "nothing.txt"' in out
        assert "No such file" in out
        assert len(session.store) == 1

    def test_import_skips_duplicates_and_bad_lines(self, session, capsys, tmp_path):
        session.store.insert(1, "Original", "CS", 50.0)
        (tmp_path / "in.csv").write_text(
            "ID,Name,Programme,Mark\n"
            '1,"Imposter","X",0.0\n'
            '2,"Broken,"X",1.0\n'
            '3,"Cat","CS",7.5\n',
            encoding="utf-8",
        )
        out = run(session, capsys, "IMPORT CSV in.csv")
        assert "CSV imported from" in out
        assert "1 record(s) imported, 1 duplicate ID(s) and 1 malformed line(s) skipped." in out
        assert "line 3:" in out
        assert session.store.find(1).name == "Original"
        assert ids(session) == [1, 3]

    def test_export_csv_and_sql(self, session, capsys, tmp_path):
        session.store.insert(1, "Ann", "CS", 9.5)
        out = run(session, capsys, "EXPORT CSV out.csv", "EXPORT SQL out.sql")
        assert "CSV exported to" in out
        assert "SQL exported to" in out
        assert (tmp_path / "out.csv").read_text().startswith("ID,Name,Programme,Mark\n")
        assert "INSERT INTO StudentRecords" in (tmp_path / "out.sql").read_text()

    def test_missing_file_names(self, session, capsys):
        out = run(session, capsys, "OPEN", "EXPORT CSV", "EXPORT SQL", "IMPORT CSV")
        assert "Please provide a filename." in out
        assert out.count("Please provide CSV filename.") == 2
        assert "Please provide SQL filename." in out

    def test_backup(self, session, capsys, tmp_path):
        assert "Please OPEN and SAVE first." in run(session, capsys, "BACKUP")
        session.store.insert(1, "Ann", "CS", 9.5)
        run(session, capsys, "SAVE P10-4-CMS.txt")
        out = run(session, capsys, "BACKUP")
        assert "Backup file created" in out
        backups = list(tmp_path.glob("P10-4-CMS.bak-*.txt"))
        assert len(backups) == 1
        assert backups[0].read_text() == "1\tAnn\tCS\t9.5\n"


def test_run_lines_stops_at_exit(session, capsys):
    session.run_lines([
        'INSERT ID=1 Name="A" Programme="B" Mark=1\n',
        "EXIT\n",
        'INSERT ID=2 Name="A" Programme="B" Mark=1\n',
    ])
    assert ids(session) == [1]


def test_interactive_ends_on_eof(session, capsys):
    lines = iter(["HELP"])

    def read(prompt):
        try:
            return next(lines)
        except StopIteration:
            raise EOFError

    session.interactive(read)
    assert "Commands (examples included!)" in capsys.readouterr().out


def test_update_unterminated_quote(session, capsys):
    session.store.insert(7, "A", "X", 1.0)
    out = run(session, capsys, 'UPDATE ID=7 Programme="Game Dev')
    assert "CMS: Unterminated quote in Programme=" in out
    assert session.store.find(7).programme == "X"


def test_empty_name_survives_save_and_open(session, capsys):
    run(session, capsys,
        'INSERT ID=1 Name="" Programme="CS" Mark=9.0',
        "SAVE db.txt",
        "OPEN db.txt")
    assert len(session.store) == 1
    assert session.store.find(1).name == ""


def test_undecodable_files_keep_session_alive(session, capsys, tmp_path):
    session.store.insert(1, "Ann", "CS", 9.5)
    (tmp_path / "x.csv").write_bytes(b'1,"Jos\xe9","CS",9.0\n')
    (tmp_path / "db.txt").write_bytes(b"2\tJos\xe9\tCS\t9.0\n")
    assert session.execute("IMPORT CSV x.csv") is True
    assert session.execute("OPEN db.txt") is True
    out = capsys.readouterr().out
    assert "Failed to import CSV" in out
    assert 'Failed to open file "db.txt"' in out
    assert [r.id for r in session.store.records()] == [1]
