import argparse
import sqlite3
import sys

from . import crypto
from . import db
from . import paths
from . import tsv
from .errors import AuthError, StudentDBError
from .logs import setup_logging
from .shell import Session


def _unlock(args):
    keyring = paths.resolve_keyring_path(args.keyring)
    try:
        conn = db.open_existing(keyring)
    except FileNotFoundError:
        raise SystemExit(f"No keyring at {keyring}. Run: studentdb init")
    try:
        crypto.unlock(conn)
    except AuthError as e:
        raise SystemExit(f"CMS: {e}")
    finally:
        conn.close()


def _session(args) -> Session:
    session = Session(home=paths.resolve_home(args.home))
    if args.open:
        path = paths.path_for_read(args.open, session.home)
        try:
            tsv.load_tsv(session.store, path)
        except StudentDBError as e:
            print(f"CMS: Failed to open file \"{args.open}\": {e}")
            return session
        session.db_file = args.open
        print(f"CMS: The database file \"{args.open}\" is successfully opened.")
    return session


def cmd_init(args):
    keyring = paths.resolve_keyring_path(args.keyring)
    conn = db.connect(keyring)
    try:
        db.init_db(conn, args.kdf_iters or crypto.DEFAULT_KDF_ITERS)
        if crypto.is_initialized(conn):
            print(f"Keyring already initialized at: {keyring}")
            return
        crypto.set_passphrase(conn)
        print(f"Keyring initialized at: {keyring}")
    except sqlite3.DatabaseError as e:
        raise SystemExit(f"Cannot use keyring {keyring}: {e}")
    finally:
        conn.close()


def cmd_shell(args):
    _unlock(args)
    _session(args).interactive()


def cmd_run(args):
    _unlock(args)
    session = _session(args)
    if args.script == "-":
        session.run_lines(sys.stdin)
        return
    try:
        with open(args.script, "r", encoding="utf-8") as fh:
            lines = fh.readlines()
    except OSError as e:
        raise SystemExit(f"Cannot read script {args.script}: {e.strerror or e}")
    except UnicodeDecodeError as e:
        raise SystemExit(f"Cannot read script {args.script}: not a UTF-8 text file ({e.reason} at byte {e.start})")
    session.run_lines(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="studentdb", description="Class Management System (student records)")
    parser.add_argument("--keyring", help=f"Path to keyring DB (or set STUDENTDB_KEYRING). Default: {paths.DEFAULT_KEYRING}")
    parser.add_argument("--home", help="Folder for relative file names (or set STUDENTDB_HOME). Default: current directory")
    parser.add_argument("--log-file", help="Write a log to this file (or set STUDENTDB_LOG)")
    sub = parser.add_subparsers(dest="command", required=True)

    # init
    s = sub.add_parser("init", help="Create the keyring and set the database password")
    s.add_argument("--kdf-iters", type=int, help=f"PBKDF2 iterations (default {crypto.DEFAULT_KDF_ITERS})")
    s.set_defaults(func=cmd_init)

    # shell
    s = sub.add_parser("shell", help="Unlock and start the interactive command shell")
    s.add_argument("--open", help="Database file to OPEN before the first command")
    s.set_defaults(func=cmd_shell)

    # run
    s = sub.add_parser("run", help="Unlock and run commands from a script file ('-' for stdin)")
    s.add_argument("script")
    s.add_argument("--open", help="Database file to OPEN before the first command")
    s.set_defaults(func=cmd_run)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(paths.resolve_log_path(args.log_file))
    try:
        args.func(args)
    except KeyboardInterrupt:
        print("\nAborted by user.")
        sys.exit(1)
