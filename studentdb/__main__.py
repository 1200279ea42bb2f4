"""
studentdb — a line-oriented student record manager:
- in-memory record table keyed by student ID
- KEY=VALUE command language (INSERT, QUERY, UPDATE, DELETE, SHOW, FIND)
- tab-separated native files, CSV import/export, SQL export
- database password checked with PBKDF2 (cryptography)
Usage examples:
    python -m studentdb init
    python -m studentdb shell --open db.txt
    python -m studentdb run commands.txt --home ./data
"""
from .cli import main

if __name__ == "__main__":
    main()
