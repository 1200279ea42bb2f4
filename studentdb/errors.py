"""Errors raised by studentdb."""


class StudentDBError(Exception):
    """Base error for this package."""


class StorageError(StudentDBError):
    """Raised when a file cannot be read or written."""


class CsvParseError(StudentDBError):
    """Raised when a CSV line does not split into exactly four fields."""


class MalformedArgumentError(StudentDBError):
    """Raised when a KEY="value" argument has no closing quote."""

    def __init__(self, key: str):
        super().__init__(f"Unterminated quote in {key}=")
        self.key = key


class AuthError(StudentDBError):
    """Raised when the keyring is missing or cannot be unlocked."""
