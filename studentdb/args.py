"""KEY=VALUE argument extraction for command lines such as

    INSERT ID=2301234 Name="Brian Goh" Programme="Digital Supply Chain" Mark=88.8

Keys match case-insensitively and in any order. A key only counts when it
starts a token (line start or after whitespace) and is followed by `=`.
Values are either a double-quoted run (no escapes, may hold spaces) or a
bare run of non-whitespace characters.
"""

from __future__ import annotations

import enum
from typing import Dict, Iterable, NamedTuple, Optional

from .errors import MalformedArgumentError
from .text import find_ignore_case

DEFAULT_MAX_LENGTHS = {
    "id": 63,
    "name": 127,
    "programme": 127,
    "mark": 63,
}


class ArgStatus(enum.Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    MALFORMED = "malformed"


class ArgResult(NamedTuple):
    status: ArgStatus
    value: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status is ArgStatus.FOUND


NOT_FOUND = ArgResult(ArgStatus.NOT_FOUND)
MALFORMED = ArgResult(ArgStatus.MALFORMED)


def _skip_spaces(line: str, pos: int) -> int:
    while pos < len(line) and line[pos].isspace():
        pos += 1
    return pos


def read_key_value(line: str, key: str, max_length: Optional[int] = None) -> ArgResult:
    """Extract the value of `key` from a command line.

    Occurrences of the key that are glued to a previous word (``VALIDID=5``)
    or not followed by ``=`` are skipped and the scan moves on. Values longer
    than `max_length` are truncated.

    Returns:
        ArgResult with status FOUND and the value, NOT_FOUND, or MALFORMED
        when the value opens a quote that is never closed.
    """
    if max_length is None:
        max_length = DEFAULT_MAX_LENGTHS.get(key.lower())
    pos = 0
    while True:
        pos = find_ignore_case(line, key, pos)
        if pos == -1:
            return NOT_FOUND

        if pos > 0 and not line[pos - 1].isspace():
            pos += 1
            continue

        eq = _skip_spaces(line, pos + len(key))
        if eq >= len(line) or line[eq] != "=":
            pos += 1
            continue

        start = _skip_spaces(line, eq + 1)
        if start < len(line) and line[start] == '"':
            end = line.find('"', start + 1)
            if end == -1:
                return MALFORMED
            value = line[start + 1:end]
        else:
            end = start
            while end < len(line) and not line[end].isspace():
                end += 1
            value = line[start:end]
            if not value:
                return NOT_FOUND

        if max_length is not None:
            value = value[:max_length]
        return ArgResult(ArgStatus.FOUND, value)


def parse_arguments(line: str, keys: Iterable[str]) -> Dict[str, str]:
    """Read every key in `keys`; absent keys are left out of the result.

    Raises:
        MalformedArgumentError: on the first key whose quote is not closed.
    """
    parsed: Dict[str, str] = {}
    for key in keys:
        result = read_key_value(line, key)
        if result.status is ArgStatus.MALFORMED:
            raise MalformedArgumentError(key)
        if result.found:
            parsed[key] = result.value
    return parsed
