import ntpath
import re
from typing import Optional

_INT_RE = re.compile(r"\s*([+-]?\d+)")
_HEX_FLOAT_RE = re.compile(
    r"\s*([+-]?0x(?:[0-9a-f]+\.?[0-9a-f]*|\.[0-9a-f]+)(?:p[+-]?\d+)?)",
    re.IGNORECASE,
)
_FLOAT_RE = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)


def trim_spaces(s: str) -> str:
    return s.strip()


def equals_ignore_case(a: str, b: str) -> bool:
    if len(a) != len(b):
        return False
    return all(x.lower() == y.lower() for x, y in zip(a, b))


def find_ignore_case(haystack: str, needle: str, start: int = 0) -> int:
    """Index of the first case-insensitive match of needle at or after start, else -1."""
    if not needle:
        return start
    n = len(needle)
    low = [c.lower() for c in needle]
    for i in range(start, len(haystack) - n + 1):
        if all(haystack[i + k].lower() == low[k] for k in range(n)):
            return i
    return -1


def contains_ignore_case(haystack: str, needle: str) -> bool:
    return find_ignore_case(haystack, needle) != -1


def parse_int(text: str) -> Optional[int]:
    # strtol rules: digits prefix counts, trailing junk ignored
    m = _INT_RE.match(text)
    return int(m.group(1)) if m else None


def parse_float(text: str) -> Optional[float]:
    # strtof also reads C99 hex floats: "0x1A" -> 26.0
    m = _HEX_FLOAT_RE.match(text)
    if m:
        return float.fromhex(m.group(1))
    m = _FLOAT_RE.match(text)
    return float(m.group(1)) if m else None


def file_stem(path: str) -> str:
    """'/a/b/db.txt' -> 'db'. Both separators are honoured."""
    base = ntpath.basename(path.replace("/", "\\"))
    stem, dot, _ = base.rpartition(".")
    return stem if dot else base
