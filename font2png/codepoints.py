"""
Candidate code point selection.

Two modes:
  - default: scan the whole scalar value space and keep letters, digits,
    punctuation and symbols (see `default_keep`).
  - explicit range: every scalar value in an inclusive [start, end] range,
    no category filter.

Glyph existence is not checked here; undefined glyphs are dropped later by
the batch runner.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Callable, Iterator, List, Optional, Tuple

from .errors import UnicodeRangeParseError

MAX_CODE_POINT = 0x10FFFF
SURROGATE_START = 0xD800
SURROGATE_END = 0xDFFF

# General categories kept in addition to isalpha()/isalnum().
# The list is empirical; pass a custom predicate to CodePointSelector to change it.
KEEP_CATEGORIES = frozenset({"Lo", "So", "Lm", "Sk"})
KEEP_CATEGORY_PREFIXES = ("P", "S")

_BOUND_RE = re.compile(r"^(?:0[xX]|[uU]\+)([0-9A-Fa-f]+)$")


def is_scalar_value(cp: int) -> bool:
    return 0 <= cp <= MAX_CODE_POINT and not (SURROGATE_START <= cp <= SURROGATE_END)


def default_keep(cp: int) -> bool:
    ch = chr(cp)
    if ch.isalpha() or ch.isalnum():
        return True
    cat = unicodedata.category(ch)
    return cat in KEEP_CATEGORIES or cat.startswith(KEEP_CATEGORY_PREFIXES)


def parse_code_point(text: str) -> int:
    """Parse a `0x`- or `U+`-prefixed hex scalar value."""
    m = _BOUND_RE.match(text.strip())
    if not m:
        raise UnicodeRangeParseError(
            f"Malformed code point {text!r}, expected 0xHEX or U+HEX"
        )
    value = int(m.group(1), 16)
    if value > MAX_CODE_POINT:
        raise UnicodeRangeParseError(f"Unicode value is out of range: {text}")
    return value


def parse_unicode_range(text: str) -> Tuple[int, int]:
    """
    Parse `START..END` into an inclusive (start, end) pair.

    >>> parse_unicode_range("0x0041..U+005A")
    (65, 90)
    """
    if text is None or ".." not in text:
        raise UnicodeRangeParseError(
            f"Invalid range specified: {text!r}, expected START..END"
        )
    start_s, end_s = text.split("..", 1)
    start = parse_code_point(start_s)
    end = parse_code_point(end_s)
    if start > end:
        raise UnicodeRangeParseError(
            f"Invalid range specified: start U+{start:04X} is after end U+{end:04X}"
        )
    return start, end


class CodePointSelector:
    """
    Produces an ascending, duplicate-free sequence of scalar values.

    Args:
        unicode_range: optional inclusive (start, end); bypasses the predicate.
        predicate: keep-function for the default scan.
    """

    def __init__(
        self,
        unicode_range: Optional[Tuple[int, int]] = None,
        predicate: Callable[[int], bool] = default_keep,
    ):
        if unicode_range is not None:
            start, end = unicode_range
            if not (0 <= start <= end <= MAX_CODE_POINT):
                raise UnicodeRangeParseError(
                    f"Invalid range specified: U+{start:04X}..U+{end:04X}"
                )
        self.unicode_range = unicode_range
        self.predicate = predicate

    def __iter__(self) -> Iterator[int]:
        if self.unicode_range is not None:
            start, end = self.unicode_range
            for cp in range(start, end + 1):
                if is_scalar_value(cp):
                    yield cp
            return
        for cp in range(0, MAX_CODE_POINT + 1):
            if SURROGATE_START <= cp <= SURROGATE_END:
                continue
            if self.predicate(cp):
                yield cp

    def select(self, limit: Optional[int] = None) -> List[int]:
        out: List[int] = []
        for cp in self:
            if limit is not None and len(out) >= limit:
                break
            out.append(cp)
        return out
