"""Argument scanning and range helpers shared by the evaluator and functions."""

from __future__ import annotations

from gridcalc._utils import reference_to_coordinate
from gridcalc.calc._protocol import CellError, EvaluationError

# ---------------------------------------------------------------------------
# Argument scanning
# ---------------------------------------------------------------------------


def find_argument_end(text: str, start: int) -> int:
    """Index of the ``,`` or ``)`` that ends the argument starting at *start*.

    Only separators at nesting depth 0 count.  Returns ``len(text)`` when the
    argument runs to the end of the input.
    """
    depth = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch == '(':
            depth += 1
        elif ch == ')':
            if depth == 0:
                return i
            depth -= 1
        elif ch == ',' and depth == 0:
            return i
        i += 1
    return i


def split_arguments(text: str, start: int) -> tuple[list[str], int]:
    """Split a call's argument list beginning just after its ``(``.

    Returns ``(raw_args, end)`` where *end* is the index just past the
    closing ``)``.  Arguments are stripped but otherwise unparsed; an empty
    call such as ``SUM()`` yields ``[]``.  A missing ``)`` raises ``#ERR``.
    """
    i = start
    while i < len(text) and text[i] in ' \t':
        i += 1
    if i < len(text) and text[i] == ')':
        return [], i + 1

    args: list[str] = []
    while True:
        end = find_argument_end(text, i)
        if end >= len(text):
            raise EvaluationError(CellError.ERR, "unterminated argument list")
        args.append(text[i:end].strip())
        if text[end] == ')':
            return args, end + 1
        i = end + 1


# ---------------------------------------------------------------------------
# Ranges
# ---------------------------------------------------------------------------


def parse_range(arg: str) -> tuple[int, int, int, int] | None:
    """Parse ``"A1:B5"`` into normalized ``(r_min, c_min, r_max, c_max)``.

    The text is split at its first ``:``; both sides go through
    :func:`reference_to_coordinate`, so sheet prefixes and ``$`` markers are
    accepted.  Returns None if there is no colon or either side is invalid.
    """
    if ':' not in arg:
        return None
    left, right = arg.split(':', 1)
    start = reference_to_coordinate(left)
    end = reference_to_coordinate(right)
    if start is None or end is None:
        return None
    r_min, r_max = min(start[0], end[0]), max(start[0], end[0])
    c_min, c_max = min(start[1], end[1]), max(start[1], end[1])
    return (r_min, c_min, r_max, c_max)

