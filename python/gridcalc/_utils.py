"""Cell addressing helpers: 0-based (row, col) <-> A1-style references."""

from __future__ import annotations


def column_letter(col: int) -> str:
    """Convert a 0-based column index to letters (0 -> "A", 26 -> "AA").

    Bijective base-26: there is no zero digit, so "Z" is followed by "AA".
    """
    if col < 0:
        raise ValueError(f"Column index must be non-negative: {col}")
    letters = ""
    n = col + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def column_index(letters: str) -> int:
    """Convert column letters to a 0-based index ("A" -> 0, "AA" -> 26)."""
    if not letters or not letters.isascii() or not letters.isalpha():
        raise ValueError(f"Invalid column letters: {letters!r}")
    idx = 0
    for ch in letters.upper():
        idx = idx * 26 + (ord(ch) - ord("A") + 1)
    return idx - 1


def coordinate_to_reference(col: int, row: int) -> str:
    """Build a reference like ``"B3"`` from a 0-based column and row."""
    if row < 0:
        raise ValueError(f"Row index must be non-negative: {row}")
    return f"{column_letter(col)}{row + 1}"


def rowcol_to_a1(row: int, col: int) -> str:
    """Same as :func:`coordinate_to_reference` with row-major argument order."""
    return coordinate_to_reference(col, row)


def reference_to_coordinate(text: str) -> tuple[int, int] | None:
    """Parse ``"A1"``, ``"$B$2"`` or ``"Sheet!C3"`` into 0-based ``(row, col)``.

    Anything up to and including the last ``!`` is treated as a sheet name
    and dropped; ``$`` markers are removed.  Returns ``None`` when what is
    left is not one or more letters followed by one or more digits.
    """
    name = text.strip()
    bang = name.rfind("!")
    if bang != -1:
        name = name[bang + 1:].strip()
    name = name.replace("$", "")
    if not name:
        return None

    i = 0
    while i < len(name) and name[i].isascii() and name[i].isalpha():
        i += 1
    if i == 0 or i == len(name):
        return None
    row_part = name[i:]
    if not (row_part.isascii() and row_part.isdigit()):
        return None

    row = int(row_part) - 1
    col = column_index(name[:i])
    if row < 0:
        return None
    return (row, col)


def a1_to_rowcol(text: str) -> tuple[int, int]:
    """Strict form of :func:`reference_to_coordinate` that raises on bad input."""
    coord = reference_to_coordinate(text)
    if coord is None:
        raise ValueError(f"Invalid A1 reference: {text!r}")
    return coord
