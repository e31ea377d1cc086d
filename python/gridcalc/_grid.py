"""Grid: sparse cell storage with tracked row and column extents."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

from gridcalc._utils import a1_to_rowcol
from gridcalc.calc import FunctionRegistry, Resolved, display_text, evaluate_cell

DEFAULT_WIDTH = 16
DEFAULT_HEIGHT = 1
INITIAL_ROWS = 8
INITIAL_COLS = 8
MIN_COL_WIDTH = 4
MIN_ROW_HEIGHT = 1


class Grid:
    """Sparse mapping of 0-based ``(row, col)`` to raw cell text.

    ``col_widths`` and ``row_heights`` are the tracked extents: a reference
    is valid only if both indices fall inside them.  Writing a cell grows
    the extents first, so storage never holds a coordinate beyond them.

    Usage::

        grid = Grid()
        grid["A1"] = "2"
        grid["A2"] = "=A1*21"
        grid.display_text(1, 0)   # "42"
    """

    __slots__ = (
        "_cells", "col_widths", "row_heights",
        "default_width", "default_height", "functions", "_next_append_row",
    )

    def __init__(
        self,
        initial_rows: int = INITIAL_ROWS,
        initial_cols: int = INITIAL_COLS,
        default_width: int = DEFAULT_WIDTH,
        default_height: int = DEFAULT_HEIGHT,
        functions: FunctionRegistry | None = None,
    ) -> None:
        self._cells: dict[tuple[int, int], str] = {}
        self.default_width = default_width
        self.default_height = default_height
        self.col_widths: list[int] = [default_width] * initial_cols
        self.row_heights: list[int] = [default_height] * initial_rows
        self.functions = functions if functions is not None else FunctionRegistry()
        self._next_append_row = 0

    # ------------------------------------------------------------------
    # Extents
    # ------------------------------------------------------------------

    @property
    def n_rows(self) -> int:
        return len(self.row_heights)

    @property
    def n_cols(self) -> int:
        return len(self.col_widths)

    def ensure_row_exists(self, idx: int) -> None:
        while len(self.row_heights) <= idx:
            self.row_heights.append(self.default_height)

    def ensure_col_exists(self, idx: int) -> None:
        while len(self.col_widths) <= idx:
            self.col_widths.append(self.default_width)

    def set_all_col_widths(self, width: int) -> None:
        """Set every tracked column to *width*; widths below 4 are ignored."""
        if width < MIN_COL_WIDTH:
            return
        self.col_widths = [width] * len(self.col_widths)

    def set_all_row_heights(self, height: int) -> None:
        """Set every tracked row to *height*; heights below 1 are ignored."""
        if height < MIN_ROW_HEIGHT:
            return
        self.row_heights = [height] * len(self.row_heights)

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------
    #
    # Inserting and deleting moves stored text only; formulas are not
    # rewritten, so a reference keeps pointing at the same coordinate.

    def insert_row(self, idx: int) -> None:
        """Insert an empty row before *idx*; rows at or below it move down.

        *idx* is clamped to ``[0, n_rows]``, so ``n_rows`` appends a row.
        """
        idx = min(max(idx, 0), self.n_rows)
        self.row_heights.insert(idx, self.default_height)
        self._shift_cells(0, idx, 1)

    def insert_col(self, idx: int) -> None:
        """Insert an empty column before *idx*; columns from it move right."""
        idx = min(max(idx, 0), self.n_cols)
        self.col_widths.insert(idx, self.default_width)
        self._shift_cells(1, idx, 1)

    def delete_row(self, idx: int) -> None:
        """Remove row *idx* and its cells; rows below it move up."""
        if not 0 <= idx < self.n_rows:
            raise IndexError(f"Row {idx} is outside the grid ({self.n_rows} rows)")
        del self.row_heights[idx]
        self._cells = {k: v for k, v in self._cells.items() if k[0] != idx}
        self._shift_cells(0, idx + 1, -1)

    def delete_col(self, idx: int) -> None:
        """Remove column *idx* and its cells; columns to its right move left."""
        if not 0 <= idx < self.n_cols:
            raise IndexError(f"Column {idx} is outside the grid ({self.n_cols} columns)")
        del self.col_widths[idx]
        self._cells = {k: v for k, v in self._cells.items() if k[1] != idx}
        self._shift_cells(1, idx + 1, -1)

    def _shift_cells(self, axis: int, start: int, delta: int) -> None:
        cells: dict[tuple[int, int], str] = {}
        for (row, col), text in self._cells.items():
            if axis == 0 and row >= start:
                row += delta
            elif axis == 1 and col >= start:
                col += delta
            cells[(row, col)] = text
        self._cells = cells

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def get_text(self, row: int, col: int) -> str:
        return self._cells.get((row, col), "")

    def has_cell(self, row: int, col: int) -> bool:
        return (row, col) in self._cells

    def set_cell(self, row: int, col: int, text: str) -> None:
        if row < 0 or col < 0:
            raise ValueError(f"Cell coordinates must be non-negative: {(row, col)}")
        self.ensure_row_exists(row)
        self.ensure_col_exists(col)
        self._cells[(row, col)] = text

    def clear_cell(self, row: int, col: int) -> None:
        self._cells.pop((row, col), None)

    def cell(self, row: int, col: int, value: Any = None) -> str:
        """Get (and optionally set) the raw text at 0-based ``(row, col)``."""
        if value is not None:
            self.set_cell(row, col, str(value))
        return self.get_text(row, col)

    def __getitem__(self, key: str) -> str:
        """``grid['A1']`` -> raw text."""
        row, col = a1_to_rowcol(key)
        return self.get_text(row, col)

    def __setitem__(self, key: str, value: Any) -> None:
        """``grid['A1'] = 42`` stores ``"42"``; ``None`` clears the cell."""
        row, col = a1_to_rowcol(key)
        if value is None:
            self.clear_cell(row, col)
        else:
            self.set_cell(row, col, str(value))

    def __contains__(self, key: str) -> bool:
        row, col = a1_to_rowcol(key)
        return self.has_cell(row, col)

    def __len__(self) -> int:
        return len(self._cells)

    # ------------------------------------------------------------------
    # Bulk writes
    # ------------------------------------------------------------------

    def append(self, iterable: Iterable[Any]) -> None:
        """Write a row of values below the last appended row, from column A.

        ``None`` entries leave their cell untouched.
        """
        row = self._next_append_row
        for col, value in enumerate(iterable):
            if value is not None:
                self.set_cell(row, col, str(value))
        self._next_append_row += 1

    def write_rows(
        self,
        rows: list[list[Any]],
        start_row: int = 0,
        start_col: int = 0,
    ) -> None:
        """Write a 2D block of values with its top-left at (start_row, start_col)."""
        for ri, row in enumerate(rows):
            for ci, value in enumerate(row):
                if value is not None:
                    self.set_cell(start_row + ri, start_col + ci, str(value))

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------

    def iter_cells(self) -> Iterator[tuple[int, int, str]]:
        """Yield ``(row, col, text)`` for stored cells in row-major order."""
        for (row, col) in sorted(self._cells):
            yield row, col, self._cells[(row, col)]

    def iter_rows(
        self,
        min_row: int = 0,
        max_row: int | None = None,
        min_col: int = 0,
        max_col: int | None = None,
        display: bool = False,
    ) -> Iterator[tuple[str, ...]]:
        """Iterate over rows of raw text (or display text) in a block.

        Bounds are inclusive and default to the tracked extents.
        """
        r_max = self.n_rows - 1 if max_row is None else max_row
        c_max = self.n_cols - 1 if max_col is None else max_col
        read = self.display_text if display else self.get_text
        for r in range(min_row, r_max + 1):
            yield tuple(read(r, c) for c in range(min_col, c_max + 1))

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def display_text(self, row: int, col: int) -> str:
        """What the cell shows: literal text, a formula result or an error code."""
        return display_text(self, row, col, self.functions)

    def evaluate(self, row: int, col: int) -> Resolved:
        """Numeric value of a cell (formula result, parsed literal or 0)."""
        return evaluate_cell(self, row, col, self.functions)

    def __repr__(self) -> str:
        return f"<Grid {self.n_rows}x{self.n_cols} cells={len(self._cells)}>"
