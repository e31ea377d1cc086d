"""gridcalc - formula evaluation for sparse grid editors.

Usage::

    from gridcalc import Grid

    grid = Grid()
    grid["A1"] = 1
    grid["A3"] = 3
    grid["B1"] = "=SUM(A1:A3)/2"
    grid.display_text(0, 1)   # "2"
    grid["C1"] = "=C1"
    grid.display_text(0, 2)   # "#CYCLE"
"""

from gridcalc._grid import Grid
from gridcalc._utils import (
    a1_to_rowcol,
    column_index,
    column_letter,
    coordinate_to_reference,
    reference_to_coordinate,
    rowcol_to_a1,
)
from gridcalc.calc import CellError, FunctionRegistry, Resolved

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CellError",
    "FunctionRegistry",
    "Grid",
    "Resolved",
    "a1_to_rowcol",
    "column_index",
    "column_letter",
    "coordinate_to_reference",
    "reference_to_coordinate",
    "rowcol_to_a1",
]
