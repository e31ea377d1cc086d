"""Cycle guard and the grid-backed resolver."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from gridcalc._utils import reference_to_coordinate
from gridcalc.calc._evaluator import evaluate
from gridcalc.calc._functions import FunctionRegistry
from gridcalc.calc._protocol import CellError, GridSource, Resolved

logger = logging.getLogger(__name__)

FORMULA_MARKER = "="


class CycleGuard:
    """Coordinates whose formulas are being evaluated on the current stack.

    One guard belongs to one display request.  :meth:`enter` adds a
    coordinate for the duration of a ``with`` block and always removes it
    again, so membership mirrors the active call stack.
    """

    __slots__ = ("_active",)

    def __init__(self) -> None:
        self._active: set[tuple[int, int]] = set()

    @contextmanager
    def enter(self, coord: tuple[int, int]) -> Iterator[None]:
        self._active.add(coord)
        try:
            yield
        finally:
            self._active.discard(coord)

    def __contains__(self, coord: object) -> bool:
        return coord in self._active

    def __len__(self) -> int:
        return len(self._active)

    def __repr__(self) -> str:
        return f"<CycleGuard active={sorted(self._active)}>"


class GridResolver:
    """Resolves references against a :class:`GridSource`.

    Formula cells are evaluated recursively with this same resolver, so a
    single guard is shared by the whole evaluation.
    """

    __slots__ = ("source", "guard", "functions")

    def __init__(
        self,
        source: GridSource,
        guard: CycleGuard | None = None,
        functions: FunctionRegistry | None = None,
    ) -> None:
        self.source = source
        self.guard = guard if guard is not None else CycleGuard()
        self.functions = functions if functions is not None else FunctionRegistry()

    def __call__(self, name: str) -> Resolved:
        coord = reference_to_coordinate(name)
        if coord is None:
            return Resolved.failure(CellError.REF)
        row, col = coord
        if row < 0 or col < 0 or row >= self.source.n_rows or col >= self.source.n_cols:
            return Resolved.failure(CellError.REF)
        if coord in self.guard:
            logger.debug("Cycle detected at %s", name)
            return Resolved.failure(CellError.CYCLE)

        text = self.source.get_text(row, col)
        if not text:
            return Resolved.success(0.0)
        if text.startswith(FORMULA_MARKER):
            with self.guard.enter(coord):
                return evaluate(text[len(FORMULA_MARKER):], self, self.functions)
        return parse_literal(text)


def parse_literal(text: str) -> Resolved:
    """Read literal cell text as a number; non-numeric text is ``#ERR``."""
    # float() would also accept padding and digit separators
    if text != text.strip() or "_" in text:
        return Resolved.failure(CellError.ERR)
    try:
        return Resolved.success(float(text))
    except ValueError:
        return Resolved.failure(CellError.ERR)
