"""Resolver protocol, resolved values and the closed error vocabulary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# CellError: the four error values a formula can produce
# ---------------------------------------------------------------------------


class CellError:
    """Error value produced by formula evaluation.

    The set is closed: ``CellError.of(code)`` returns one of the four
    singletons below and rejects any other code.  Errors compare equal to
    their display text (``CellError.REF == "#REF"``).
    """

    __slots__ = ("code",)
    _cache: ClassVar[dict[str, CellError]] = {}
    CODES: ClassVar[tuple[str, ...]] = ("#REF", "#DIV/0", "#CYCLE", "#ERR")

    REF: ClassVar[CellError]
    DIV0: ClassVar[CellError]
    CYCLE: ClassVar[CellError]
    ERR: ClassVar[CellError]

    def __init__(self, code: str) -> None:
        self.code = code

    @classmethod
    def of(cls, code: str) -> CellError:
        canon = code.strip().upper()
        if canon not in cls.CODES:
            raise ValueError(f"Unknown error code: {code!r}")
        if canon not in cls._cache:
            cls._cache[canon] = cls(canon)
        return cls._cache[canon]

    def __repr__(self) -> str:
        return f"CellError({self.code!r})"

    def __str__(self) -> str:
        return self.code

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CellError):
            return self.code == other.code
        if isinstance(other, str):
            return self.code == other.upper()
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.code)


CellError.REF = CellError.of("#REF")
CellError.DIV0 = CellError.of("#DIV/0")
CellError.CYCLE = CellError.of("#CYCLE")
CellError.ERR = CellError.of("#ERR")


class EvaluationError(Exception):
    """Raised inside the engine to abort the enclosing evaluation.

    Never escapes :func:`gridcalc.calc.evaluate`; it is converted into a
    failed :class:`Resolved` there.
    """

    def __init__(self, error: CellError, detail: str = "") -> None:
        super().__init__(f"{error.code}: {detail}" if detail else error.code)
        self.error = error
        self.detail = detail


# ---------------------------------------------------------------------------
# Resolved values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Resolved:
    """Outcome of resolving a cell or evaluating an expression.

    ``value`` is only meaningful when ``error`` is None.
    """

    value: float = 0.0
    error: CellError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: float) -> Resolved:
        return cls(float(value), None)

    @classmethod
    def failure(cls, error: CellError) -> Resolved:
        return cls(0.0, error)

    def unwrap(self) -> float:
        """Return the value, raising :class:`EvaluationError` for a failure."""
        if self.error is not None:
            raise EvaluationError(self.error)
        return self.value


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class Resolver(Protocol):
    """Callback the evaluator uses to obtain another cell's value."""

    def __call__(self, name: str) -> Resolved:
        """Resolve a reference such as ``"B7"`` to its current value."""
        ...


@runtime_checkable
class GridSource(Protocol):
    """Read-only view of grid storage used by the resolver."""

    @property
    def n_rows(self) -> int:
        """Number of tracked rows; valid row indices are ``0..n_rows-1``."""
        ...

    @property
    def n_cols(self) -> int:
        """Number of tracked columns."""
        ...

    def get_text(self, row: int, col: int) -> str:
        """Raw text at ``(row, col)``, ``""`` for an empty cell."""
        ...
