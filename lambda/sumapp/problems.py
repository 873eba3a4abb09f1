"""
Problem universe for the addition and subtraction practice game.

This module enumerates the fixed set of single-digit arithmetic facts
the game can ask, and the canonical keys used to track per-problem
statistics:
- Addition: a + b for a, b in 0..9 (100 facts)
- Subtraction: a - b for a in 1..9, b in 0..a (54 facts, never negative)
"""

from dataclasses import dataclass
from enum import Enum


class Operation(Enum):
    """Supported operations, valued by their display symbol."""

    ADD = "+"
    SUB = "-"


MIN_OPERAND = 0
MAX_OPERAND = 9


@dataclass(frozen=True)
class Problem:
    """A single arithmetic fact."""

    a: int
    b: int
    operation: Operation

    @property
    def key(self) -> str:
        """Canonical key for stat tracking, e.g. "7+5"."""
        return get_problem_key(self.a, self.b, self.operation)

    @property
    def answer(self) -> int:
        return answer_for(self.a, self.b, self.operation)

    @property
    def text(self) -> str:
        return f"{self.a} {self.operation.value} {self.b}"


def _as_operation(operation: Operation | str) -> Operation:
    if isinstance(operation, Operation):
        return operation
    return Operation(operation)


def get_problem_key(a: int, b: int, operation: Operation | str) -> str:
    """Generate the unique key for a problem: operand, symbol, operand."""
    return f"{a}{_as_operation(operation).value}{b}"


def answer_for(a: int, b: int, operation: Operation | str) -> int:
    """Arithmetic result of a problem."""
    op = _as_operation(operation)
    if op == Operation.ADD:
        return a + b
    return a - b


def _build_universe() -> tuple[Problem, ...]:
    problems = []

    for a in range(MIN_OPERAND, MAX_OPERAND + 1):
        for b in range(MIN_OPERAND, MAX_OPERAND + 1):
            problems.append(Problem(a, b, Operation.ADD))

    # Minuend starts at 1 and the subtrahend never exceeds it
    for a in range(1, MAX_OPERAND + 1):
        for b in range(0, a + 1):
            problems.append(Problem(a, b, Operation.SUB))

    return tuple(problems)


_UNIVERSE: tuple[Problem, ...] = _build_universe()
_BY_KEY: dict[str, Problem] = {problem.key: problem for problem in _UNIVERSE}


def get_all_problems() -> tuple[Problem, ...]:
    """Return every problem in canonical order (additions, then subtractions)."""
    return _UNIVERSE


def universe_size() -> int:
    return len(_UNIVERSE)


def is_valid_key(key: str) -> bool:
    return key in _BY_KEY


def parse_problem_key(key: str) -> Problem:
    """
    Rebuild a Problem from its key.

    Args:
        key: A problem key such as "7+5" or "9-3".

    Returns:
        The matching Problem from the universe.

    Raises:
        ValueError: If the key does not name a problem in the universe.
    """
    try:
        return _BY_KEY[key]
    except KeyError:
        raise ValueError(f"Unknown problem key: {key!r}") from None
