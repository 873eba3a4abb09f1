"""
Level policy for the practice game.

Each level has its own time limit per question and question count.
A level is passed only with every answer correct; passing unlocks the
next level until the last one, which can be replayed indefinitely.
"""

import math
from dataclasses import dataclass

from sumapp.problems import Operation


@dataclass(frozen=True)
class LevelConfig:
    """Configuration for a single level."""

    level: int
    time_limit_seconds: float
    questions_per_level: int


# Time limit shrinks as the learner climbs; question count stays fixed
LEVELS: tuple[LevelConfig, ...] = (
    LevelConfig(level=1, time_limit_seconds=10, questions_per_level=10),
    LevelConfig(level=2, time_limit_seconds=9, questions_per_level=10),
    LevelConfig(level=3, time_limit_seconds=8, questions_per_level=10),
    LevelConfig(level=4, time_limit_seconds=7, questions_per_level=10),
    LevelConfig(level=5, time_limit_seconds=6, questions_per_level=10),
    LevelConfig(level=6, time_limit_seconds=5, questions_per_level=10),
    LevelConfig(level=7, time_limit_seconds=4, questions_per_level=10),
    LevelConfig(level=8, time_limit_seconds=3.5, questions_per_level=10),
    LevelConfig(level=9, time_limit_seconds=3, questions_per_level=10),
    LevelConfig(level=10, time_limit_seconds=3, questions_per_level=10),
)

MIN_LEVEL = LEVELS[0].level
MAX_LEVEL = len(LEVELS)

# Fraction of correct answers needed to pass (1.0 = no mistakes allowed)
SUCCESS_THRESHOLD = 1.0


@dataclass(frozen=True)
class LevelResult:
    """Outcome of a completed level attempt."""

    passed: bool
    percentage: int
    correct_count: int
    total_questions: int

    @property
    def required_correct(self) -> int:
        """Number of correct answers needed to pass this attempt."""
        return math.ceil(self.total_questions * SUCCESS_THRESHOLD)


def get_level_config(level: int) -> LevelConfig:
    """Get the configuration for a level, falling back to the first level."""
    for config in LEVELS:
        if config.level == level:
            return config
    return LEVELS[0]


def check_answer(a: int, b: int, operation: Operation | str, user_answer: int) -> bool:
    """Check a learner's answer. Unknown operations are never correct."""
    symbol = operation.value if isinstance(operation, Operation) else operation
    if symbol == Operation.ADD.value:
        return user_answer == a + b
    if symbol == Operation.SUB.value:
        return user_answer == a - b
    return False


def calculate_level_result(correct_count: int, total_questions: int) -> LevelResult:
    """
    Score a level attempt.

    Args:
        correct_count: Number of questions answered correctly.
        total_questions: Number of questions in the attempt.

    Returns:
        LevelResult with the rounded percentage and pass flag.

    Raises:
        ValueError: If total_questions is not positive.
    """
    if total_questions <= 0:
        raise ValueError(f"total_questions must be positive, got {total_questions}")

    ratio = correct_count / total_questions
    return LevelResult(
        passed=ratio >= SUCCESS_THRESHOLD,
        # Halves round up (12.5 -> 13), not to even
        percentage=math.floor(ratio * 100 + 0.5),
        correct_count=correct_count,
        total_questions=total_questions,
    )


def get_next_level(current_level: int) -> int:
    """The level unlocked by passing current_level (unchanged at the top)."""
    if current_level < MIN_LEVEL:
        return MIN_LEVEL
    if current_level < MAX_LEVEL:
        return current_level + 1
    return current_level


def is_max_level(level: int) -> bool:
    return level >= MAX_LEVEL


def format_time(seconds: float) -> str:
    """Whole seconds left for display, rounded up."""
    return str(max(0, math.ceil(seconds)))
