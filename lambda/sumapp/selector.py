"""
Adaptive question selection for the practice game.

Problems the learner got wrong before are asked more often. Every
problem in the universe gets a weight:

    weight = 1 + wrong_answers * difficulty_factor
    difficulty_factor = 1.0 + (level - 1) * 0.1

so a missed fact weighs more the higher the level. Never-attempted
problems keep the baseline weight of 1 and always stay selectable.
Questions are drawn independently with replacement, each draw picking
problem p with probability weight(p) / sum(weights).
"""

import bisect
import itertools
import random
from collections.abc import Mapping, Sequence

from sumapp.models import Profile, ProblemStat
from sumapp.problems import Problem, get_all_problems

BASE_WEIGHT = 1.0
DIFFICULTY_STEP = 0.1


def difficulty_factor(level: int) -> float:
    """Multiplier applied to wrong answers, growing linearly with level."""
    return 1.0 + (level - 1) * DIFFICULTY_STEP


def calculate_weight(problem_key: str, stats: Mapping[str, ProblemStat], level: int) -> float:
    """Selection weight for one problem given the learner's stats."""
    stat = stats.get(problem_key)
    wrong = stat.wrong if stat else 0
    return BASE_WEIGHT + wrong * difficulty_factor(level)


def _stats_of(source: Profile | Mapping[str, ProblemStat]) -> Mapping[str, ProblemStat]:
    if isinstance(source, Profile):
        return source.stats
    return source


def selection_weights(
    source: Profile | Mapping[str, ProblemStat], level: int
) -> list[tuple[Problem, float]]:
    """Weight of every problem in the universe, in canonical order."""
    stats = _stats_of(source)
    return [
        (problem, calculate_weight(problem.key, stats, level))
        for problem in get_all_problems()
    ]


class WeightedSampler:
    """
    Draws items with probability proportional to their weight.

    Uses a cumulative weight table and binary search, so each draw
    costs O(log n) regardless of how large the weights grow.
    """

    def __init__(self, weighted_items: Sequence[tuple[Problem, float]]):
        if not weighted_items:
            raise ValueError("Cannot sample from an empty set of problems")
        if any(weight <= 0 for _, weight in weighted_items):
            raise ValueError("Weights must be positive")

        self._items = [item for item, _ in weighted_items]
        self._cumulative = list(itertools.accumulate(weight for _, weight in weighted_items))

    @property
    def total_weight(self) -> float:
        return self._cumulative[-1]

    def probability(self, index: int) -> float:
        previous = self._cumulative[index - 1] if index > 0 else 0.0
        return (self._cumulative[index] - previous) / self.total_weight

    def draw(self, rng: random.Random | None = None) -> Problem:
        r = (rng or random).random() * self.total_weight
        index = bisect.bisect_right(self._cumulative, r)
        # r can only reach total_weight through float rounding
        return self._items[min(index, len(self._items) - 1)]


def selection_probabilities(
    source: Profile | Mapping[str, ProblemStat], level: int
) -> dict[str, float]:
    """Per-draw probability of each problem key."""
    weighted = selection_weights(source, level)
    sampler = WeightedSampler(weighted)
    return {problem.key: sampler.probability(i) for i, (problem, _) in enumerate(weighted)}


def select_questions(
    source: Profile | Mapping[str, ProblemStat],
    level: int,
    count: int,
    rng: random.Random | None = None,
) -> list[Problem]:
    """
    Select the questions for one quiz.

    Args:
        source: The learner's Profile, or just its stats mapping.
        level: The level being played; scales the weight of past mistakes.
        count: Number of questions to draw.
        rng: Optional random generator (for reproducible draws).

    Returns:
        A list of count problems. The same problem may appear more than once.

    Raises:
        ValueError: If count is negative.
    """
    if count < 0:
        raise ValueError(f"count must not be negative, got {count}")
    if count == 0:
        return []

    sampler = WeightedSampler(selection_weights(source, level))
    return [sampler.draw(rng) for _ in range(count)]
