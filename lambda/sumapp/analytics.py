"""
Statistics across learner profiles for the admin view.

Computes the figures the admin looks at: per-learner totals and
accuracy, the problems each learner misses most, and how accuracy
developed per day and per ISO week. Presentation is left to the caller.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime

from sumapp.models import Profile, Quiz
from sumapp.problems import Operation
from sumapp.profiles import is_admin


def _percent(part: int, whole: int) -> float:
    """Percentage rounded to one decimal, 0.0 for an empty whole."""
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 1)


@dataclass(frozen=True)
class ProblemAccuracy:
    """Attempts on one problem by one learner."""

    problem: str
    correct: int
    wrong: int

    @property
    def total(self) -> int:
        return self.correct + self.wrong

    @property
    def accuracy(self) -> float:
        return _percent(self.correct, self.total)

    @property
    def error_rate(self) -> float:
        return self.wrong / self.total if self.total else 0.0


@dataclass(frozen=True)
class ProfileSummary:
    """Totals for one learner."""

    profile_name: str
    level: int
    total_correct: int
    total_wrong: int
    total_questions: int
    overall_accuracy: float
    problem_stats: list[ProblemAccuracy]
    last_played: datetime | None

    def top_missed(self, limit: int = 5) -> list[ProblemAccuracy]:
        return self.problem_stats[:limit]


@dataclass(frozen=True)
class DashboardSummary:
    total_players: int
    total_questions: int
    average_accuracy: float


@dataclass(frozen=True)
class ErrorList:
    """Attempted problems split by operation, most error-prone first."""

    additions: list[ProblemAccuracy]
    subtractions: list[ProblemAccuracy]


@dataclass(frozen=True)
class AccuracyPoint:
    period: str  # "YYYY-MM-DD" or "YYYY-Www"
    accuracy: float
    quizzes: int


@dataclass(frozen=True)
class AccuracyEvolution:
    by_day: list[AccuracyPoint]
    by_week: list[AccuracyPoint]


def _attempted(profile: Profile) -> list[ProblemAccuracy]:
    return [
        ProblemAccuracy(problem=key, correct=stat.correct, wrong=stat.wrong)
        for key, stat in profile.stats.items()
        if stat.total > 0
    ]


def calculate_profile_stats(profile: Profile) -> ProfileSummary:
    """Totals, overall accuracy and per-problem stats (most wrong first)."""
    problem_stats = _attempted(profile)
    total_correct = sum(stat.correct for stat in problem_stats)
    total_wrong = sum(stat.wrong for stat in problem_stats)
    total_questions = total_correct + total_wrong

    return ProfileSummary(
        profile_name=profile.name,
        level=profile.level,
        total_correct=total_correct,
        total_wrong=total_wrong,
        total_questions=total_questions,
        overall_accuracy=_percent(total_correct, total_questions),
        problem_stats=sorted(problem_stats, key=lambda stat: -stat.wrong),
        last_played=profile.last_played,
    )


def get_all_profiles_analytics(profiles: Mapping[str, Profile]) -> list[ProfileSummary]:
    """Summaries of every learner, most active first. The admin is skipped."""
    summaries = [
        calculate_profile_stats(profile)
        for name, profile in profiles.items()
        if not is_admin(name)
    ]
    return sorted(summaries, key=lambda summary: -summary.total_questions)


def dashboard_summary(summaries: list[ProfileSummary]) -> DashboardSummary:
    if not summaries:
        return DashboardSummary(total_players=0, total_questions=0, average_accuracy=0.0)

    average = sum(summary.overall_accuracy for summary in summaries) / len(summaries)
    return DashboardSummary(
        total_players=len(summaries),
        total_questions=sum(summary.total_questions for summary in summaries),
        average_accuracy=round(average, 1),
    )


def get_error_list(profile: Profile) -> ErrorList:
    """Attempted problems ordered by error rate, then by number of attempts."""
    ranked = sorted(_attempted(profile), key=lambda stat: (-stat.error_rate, -stat.total))
    return ErrorList(
        additions=[stat for stat in ranked if Operation.ADD.value in stat.problem],
        subtractions=[stat for stat in ranked if Operation.SUB.value in stat.problem],
    )


def week_key(moment: datetime) -> str:
    """ISO week label, e.g. "2024-W07"."""
    year, week, _ = moment.isocalendar()
    return f"{year}-W{week:02d}"


def _points(buckets: dict[str, list[int]]) -> list[AccuracyPoint]:
    return [
        AccuracyPoint(period=period, accuracy=_percent(correct, total), quizzes=count)
        for period, (correct, total, count) in sorted(buckets.items())
    ]


def calculate_accuracy_evolution(quizzes: Iterable[Quiz]) -> AccuracyEvolution:
    """Accuracy of closed quizzes grouped per day and per ISO week of their start."""
    by_day: dict[str, list[int]] = {}
    by_week: dict[str, list[int]] = {}

    for quiz in quizzes:
        if quiz.is_open:
            continue
        for buckets, period in (
            (by_day, quiz.start_time.date().isoformat()),
            (by_week, week_key(quiz.start_time)),
        ):
            bucket = buckets.setdefault(period, [0, 0, 0])
            bucket[0] += quiz.correct_count
            bucket[1] += quiz.total_questions
            bucket[2] += 1

    return AccuracyEvolution(by_day=_points(by_day), by_week=_points(by_week))


def session_durations(profile: Profile) -> list[int | None]:
    """Length of each session in whole minutes; None while still in progress."""
    return [
        round((session.end_time - session.start_time).total_seconds() / 60)
        if session.end_time
        else None
        for session in profile.sessions
    ]


def quiz_durations(profile: Profile) -> list[int | None]:
    """Length of each quiz in whole seconds; None while still in progress."""
    return [
        round((quiz.end_time - quiz.start_time).total_seconds()) if quiz.end_time else None
        for quiz in profile.quizzes
    ]
