"""
Data models for the addition and subtraction practice game.

This module defines the records kept for each learner profile and the
shape of the single persisted document holding all of them:

    {
        "profiles": {name: profile record},
        "currentProfile": name | None,
    }

Field names inside records follow the persisted (camelCase) wire format.
Numbers are coerced with int() on load because DynamoDB hands back Decimals.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_record_id() -> str:
    """Opaque unique id for sessions and quizzes."""
    return uuid.uuid4().hex


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


def _format_time(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass
class ProblemStat:
    """Correct/wrong counters for one problem under one profile."""

    correct: int = 0
    wrong: int = 0

    @property
    def total(self) -> int:
        return self.correct + self.wrong

    @property
    def accuracy(self) -> float:
        """Accuracy rate between 0 and 1 (0 for never-attempted problems)."""
        if self.total == 0:
            return 0.0
        return self.correct / self.total

    def to_dict(self) -> dict:
        return {"correct": self.correct, "wrong": self.wrong}

    @classmethod
    def from_dict(cls, data: dict) -> "ProblemStat":
        return cls(
            correct=int(data.get("correct", 0) or 0),
            wrong=int(data.get("wrong", 0) or 0),
        )


@dataclass
class Quiz:
    """One attempt at a level. Open while end_time is None."""

    id: str
    level: int
    start_time: datetime
    end_time: datetime | None = None
    passed: bool = False
    correct_count: int = 0
    total_questions: int = 0

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "level": self.level,
            "startTime": _format_time(self.start_time),
            "endTime": _format_time(self.end_time),
            "passed": self.passed,
            "correctCount": self.correct_count,
            "totalQuestions": self.total_questions,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Quiz":
        return cls(
            id=str(data["id"]),
            level=int(data.get("level", 1)),
            start_time=_parse_time(data.get("startTime")) or utc_now(),
            end_time=_parse_time(data.get("endTime")),
            passed=bool(data.get("passed", False)),
            correct_count=int(data.get("correctCount", 0) or 0),
            total_questions=int(data.get("totalQuestions", 0) or 0),
        )


@dataclass
class Session:
    """One continuous play visit, referencing the quizzes started during it."""

    id: str
    start_time: datetime
    end_time: datetime | None = None
    quiz_ids: list[str] = field(default_factory=list)

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "startTime": _format_time(self.start_time),
            "endTime": _format_time(self.end_time),
            "quizIds": list(self.quiz_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        # Older documents stored the id list under "quizzes"
        quiz_ids = data.get("quizIds", data.get("quizzes")) or []
        return cls(
            id=str(data["id"]),
            start_time=_parse_time(data.get("startTime")) or utc_now(),
            end_time=_parse_time(data.get("endTime")),
            quiz_ids=[str(quiz_id) for quiz_id in quiz_ids],
        )


@dataclass
class Profile:
    """
    A learner identity with its level, per-problem stats and play history.

    The profile name is the key under which the record is stored, so it
    is not part of the serialized record itself.
    """

    name: str
    level: int = 1
    stats: dict[str, ProblemStat] = field(default_factory=dict)
    last_played: datetime = field(default_factory=utc_now)
    sessions: list[Session] = field(default_factory=list)
    quizzes: list[Quiz] = field(default_factory=list)

    def get_stat(self, problem_key: str) -> ProblemStat:
        """Stats for a problem, or a zero record if it was never attempted.

        The returned default is not stored on the profile.
        """
        stat = self.stats.get(problem_key)
        if stat is None:
            return ProblemStat()
        return ProblemStat(correct=stat.correct, wrong=stat.wrong)

    def record_result(self, problem_key: str, is_correct: bool) -> ProblemStat:
        """Increment one counter for a problem, creating its stats on first use."""
        stat = self.stats.setdefault(problem_key, ProblemStat())
        if is_correct:
            stat.correct += 1
        else:
            stat.wrong += 1
        self.last_played = utc_now()
        return stat

    def open_session(self) -> Session | None:
        """The most recent session if it is still open."""
        if self.sessions and self.sessions[-1].is_open:
            return self.sessions[-1]
        return None

    def open_quiz(self) -> Quiz | None:
        """The most recent quiz if it is still open."""
        if self.quizzes and self.quizzes[-1].is_open:
            return self.quizzes[-1]
        return None

    def find_quiz(self, quiz_id: str) -> Quiz | None:
        for quiz in self.quizzes:
            if quiz.id == quiz_id:
                return quiz
        return None

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "stats": {key: stat.to_dict() for key, stat in self.stats.items()},
            "lastPlayed": _format_time(self.last_played),
            "sessions": [session.to_dict() for session in self.sessions],
            "quizzes": [quiz.to_dict() for quiz in self.quizzes],
        }

    @classmethod
    def from_dict(cls, name: str, data: dict) -> "Profile":
        stats_data = data.get("stats") or {}
        return cls(
            name=name,
            level=int(data.get("level", 1) or 1),
            stats={key: ProblemStat.from_dict(value) for key, value in stats_data.items()},
            last_played=_parse_time(data.get("lastPlayed")) or utc_now(),
            sessions=[Session.from_dict(item) for item in data.get("sessions") or []],
            quizzes=[Quiz.from_dict(item) for item in data.get("quizzes") or []],
        )


@dataclass
class GameData:
    """The whole persisted document: every profile plus the current-profile pointer."""

    profiles: dict[str, Profile] = field(default_factory=dict)
    current_profile: str | None = None

    def to_dict(self) -> dict:
        return {
            "profiles": {name: profile.to_dict() for name, profile in self.profiles.items()},
            "currentProfile": self.current_profile,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "GameData":
        data = data or {}
        profiles_data = data.get("profiles") or {}
        return cls(
            profiles={
                name: Profile.from_dict(name, record) for name, record in profiles_data.items()
            },
            current_profile=data.get("currentProfile"),
        )
