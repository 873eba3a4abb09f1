"""
Session and quiz lifecycle recording.

Each profile keeps two nested timelines:
- Sessions: one per continuous play visit, at most one open at a time.
- Quizzes: one per level attempt, at most one open at a time, each
  referenced by the session that was open when it started.

Every operation loads the whole game document, changes one profile and
saves the document again before returning, so an answer is durable
before the next question is asked.
"""

import logging

from sumapp.errors import NotFoundError, ValidationError
from sumapp.models import GameData, ProblemStat, Profile, Quiz, Session, new_record_id, utc_now
from sumapp.persistence import PersistenceManager
from sumapp.problems import is_valid_key

logger = logging.getLogger(__name__)


class QuizRecorder:
    """Opens and closes sessions and quizzes and records per-problem results."""

    def __init__(self, persistence_manager: PersistenceManager):
        self._pm = persistence_manager

    def _load_profile(self, profile_name: str) -> tuple[GameData, Profile]:
        game_data = self._pm.load()
        profile = game_data.profiles.get(profile_name)
        if profile is None:
            raise NotFoundError(f"Profile not found: {profile_name}")
        return game_data, profile

    @staticmethod
    def _close_quiz(quiz: Quiz, passed: bool, correct_count: int, total_questions: int) -> None:
        quiz.end_time = utc_now()
        quiz.passed = passed
        quiz.correct_count = correct_count
        quiz.total_questions = total_questions

    def start_session(self, profile_name: str) -> Session:
        """
        Open a new play session.

        If a session is already open it is returned as is and nothing
        is written.
        """
        game_data, profile = self._load_profile(profile_name)

        current = profile.open_session()
        if current is not None:
            logger.warning(
                f"Session {current.id} already open for {profile_name}, not starting another"
            )
            return current

        session = Session(id=new_record_id(), start_time=utc_now())
        profile.sessions.append(session)
        profile.last_played = utc_now()
        self._pm.save(game_data)

        logger.info(f"Started session {session.id} for {profile_name}")
        return session

    def end_session(self, profile_name: str) -> Session | None:
        """
        Close the open session, if any.

        A quiz still open at that point is closed as an abandoned attempt.

        Returns:
            The closed session, or None if there was nothing to close.
        """
        game_data, profile = self._load_profile(profile_name)

        session = profile.open_session()
        if session is None:
            logger.info(f"No open session to end for {profile_name}")
            return None

        quiz = profile.open_quiz()
        if quiz is not None:
            logger.warning(f"Closing abandoned quiz {quiz.id} with session {session.id}")
            self._close_quiz(quiz, False, quiz.correct_count, quiz.total_questions)

        session.end_time = utc_now()
        self._pm.save(game_data)

        logger.info(f"Ended session {session.id} for {profile_name}")
        return session

    def start_quiz(self, profile_name: str, level: int) -> Quiz:
        """
        Open a quiz for a level attempt.

        Opens a session first if none is open. If a previous quiz was
        never closed, it is closed as a failed attempt with the counts it
        had, so that it does not stay open forever.
        """
        game_data, profile = self._load_profile(profile_name)

        stale = profile.open_quiz()
        if stale is not None:
            logger.warning(
                f"Quiz {stale.id} for {profile_name} was still open; closing it as abandoned"
            )
            self._close_quiz(stale, False, stale.correct_count, stale.total_questions)

        session = profile.open_session()
        if session is None:
            session = Session(id=new_record_id(), start_time=utc_now())
            profile.sessions.append(session)
            logger.info(f"Started session {session.id} for {profile_name}")

        quiz = Quiz(id=new_record_id(), level=level, start_time=utc_now())
        profile.quizzes.append(quiz)
        session.quiz_ids.append(quiz.id)
        profile.last_played = utc_now()
        self._pm.save(game_data)

        logger.info(f"Started quiz {quiz.id} at level {level} for {profile_name}")
        return quiz

    def end_quiz(
        self, profile_name: str, passed: bool, correct_count: int, total_questions: int
    ) -> Quiz | None:
        """
        Close the open quiz with its final outcome.

        Returns:
            The closed quiz, or None if the latest quiz was already closed.

        Raises:
            ValidationError: If the counts are negative or inconsistent.
        """
        if correct_count < 0 or total_questions < 0:
            raise ValidationError("Quiz counts must not be negative")
        if correct_count > total_questions:
            raise ValidationError(
                f"correct_count ({correct_count}) exceeds total_questions ({total_questions})"
            )

        game_data, profile = self._load_profile(profile_name)

        quiz = profile.open_quiz()
        if quiz is None:
            logger.info(f"No open quiz to end for {profile_name}")
            return None

        self._close_quiz(quiz, passed, correct_count, total_questions)
        self._pm.save(game_data)

        logger.info(
            f"Ended quiz {quiz.id} for {profile_name}: "
            f"{correct_count}/{total_questions}, passed={passed}"
        )
        return quiz

    def update_stats(self, profile_name: str, problem_key: str, is_correct: bool) -> ProblemStat:
        """
        Record one answered (or timed-out) question.

        Returns:
            The updated stats for the problem.

        Raises:
            ValidationError: If problem_key is not a known problem.
        """
        if not is_valid_key(problem_key):
            raise ValidationError(f"Unknown problem key: {problem_key!r}")

        game_data, profile = self._load_profile(profile_name)
        stat = profile.record_result(problem_key, is_correct)
        self._pm.save(game_data)
        return stat
