"""
Gameplay controller for the practice game.

Runs the level loop for the current profile:

    start_game -> start_level -> (question -> answer/timeout -> feedback)* -> complete_level

Presentation is left to the caller. The controller only keeps the state
of the running level, records every outcome through the recorder and
moves the learner up a level after a perfect quiz. Time advances only
through tick(), so the same controller serves an event loop (tick every
0.1 s) and request/response front ends (tick by the measured delay).
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum

from sumapp.errors import NotFoundError
from sumapp.levels import (
    LevelResult,
    calculate_level_result,
    check_answer,
    get_level_config,
    get_next_level,
)
from sumapp.problems import Problem, parse_problem_key
from sumapp.profiles import ProfileManager, is_admin
from sumapp.recorder import QuizRecorder
from sumapp.selector import select_questions
from sumapp.timers import (
    FEEDBACK_DELAY_SECONDS,
    TICK_SECONDS,
    Countdown,
    DeferredAction,
    TimerSlot,
    seconds_to_ticks,
)

logger = logging.getLogger(__name__)


class GamePhase(Enum):
    """Where the game currently is."""

    MENU = "menu"
    PLAYING = "playing"  # waiting for an answer, countdown running
    FEEDBACK = "feedback"  # answer judged, short pause before moving on
    LEVEL_COMPLETE = "level-complete"
    ANALYTICS = "analytics"  # admin profile selected


@dataclass(frozen=True)
class AnswerFeedback:
    """Outcome of one question."""

    is_correct: bool
    correct_answer: int
    timed_out: bool = False


class PracticeGame:
    """
    Controller for one learner's play.

    One instance owns at most one running countdown and one pending
    feedback action at any time.
    """

    def __init__(
        self,
        profiles: ProfileManager,
        recorder: QuizRecorder,
        rng: random.Random | None = None,
        feedback_delay: float = FEEDBACK_DELAY_SECONDS,
    ):
        self._profiles = profiles
        self._recorder = recorder
        self._rng = rng
        self._feedback_delay = feedback_delay

        self._countdown = TimerSlot()
        self._feedback = TimerSlot()

        self.phase = GamePhase.MENU
        self.profile_name: str | None = None
        self.level = 1
        self.questions: list[Problem] = []
        self.question_index = 0
        self.correct_count = 0
        self.session_open = False
        self.quiz_open = False
        self.last_feedback: AnswerFeedback | None = None
        self.last_result: LevelResult | None = None

    @property
    def current_question(self) -> Problem | None:
        if self.phase not in (GamePhase.PLAYING, GamePhase.FEEDBACK):
            return None
        if self.question_index >= len(self.questions):
            return None
        return self.questions[self.question_index]

    @property
    def question_number(self) -> int:
        """1-based number of the current question."""
        return self.question_index + 1

    @property
    def time_remaining(self) -> float:
        timer = self._countdown.timer
        if isinstance(timer, Countdown) and timer.active:
            return timer.remaining
        return 0.0

    @property
    def countdown_active(self) -> bool:
        return self._countdown.active

    @property
    def feedback_pending(self) -> bool:
        return self._feedback.active

    def stop_timers(self) -> None:
        self._countdown.cancel()
        self._feedback.cancel()

    def start_game(self) -> GamePhase:
        """
        Start playing with the current profile at its unlocked level.

        Returns:
            PLAYING for learners, ANALYTICS for the admin profile.

        Raises:
            NotFoundError: If no profile is selected.
        """
        self.stop_timers()

        profile = self._profiles.get_current()
        if profile is None:
            raise NotFoundError("Please select or create a profile first")

        if is_admin(profile.name):
            self.phase = GamePhase.ANALYTICS
            return self.phase

        if self.profile_name != profile.name:
            # A different learner never inherits another learner's quiz or session
            if self.profile_name is not None and self._profiles.get(self.profile_name) is not None:
                self.quit()
            self.quiz_open = False
            self.session_open = False
        self.profile_name = profile.name
        self.level = profile.level
        self.start_level()
        return self.phase

    def start_level(self) -> None:
        """Draw the questions for the current level and open the quiz."""
        if self.profile_name is None:
            raise NotFoundError("No profile is playing")

        config = get_level_config(self.level)
        profile = self._profiles.get(self.profile_name)
        if profile is None:
            raise NotFoundError(f"Profile not found: {self.profile_name}")

        if self.quiz_open:
            # A restart closes the running quiz with the answers given so far
            self.stop_timers()
            self._recorder.end_quiz(
                self.profile_name, False, self.correct_count, self._answered_count()
            )
            self.quiz_open = False

        self.question_index = 0
        self.correct_count = 0
        self.last_feedback = None
        self.last_result = None
        self.questions = select_questions(
            profile, self.level, config.questions_per_level, rng=self._rng
        )

        if not self.session_open:
            self._recorder.start_session(self.profile_name)
            self.session_open = True
        self._recorder.start_quiz(self.profile_name, self.level)
        self.quiz_open = True

        logger.info(f"{self.profile_name} starts level {self.level}")
        self.phase = GamePhase.PLAYING
        self._load_question()

    def _answered_count(self) -> int:
        answered = self.question_index
        if self.phase == GamePhase.FEEDBACK:
            answered += 1
        return answered

    def _load_question(self, remaining_seconds: float | None = None) -> None:
        self.stop_timers()

        if self.question_index >= len(self.questions):
            self.complete_level()
            return

        if remaining_seconds is None:
            remaining_seconds = get_level_config(self.level).time_limit_seconds
        self._countdown.start(Countdown(remaining_seconds, on_expire=self.handle_timeout))

    def tick(self, seconds: float = TICK_SECONDS) -> None:
        """
        Let time pass, one tick at a time.

        Only one of the countdown and the feedback pause runs at a time; a
        timer started by the other one expiring begins counting on the
        following tick.
        """
        for _ in range(seconds_to_ticks(seconds)):
            if self._feedback.active:
                self._feedback.tick()
            elif self._countdown.active:
                self._countdown.tick()

    def submit_timed_answer(self, answer: int, elapsed_seconds: float) -> AnswerFeedback | None:
        """
        Judge an answer that arrived elapsed_seconds after the question.

        An answer arriving after the time limit counts as a timeout and
        the given answer is ignored.
        """
        if self.phase != GamePhase.PLAYING:
            return None

        self._countdown.advance(elapsed_seconds)
        if self.phase != GamePhase.PLAYING:
            return self.last_feedback
        return self.submit_answer(answer)

    def submit_answer(self, answer: int) -> AnswerFeedback | None:
        """
        Judge an answer to the current question.

        Returns:
            The feedback, or None when no question is waiting for an answer.
        """
        if self.phase != GamePhase.PLAYING or self.current_question is None:
            return None

        self._countdown.cancel()
        question = self.current_question
        is_correct = check_answer(question.a, question.b, question.operation, answer)

        self._recorder.update_stats(self.profile_name, question.key, is_correct)
        if is_correct:
            self.correct_count += 1

        return self._show_feedback(AnswerFeedback(is_correct, question.answer))

    def handle_timeout(self) -> AnswerFeedback | None:
        """Count the current question as wrong because time ran out."""
        if self.phase != GamePhase.PLAYING or self.current_question is None:
            return None

        self._countdown.cancel()
        question = self.current_question
        self._recorder.update_stats(self.profile_name, question.key, False)

        logger.info(f"{self.profile_name} ran out of time on {question.key}")
        return self._show_feedback(AnswerFeedback(False, question.answer, timed_out=True))

    def _show_feedback(self, feedback: AnswerFeedback) -> AnswerFeedback:
        self.phase = GamePhase.FEEDBACK
        self.last_feedback = feedback
        self._feedback.start(DeferredAction(self._feedback_delay, self.advance))
        return feedback

    def advance(self) -> None:
        """Leave the feedback pause: next question, or finish the level."""
        if self.phase != GamePhase.FEEDBACK:
            return
        self._feedback.cancel()

        if self.question_index < len(self.questions) - 1:
            self.question_index += 1
            self.phase = GamePhase.PLAYING
            self._load_question()
        else:
            self.complete_level()

    def complete_level(self) -> LevelResult:
        """
        Score the level, close its quiz and unlock the next level on a pass.

        A passed level also ends the session; after a failed one the session
        stays open for the retry.
        """
        self.stop_timers()
        result = calculate_level_result(self.correct_count, len(self.questions))

        if self.quiz_open:
            self._recorder.end_quiz(
                self.profile_name, result.passed, result.correct_count, result.total_questions
            )
            self.quiz_open = False

        if result.passed:
            next_level = get_next_level(self.level)
            if next_level != self.level:
                self._profiles.update_level(self.profile_name, next_level)
            if self.session_open:
                self._recorder.end_session(self.profile_name)
                self.session_open = False

        logger.info(
            f"{self.profile_name} finished level {self.level}: "
            f"{result.correct_count}/{result.total_questions}, passed={result.passed}"
        )
        self.last_result = result
        self.phase = GamePhase.LEVEL_COMPLETE
        return result

    def quit(self) -> None:
        """Stop playing; the open quiz is recorded as failed with the answers so far."""
        self.stop_timers()

        if self.profile_name is not None:
            if self.quiz_open:
                self._recorder.end_quiz(
                    self.profile_name, False, self.correct_count, self._answered_count()
                )
                self.quiz_open = False
            if self.session_open:
                self._recorder.end_session(self.profile_name)
                self.session_open = False

        self.phase = GamePhase.MENU

    def to_dict(self) -> dict:
        """Serializable snapshot of the running game (timers as remaining time)."""
        timer = self._countdown.timer
        remaining_ticks = (
            timer.remaining_ticks if isinstance(timer, Countdown) and timer.active else None
        )
        return {
            "phase": self.phase.value,
            "profile_name": self.profile_name,
            "level": self.level,
            "questions": [question.key for question in self.questions],
            "question_index": self.question_index,
            "correct_count": self.correct_count,
            "session_open": self.session_open,
            "quiz_open": self.quiz_open,
            "remaining_ticks": remaining_ticks,
        }

    @classmethod
    def from_dict(
        cls,
        data: dict,
        profiles: ProfileManager,
        recorder: QuizRecorder,
        rng: random.Random | None = None,
        feedback_delay: float = FEEDBACK_DELAY_SECONDS,
    ) -> "PracticeGame":
        """
        Restore a game from to_dict() output.

        A game saved while waiting for an answer resumes its countdown
        where it stopped. A game saved during feedback resumes as if the
        pause were still running.
        """
        game = cls(profiles, recorder, rng=rng, feedback_delay=feedback_delay)
        game.phase = GamePhase(data.get("phase", GamePhase.MENU.value))
        game.profile_name = data.get("profile_name")
        game.level = int(data.get("level", 1))
        game.questions = [parse_problem_key(key) for key in data.get("questions", [])]
        game.question_index = int(data.get("question_index", 0))
        game.correct_count = int(data.get("correct_count", 0))
        game.session_open = bool(data.get("session_open", False))
        game.quiz_open = bool(data.get("quiz_open", False))

        if game.phase == GamePhase.PLAYING:
            remaining_ticks = data.get("remaining_ticks")
            remaining = None if remaining_ticks is None else int(remaining_ticks) * TICK_SECONDS
            game._load_question(remaining)
        elif game.phase == GamePhase.FEEDBACK:
            game._feedback.start(DeferredAction(game._feedback_delay, game.advance))

        return game
