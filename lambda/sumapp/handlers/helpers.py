"""Helper functions for Alexa skill handlers."""

import os
import random
from datetime import datetime

from sumapp import data
from sumapp.game import AnswerFeedback, GamePhase, PracticeGame
from sumapp.levels import LevelResult, get_level_config, get_next_level, is_max_level
from sumapp.models import utc_now
from sumapp.persistence import get_persistence_manager
from sumapp.problems import Problem
from sumapp.profiles import ProfileManager
from sumapp.recorder import QuizRecorder

# Seconds of speech round trip not charged against the time limit
ANSWER_LATENCY_ALLOWANCE = float(os.environ.get("ANSWER_LATENCY_ALLOWANCE", "4"))

ATTR_GAME = "game"
ATTR_QUESTION_ASKED_AT = "question_asked_at"


def get_profile_manager(handler_input) -> ProfileManager:
    return ProfileManager(get_persistence_manager(handler_input))


def get_recorder(handler_input) -> QuizRecorder:
    return QuizRecorder(get_persistence_manager(handler_input))


def load_game(handler_input) -> PracticeGame:
    """
    Restore the running game from session attributes.

    A new idle game is returned when the session holds none.
    """
    session_attr = handler_input.attributes_manager.session_attributes
    profiles = get_profile_manager(handler_input)
    recorder = get_recorder(handler_input)

    state = session_attr.get(ATTR_GAME)
    if not state:
        return PracticeGame(profiles, recorder)
    return PracticeGame.from_dict(state, profiles, recorder)


def save_game(handler_input, game: PracticeGame) -> None:
    """Store the game in session attributes, stamping when a question was asked."""
    session_attr = handler_input.attributes_manager.session_attributes
    session_attr[ATTR_GAME] = game.to_dict()
    if game.phase == GamePhase.PLAYING:
        session_attr[ATTR_QUESTION_ASKED_AT] = utc_now().isoformat()
    else:
        session_attr.pop(ATTR_QUESTION_ASKED_AT, None)


def answer_delay(handler_input) -> float:
    """Seconds the learner took to answer, minus the speech latency allowance."""
    session_attr = handler_input.attributes_manager.session_attributes
    asked_at = session_attr.get(ATTR_QUESTION_ASKED_AT)
    if not asked_at:
        return 0.0
    elapsed = (utc_now() - datetime.fromisoformat(asked_at)).total_seconds()
    return max(0.0, elapsed - ANSWER_LATENCY_ALLOWANCE)


def question_text(problem: Problem) -> str:
    """Speech-friendly question, e.g. "What is 7 plus 5?"."""
    return data.QUESTION_TEXT.format(
        a=problem.a,
        operation=data.OPERATION_WORDS[problem.operation.value],
        b=problem.b,
    )


def level_intro(level: int) -> str:
    seconds = get_level_config(level).time_limit_seconds
    # 3.5 reads as "3.5", whole numbers without a trailing ".0"
    spoken = f"{seconds:g}"
    return data.START_LEVEL.format(level=level, seconds=spoken)


def get_correct_feedback(answer: int) -> str:
    """Generate positive feedback for a correct answer."""
    template = random.choice(data.CORRECT_ANSWER_TEMPLATES)
    return template.format(answer=answer)


def get_incorrect_feedback(problem: Problem, timed_out: bool = False) -> str:
    """Generate feedback for a wrong or late answer with the correct solution."""
    template = data.TIMEOUT_MESSAGE if timed_out else random.choice(data.WRONG_ANSWER_TEMPLATES)
    return template.format(
        a=problem.a,
        operation=data.OPERATION_WORDS[problem.operation.value],
        b=problem.b,
        answer=problem.answer,
    )


def get_feedback(problem: Problem, feedback: AnswerFeedback) -> str:
    if feedback.is_correct:
        return get_correct_feedback(feedback.correct_answer)
    return get_incorrect_feedback(problem, timed_out=feedback.timed_out)


def get_level_end_message(level: int, result: LevelResult) -> str:
    """Get the end-of-level message for a passed or failed attempt."""
    if not result.passed:
        return data.LEVEL_FAILED.format(
            correct=result.correct_count,
            total=result.total_questions,
            percentage=result.percentage,
            required=result.required_correct,
        )
    if is_max_level(level):
        return data.LEVEL_PASSED_MAX.format(total=result.total_questions)
    return data.LEVEL_PASSED.format(
        level=level,
        total=result.total_questions,
        next_level=get_next_level(level),
    )


def get_slot_value(handler_input, slot_name: str) -> str | None:
    slots = handler_input.request_envelope.request.intent.slots or {}
    slot = slots.get(slot_name)
    return slot.value if slot else None
