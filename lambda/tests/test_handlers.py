"""
Tests for the Alexa skill handlers.

These tests verify the behavior of all intent handlers for the
Plus and Minus Practice skill. Handlers run against a real game
document kept in the in-memory persistence adapter.
"""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from ask_sdk_model import (
    Intent,
    IntentRequest,
    LaunchRequest,
    SessionEndedReason,
    SessionEndedRequest,
    Slot,
)

from sumapp import data
from sumapp.errors import NotFoundError, StorageError
from sumapp.game import AnswerFeedback
from sumapp.handlers import (
    AnswerIntentHandler,
    DeleteProfileHandler,
    ExitIntentHandler,
    HelpIntentHandler,
    IntentReflectorHandler,
    LaunchRequestHandler,
    ProgressHandler,
    QuizHandler,
    RepeatHandler,
    SelectPlayerHandler,
    SessionEndedRequestHandler,
    YesIntentHandler,
)
from sumapp.handlers.helpers import (
    ATTR_GAME,
    ATTR_QUESTION_ASKED_AT,
    get_feedback,
    get_level_end_message,
    level_intro,
    question_text,
)
from sumapp.interceptors import CatchAllExceptionHandler, GameErrorHandler
from sumapp.levels import calculate_level_result
from sumapp.models import ProblemStat, utc_now
from sumapp.persistence import (
    InMemoryPersistenceAdapter,
    PersistenceManager,
    local_attributes_manager,
)
from sumapp.problems import Operation, Problem, parse_problem_key
from sumapp.profiles import ProfileManager

# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def pm():
    """Persistence manager on an empty in-memory store."""
    return PersistenceManager(local_attributes_manager(InMemoryPersistenceAdapter()))


@pytest.fixture
def profiles(pm):
    return ProfileManager(pm)


@pytest.fixture
def mock_handler_input(pm):
    """Create a mock handler input whose persistent attributes are real."""
    handler_input = MagicMock()

    # Session attributes (mutable dict)
    session_attrs = {}
    handler_input.attributes_manager.session_attributes = session_attrs

    # Response builder
    response_builder = MagicMock()
    response_builder.speak.return_value = response_builder
    response_builder.ask.return_value = response_builder
    response_builder.set_should_end_session.return_value = response_builder
    response_builder.response = MagicMock()
    handler_input.response_builder = response_builder

    # Request envelope
    handler_input.request_envelope = MagicMock()
    handler_input.request_envelope.context.system.user.user_id = "test-user-123"

    with patch("sumapp.handlers.helpers.get_persistence_manager", return_value=pm):
        yield handler_input


@pytest.fixture
def sample_problem():
    return Problem(7, 5, Operation.ADD)


def set_intent(handler_input, intent_name, /, **slots):
    """Make the handler input carry an IntentRequest with the given slots."""
    handler_input.request_envelope.request = IntentRequest(
        intent=Intent(
            name=intent_name,
            slots={slot: Slot(name=slot, value=value) for slot, value in slots.items()},
        )
    )


def speech_of(handler_input) -> str:
    return handler_input.response_builder.speak.call_args[0][0]


def session_attr_of(handler_input) -> dict:
    return handler_input.attributes_manager.session_attributes


def current_problem(handler_input) -> Problem:
    game = session_attr_of(handler_input)[ATTR_GAME]
    return parse_problem_key(game["questions"][game["question_index"]])


def start_quiz(handler_input):
    set_intent(handler_input, "QuizIntent")
    QuizHandler().handle(handler_input)


def answer(handler_input, value):
    set_intent(handler_input, "AnswerIntent", number=str(value))
    AnswerIntentHandler().handle(handler_input)


# ============================================================================
# Test Helper Functions
# ============================================================================


class TestHelperFunctions:
    """Tests for helper functions in sumapp.handlers.helpers."""

    def test_question_text(self, sample_problem):
        assert question_text(sample_problem) == "What is 7 plus 5?"

    def test_question_text_subtraction(self):
        assert question_text(Problem(9, 3, Operation.SUB)) == "What is 9 minus 3?"

    def test_level_intro_whole_seconds(self):
        assert "10 seconds" in level_intro(1)

    def test_level_intro_half_seconds(self):
        assert "3.5 seconds" in level_intro(8)

    def test_correct_feedback(self, sample_problem):
        feedback = get_feedback(sample_problem, AnswerFeedback(True, 12))
        positive_words = ["correct", "great", "well done", "yes", "right"]
        assert any(word in feedback.lower() for word in positive_words), (
            f"Feedback should contain positive words: {feedback}"
        )

    def test_incorrect_feedback_contains_answer(self, sample_problem):
        feedback = get_feedback(sample_problem, AnswerFeedback(False, 12))
        assert "12" in feedback

    def test_timeout_feedback(self, sample_problem):
        feedback = get_feedback(sample_problem, AnswerFeedback(False, 12, timed_out=True))
        assert "time" in feedback.lower()
        assert "12" in feedback

    def test_level_end_message_passed(self):
        message = get_level_end_message(3, calculate_level_result(10, 10))
        assert "Level 4" in message

    def test_level_end_message_last_level(self):
        message = get_level_end_message(10, calculate_level_result(10, 10))
        assert "champion" in message.lower()

    def test_level_end_message_failed(self):
        message = get_level_end_message(2, calculate_level_result(8, 10))
        assert "8 out of 10" in message
        assert "80 percent" in message


# ============================================================================
# Test Launch Request Handler
# ============================================================================


class TestLaunchRequestHandler:
    """Tests for the LaunchRequestHandler."""

    def test_can_handle_launch_request(self, mock_handler_input):
        mock_handler_input.request_envelope.request = LaunchRequest()
        assert LaunchRequestHandler().can_handle(mock_handler_input)

    def test_first_launch_asks_for_player(self, mock_handler_input):
        mock_handler_input.request_envelope.request = LaunchRequest()

        LaunchRequestHandler().handle(mock_handler_input)

        assert speech_of(mock_handler_input) == data.WELCOME_MESSAGE
        assert session_attr_of(mock_handler_input)["state"] == data.STATE_ASK_PLAYER

    def test_returning_player_is_greeted(self, mock_handler_input, profiles):
        profiles.create("Mia")
        profiles.update_level("Mia", 2)

        LaunchRequestHandler().handle(mock_handler_input)

        speech = speech_of(mock_handler_input)
        assert "Mia" in speech
        assert "level 2" in speech
        assert session_attr_of(mock_handler_input)["state"] == data.STATE_NONE

    def test_admin_is_not_greeted_as_player(self, mock_handler_input, profiles):
        profiles.create("admin")

        LaunchRequestHandler().handle(mock_handler_input)

        assert session_attr_of(mock_handler_input)["state"] == data.STATE_ASK_PLAYER


# ============================================================================
# Test Select Player Handler
# ============================================================================


class TestSelectPlayerHandler:
    """Tests for the SelectPlayerHandler."""

    def test_cannot_handle_during_quiz(self, mock_handler_input):
        set_intent(mock_handler_input, "SetNameIntent", name="Mia")
        session_attr_of(mock_handler_input)["state"] = data.STATE_QUIZ

        assert not SelectPlayerHandler().can_handle(mock_handler_input)

    def test_new_player_is_created(self, mock_handler_input, profiles):
        set_intent(mock_handler_input, "SetNameIntent", name="Mia")

        SelectPlayerHandler().handle(mock_handler_input)

        assert profiles.get_current_name() == "Mia"
        assert speech_of(mock_handler_input) == data.NEW_PLAYER.format(name="Mia")

    def test_returning_player_is_selected(self, mock_handler_input, profiles):
        profiles.create("Mia")
        profiles.create("Leo")
        set_intent(mock_handler_input, "SetNameIntent", name="Mia")

        SelectPlayerHandler().handle(mock_handler_input)

        assert profiles.get_current_name() == "Mia"
        assert "Hi Mia" in speech_of(mock_handler_input)
        assert set(profiles.get_all()) == {"Mia", "Leo"}

    def test_empty_name_asks_again(self, mock_handler_input, profiles):
        set_intent(mock_handler_input, "SetNameIntent", name=None)

        SelectPlayerHandler().handle(mock_handler_input)

        assert speech_of(mock_handler_input) == data.ASK_PLAYER
        assert profiles.get_all() == {}

    def test_too_long_name_is_rejected(self, mock_handler_input, profiles):
        set_intent(mock_handler_input, "SetNameIntent", name="x" * 30)

        SelectPlayerHandler().handle(mock_handler_input)

        assert speech_of(mock_handler_input) == data.INVALID_NAME
        assert profiles.get_all() == {}

    def test_admin_gets_summary(self, mock_handler_input, profiles):
        profiles.create("Mia")
        set_intent(mock_handler_input, "SetNameIntent", name="Admin")

        SelectPlayerHandler().handle(mock_handler_input)

        assert session_attr_of(mock_handler_input)["state"] == data.STATE_ADMIN
        assert "1 players" in speech_of(mock_handler_input)

    def test_switching_player_closes_previous_game(self, mock_handler_input, profiles, pm):
        profiles.create("Mia")
        start_quiz(mock_handler_input)
        session_attr_of(mock_handler_input)["state"] = data.STATE_NONE
        set_intent(mock_handler_input, "SetNameIntent", name="Leo")

        SelectPlayerHandler().handle(mock_handler_input)

        mia = pm.load().profiles["Mia"]
        assert not mia.quizzes[0].is_open
        assert not mia.sessions[0].is_open
        assert ATTR_GAME not in session_attr_of(mock_handler_input)


# ============================================================================
# Test Quiz Handler
# ============================================================================


class TestQuizHandler:
    """Tests for the QuizHandler."""

    def test_can_handle_quiz_intent(self, mock_handler_input):
        set_intent(mock_handler_input, "QuizIntent")
        assert QuizHandler().can_handle(mock_handler_input)

    def test_can_handle_start_over(self, mock_handler_input):
        set_intent(mock_handler_input, "AMAZON.StartOverIntent")
        assert QuizHandler().can_handle(mock_handler_input)

    def test_requires_player(self, mock_handler_input):
        start_quiz(mock_handler_input)

        assert speech_of(mock_handler_input) == data.NO_PLAYER_SELECTED
        assert session_attr_of(mock_handler_input)["state"] == data.STATE_ASK_PLAYER

    def test_admin_cannot_play(self, mock_handler_input, profiles):
        profiles.create("Admin")

        start_quiz(mock_handler_input)

        assert data.ADMIN_CANNOT_PLAY in speech_of(mock_handler_input)
        assert ATTR_GAME not in session_attr_of(mock_handler_input)

    def test_starts_level(self, mock_handler_input, profiles, pm):
        profiles.create("Mia")

        start_quiz(mock_handler_input)

        session_attr = session_attr_of(mock_handler_input)
        assert session_attr["state"] == data.STATE_QUIZ
        assert session_attr[ATTR_GAME]["phase"] == "playing"
        assert ATTR_QUESTION_ASKED_AT in session_attr

        speech = speech_of(mock_handler_input)
        assert "Level 1" in speech
        assert question_text(current_problem(mock_handler_input)) in speech

        profile = pm.load().profiles["Mia"]
        assert profile.open_session() is not None
        assert profile.open_quiz() is not None


# ============================================================================
# Test Answer Intent Handler
# ============================================================================


class TestAnswerIntentHandler:
    """Tests for the AnswerIntentHandler."""

    def test_can_handle_answer_during_quiz(self, mock_handler_input):
        set_intent(mock_handler_input, "AnswerIntent", number="3")
        session_attr_of(mock_handler_input)["state"] = data.STATE_QUIZ

        assert AnswerIntentHandler().can_handle(mock_handler_input)

    def test_cannot_handle_answer_outside_quiz(self, mock_handler_input):
        set_intent(mock_handler_input, "AnswerIntent", number="3")
        session_attr_of(mock_handler_input)["state"] = data.STATE_NONE

        assert not AnswerIntentHandler().can_handle(mock_handler_input)

    def test_correct_answer(self, mock_handler_input, profiles, pm):
        profiles.create("Mia")
        start_quiz(mock_handler_input)
        problem = current_problem(mock_handler_input)

        answer(mock_handler_input, problem.answer)

        stat = pm.load().profiles["Mia"].stats[problem.key]
        assert stat.correct >= 1
        game = session_attr_of(mock_handler_input)[ATTR_GAME]
        assert game["question_index"] == 1
        assert game["correct_count"] == 1
        assert data.NEXT_QUESTION in speech_of(mock_handler_input)

    def test_incorrect_answer(self, mock_handler_input, profiles, pm):
        profiles.create("Mia")
        start_quiz(mock_handler_input)
        problem = current_problem(mock_handler_input)

        answer(mock_handler_input, problem.answer + 1)

        assert pm.load().profiles["Mia"].stats[problem.key].wrong >= 1
        assert session_attr_of(mock_handler_input)[ATTR_GAME]["correct_count"] == 0
        assert str(problem.answer) in speech_of(mock_handler_input)

    def test_invalid_answer(self, mock_handler_input, profiles, pm):
        profiles.create("Mia")
        start_quiz(mock_handler_input)

        answer(mock_handler_input, "banana")

        assert data.NOT_UNDERSTOOD_DURING_QUIZ in speech_of(mock_handler_input)
        assert pm.load().profiles["Mia"].stats == {}
        assert session_attr_of(mock_handler_input)[ATTR_GAME]["question_index"] == 0

    def test_late_answer_counts_as_timeout(self, mock_handler_input, profiles, pm):
        profiles.create("Mia")
        start_quiz(mock_handler_input)
        problem = current_problem(mock_handler_input)
        asked_at = utc_now() - timedelta(seconds=60)
        session_attr_of(mock_handler_input)[ATTR_QUESTION_ASKED_AT] = asked_at.isoformat()

        answer(mock_handler_input, problem.answer)

        assert "Time's up" in speech_of(mock_handler_input)
        assert pm.load().profiles["Mia"].stats[problem.key] == ProblemStat(0, 1)

    def test_perfect_level(self, mock_handler_input, profiles, pm):
        profiles.create("Mia")
        start_quiz(mock_handler_input)

        for _ in range(10):
            answer(mock_handler_input, current_problem(mock_handler_input).answer)

        session_attr = session_attr_of(mock_handler_input)
        assert session_attr["state"] == data.STATE_LEVEL_COMPLETE
        assert "Level 2 is unlocked" in speech_of(mock_handler_input)
        assert ATTR_QUESTION_ASKED_AT not in session_attr

        profile = pm.load().profiles["Mia"]
        assert profile.level == 2
        assert profile.quizzes[0].passed
        assert profile.open_session() is None


# ============================================================================
# Test Progress Handler
# ============================================================================


class TestProgressHandler:
    """Tests for the ProgressHandler."""

    def test_handle_with_stats(self, mock_handler_input, profiles, pm):
        profiles.create("Mia")
        game_data = pm.load()
        game_data.profiles["Mia"].stats = {
            "7+5": ProblemStat(correct=30, wrong=10),
            "9-3": ProblemStat(correct=10, wrong=0),
        }
        pm.save(game_data)
        set_intent(mock_handler_input, "ProgressIntent")

        ProgressHandler().handle(mock_handler_input)

        speech = speech_of(mock_handler_input)
        # Should mention total questions, correct answers and percentage
        assert "50" in speech
        assert "40" in speech
        assert "80.0 percent" in speech
        # Most missed problem
        assert "7 plus 5" in speech
        assert "9 minus 3" not in speech

    def test_skips_unknown_problem_keys(self, mock_handler_input, profiles, pm):
        profiles.create("Mia")
        game_data = pm.load()
        game_data.profiles["Mia"].stats = {
            "12x3": ProblemStat(correct=0, wrong=20),
            "8-6": ProblemStat(correct=2, wrong=3),
        }
        pm.save(game_data)
        set_intent(mock_handler_input, "ProgressIntent")

        ProgressHandler().handle(mock_handler_input)

        speech = speech_of(mock_handler_input)
        assert data.PROGRESS_WEAK_PROBLEMS.format(problems="8 minus 6") in speech

    def test_handle_no_data(self, mock_handler_input, profiles):
        profiles.create("Mia")
        set_intent(mock_handler_input, "ProgressIntent")

        ProgressHandler().handle(mock_handler_input)

        assert "haven't answered any questions" in speech_of(mock_handler_input)

    def test_no_player(self, mock_handler_input):
        set_intent(mock_handler_input, "ProgressIntent")

        ProgressHandler().handle(mock_handler_input)

        assert speech_of(mock_handler_input) == data.NO_PLAYER_SELECTED

    def test_admin_asks_for_player(self, mock_handler_input, profiles):
        profiles.create("Leo")
        profiles.create("Admin")
        set_intent(mock_handler_input, "ProgressIntent", name="Leo")

        ProgressHandler().handle(mock_handler_input)

        assert "Leo" in speech_of(mock_handler_input)
        assert data.ADMIN_REPROMPT in speech_of(mock_handler_input)

    def test_admin_unknown_player(self, mock_handler_input, profiles):
        profiles.create("Admin")
        set_intent(mock_handler_input, "ProgressIntent", name="Nobody")

        ProgressHandler().handle(mock_handler_input)

        assert data.PLAYER_NOT_FOUND in speech_of(mock_handler_input)


# ============================================================================
# Test Delete Profile Handler
# ============================================================================


class TestDeleteProfileHandler:
    """Tests for the DeleteProfileHandler."""

    def test_admin_deletes_player(self, mock_handler_input, profiles):
        profiles.create("Leo")
        profiles.create("Admin")
        set_intent(mock_handler_input, "DeleteProfileIntent", name="Leo")

        DeleteProfileHandler().handle(mock_handler_input)

        assert not profiles.exists("Leo")
        assert profiles.get_current_name() == "Admin"
        assert "deleted the profile Leo" in speech_of(mock_handler_input)

    def test_only_admin_can_delete(self, mock_handler_input, profiles):
        profiles.create("Leo")
        profiles.create("Mia")
        set_intent(mock_handler_input, "DeleteProfileIntent", name="Leo")

        DeleteProfileHandler().handle(mock_handler_input)

        assert profiles.exists("Leo")
        assert data.DELETE_NOT_ALLOWED in speech_of(mock_handler_input)

    def test_unknown_player(self, mock_handler_input, profiles):
        profiles.create("Admin")
        set_intent(mock_handler_input, "DeleteProfileIntent", name="Nobody")

        DeleteProfileHandler().handle(mock_handler_input)

        assert data.PLAYER_NOT_FOUND in speech_of(mock_handler_input)

    def test_admin_cannot_be_deleted(self, mock_handler_input, profiles):
        profiles.create("Admin")
        set_intent(mock_handler_input, "DeleteProfileIntent", name="admin")

        DeleteProfileHandler().handle(mock_handler_input)

        assert profiles.exists("Admin")


# ============================================================================
# Test Standard Handlers
# ============================================================================


class TestStandardHandlers:
    """Tests for Repeat, Help, Yes, Exit, SessionEnded and the reflector."""

    def test_repeat_during_quiz(self, mock_handler_input, profiles):
        profiles.create("Mia")
        start_quiz(mock_handler_input)
        problem = current_problem(mock_handler_input)
        set_intent(mock_handler_input, "AMAZON.RepeatIntent")

        RepeatHandler().handle(mock_handler_input)

        assert speech_of(mock_handler_input) == data.REPEAT_QUESTION.format(
            question=question_text(problem)
        )

    def test_help_during_quiz(self, mock_handler_input, profiles):
        profiles.create("Mia")
        start_quiz(mock_handler_input)
        set_intent(mock_handler_input, "AMAZON.HelpIntent")

        HelpIntentHandler().handle(mock_handler_input)

        assert data.HELP_DURING_QUIZ in speech_of(mock_handler_input)

    def test_help_outside_quiz(self, mock_handler_input):
        set_intent(mock_handler_input, "AMAZON.HelpIntent")

        HelpIntentHandler().handle(mock_handler_input)

        assert speech_of(mock_handler_input) == data.HELP_MESSAGE

    def test_yes_starts_level(self, mock_handler_input, profiles):
        profiles.create("Mia")
        set_intent(mock_handler_input, "AMAZON.YesIntent")

        assert YesIntentHandler().can_handle(mock_handler_input)
        YesIntentHandler().handle(mock_handler_input)

        assert session_attr_of(mock_handler_input)["state"] == data.STATE_QUIZ

    def test_exit_during_quiz(self, mock_handler_input, profiles, pm):
        profiles.create("Mia")
        start_quiz(mock_handler_input)
        answer(mock_handler_input, current_problem(mock_handler_input).answer)
        set_intent(mock_handler_input, "AMAZON.StopIntent")

        ExitIntentHandler().handle(mock_handler_input)

        assert speech_of(mock_handler_input) == data.EXIT_DURING_QUIZ.format(
            correct=1, answered=1
        )
        mock_handler_input.response_builder.set_should_end_session.assert_called_with(True)

        profile = pm.load().profiles["Mia"]
        assert profile.quizzes[0].passed is False
        assert profile.quizzes[0].total_questions == 1
        assert profile.open_session() is None

    def test_exit_outside_quiz(self, mock_handler_input):
        set_intent(mock_handler_input, "AMAZON.CancelIntent")

        ExitIntentHandler().handle(mock_handler_input)

        assert speech_of(mock_handler_input) == data.EXIT_SKILL_MESSAGE

    def test_session_ended_closes_open_quiz(self, mock_handler_input, profiles, pm):
        profiles.create("Mia")
        start_quiz(mock_handler_input)
        mock_handler_input.request_envelope.request = SessionEndedRequest(
            reason=SessionEndedReason.EXCEEDED_MAX_REPROMPTS
        )

        assert SessionEndedRequestHandler().can_handle(mock_handler_input)
        SessionEndedRequestHandler().handle(mock_handler_input)

        profile = pm.load().profiles["Mia"]
        assert profile.open_quiz() is None
        assert profile.open_session() is None

    def test_intent_reflector(self, mock_handler_input):
        set_intent(mock_handler_input, "SomethingElseIntent")

        assert IntentReflectorHandler().can_handle(mock_handler_input)
        IntentReflectorHandler().handle(mock_handler_input)

        assert speech_of(mock_handler_input) == data.FALLBACK_MESSAGE


# ============================================================================
# Test Exception Handlers
# ============================================================================


class TestExceptionHandlers:
    """Tests for turning errors into speech."""

    def test_not_found_asks_for_player(self, mock_handler_input):
        handler = GameErrorHandler()
        error = NotFoundError("Profile not found")

        assert handler.can_handle(mock_handler_input, error)
        handler.handle(mock_handler_input, error)

        assert speech_of(mock_handler_input) == data.PLAYER_NOT_FOUND
        assert session_attr_of(mock_handler_input)["state"] == data.STATE_ASK_PLAYER

    def test_storage_error(self, mock_handler_input):
        GameErrorHandler().handle(mock_handler_input, StorageError("Could not save game data"))

        assert speech_of(mock_handler_input) == data.ERROR_MESSAGE

    def test_other_errors_are_not_game_errors(self, mock_handler_input):
        assert not GameErrorHandler().can_handle(mock_handler_input, RuntimeError("boom"))
        assert CatchAllExceptionHandler().can_handle(mock_handler_input, RuntimeError("boom"))
