"""Quiz handlers for starting levels and processing answers."""

import logging

from ask_sdk_core.dispatch_components import AbstractRequestHandler
from ask_sdk_core.utils import is_intent_name

from sumapp import data
from sumapp.game import GamePhase
from sumapp.handlers.helpers import (
    answer_delay,
    get_feedback,
    get_level_end_message,
    get_profile_manager,
    get_slot_value,
    level_intro,
    load_game,
    question_text,
    save_game,
)
from sumapp.profiles import is_admin

logger = logging.getLogger(__name__)


def start_level_response(handler_input):
    """Start (or restart) the current player's level and ask the first question."""
    session_attr = handler_input.attributes_manager.session_attributes
    current = get_profile_manager(handler_input).get_current()
    if current is None:
        session_attr["state"] = data.STATE_ASK_PLAYER
        handler_input.response_builder.speak(data.NO_PLAYER_SELECTED).ask(data.ASK_PLAYER)
        return handler_input.response_builder.response
    if is_admin(current.name):
        speech = data.ADMIN_CANNOT_PLAY + " " + data.ADMIN_REPROMPT
        handler_input.response_builder.speak(speech).ask(data.ADMIN_REPROMPT)
        return handler_input.response_builder.response

    game = load_game(handler_input)
    game.start_game()
    question = game.current_question
    logger.info(
        f"Starting level {game.level} for {game.profile_name}, first question {question.key}"
    )

    session_attr["state"] = data.STATE_QUIZ
    save_game(handler_input, game)

    speech = level_intro(game.level) + data.FIRST_QUESTION + question_text(question)
    handler_input.response_builder.speak(speech).ask(question_text(question))
    return handler_input.response_builder.response


class QuizHandler(AbstractRequestHandler):
    """
    Handler for starting a level.

    Plays the current player's unlocked level; after a failed level the
    same level is tried again.
    """

    def can_handle(self, handler_input):
        return is_intent_name("QuizIntent")(handler_input) or is_intent_name(
            "AMAZON.StartOverIntent"
        )(handler_input)

    def handle(self, handler_input):
        logger.info("In QuizHandler")
        return start_level_response(handler_input)


class AnswerIntentHandler(AbstractRequestHandler):
    """
    Handler for numeric answers during a level.

    Answers arriving after the level's time limit count as timeouts.
    Every outcome is recorded before the next question is asked.
    """

    def can_handle(self, handler_input):
        session_attr = handler_input.attributes_manager.session_attributes
        return (
            is_intent_name("AnswerIntent")(handler_input)
            and session_attr.get("state") == data.STATE_QUIZ
        )

    def handle(self, handler_input):
        session_attr = handler_input.attributes_manager.session_attributes
        game = load_game(handler_input)
        question = game.current_question

        if game.phase != GamePhase.PLAYING or question is None:
            logger.warning(f"Answer received without a question, phase={game.phase.value}")
            session_attr["state"] = data.STATE_NONE
            handler_input.response_builder.speak(data.REPROMPT_GENERAL).ask(
                data.REPROMPT_GENERAL
            )
            return handler_input.response_builder.response

        raw_answer = get_slot_value(handler_input, "number")
        try:
            user_answer = int(raw_answer) if raw_answer else None
        except ValueError:
            user_answer = None

        if user_answer is None:
            speech = data.NOT_UNDERSTOOD_DURING_QUIZ + " " + question_text(question)
            handler_input.response_builder.speak(speech).ask(question_text(question))
            return handler_input.response_builder.response

        delay = answer_delay(handler_input)
        feedback = game.submit_timed_answer(user_answer, delay)
        logger.info(
            f"Answer {user_answer} to {question.key} after {delay:.1f}s: "
            f"correct={feedback.is_correct}, timed_out={feedback.timed_out}"
        )
        speech = get_feedback(question, feedback)

        # No pause needed in speech, the feedback sentence is the pause
        game.advance()

        if game.phase == GamePhase.LEVEL_COMPLETE:
            speech += " " + get_level_end_message(game.level, game.last_result)
            session_attr["state"] = data.STATE_LEVEL_COMPLETE
            reprompt = data.REPROMPT_GENERAL
        else:
            next_question = game.current_question
            speech += " " + data.NEXT_QUESTION + question_text(next_question)
            reprompt = question_text(next_question)

        save_game(handler_input, game)
        handler_input.response_builder.speak(speech).ask(reprompt)
        return handler_input.response_builder.response
