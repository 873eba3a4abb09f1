"""Standard Alexa intent handlers (Help, Exit, Repeat, Fallback, etc.)."""

import json
import logging

from ask_sdk_core.dispatch_components import AbstractRequestHandler
from ask_sdk_core.serialize import DefaultSerializer
from ask_sdk_core.utils import get_intent_name, is_intent_name, is_request_type
from ask_sdk_model import Response

from sumapp import data
from sumapp.game import GamePhase
from sumapp.handlers.helpers import ATTR_GAME, load_game, question_text
from sumapp.handlers.quiz import start_level_response

logger = logging.getLogger(__name__)


def _current_question_text(handler_input) -> str:
    """Text of the question waiting for an answer, or "" outside a level."""
    session_attr = handler_input.attributes_manager.session_attributes
    if session_attr.get("state") != data.STATE_QUIZ:
        return ""
    question = load_game(handler_input).current_question
    return question_text(question) if question else ""


def _quit_game(handler_input) -> tuple[int, int] | None:
    """
    Stop the running game, recording the open quiz as failed.

    Returns:
        Tuple of (correct, answered) if a level was in progress, else None.
    """
    session_attr = handler_input.attributes_manager.session_attributes
    if not session_attr.get(ATTR_GAME):
        return None

    game = load_game(handler_input)
    in_level = game.phase in (GamePhase.PLAYING, GamePhase.FEEDBACK)
    answered = game.question_index + (1 if game.phase == GamePhase.FEEDBACK else 0)
    correct = game.correct_count

    game.quit()
    session_attr.pop(ATTR_GAME, None)
    return (correct, answered) if in_level else None


class RepeatHandler(AbstractRequestHandler):
    """
    Handler for repeating the current question.

    During a quiz, repeats the current question.
    Outside a quiz, repeats the last response.
    """

    def can_handle(self, handler_input):
        return is_intent_name("AMAZON.RepeatIntent")(handler_input)

    def handle(self, handler_input):
        logger.info("In RepeatHandler")

        session_attr = handler_input.attributes_manager.session_attributes

        if session_attr.get("state") == data.STATE_QUIZ:
            text = _current_question_text(handler_input)
            if text:
                speech = data.REPEAT_QUESTION.format(question=text)
                reprompt = text
            else:
                speech = data.ERROR_MESSAGE
                reprompt = data.REPROMPT_GENERAL
        else:
            # Outside quiz, try to use cached response
            if "recent_response" in session_attr:
                cached_response_str = json.dumps(session_attr["recent_response"])
                cached_response = DefaultSerializer().deserialize(cached_response_str, Response)
                return cached_response
            else:
                speech = data.HELP_MESSAGE
                reprompt = data.REPROMPT_GENERAL

        handler_input.response_builder.speak(speech).ask(reprompt)
        return handler_input.response_builder.response


class HelpIntentHandler(AbstractRequestHandler):
    """
    Handler for help intent.

    Provides context-appropriate help messages.
    """

    def can_handle(self, handler_input):
        return is_intent_name("AMAZON.HelpIntent")(handler_input)

    def handle(self, handler_input):
        logger.info("In HelpIntentHandler")

        session_attr = handler_input.attributes_manager.session_attributes

        if session_attr.get("state") == data.STATE_QUIZ:
            speech = data.HELP_DURING_QUIZ
            # Repeat current question after help
            text = _current_question_text(handler_input)
            if text:
                speech += " " + text
            reprompt = text if text else data.REPROMPT_QUIZ
        elif session_attr.get("state") == data.STATE_ADMIN:
            speech = data.ADMIN_REPROMPT
            reprompt = data.ADMIN_REPROMPT
        else:
            speech = data.HELP_MESSAGE
            reprompt = data.REPROMPT_GENERAL

        handler_input.response_builder.speak(speech).ask(reprompt)
        return handler_input.response_builder.response


class YesIntentHandler(AbstractRequestHandler):
    """
    Handler for "yes" outside a running quiz.

    Starts (or retries) the current player's level.
    """

    def can_handle(self, handler_input):
        session_attr = handler_input.attributes_manager.session_attributes
        return (
            is_intent_name("AMAZON.YesIntent")(handler_input)
            and session_attr.get("state") != data.STATE_QUIZ
        )

    def handle(self, handler_input):
        logger.info("In YesIntentHandler")
        return start_level_response(handler_input)


class NoIntentHandler(AbstractRequestHandler):
    """Handler for "no" outside a running quiz: say goodbye."""

    def can_handle(self, handler_input):
        session_attr = handler_input.attributes_manager.session_attributes
        return (
            is_intent_name("AMAZON.NoIntent")(handler_input)
            and session_attr.get("state") != data.STATE_QUIZ
        )

    def handle(self, handler_input):
        logger.info("In NoIntentHandler")

        _quit_game(handler_input)
        handler_input.response_builder.speak(data.EXIT_SKILL_MESSAGE).set_should_end_session(True)
        return handler_input.response_builder.response


class ExitIntentHandler(AbstractRequestHandler):
    """
    Handler for Cancel, Stop, and Pause intents.

    Records the interrupted level and provides a friendly goodbye.
    """

    def can_handle(self, handler_input):
        return (
            is_intent_name("AMAZON.CancelIntent")(handler_input)
            or is_intent_name("AMAZON.StopIntent")(handler_input)
            or is_intent_name("AMAZON.PauseIntent")(handler_input)
        )

    def handle(self, handler_input):
        logger.info("In ExitIntentHandler")

        progress = _quit_game(handler_input)
        if progress is not None:
            # Quiz in progress - provide summary
            correct, answered = progress
            speech = data.EXIT_DURING_QUIZ.format(correct=correct, answered=answered)
        else:
            speech = data.EXIT_SKILL_MESSAGE

        handler_input.response_builder.speak(speech).set_should_end_session(True)
        return handler_input.response_builder.response


class SessionEndedRequestHandler(AbstractRequestHandler):
    """Handler for session end; closes whatever level and session are still open."""

    def can_handle(self, handler_input):
        return is_request_type("SessionEndedRequest")(handler_input)

    def handle(self, handler_input):
        logger.info("In SessionEndedRequestHandler")
        logger.info(f"Session ended with reason: {handler_input.request_envelope.request.reason}")

        _quit_game(handler_input)
        return handler_input.response_builder.response


class FallbackIntentHandler(AbstractRequestHandler):
    """
    Handler for fallback intent.

    Triggered when Alexa doesn't understand the user's input.
    """

    def can_handle(self, handler_input):
        return is_intent_name("AMAZON.FallbackIntent")(handler_input)

    def handle(self, handler_input):
        logger.info("In FallbackIntentHandler")

        session_attr = handler_input.attributes_manager.session_attributes

        if session_attr.get("state") == data.STATE_QUIZ:
            text = _current_question_text(handler_input)
            speech = data.FALLBACK_MESSAGE + " " + text
            reprompt = text if text else data.REPROMPT_QUIZ
        else:
            speech = data.FALLBACK_MESSAGE
            reprompt = data.REPROMPT_GENERAL

        handler_input.response_builder.speak(speech).ask(reprompt)
        return handler_input.response_builder.response


class IntentReflectorHandler(AbstractRequestHandler):
    """
    Handler for any intent no other handler took.

    Must be registered last.
    """

    def can_handle(self, handler_input):
        return is_request_type("IntentRequest")(handler_input)

    def handle(self, handler_input):
        intent_name = get_intent_name(handler_input)
        logger.info(f"In IntentReflectorHandler for {intent_name}")

        session_attr = handler_input.attributes_manager.session_attributes
        if session_attr.get("state") == data.STATE_QUIZ:
            text = _current_question_text(handler_input)
            speech = data.NOT_UNDERSTOOD_DURING_QUIZ + " " + text
            reprompt = text if text else data.REPROMPT_QUIZ
        else:
            speech = data.FALLBACK_MESSAGE
            reprompt = data.REPROMPT_GENERAL

        handler_input.response_builder.speak(speech).ask(reprompt)
        return handler_input.response_builder.response
