"""Request and response interceptors for the Alexa skill."""

import logging

from ask_sdk_core.dispatch_components import (
    AbstractExceptionHandler,
    AbstractRequestInterceptor,
    AbstractResponseInterceptor,
)

from sumapp import data
from sumapp.errors import GameError, NotFoundError, StorageError

logger = logging.getLogger(__name__)


class CacheResponseForRepeatInterceptor(AbstractResponseInterceptor):
    """
    Cache the response for repeat functionality.

    Stores the response in session attributes so it can be
    repeated if the user asks.
    """

    def process(self, handler_input, response):
        session_attr = handler_input.attributes_manager.session_attributes
        session_attr["recent_response"] = response


class RequestLogger(AbstractRequestInterceptor):
    """Log incoming requests."""

    def process(self, handler_input):
        logger.debug(f"Request Envelope: {handler_input.request_envelope}")
        logger.info(f"Request type: {handler_input.request_envelope.request.object_type}")


class ResponseLogger(AbstractResponseInterceptor):
    """Log outgoing responses."""

    def process(self, handler_input, response):
        logger.debug(f"Response: {response}")


class GameErrorHandler(AbstractExceptionHandler):
    """
    Turn game errors into something a child can act on.

    A missing profile sends the user back to player selection; any
    other game error asks to try again.
    """

    def can_handle(self, handler_input, exception):
        return isinstance(exception, GameError)

    def handle(self, handler_input, exception):
        logger.warning(f"{type(exception).__name__}: {exception}")

        session_attr = handler_input.attributes_manager.session_attributes
        if isinstance(exception, NotFoundError):
            session_attr["state"] = data.STATE_ASK_PLAYER
            speech, reprompt = data.PLAYER_NOT_FOUND, data.ASK_PLAYER
        else:
            if isinstance(exception, StorageError):
                logger.error(exception, exc_info=True)
            speech, reprompt = data.ERROR_MESSAGE, data.REPROMPT_GENERAL

        handler_input.response_builder.speak(speech).ask(reprompt)
        return handler_input.response_builder.response


class CatchAllExceptionHandler(AbstractExceptionHandler):
    """
    Catch-all exception handler.

    Logs errors and provides a user-friendly error message.
    """

    def can_handle(self, handler_input, exception):
        return True

    def handle(self, handler_input, exception):
        logger.error(exception, exc_info=True)

        speech = data.ERROR_MESSAGE
        handler_input.response_builder.speak(speech).ask(speech)

        return handler_input.response_builder.response
