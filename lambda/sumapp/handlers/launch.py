"""Launch request handler."""

import logging

from ask_sdk_core.dispatch_components import AbstractRequestHandler
from ask_sdk_core.utils import is_request_type

from sumapp import data
from sumapp.handlers.helpers import get_profile_manager
from sumapp.profiles import is_admin

logger = logging.getLogger(__name__)


class LaunchRequestHandler(AbstractRequestHandler):
    """
    Handler for skill launch.

    Greets the current player of this account if one is selected,
    otherwise asks who is playing.
    """

    def can_handle(self, handler_input):
        return is_request_type("LaunchRequest")(handler_input)

    def handle(self, handler_input):
        logger.info("In LaunchRequestHandler")

        profiles = get_profile_manager(handler_input)
        session_attr = handler_input.attributes_manager.session_attributes

        profile = profiles.get_current()
        if profile is None or is_admin(profile.name):
            session_attr["state"] = data.STATE_ASK_PLAYER
            speech = data.WELCOME_MESSAGE
            reprompt = data.ASK_PLAYER
        else:
            session_attr["state"] = data.STATE_NONE
            speech = data.WELCOME_BACK.format(name=profile.name, level=profile.level)
            reprompt = data.REPROMPT_GENERAL

        handler_input.response_builder.speak(speech).ask(reprompt)
        return handler_input.response_builder.response
