"""Player selection handler."""

import logging

from ask_sdk_core.dispatch_components import AbstractRequestHandler
from ask_sdk_core.utils import is_intent_name

from sumapp import data
from sumapp.errors import ValidationError
from sumapp.handlers.admin import admin_summary_speech
from sumapp.handlers.helpers import (
    ATTR_GAME,
    get_profile_manager,
    get_slot_value,
    load_game,
)
from sumapp.profiles import is_admin

logger = logging.getLogger(__name__)


class SelectPlayerHandler(AbstractRequestHandler):
    """
    Handler for selecting which player is playing.

    Triggered when the user says their name outside a running quiz.
    Unknown names get a new profile; the admin name opens the summary
    of all players instead of a game.
    """

    def can_handle(self, handler_input):
        session_attr = handler_input.attributes_manager.session_attributes
        return (
            is_intent_name("SetNameIntent")(handler_input)
            and session_attr.get("state") != data.STATE_QUIZ
        )

    def handle(self, handler_input):
        logger.info("In SelectPlayerHandler")

        session_attr = handler_input.attributes_manager.session_attributes
        name_value = (get_slot_value(handler_input, "name") or "").strip()

        if not name_value:
            handler_input.response_builder.speak(data.ASK_PLAYER).ask(data.ASK_PLAYER)
            return handler_input.response_builder.response

        # Switching players closes whatever the previous player left open
        game = load_game(handler_input)
        if game.profile_name and game.profile_name != name_value:
            game.quit()
            session_attr.pop(ATTR_GAME, None)

        profiles = get_profile_manager(handler_input)
        try:
            profile, created = profiles.select_or_create(name_value)
        except ValidationError as exc:
            logger.info(f"Rejected player name {name_value!r}: {exc}")
            handler_input.response_builder.speak(data.INVALID_NAME).ask(data.INVALID_NAME)
            return handler_input.response_builder.response

        if is_admin(profile.name):
            session_attr["state"] = data.STATE_ADMIN
            speech = admin_summary_speech(profiles)
            reprompt = data.ADMIN_REPROMPT
        else:
            session_attr["state"] = data.STATE_NONE
            if created:
                speech = data.NEW_PLAYER.format(name=profile.name)
            else:
                speech = data.RETURNING_PLAYER.format(name=profile.name, level=profile.level)
            reprompt = data.REPROMPT_GENERAL

        handler_input.response_builder.speak(speech).ask(reprompt)
        return handler_input.response_builder.response
