"""Admin handlers: summary of all players and profile deletion."""

import logging

from ask_sdk_core.dispatch_components import AbstractRequestHandler
from ask_sdk_core.utils import is_intent_name

from sumapp import analytics, data
from sumapp.errors import NotFoundError
from sumapp.handlers.helpers import get_profile_manager, get_slot_value
from sumapp.profiles import ProfileManager, is_admin

logger = logging.getLogger(__name__)

# Players read out individually in the admin summary
MAX_PLAYERS_SPOKEN = 3


def admin_summary_speech(profiles: ProfileManager) -> str:
    """Spoken dashboard: totals over all learners and the most active ones."""
    summaries = analytics.get_all_profiles_analytics(profiles.get_all())
    if not summaries:
        return data.ADMIN_NO_PLAYERS + data.ADMIN_REPROMPT

    dashboard = analytics.dashboard_summary(summaries)
    speech = data.ADMIN_SUMMARY.format(
        players=dashboard.total_players,
        questions=dashboard.total_questions,
        accuracy=dashboard.average_accuracy,
    )
    for summary in summaries[:MAX_PLAYERS_SPOKEN]:
        speech += data.ADMIN_PLAYER_LINE.format(
            name=summary.profile_name,
            level=summary.level,
            accuracy=summary.overall_accuracy,
        )
    return speech + data.ADMIN_REPROMPT


class DeleteProfileHandler(AbstractRequestHandler):
    """
    Handler for deleting a player's profile.

    Only honoured while the admin profile is selected.
    """

    def can_handle(self, handler_input):
        return is_intent_name("DeleteProfileIntent")(handler_input)

    def handle(self, handler_input):
        logger.info("In DeleteProfileHandler")

        profiles = get_profile_manager(handler_input)
        if not is_admin(profiles.get_current_name()):
            speech = data.DELETE_NOT_ALLOWED + " " + data.REPROMPT_GENERAL
            handler_input.response_builder.speak(speech).ask(data.REPROMPT_GENERAL)
            return handler_input.response_builder.response

        name_value = (get_slot_value(handler_input, "name") or "").strip()
        if not name_value or is_admin(name_value):
            speech = data.PLAYER_NOT_FOUND
        else:
            try:
                profiles.delete(name_value)
                speech = data.PROFILE_DELETED.format(name=name_value)
            except NotFoundError:
                speech = data.PLAYER_NOT_FOUND

        speech += " " + data.ADMIN_REPROMPT
        handler_input.response_builder.speak(speech).ask(data.ADMIN_REPROMPT)
        return handler_input.response_builder.response
