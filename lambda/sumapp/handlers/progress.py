"""Progress reporting handler."""

import logging

from ask_sdk_core.dispatch_components import AbstractRequestHandler
from ask_sdk_core.utils import is_intent_name

from sumapp import analytics, data
from sumapp.handlers.helpers import get_profile_manager, get_slot_value
from sumapp.models import Profile
from sumapp.problems import is_valid_key, parse_problem_key
from sumapp.profiles import is_admin

logger = logging.getLogger(__name__)

# Problems named as "keep practicing" in a progress report
MAX_WEAK_PROBLEMS = 3


def progress_speech(profile: Profile) -> str:
    """Spoken progress for one learner: level, totals and most missed problems."""
    summary = analytics.calculate_profile_stats(profile)
    if summary.total_questions == 0:
        return data.PROGRESS_NO_DATA.format(name=profile.name)

    speech = data.PROGRESS_REPORT.format(
        name=profile.name,
        level=profile.level,
        total=summary.total_questions,
        correct=summary.total_correct,
        accuracy=summary.overall_accuracy,
    )

    # Keys outside the problem set (older or hand-edited documents) are not spoken
    missed = [
        stat
        for stat in summary.problem_stats
        if stat.wrong > 0 and is_valid_key(stat.problem)
    ][:MAX_WEAK_PROBLEMS]
    if missed:
        spoken = []
        for stat in missed:
            problem = parse_problem_key(stat.problem)
            spoken.append(
                f"{problem.a} {data.OPERATION_WORDS[problem.operation.value]} {problem.b}"
            )
        speech += data.PROGRESS_WEAK_PROBLEMS.format(problems=" and ".join(spoken))

    return speech


class ProgressHandler(AbstractRequestHandler):
    """
    Handler for reporting a learner's progress.

    Responds to "How am I doing?" for the current player. With the admin
    profile selected a player's name can be given to hear their report.
    """

    def can_handle(self, handler_input):
        return is_intent_name("ProgressIntent")(handler_input)

    def handle(self, handler_input):
        logger.info("In ProgressHandler")

        profiles = get_profile_manager(handler_input)
        current = profiles.get_current()

        if current is not None and is_admin(current.name):
            name_value = (get_slot_value(handler_input, "name") or "").strip()
            profile = profiles.get(name_value) if name_value and not is_admin(name_value) else None
            if profile is None:
                speech = data.PLAYER_NOT_FOUND
            else:
                speech = progress_speech(profile)
            speech += " " + data.ADMIN_REPROMPT
            handler_input.response_builder.speak(speech).ask(data.ADMIN_REPROMPT)
            return handler_input.response_builder.response

        if current is None:
            session_attr = handler_input.attributes_manager.session_attributes
            session_attr["state"] = data.STATE_ASK_PLAYER
            handler_input.response_builder.speak(data.NO_PLAYER_SELECTED).ask(data.ASK_PLAYER)
            return handler_input.response_builder.response

        speech = progress_speech(current) + " " + data.REPROMPT_GENERAL
        handler_input.response_builder.speak(speech).ask(data.REPROMPT_GENERAL)
        return handler_input.response_builder.response
