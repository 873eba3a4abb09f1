"""Alexa skill request handlers."""

from sumapp.handlers.admin import DeleteProfileHandler
from sumapp.handlers.launch import LaunchRequestHandler
from sumapp.handlers.progress import ProgressHandler
from sumapp.handlers.quiz import AnswerIntentHandler, QuizHandler
from sumapp.handlers.setup import SelectPlayerHandler
from sumapp.handlers.standard import (
    ExitIntentHandler,
    FallbackIntentHandler,
    HelpIntentHandler,
    IntentReflectorHandler,
    NoIntentHandler,
    RepeatHandler,
    SessionEndedRequestHandler,
    YesIntentHandler,
)

__all__ = [
    "LaunchRequestHandler",
    "SelectPlayerHandler",
    "QuizHandler",
    "AnswerIntentHandler",
    "ProgressHandler",
    "DeleteProfileHandler",
    "RepeatHandler",
    "HelpIntentHandler",
    "YesIntentHandler",
    "NoIntentHandler",
    "ExitIntentHandler",
    "SessionEndedRequestHandler",
    "FallbackIntentHandler",
    "IntentReflectorHandler",
]
