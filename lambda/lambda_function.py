"""
Plus and Minus Practice Alexa Skill - Lambda Function.

This module configures and exports the Alexa skill lambda handler.
All request handlers are defined in sumapp.handlers.

Environment:
    LOG_LEVEL: Root log level (default INFO).
    DYNAMODB_TABLE_NAME: Table holding one game document per account.
    PERSISTENCE_BACKEND: "dynamodb" (default) or "memory" for local runs.
"""

import logging
import os

from ask_sdk_core.skill_builder import CustomSkillBuilder
from ask_sdk_dynamodb.adapter import DynamoDbAdapter

from sumapp.handlers import (
    AnswerIntentHandler,
    DeleteProfileHandler,
    ExitIntentHandler,
    FallbackIntentHandler,
    HelpIntentHandler,
    IntentReflectorHandler,
    LaunchRequestHandler,
    NoIntentHandler,
    ProgressHandler,
    QuizHandler,
    RepeatHandler,
    SelectPlayerHandler,
    SessionEndedRequestHandler,
    YesIntentHandler,
)
from sumapp.interceptors import (
    CacheResponseForRepeatInterceptor,
    CatchAllExceptionHandler,
    GameErrorHandler,
    RequestLogger,
    ResponseLogger,
)
from sumapp.persistence import InMemoryPersistenceAdapter

# Configure logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.getLogger().setLevel(LOG_LEVEL)
logger = logging.getLogger(__name__)

# DynamoDB table name for persistence (configurable via environment variable)
DYNAMODB_TABLE_NAME = os.environ.get("DYNAMODB_TABLE_NAME", "SumAppGameData")
PERSISTENCE_BACKEND = os.environ.get("PERSISTENCE_BACKEND", "dynamodb").lower()


def create_persistence_adapter(backend: str = PERSISTENCE_BACKEND):
    """Persistence adapter for the configured backend."""
    if backend == "memory":
        logger.warning("Using in-memory persistence, game data is lost on restart")
        return InMemoryPersistenceAdapter()
    if backend != "dynamodb":
        raise ValueError(f"Unknown persistence backend: {backend}")
    return DynamoDbAdapter(
        table_name=DYNAMODB_TABLE_NAME,
        partition_key_name="id",
        attribute_name="attributes",
        create_table=False,
    )


# Skill Builder with persistence adapter
sb = CustomSkillBuilder(persistence_adapter=create_persistence_adapter())

# Add request handlers (order matters - more specific handlers first)
sb.add_request_handler(LaunchRequestHandler())
sb.add_request_handler(SelectPlayerHandler())
sb.add_request_handler(QuizHandler())
sb.add_request_handler(AnswerIntentHandler())
sb.add_request_handler(ProgressHandler())
sb.add_request_handler(DeleteProfileHandler())
sb.add_request_handler(RepeatHandler())
sb.add_request_handler(HelpIntentHandler())
sb.add_request_handler(YesIntentHandler())
sb.add_request_handler(NoIntentHandler())
sb.add_request_handler(ExitIntentHandler())
sb.add_request_handler(SessionEndedRequestHandler())
sb.add_request_handler(FallbackIntentHandler())
sb.add_request_handler(IntentReflectorHandler())  # Must be last - catches any unhandled intents

# Add exception handlers (game errors first)
sb.add_exception_handler(GameErrorHandler())
sb.add_exception_handler(CatchAllExceptionHandler())

# Add interceptors
sb.add_global_response_interceptor(CacheResponseForRepeatInterceptor())
sb.add_global_request_interceptor(RequestLogger())
sb.add_global_response_interceptor(ResponseLogger())

# Expose the lambda handler
lambda_handler = sb.lambda_handler()
