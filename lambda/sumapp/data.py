"""
Speech prompts for the addition and subtraction practice skill.

This module contains all text strings spoken by the skill,
including welcome messages, feedback, help text and session states.
"""

# Skill metadata
SKILL_TITLE = "Plus and Minus Practice"

# ============================================================================
# Welcome and Player Selection
# ============================================================================

WELCOME_MESSAGE = "Welcome to Plus and Minus Practice! Who is playing today?"

WELCOME_BACK = (
    "Welcome back, {name}! You are on level {level}. "
    "Say 'start' to play, or tell me another player's name."
)

ASK_PLAYER = "Who is playing today? Tell me your name."

NEW_PLAYER = (
    "Nice to meet you, {name}! You start at level 1. "
    "Answer every question before the time runs out. Say 'start' when you are ready."
)

RETURNING_PLAYER = "Hi {name}! You are on level {level}. Say 'start' when you are ready."

NO_PLAYER_SELECTED = "I don't know who is playing yet. Tell me your name first."

ADMIN_CANNOT_PLAY = "The admin profile is for checking progress, not for playing."

# ============================================================================
# Quiz Messages
# ============================================================================

START_LEVEL = "Level {level}! You have {seconds} seconds for each question. "

FIRST_QUESTION = "First question: "

NEXT_QUESTION = "Next: "

QUESTION_TEXT = "What is {a} {operation} {b}?"

REPROMPT_QUIZ = "What is the answer?"

# ============================================================================
# Answer Feedback
# ============================================================================

CORRECT_ANSWER_TEMPLATES = [
    "Correct!",
    "Great job! {answer} is right!",
    "Well done!",
    "Yes, {answer}!",
    "That's right!",
]

WRONG_ANSWER_TEMPLATES = [
    "Not quite. {a} {operation} {b} is {answer}.",
    "Oops, the answer is {answer}.",
    "Sorry, {a} {operation} {b} makes {answer}.",
]

TIMEOUT_MESSAGE = "Time's up! {a} {operation} {b} is {answer}."

# ============================================================================
# Level Results
# ============================================================================

LEVEL_PASSED = (
    "Level {level} complete! You got all {total} right. Level {next_level} is unlocked! "
    "Say 'start' to keep going."
)

LEVEL_PASSED_MAX = (
    "Amazing! You got all {total} right and finished the last level. "
    "You are a plus and minus champion! Say 'start' to play again."
)

LEVEL_FAILED = (
    "You got {correct} out of {total}, that's {percentage} percent. "
    "You need {required} correct to pass. Don't give up, say 'start' to try again!"
)

# ============================================================================
# Progress
# ============================================================================

PROGRESS_REPORT = (
    "{name}, you are on level {level}. You answered {total} questions "
    "and got {correct} right, that's {accuracy} percent. "
)

PROGRESS_WEAK_PROBLEMS = "Keep practicing {problems}. "

PROGRESS_NO_DATA = "{name}, you haven't answered any questions yet. Say 'start' to play!"

# ============================================================================
# Admin
# ============================================================================

ADMIN_SUMMARY = (
    "There are {players} players. Together they answered {questions} questions "
    "with an average accuracy of {accuracy} percent. "
)

ADMIN_PLAYER_LINE = "{name} is on level {level} with {accuracy} percent. "

ADMIN_NO_PLAYERS = "No player data yet. Players need to play the game first. "

ADMIN_REPROMPT = "You can ask for a player's progress, delete a player, or say stop."

PROFILE_DELETED = "I deleted the profile {name}. "

DELETE_NOT_ALLOWED = "Only the admin can delete profiles."

# ============================================================================
# Help, Repeat, Exit and Errors
# ============================================================================

HELP_MESSAGE = (
    "Practice plus and minus with numbers up to nine. "
    "Tell me your name to pick a player, say 'start' to play a level, "
    "or 'how am I doing' to hear your progress. What would you like to do?"
)

HELP_DURING_QUIZ = (
    "Just tell me the answer as a number, before the time runs out. "
    "Say 'repeat' to hear the question again or 'stop' to quit."
)

REPEAT_QUESTION = "Once more: {question}"

REPROMPT_GENERAL = "Say 'start' to practice, or tell me who is playing."

EXIT_SKILL_MESSAGE = "Goodbye! See you next time!"

EXIT_DURING_QUIZ = "Okay, let's stop. You got {correct} of {answered} right. See you next time!"

FALLBACK_MESSAGE = "Sorry, I didn't get that. Say 'help' if you are stuck."

ERROR_MESSAGE = "Sorry, something went wrong. Please try again."

NOT_UNDERSTOOD_DURING_QUIZ = "I didn't catch a number. Please just say the answer."

INVALID_NAME = "I need a name with up to twenty letters. What is your name?"

PLAYER_NOT_FOUND = "I couldn't find that player. Who is playing?"

# ============================================================================
# Operation words for speech
# ============================================================================

OPERATION_WORDS = {
    "+": "plus",
    "-": "minus",
}

# ============================================================================
# Session States
# ============================================================================

STATE_NONE = "NONE"
STATE_ASK_PLAYER = "ASK_PLAYER"
STATE_QUIZ = "QUIZ"
STATE_LEVEL_COMPLETE = "LEVEL_COMPLETE"
STATE_ADMIN = "ADMIN"
