#!/usr/bin/env python3
"""
LLM prompt templates and canned text for expression practice.
"""

# =============================================================================
# SCENARIO GENERATION - Set up a situation where the expression fits naturally
# =============================================================================

SCENARIO_SYSTEM_PROMPT = """You are a conversation scenario generator for English learners. Create a realistic scenario where someone would naturally use the expression "{expression}".

Respond with JSON in this format:
{{
  "scenario": "Brief one-sentence description of the situation",
  "initialMessage": "What the other person (like staff, friend, etc.) would say to start the conversation"
}}

Make it natural and conversational in English. Do NOT include the expression itself in the initial message."""


SCENARIO_USER_PROMPT = """Create a scenario for the expression: "{expression}\""""


# =============================================================================
# FALLBACKS - Used when the generator is unavailable or returns junk
# =============================================================================

FALLBACK_SCENARIO = 'Practice using: "{expression}"'

FALLBACK_INITIAL_MESSAGE = "Hello! How can I help you today?"

GENERIC_SCENARIO = (
    '💭 *Try to use this expression naturally in your reply.* '
    'Answer the conversation using "{expression}".'
)

# Hand-written scenarios for the default sample expressions
CANNED_SCENARIOS = {
    "nice to meet you": [
        "🤝 *You're at a networking event and someone introduces themselves.* "
        "Hi, I'm Sarah from the marketing team. I've heard great things about your work.",
        "🎓 *It's your first day at a new job and you're meeting your colleagues.* "
        "Welcome to the team! I'm David from the IT department.",
        "☕ *You're at a coffee shop and bump into a friend's colleague.* "
        "Oh, you must be the designer Lisa mentioned. I'm her roommate, Alex.",
    ],
    "have a wonderful day": [
        "🛍️ *You're finishing up at a store and the cashier hands you your receipt.* "
        "Here's your receipt. Thank you for shopping with us!",
        "🏥 *You're leaving a doctor's appointment and the receptionist smiles at you.* "
        "Your next appointment is scheduled for next month. Take care!",
        "🚗 *You're getting out of a taxi and the driver helps with your bags.* "
        "Here we are! That'll be $15.50.",
    ],
}


# =============================================================================
# FEEDBACK
# =============================================================================

FEEDBACK_CORRECT = '✅ Perfect! You used "{expression}" correctly.'

FEEDBACK_ALREADY_COMPLETED = '✅ You used "{expression}" again! That expression is already completed.'

FEEDBACK_CLOSE = '⚠️ Almost! Check the expression "{expression}" and try again.'

FEEDBACK_MISSED = '❌ You didn\'t use "{expression}" this time. Moving on.'

SESSION_COMPLETE_MESSAGE = "🎉 Congratulations! You've worked through every expression in this session."
