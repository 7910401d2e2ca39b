"""
PhraseCoach - Expression Practice Tutor

Pick the everyday expressions you want to learn, get a short conversational
scenario for each, and answer in your own words. PhraseCoach tracks which
expressions you used and tells you when the round is done.
"""

__version__ = "0.1.0"
