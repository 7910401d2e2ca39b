#!/usr/bin/env python3
"""
Expression practice engine.

Tracks which target expressions a learner has used across a conversation,
scores each reply with a lexical similarity heuristic, and reports progress
and a summary once every expression is done.
"""

from .state import (
    SessionStatus,
    SelectionPolicy,
    TurnOutcome,
    Expression,
    ExpressionState,
    Scenario,
    Session,
    EvaluationResult,
    SessionProgress,
    ExpressionResult,
    SessionSummary,
)
from .errors import (
    TutoringError,
    InvalidInput,
    SessionNotFound,
    SessionAlreadyComplete,
    CollaboratorFailure,
)
from .store import SessionStore
from .scenarios import ScenarioGenerator, LLMScenarioGenerator, StaticScenarioGenerator
from .engine import TutoringEngine

__all__ = [
    'SessionStatus',
    'SelectionPolicy',
    'TurnOutcome',
    'Expression',
    'ExpressionState',
    'Scenario',
    'Session',
    'EvaluationResult',
    'SessionProgress',
    'ExpressionResult',
    'SessionSummary',
    'TutoringError',
    'InvalidInput',
    'SessionNotFound',
    'SessionAlreadyComplete',
    'CollaboratorFailure',
    'SessionStore',
    'ScenarioGenerator',
    'LLMScenarioGenerator',
    'StaticScenarioGenerator',
    'TutoringEngine',
]
