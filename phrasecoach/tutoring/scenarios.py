#!/usr/bin/env python3
"""
Scenario generators: produce the situation and opening line for a target expression.

Generators return raw payloads; ``coerce_scenario`` turns whatever came back
into a strict Scenario so the engine never trusts the provider's shape.
"""

import json
import re
import random
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, TYPE_CHECKING

from .errors import CollaboratorFailure
from .state import Scenario
from . import prompts

if TYPE_CHECKING:
    from ..llm import UnifiedLLMClient


logger = logging.getLogger(__name__)

_SCENARIO_KEYS = ('scenario', 'scenarioText', 'scenario_text')
_MESSAGE_KEYS = ('initialMessage', 'initial_message', 'message')


class ScenarioGenerator(ABC):
    """Produces scenario text for an expression; may raise on failure"""

    @abstractmethod
    def generate_scenario(self, expression_text: str) -> Any:
        """Return a payload with scenario text and an initial message"""
        pass


def fallback_scenario(expression_text: str) -> Scenario:
    """Static scenario used whenever the generator fails"""
    return Scenario(
        scenario_text=prompts.FALLBACK_SCENARIO.format(expression=expression_text),
        initial_message=prompts.FALLBACK_INITIAL_MESSAGE,
        is_fallback=True,
    )


def _first_text(payload: Dict, keys) -> str:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ''


def coerce_scenario(payload: Any, expression_text: str) -> Scenario:
    """Validate an untyped generator payload, defaulting missing fields"""
    fallback = fallback_scenario(expression_text)

    if isinstance(payload, Scenario):
        return payload

    if isinstance(payload, str):
        text = payload.strip()
        if not text:
            return fallback
        return Scenario(scenario_text=text, initial_message=text)

    if not isinstance(payload, dict):
        return fallback

    scenario_text = _first_text(payload, _SCENARIO_KEYS)
    initial_message = _first_text(payload, _MESSAGE_KEYS)
    if not scenario_text and not initial_message:
        return fallback

    return Scenario(
        scenario_text=scenario_text or fallback.scenario_text,
        initial_message=initial_message or fallback.initial_message,
    )


def extract_json(response_text: str) -> Dict:
    """Parse JSON from a model response, tolerating markdown code fences"""
    try:
        if '```json' in response_text:
            match = re.search(r'```json\s*(.*?)\s*```', response_text, re.DOTALL)
            if match:
                return json.loads(match.group(1))
        elif '```' in response_text:
            match = re.search(r'```\s*(.*?)\s*```', response_text, re.DOTALL)
            if match:
                return json.loads(match.group(1))

        return json.loads(response_text)

    except json.JSONDecodeError:
        return {"error": "Failed to parse JSON response", "raw": response_text}


class LLMScenarioGenerator(ScenarioGenerator):
    """Asks the configured LLM provider to write a scenario"""

    def __init__(self, llm_client: 'UnifiedLLMClient', temperature: float = 0.7):
        self.llm = llm_client
        self.temperature = temperature

    def generate_scenario(self, expression_text: str) -> Dict:
        if not self.llm or not self.llm.is_available():
            raise CollaboratorFailure("LLM provider not available")

        try:
            response_text = self.llm.complete(
                prompts.SCENARIO_USER_PROMPT.format(expression=expression_text),
                system=prompts.SCENARIO_SYSTEM_PROMPT.format(expression=expression_text),
                temperature=self.temperature,
            )
        except Exception as e:
            raise CollaboratorFailure(f"Scenario request failed: {e}") from e

        logger.debug("Scenario response for %r: %s", expression_text, response_text[:200])
        payload = extract_json(response_text)
        if not isinstance(payload, dict) or 'error' in payload:
            raise CollaboratorFailure(f"Unparseable scenario response: {response_text[:80]}")
        return payload


class StaticScenarioGenerator(ScenarioGenerator):
    """Offline generator backed by hand-written scenarios"""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate_scenario(self, expression_text: str) -> Dict:
        options = prompts.CANNED_SCENARIOS.get(expression_text.strip().lower())
        if options:
            text = self.rng.choice(options)
        else:
            text = prompts.GENERIC_SCENARIO.format(expression=expression_text)
        return {'scenario': text, 'initialMessage': text}
