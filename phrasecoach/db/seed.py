#!/usr/bin/env python3
"""
Seed the expression repository with default categories and sample expressions
"""

import logging
from typing import List

from .expressions import ExpressionRepository
from ..tutoring.state import Expression


logger = logging.getLogger(__name__)


DEFAULT_CATEGORIES = [
    ("Greetings & Introductions", "👋"),
    ("Restaurant & Food", "🍽️"),
    ("Questions & Requests", "❓"),
    ("Compliments & Praise", "🌟"),
    ("Business & Work", "💼"),
    ("Travel & Directions", "🗺️"),
]

SAMPLE_EXPRESSIONS = [
    ("Could you please help me with this?", "Questions & Requests"),
    ("Thank you so much for your assistance", "Compliments & Praise"),
    ("I'd like to order a coffee, please", "Restaurant & Food"),
    ("Excuse me, where is the nearest station?", "Travel & Directions"),
    ("Nice to meet you", "Greetings & Introductions"),
    ("Have a wonderful day", "Greetings & Introductions"),
]


def seed_default_expressions(repo: ExpressionRepository) -> List[Expression]:
    """Add the default categories and sample expressions to an empty repository"""
    if repo.get_expressions():
        logger.info("Repository already has expressions; skipping seed")
        return []

    for name, icon in DEFAULT_CATEGORIES:
        repo.add_category(name, icon)

    added = []
    for text, category_name in SAMPLE_EXPRESSIONS:
        category = repo.get_category_by_name(category_name)
        added.append(repo.add_expression(text, category['id'] if category else None))

    logger.info("Seeded %d categories and %d expressions", len(DEFAULT_CATEGORIES), len(added))
    return added


if __name__ == "__main__":
    repository = ExpressionRepository()
    seed_default_expressions(repository)
    repository.close()
