"""Expression storage and practice history."""

from .expressions import ExpressionRepository
from .seed import seed_default_expressions

__all__ = ["ExpressionRepository", "seed_default_expressions"]
