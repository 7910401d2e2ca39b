"""Interactive practice REPL."""

from .session import PracticeREPL

__all__ = ["PracticeREPL"]
