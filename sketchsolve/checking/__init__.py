"""Expression parsing and equivalence checking."""

from .equivalence import EquivalenceChecker, check
from .expression import parse_expression

__all__ = ["EquivalenceChecker", "check", "parse_expression"]
