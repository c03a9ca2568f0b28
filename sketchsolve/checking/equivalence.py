"""
Heuristic equivalence checker for two expressions.

Tries to prove lhs - rhs == 0 by symbolic expansion first, then falls back
to evaluating the difference at a few deterministic sample points. A pass
by sampling means "likely equivalent", not a proof.
"""

import logging
import math
import signal
import time
from typing import Optional

import sympy as sp

from ..models import Verdict
from ..utils.constants import CHECK_TRIALS, CHECK_TOLERANCE
from ..utils.errors import ExpressionParseError
from .expression import (
    ExpressionParser,
    difference,
    identifiers,
    sample_point,
    split_reserved,
)

logger = logging.getLogger(__name__)


class SymbolicTimeout(Exception):
    """Raised internally when expansion exceeds its time budget."""


class EquivalenceChecker:
    """
    Decide whether two expressions are (likely) the same.

    Stateless apart from configuration, so one instance can be shared.

    Usage:
        checker = EquivalenceChecker()
        verdict = checker.check("(x+1)^2", "x^2+2x+1")
        verdict.is_equivalent  # True
    """

    def __init__(
        self,
        trials: int = CHECK_TRIALS,
        tolerance: float = CHECK_TOLERANCE,
        expand_timeout: Optional[float] = 5.0,
    ):
        """
        Args:
            trials: Number of numeric sample points.
            tolerance: Absolute tolerance for a sample to count as zero.
            expand_timeout: Seconds allowed for symbolic expansion before
                falling back to sampling. None disables the limit.
        """
        self.trials = trials
        self.tolerance = tolerance
        self.expand_timeout = expand_timeout

    def check(self, lhs: str, rhs: str) -> Verdict:
        """
        Compare two expressions.

        Returns:
            Verdict: EQUIVALENT, DIFFERENT (with residual) or ERROR (with
            a reason). Malformed input never raises.
        """
        lhs = (lhs or "").strip()
        rhs = (rhs or "").strip()
        if not lhs or not rhs:
            return Verdict.error("Fill in both the left and right expressions.")

        parser = ExpressionParser()
        try:
            lhs_tree = parser.parse(lhs)
            rhs_tree = parser.parse(rhs)
        except ExpressionParseError as e:
            logger.debug("Parse failed: %s", e)
            return Verdict.error(str(e))

        diff_tree = difference(lhs_tree, rhs_tree)
        start = time.perf_counter()

        # Step 1: symbolic expansion
        residual = self._expand(diff_tree)
        if residual is not None and residual == 0:
            self._log_elapsed("symbolic", start)
            return Verdict.equivalent("symbolic")
        residual_text = str(residual) if residual is not None else f"({lhs}) - ({rhs})"

        # Step 2: candidate variables
        variables, _ = split_reserved(list(identifiers(lhs)) + list(identifiers(rhs)))
        if not variables:
            self._log_elapsed("symbolic", start)
            return Verdict.different(residual_text, "symbolic")

        # Step 3: deterministic numeric sampling
        for trial in range(self.trials):
            env = sample_point(trial, variables)
            try:
                value = diff_tree.evaluate(env)
            except (ArithmeticError, ValueError) as e:
                logger.debug("Trial %d not evaluable: %s", trial, e)
                self._log_elapsed("numeric", start)
                return Verdict.different(residual_text, "numeric")

            if not math.isfinite(value) or abs(value) > self.tolerance:
                logger.debug("Trial %d residual %r at %s", trial, value, env)
                self._log_elapsed("numeric", start)
                return Verdict.different(residual_text, "numeric")

        self._log_elapsed("numeric", start)
        return Verdict.equivalent("numeric")

    def _expand(self, tree) -> Optional[sp.Expr]:
        """Build and expand the SymPy form with a time limit; None on timeout."""
        try:
            return self._with_timeout(lambda: sp.expand(tree.to_sympy()))
        except SymbolicTimeout:
            logger.warning(
                "Symbolic expansion timed out after %.1fs, using sampling only",
                self.expand_timeout,
            )
            return None

    def _with_timeout(self, func, *args):
        """
        Run func under a SIGALRM timer.

        Falls back to running without a limit where SIGALRM is unavailable
        (Windows) or outside the main thread.
        """
        if not self.expand_timeout:
            return func(*args)

        def timeout_handler(signum, frame):
            raise SymbolicTimeout()

        try:
            old_handler = signal.signal(signal.SIGALRM, timeout_handler)
        except (AttributeError, ValueError):
            return func(*args)

        signal.setitimer(signal.ITIMER_REAL, self.expand_timeout)
        try:
            return func(*args)
        finally:
            signal.setitimer(signal.ITIMER_REAL, 0)
            signal.signal(signal.SIGALRM, old_handler)

    @staticmethod
    def _log_elapsed(method: str, start: float) -> None:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        logger.debug("Equivalence decided by %s check in %dms", method, elapsed_ms)


def check(lhs: str, rhs: str) -> Verdict:
    """Convenience function: compare two expressions with default settings."""
    return EquivalenceChecker().check(lhs, rhs)
