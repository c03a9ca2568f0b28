"""
Core data structures for SketchSolve.

These dataclasses define the contract between layers.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, Tuple
from enum import Enum, auto

from .utils.constants import (
    DEFAULT_PROVIDER,
    DEFAULT_TEMPERATURE,
    DEFAULT_PROMPT,
    PEN_WIDTH_DEFAULT,
    default_model_for,
)

Point = Tuple[float, float]


class PenMode(Enum):
    """Compositing behavior of a stroke."""

    INK = "ink"  # Paint opaque foreground color
    ERASE = "erase"  # Restore background + grid under the stroke


@dataclass
class Stroke:
    """
    A pen stroke in buffer coordinates.

    Strokes are transient: the surface paints each segment as it arrives
    and keeps only the last point to continue the path from.
    """

    last_point: Point
    pen_width: int = PEN_WIDTH_DEFAULT
    mode: PenMode = PenMode.INK


class VerdictKind(Enum):
    """Outcome categories for the equivalence checker."""

    EQUIVALENT = auto()
    DIFFERENT = auto()
    ERROR = auto()


@dataclass
class Verdict:
    """
    Result of comparing two expressions.

    EQUIVALENT means "likely equivalent" when decided by numeric sampling.
    DIFFERENT carries the simplified residual of lhs - rhs.
    ERROR carries a reason describing malformed input.
    """

    kind: VerdictKind
    residual: Optional[str] = None
    reason: Optional[str] = None
    method: str = ""  # "symbolic" or "numeric"

    @classmethod
    def equivalent(cls, method: str) -> "Verdict":
        return cls(kind=VerdictKind.EQUIVALENT, method=method)

    @classmethod
    def different(cls, residual: str, method: str) -> "Verdict":
        return cls(kind=VerdictKind.DIFFERENT, residual=residual, method=method)

    @classmethod
    def error(cls, reason: str) -> "Verdict":
        return cls(kind=VerdictKind.ERROR, reason=reason)

    @property
    def is_equivalent(self) -> bool:
        return self.kind is VerdictKind.EQUIVALENT

    @property
    def message(self) -> str:
        """Short status line for display."""
        if self.kind is VerdictKind.EQUIVALENT:
            return "The expressions appear to be equivalent."
        if self.kind is VerdictKind.DIFFERENT:
            return f"Symbolic difference: {self.residual}"
        return f"Check failed: {self.reason}"


@dataclass
class Settings:
    """Model settings sent with every solve request."""

    provider: str = DEFAULT_PROVIDER
    model: str = field(default_factory=lambda: default_model_for(DEFAULT_PROVIDER))
    temperature: float = DEFAULT_TEMPERATURE
    prompt: str = DEFAULT_PROMPT

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SolveResult:
    """Solution text returned through the relay for one canvas image."""

    content: str
    settings: Settings
    image_png: bytes = b""
    elapsed_ms: int = 0
    timestamp: datetime = field(default_factory=datetime.now)
