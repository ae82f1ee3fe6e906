"""
Numeric constants and per-run tolerance settings for the tester.

The constants below are part of the grading contract and are not meant to
be tuned.  What does vary between runs is the maximum error ("epsilon")
applied to every boundary comparison, so the constants and the epsilon are
bundled into an immutable ``ValidationSettings`` record that is handed to
the validation engine at construction.  Two engines with different
settings can therefore run side by side without sharing any state.

The default epsilon can be overridden through the ``ASV_MAX_ERROR``
environment variable (see ``settings_from_env``).
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional

from .asv_model import Rect

logger = logging.getLogger(__name__)

#: The maximum distance any ASV can travel between two consecutive states.
MAX_STEP: float = 0.001
#: The minimum allowable boom length.
MIN_BOOM_LENGTH: float = 0.05
#: The maximum allowable boom length.
MAX_BOOM_LENGTH: float = 0.075
#: The workspace bounds (unit square).
BOUNDS: Rect = Rect(0.0, 0.0, 1.0, 1.0)
#: The default value for the maximum error.
DEFAULT_MAX_ERROR: float = 1e-5
#: Radius of the minimum-area circle per boom in the chain.
AREA_RADIUS_FACTOR: float = 0.007

MAX_ERROR_ENV = "ASV_MAX_ERROR"


@dataclass(frozen=True)
class ValidationSettings:
    """Tolerance and limits shared by every check of one validation run."""

    epsilon: float = DEFAULT_MAX_ERROR
    max_step: float = MAX_STEP
    min_boom_length: float = MIN_BOOM_LENGTH
    max_boom_length: float = MAX_BOOM_LENGTH
    bounds: Rect = field(default=BOUNDS)
    area_radius_factor: float = AREA_RADIUS_FACTOR

    def __post_init__(self) -> None:
        if not math.isfinite(self.epsilon) or self.epsilon < 0.0:
            raise ValueError(f"epsilon must be a finite non-negative number, got {self.epsilon}")

    @property
    def lenient_bounds(self) -> Rect:
        """The workspace bounds grown outward by epsilon."""
        return self.bounds.grow(self.epsilon)

    def with_epsilon(self, epsilon: Optional[float]) -> "ValidationSettings":
        """Return a copy using ``epsilon``; ``None`` keeps the current value."""
        if epsilon is None:
            return self
        return replace(self, epsilon=float(epsilon))


def settings_from_env(environ: Optional[Mapping[str, str]] = None) -> ValidationSettings:
    """Build settings from the process environment.

    Raises:
        ValueError: If ``ASV_MAX_ERROR`` is set but is not a valid epsilon.
    """
    env = os.environ if environ is None else environ
    raw = env.get(MAX_ERROR_ENV)
    if raw is None or not raw.strip():
        return ValidationSettings()
    try:
        epsilon = float(raw)
    except ValueError as exc:
        raise ValueError(f"{MAX_ERROR_ENV} must be a number, got {raw!r}") from exc
    logger.debug("Using epsilon %g from %s", epsilon, MAX_ERROR_ENV)
    return ValidationSettings(epsilon=epsilon)
