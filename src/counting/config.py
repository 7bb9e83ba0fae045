import logging
import os
from dataclasses import dataclass
from fractions import Fraction
from typing import Mapping, Optional

try:
    from .irv import DEFAULT_THRESHOLD, TieBreak, parse_threshold
except ImportError:
    from counting.irv import DEFAULT_THRESHOLD, TieBreak, parse_threshold

logger = logging.getLogger(__name__)

THRESHOLD_ENV = "IRV_THRESHOLD"
TIE_BREAK_ENV = "IRV_TIE_BREAK"


@dataclass(frozen=True)
class CountConfig:
    """Settings for one count."""

    threshold: Fraction = DEFAULT_THRESHOLD
    tie_break: TieBreak = TieBreak.SIMULTANEOUS
    verbose: bool = False

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, verbose: bool = False
    ) -> "CountConfig":
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``
            verbose: Whether invalid ballots should be reported

        Returns:
            CountConfig with defaults for unset variables
        """
        environ = os.environ if environ is None else environ

        threshold = DEFAULT_THRESHOLD
        raw_threshold = environ.get(THRESHOLD_ENV)
        if raw_threshold:
            threshold = parse_threshold(raw_threshold)
            logger.debug(f"Threshold {threshold} taken from {THRESHOLD_ENV}")

        tie_break = TieBreak.SIMULTANEOUS
        raw_tie_break = environ.get(TIE_BREAK_ENV)
        if raw_tie_break:
            tie_break = TieBreak(raw_tie_break.strip().lower())
            logger.debug(f"Tie-break {tie_break.value} taken from {TIE_BREAK_ENV}")

        return cls(threshold=threshold, tie_break=tie_break, verbose=verbose)

    def override(
        self,
        threshold: Optional[str] = None,
        tie_break: Optional[str] = None,
        verbose: Optional[bool] = None,
    ) -> "CountConfig":
        """Return a copy with command-line values applied on top."""
        return CountConfig(
            threshold=parse_threshold(threshold) if threshold is not None else self.threshold,
            tie_break=TieBreak(tie_break) if tie_break is not None else self.tie_break,
            verbose=self.verbose if verbose is None else verbose,
        )
