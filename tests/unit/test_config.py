from fractions import Fraction

import pytest

from ballots.errors import InvalidThreshold
from counting.config import CountConfig
from counting.irv import TieBreak


@pytest.mark.unit
class TestCountConfig:
    def test_defaults(self):
        config = CountConfig()

        assert config.threshold == Fraction(1, 2)
        assert config.tie_break is TieBreak.SIMULTANEOUS
        assert config.verbose is False

    def test_from_env_empty(self):
        assert CountConfig.from_env({}) == CountConfig()

    def test_from_env_values(self):
        config = CountConfig.from_env(
            {"IRV_THRESHOLD": "2/3", "IRV_TIE_BREAK": "Candidate-Order"}, verbose=True
        )

        assert config.threshold == Fraction(2, 3)
        assert config.tie_break is TieBreak.CANDIDATE_ORDER
        assert config.verbose is True

    def test_from_env_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("IRV_THRESHOLD", "0.6")
        monkeypatch.delenv("IRV_TIE_BREAK", raising=False)

        assert CountConfig.from_env().threshold == Fraction(3, 5)

    def test_from_env_invalid_threshold(self):
        with pytest.raises(InvalidThreshold):
            CountConfig.from_env({"IRV_THRESHOLD": "1.5"})

    def test_from_env_invalid_tie_break(self):
        with pytest.raises(ValueError):
            CountConfig.from_env({"IRV_TIE_BREAK": "coin-flip"})

    def test_override_keeps_unset_values(self):
        base = CountConfig.from_env({"IRV_THRESHOLD": "0.6"})

        config = base.override(tie_break="candidate-order", verbose=True)

        assert config.threshold == Fraction(3, 5)
        assert config.tie_break is TieBreak.CANDIDATE_ORDER
        assert config.verbose is True

    def test_override_threshold(self):
        assert CountConfig().override(threshold="1").threshold == 1
