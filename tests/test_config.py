import pytest

from pillengine import config as cfg
from pillengine.config import SolverConfig


def test_defaults():
    config = SolverConfig()
    assert config.tolerance == 0.01
    assert config.max_count_per_pill == 4
    assert config.top_k == 3


def test_from_env_reads_module_defaults(monkeypatch):
    """from_env() picks up the PILLENGINE_* values resolved at import time."""
    monkeypatch.setattr(cfg, "TOP_K", 5)
    monkeypatch.setattr(cfg, "MAX_STOP_DAYS", 1)
    config = SolverConfig.from_env()
    assert config.top_k == 5
    assert config.max_stop_days == 1


@pytest.mark.parametrize("kw", [
    {"tolerance": 0.0},
    {"time_budget_s": -1.0},
    {"top_k": 0},
    {"max_iterations": 2.5},
    {"max_stop_days": 4},
])
def test_invalid_values_rejected(kw):
    with pytest.raises(ValueError):
        SolverConfig(**kw)


def test_default_config_built_from_environment_at_import():
    """The config solve() falls back to is the PILLENGINE_* one, not the bare defaults."""
    assert isinstance(cfg.DEFAULT_CONFIG, SolverConfig)
    assert cfg.DEFAULT_CONFIG == SolverConfig.from_env()
