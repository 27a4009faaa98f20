from decimal import Decimal

import pytest

from winnie_engine.core.config import load_settings

_KEYS = (
    "APP_ENV", "LOG_LEVEL", "DECIMAL_PRECISION", "CURRENCY_DECIMALS", "HORIZON_CAP_MONTHS",
    "RATE_POLICY", "CONSERVATIVE_RATE", "GROWTH_RATE", "LONG_TERM_THRESHOLD_MONTHS",
    "INFLATION_RATE", "DEBT_INVEST_MATERIALITY",
)


@pytest.fixture
def clean_env(monkeypatch):
    for k in _KEYS:
        monkeypatch.delenv(k, raising=False)
    return monkeypatch


def test_defaults_without_config_file(clean_env, tmp_path):
    s = load_settings(str(tmp_path / "missing.yaml"))
    assert s.horizon_cap_months == 600
    assert s.rate_policy == "goal_type"
    assert s.growth_rate == Decimal("0.07")
    assert s.debt_invest_materiality == Decimal("500")


def test_yaml_values(clean_env, tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("engine:\n  horizon_cap_months: 360\nrates:\n  policy: horizon\n  inflation: 0.025\n")
    s = load_settings(str(cfg))
    assert s.horizon_cap_months == 360
    assert s.rate_policy == "horizon"
    assert s.inflation_rate == Decimal("0.025")


def test_env_overrides_yaml(clean_env, tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("engine:\n  horizon_cap_months: 360\n")
    clean_env.setenv("HORIZON_CAP_MONTHS", "120")
    clean_env.setenv("RATE_POLICY", "by_horizon")
    s = load_settings(str(cfg))
    assert s.horizon_cap_months == 120
    assert s.rate_policy == "horizon"


def test_empty_env_falls_back_to_yaml(clean_env, tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("engine:\n  horizon_cap_months: 360\n")
    clean_env.setenv("HORIZON_CAP_MONTHS", "  ")
    assert load_settings(str(cfg)).horizon_cap_months == 360


def test_unknown_rate_policy(clean_env, tmp_path):
    clean_env.setenv("RATE_POLICY", "vibes")
    with pytest.raises(ValueError):
        load_settings(str(tmp_path / "missing.yaml"))
