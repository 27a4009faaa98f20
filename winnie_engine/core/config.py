from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict

import yaml
from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    env: str
    log_level: str

    decimal_precision: int
    currency_decimals: int
    horizon_cap_months: int

    rate_policy: str
    conservative_rate: Decimal
    growth_rate: Decimal
    long_term_threshold_months: int
    inflation_rate: Decimal

    debt_invest_materiality: Decimal


def _deep_get(d: Dict[str, Any], path: str, default=None):
    cur = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def load_settings(config_path: str = "config.yaml") -> Settings:
    """
    Loads config.yaml + overrides from .env/environment variables.
    """
    load_dotenv()  # loads .env into env vars

    cfg: Dict[str, Any] = {}
    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}

    # Empty env vars count as "not set" so a stray RATE_POLICY="" can't
    # override config.yaml.
    def _env_or_cfg(key: str, cfg_path: str, default):
        v = os.getenv(key)
        if v is None:
            return _deep_get(cfg, cfg_path, default)
        v = v.strip()
        return _deep_get(cfg, cfg_path, default) if v == "" else v

    env = _env_or_cfg("APP_ENV", "app.env", "dev")
    log_level = _env_or_cfg("LOG_LEVEL", "app.log_level", "INFO")

    decimal_precision = int(_env_or_cfg("DECIMAL_PRECISION", "engine.decimal_precision", 28))
    currency_decimals = int(_env_or_cfg("CURRENCY_DECIMALS", "engine.currency_decimals", 2))
    horizon_cap_months = int(_env_or_cfg("HORIZON_CAP_MONTHS", "engine.horizon_cap_months", 600))

    rate_policy = str(_env_or_cfg("RATE_POLICY", "rates.policy", "goal_type")).strip().lower()
    if rate_policy in ("type", "goal-type", "by_type"):
        rate_policy = "goal_type"
    elif rate_policy in ("by_horizon", "timeline"):
        rate_policy = "horizon"
    if rate_policy not in ("goal_type", "horizon"):
        raise ValueError(f"Unknown rate policy: {rate_policy!r} (expected 'goal_type' or 'horizon')")

    # Rates go through str() so YAML floats never reach Decimal directly.
    conservative_rate = Decimal(str(_env_or_cfg("CONSERVATIVE_RATE", "rates.conservative", "0.035")))
    growth_rate = Decimal(str(_env_or_cfg("GROWTH_RATE", "rates.growth", "0.07")))
    long_term_threshold_months = int(
        _env_or_cfg("LONG_TERM_THRESHOLD_MONTHS", "rates.long_term_threshold_months", 60)
    )
    inflation_rate = Decimal(str(_env_or_cfg("INFLATION_RATE", "rates.inflation", "0.03")))

    debt_invest_materiality = Decimal(
        str(_env_or_cfg("DEBT_INVEST_MATERIALITY", "analysis.debt_invest_materiality", "500"))
    )

    return Settings(
        env=env,
        log_level=log_level,
        decimal_precision=decimal_precision,
        currency_decimals=currency_decimals,
        horizon_cap_months=horizon_cap_months,
        rate_policy=rate_policy,
        conservative_rate=conservative_rate,
        growth_rate=growth_rate,
        long_term_threshold_months=long_term_threshold_months,
        inflation_rate=inflation_rate,
        debt_invest_materiality=debt_invest_materiality,
    )


# Optional convenience singleton
SETTINGS = load_settings()
