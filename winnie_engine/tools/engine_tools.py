from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, TypeAdapter, ValidationError

from winnie_engine.core.errors import InvalidInputError, UnknownGoalError
from winnie_engine.core.schemas import Allocation, EngineInput, ErrorEnvelope, FinancialProfile, Goal, Scenario
from winnie_engine.engine import financial_engine
from winnie_engine.utils.engine_models import (
    DebtProfile,
    InvestmentProfile,
    StressEvent,
    WindfallStrategy,
)
from winnie_engine.utils.logging import get_logger

logger = get_logger("tools.engine")

# camelCase keys written by the sync layer -> engine field names
_ALIASES: Dict[str, str] = {
    "monthlyIncome": "monthly_income",
    "monthlyNeeds": "monthly_needs",
    "monthlyWants": "monthly_wants",
    "currentSavings": "current_savings",
    "retirementBalance": "retirement_balance",
    "directSavingsPool": "direct_savings_pool",
    "targetAmount": "target_amount",
    "currentAmount": "current_amount",
    "desiredDate": "desired_date",
    "customReturnRate": "custom_return_rate",
    "isActive": "is_active",
    "marketInvested": "market_invested",
    "isMarketInvested": "market_invested",
    "decisionStatus": "decision_status",
    "createdAt": "created_at",
    "lastModified": "last_modified",
    "createdBy": "created_by",
    "asOf": "as_of",
    "goalId": "goal_id",
    "goalID": "goal_id",
    "targetDate": "target_date",
    "annualInterestRate": "annual_interest_rate",
    "minimumPayment": "minimum_payment",
    "assumedAnnualReturn": "assumed_annual_return",
    "horizonMonths": "horizon_months",
    "monthlyCapacity": "capacity",
    "materialityThreshold": "materiality_threshold",
    "scenarioA": "scenario_a",
    "scenarioB": "scenario_b",
    "allocations": "allocation",
}

_KIND_ALIASES: Dict[str, str] = {
    "jobLoss": "job_loss",
    "marketCorrection": "market_correction",
    "unexpectedExpense": "unexpected_expense",
    "allToSingleGoal": "all_to_single_goal",
    "proportionalSplit": "proportional_split",
    "equalSplit": "equal_split",
    "customMap": "custom_map",
}

# Maps keyed by goal id; their keys are data, not field names.
_ID_KEYED = ("allocation", "amounts")

_stress_event = TypeAdapter(StressEvent)
_windfall_strategy = TypeAdapter(WindfallStrategy)
_decimal = TypeAdapter(Decimal)


def _canon(obj: Any) -> Any:
    if isinstance(obj, list):
        return [_canon(x) for x in obj]
    if not isinstance(obj, dict):
        return obj
    out: Dict[str, Any] = {}
    for k, v in obj.items():
        key = _ALIASES.get(k, k)
        if key in _ID_KEYED and isinstance(v, dict):
            out[key] = dict(v) if key == "amounts" else _canon_allocation(v)
        elif key == "kind" and isinstance(v, str):
            out[key] = _KIND_ALIASES.get(v, v)
        else:
            out[key] = _canon(v)
    return out


def _canon_allocation(raw: Dict[str, Any]) -> Dict[str, Any]:
    # accept both {"amounts": {...}} and a bare goal_id -> amount map
    if "amounts" in raw and isinstance(raw["amounts"], dict):
        return {"amounts": dict(raw["amounts"])}
    return {"amounts": dict(raw)}


def _as_of(p: Dict[str, Any]) -> Optional[date]:
    v = p.get("as_of")
    if v is None or isinstance(v, date):
        return v
    return date.fromisoformat(str(v))


def _engine_input(p: Dict[str, Any]) -> EngineInput:
    fields = {k: p[k] for k in ("profile", "goals", "allocation", "as_of") if k in p}
    return EngineInput(**fields)


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_dump(v) for v in value]
    if isinstance(value, Decimal):
        return str(value)
    return value


def _run(tool: str, fn: Callable[[], Any]) -> Dict[str, Any]:
    try:
        return {"ok": True, "result": _dump(fn()), "error": None}
    except UnknownGoalError as e:
        env = ErrorEnvelope(code="INVALID_INPUT", message=str(e), details={"goal_id": e.goal_id})
    except ValidationError as e:
        env = ErrorEnvelope(
            code="INVALID_INPUT",
            message=f"{e.error_count()} validation error(s)",
            details={"errors": e.errors(include_url=False, include_context=False, include_input=False)},
        )
    except (InvalidInputError, InvalidOperation, ValueError) as e:
        env = ErrorEnvelope(code="INVALID_INPUT", message=str(e))
    except KeyError as e:
        env = ErrorEnvelope(code="INVALID_INPUT", message=f"missing field {e.args[0]!r}")
    except Exception as e:
        logger.exception("tool=%s failed", tool)
        env = ErrorEnvelope(code="COMPUTE_FAILED", message=str(e))
    logger.info("tool=%s error=%s", tool, env.code)
    return {"ok": False, "result": None, "error": env.model_dump()}


def tool_calculate(payload: Dict[str, Any]) -> Dict[str, Any]:
    p = _canon(payload or {})

    def _do():
        inp = _engine_input(p)
        out = financial_engine.calculate_input(inp)
        result = _dump(out)
        for goal_id, proj in out.projections.items():
            result["projections"][goal_id]["time_to_completion_text"] = proj.time_to_completion_text
        result["tracking"] = _dump(financial_engine.track_goals(inp, out))
        return result

    return _run("calculate", _do)


def tool_required_contribution(payload: Dict[str, Any]) -> Dict[str, Any]:
    p = _canon(payload or {})

    def _do():
        goal = Goal(**p["goal"])
        target = p.get("target_date") or goal.desired_date
        if target is None:
            raise InvalidInputError("target_date is required when the goal has no desired date")
        if not isinstance(target, date):
            target = date.fromisoformat(str(target))
        profile = FinancialProfile(**p["profile"]) if p.get("profile") is not None else None
        required = financial_engine.required_monthly_contribution(goal, target, profile, as_of=_as_of(p))
        return {"goal_id": goal.id, "required_monthly_contribution": required}

    return _run("required_contribution", _do)


def tool_validate_allocation(payload: Dict[str, Any]) -> Dict[str, Any]:
    p = _canon(payload or {})
    return _run(
        "validate_allocation",
        lambda: financial_engine.validate_allocation(
            Allocation(**p.get("allocation", {})), FinancialProfile(**p.get("profile", {}))
        ),
    )


def tool_compare_scenarios(payload: Dict[str, Any]) -> Dict[str, Any]:
    p = _canon(payload or {})

    def _do():
        goals: List[Goal] = [Goal(**g) for g in p.get("goals", [])]
        return financial_engine.compare_scenarios(
            Scenario(**p["scenario_a"]),
            Scenario(**p["scenario_b"]),
            goals,
            FinancialProfile(**p.get("profile", {})),
            as_of=_as_of(p),
        )

    return _run("compare_scenarios", _do)


def tool_stress_test(payload: Dict[str, Any]) -> Dict[str, Any]:
    """`event` runs one event; `events` runs a suite and adds the aggregate score."""
    p = _canon(payload or {})

    def _do():
        inp = _engine_input(p)
        if "events" in p:
            events = [_stress_event.validate_python(e) for e in p["events"]]
            return financial_engine.run_stress_suite(inp, events)
        return financial_engine.simulate_stress_event(inp, _stress_event.validate_python(p["event"]))

    return _run("stress_test", _do)


def tool_windfall(payload: Dict[str, Any]) -> Dict[str, Any]:
    p = _canon(payload or {})

    def _do():
        inp = _engine_input(p)
        strategy = _windfall_strategy.validate_python(p.get("strategy") or {"kind": "proportional_split"})
        return financial_engine.simulate_windfall(inp, _decimal.validate_python(p["amount"]), strategy)

    return _run("windfall", _do)


def tool_debt_vs_invest(payload: Dict[str, Any]) -> Dict[str, Any]:
    p = _canon(payload or {})

    def _do():
        threshold = p.get("materiality_threshold")
        return financial_engine.compare_debt_vs_invest(
            DebtProfile(**p["debt"]),
            InvestmentProfile(**p["investment"]),
            int(p["horizon_months"]),
            _decimal.validate_python(p["capacity"]),
            materiality_threshold=_decimal.validate_python(threshold) if threshold is not None else None,
        )

    return _run("debt_vs_invest", _do)
