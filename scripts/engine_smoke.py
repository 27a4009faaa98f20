from __future__ import annotations

from winnie_engine.core.config import SETTINGS
from winnie_engine.tools.engine_tools import (
    tool_calculate,
    tool_debt_vs_invest,
    tool_stress_test,
    tool_windfall,
)
from winnie_engine.utils.logging import setup_logging, set_log_context


def main():
    setup_logging(SETTINGS.log_level)
    set_log_context(request_id="smoke", couple_id="demo-couple")

    snapshot = {
        "asOf": "2025-01-15",
        "profile": {"monthlyIncome": "9000", "monthlyNeeds": "4500", "monthlyWants": "1500", "currentSavings": "20000"},
        "goals": [
            {"id": "house", "type": "house", "name": "Down payment", "targetAmount": "50000", "customReturnRate": "0.07"},
            {"id": "ef", "type": "emergencyFund", "targetAmount": "18000", "currentAmount": "6000", "priority": 1},
            {"id": "trip", "type": "vacation", "targetAmount": "6000", "desiredDate": "2025-12-01", "priority": 2},
        ],
        "allocation": {"house": "1850", "ef": "500", "trip": "250"},
    }

    calc = tool_calculate(snapshot)
    for goal_id, proj in calc["result"]["projections"].items():
        print("Goal:", goal_id, proj["months_to_complete"], proj["completion_date"], proj["time_to_completion_text"])
    for w in calc["result"]["warnings"]:
        print("Warning:", w["code"], w["message"])
    for goal_id, status in calc["result"]["tracking"].items():
        print("Tracking:", goal_id, status["state"])

    stress = tool_stress_test({**snapshot, "events": [
        {"kind": "jobLoss", "months": 3},
        {"kind": "marketCorrection", "percent": "0.2"},
        {"kind": "unexpectedExpense", "amount": "3000"},
    ]})
    print("Resilience:", stress["result"]["resilience_score"])

    wf = tool_windfall({**snapshot, "amount": "5000", "strategy": {"kind": "allToSingleGoal", "goalId": "house"}})
    for goal_id, d in wf["result"]["deltas"].items():
        print("Windfall:", goal_id, d["amount_applied"], "saves", d["months_saved"], "months")

    dvi = tool_debt_vs_invest({
        "debt": {"balance": "8000", "annualInterestRate": "0.22"},
        "investment": {"assumedAnnualReturn": "0.07"},
        "horizonMonths": 60,
        "monthlyCapacity": "600",
    })
    print("Debt vs invest:", dvi["result"]["recommended"], dvi["result"]["net_worth_difference"])

if __name__ == "__main__":
    main()
