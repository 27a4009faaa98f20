"""
Engine exceptions.

Only caller misuse is raised. A plan that doesn't work financially (unreachable
goal, empty savings pool, over-allocation) is reported through result fields,
never through these classes.
"""

from __future__ import annotations


class EngineError(Exception):
    pass


class InvalidInputError(EngineError, ValueError):
    """The caller passed input the engine cannot interpret."""


class NegativeRateError(InvalidInputError):
    pass


class TargetDateInPastError(InvalidInputError):
    pass


class UnknownGoalError(InvalidInputError):
    def __init__(self, goal_id: str, context: str = "allocation") -> None:
        super().__init__(f"{context} references unknown goal id {goal_id!r}")
        self.goal_id = goal_id
        self.context = context
