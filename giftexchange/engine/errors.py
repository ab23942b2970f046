from __future__ import annotations


class AssignmentError(RuntimeError):
    pass


class DegenerateGroupError(AssignmentError):
    """Fewer than two eligible participants; nobody can be deranged."""


class InfeasibleConstraintsError(AssignmentError):
    """
    No perfect matching exists in the compatibility graph.

    `obstruction` is the minimal set of santas proving it (see HallObstruction).
    """

    def __init__(self, obstruction):
        self.obstruction = obstruction
        super().__init__(obstruction.describe())


class RetryBudgetExhaustedError(AssignmentError):
    pass


class InvariantViolationError(AssignmentError):
    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("Assignment failed validation: " + "; ".join(self.problems))
