from .constraints import ConstraintModel, ParticipantStatus, eligible_ids
from .errors import (
    AssignmentError,
    DegenerateGroupError,
    InfeasibleConstraintsError,
    InvariantViolationError,
    RetryBudgetExhaustedError,
)
from .feasibility import FeasibilityReport, HallObstruction, check_feasibility, maximum_matching
from .generator import GenerationOptions
from .pipeline import AssignmentEngine, AssignmentPersister, generate_assignments
from .results import AssignmentSet
from .validator import validate_assignment

__all__ = [
    "AssignmentEngine",
    "AssignmentError",
    "AssignmentPersister",
    "AssignmentSet",
    "ConstraintModel",
    "DegenerateGroupError",
    "FeasibilityReport",
    "GenerationOptions",
    "HallObstruction",
    "InfeasibleConstraintsError",
    "InvariantViolationError",
    "ParticipantStatus",
    "RetryBudgetExhaustedError",
    "check_feasibility",
    "eligible_ids",
    "generate_assignments",
    "maximum_matching",
    "validate_assignment",
]
