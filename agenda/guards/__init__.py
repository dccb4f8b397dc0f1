"""Guards: the boolean preconditions that gate priority activation."""

from agenda.guards.evaluator import FactGuardEvaluator, evaluate_guard
from agenda.guards.facts import FactDeriver, validate_fact_definitions
from agenda.guards.validator import describe_guard, used_fact_keys, validate_guard

__all__ = [
    "FactDeriver",
    "FactGuardEvaluator",
    "describe_guard",
    "evaluate_guard",
    "used_fact_keys",
    "validate_fact_definitions",
    "validate_guard",
]
