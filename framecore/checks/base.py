# framecore/checks/base.py
"""Design check records shared by the steel, timber and concrete checks."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from ..model import ElementType


class CheckType(str, Enum):
    FLEXURE = "flexure"
    SHEAR = "shear"
    AXIAL = "axial"
    COMBINED = "combined"


@dataclass(frozen=True)
class DesignCheck:
    """
    One demand/capacity check of one element. Passes when ratio <= 1.0.

    For combined checks the demand is the interaction value and the
    capacity is 1.0.
    """
    element_id: object
    check_type: CheckType
    applicable: bool
    passed: bool
    ratio: float
    demand: float
    capacity: float
    code: str
    notes: str = ""


def make_check(element_id, check_type: CheckType, demand: float, capacity: float,
               code: str, notes: str = "") -> DesignCheck:
    demand = abs(demand)
    if capacity > 0:
        ratio = demand / capacity
    else:
        ratio = math.inf if demand > 0 else 0.0
    return DesignCheck(
        element_id=element_id,
        check_type=check_type,
        applicable=True,
        passed=ratio <= 1.0,
        ratio=ratio,
        demand=demand,
        capacity=capacity,
        code=code,
        notes=notes,
    )


def not_applicable(element_id, check_type: CheckType, code: str, notes: str,
                   passed: bool = True) -> DesignCheck:
    return DesignCheck(
        element_id=element_id,
        check_type=check_type,
        applicable=False,
        passed=passed,
        ratio=0.0,
        demand=0.0,
        capacity=0.0,
        code=code,
        notes=notes,
    )


def governing_check(checks: Sequence[DesignCheck]):
    """Applicable check with the highest ratio, or None."""
    applicable = [c for c in checks if c.applicable]
    if not applicable:
        return None
    return max(applicable, key=lambda c: c.ratio)


def count_failing(checks: Sequence[DesignCheck]) -> int:
    return sum(1 for c in checks if not c.passed)


def is_axial_member(element) -> bool:
    """Braces are idealized as pin-ended: only axial checks apply."""
    return element.type == ElementType.BRACE
