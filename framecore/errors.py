# framecore/errors.py
"""Exception taxonomy and validation issue records."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

import numpy as np


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ValidationIssue:
    """One problem found in a model. ERROR issues block analysis."""
    field: str
    message: str
    severity: Severity = Severity.ERROR
    code: Optional[str] = None

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.field}: {self.message}"


class FrameCoreError(Exception):
    """Base class for all engine errors."""
    pass


class ValidationError(FrameCoreError, ValueError):
    """Raised when model input is malformed or the structure is under-restrained."""

    def __init__(self, issues: Iterable[ValidationIssue] | str):
        if isinstance(issues, str):
            issues = [ValidationIssue(field="model", message=issues)]
        self.issues: Tuple[ValidationIssue, ...] = tuple(issues)
        errors = [i for i in self.issues if i.severity == Severity.ERROR]
        shown = errors or list(self.issues)
        summary = "; ".join(str(i) for i in shown[:5])
        if len(shown) > 5:
            summary += f" (+{len(shown) - 5} more)"
        super().__init__(summary or "Model validation failed")


class SingularMatrixError(FrameCoreError, RuntimeError):
    """Raised when the stiffness matrix has a near-zero pivot (mechanism or disconnected part)."""
    pass


class ConvergenceError(FrameCoreError, RuntimeError):
    """Raised when the iterative solver hits its iteration cap without meeting tolerance."""

    def __init__(
        self,
        message: str,
        iterations: int = 0,
        residual: float = float('nan'),
        solution: Optional[np.ndarray] = None,
    ):
        super().__init__(message)
        self.iterations = iterations
        self.residual = residual
        self.solution = solution


class CalculationError(FrameCoreError, ArithmeticError):
    """Raised on an unexpected numeric failure, e.g. division by a zero section property."""
    pass
