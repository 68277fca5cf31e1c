# framecore - 3D Frame Analysis Engine
"""
FRAMECORE: Finite Element Analysis for 3D Building Frames
=========================================================

This package provides:
- Linear static analysis of 3D frames (6 DOF per node)
- Dense, sparse LU and conjugate gradient solvers
- Modal analysis with a lumped mass matrix
- Seismic equivalent lateral force procedure (ASCE 7 / SNI 1726)
- Steel, timber and concrete design checks

ARCHITECTURE:
-------------
    kernel/         Matrix plumbing (DOF indexing, sparse storage, assembly,
                    supports, solvers, eigen solve)
    model.py        Nodes, elements, materials, loads (frozen dataclasses)
    section.py      Cross-section properties
    elements.py     3D frame element stiffness and transformation
    loads.py        Load vectors and equivalent nodal loads
    post.py         Forces, stresses, reactions, story drift
    seismic.py      Design spectrum and base shear
    checks/         Code design checks
    validation.py   Model checks before analysis
    analysis.py     perform_analysis() entry point
    serialize.py    pydantic interchange schemas
    logging_config  setup_logging() for the 'framecore' logger
"""

from .analysis import (
    AnalysisOptions,
    AnalysisResults,
    AnalysisStatus,
    AnalysisType,
    ResultCache,
    perform_analysis,
)
from .config import DEFAULT_CONFIG, EngineConfig
from .logging_config import setup_logging
from .errors import (
    CalculationError,
    ConvergenceError,
    FrameCoreError,
    SingularMatrixError,
    ValidationError,
    ValidationIssue,
)
from .kernel import SolverMethod
from .model import (
    FIXED,
    FREE,
    PINNED,
    ROLLER,
    Element,
    ElementLoad,
    ElementType,
    LoadCase,
    LoadCaseKind,
    LoadCombination,
    LoadDirection,
    Material,
    MaterialType,
    NodalLoad,
    Node,
    Section,
    StructuralModel,
)
from .progress import CancellationToken, ProgressCallback
from .section import section_properties
from .seismic import (
    ImportanceClass,
    SeismicParameters,
    SiteClass,
    calculate_base_shear,
    calculate_response_spectrum,
)
from .validation import validate_model

# Version
__version__ = "0.1.0"
