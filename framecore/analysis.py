# framecore/analysis.py
"""
ANALYSIS: One Entry Point for Static, Modal and Seismic Runs
============================================================

perform_analysis() takes a StructuralModel and returns an immutable
AnalysisResults. It never raises for engine failures; the outcome is in
`status`:

    completed     everything ran
    blocked       validation found errors, nothing was solved
    failed        singular system or numeric failure
    unconverged   CG hit its iteration cap; best estimate is kept
    cancelled     the CancellationToken fired; finished parts are kept

FLOW:
-----
    validate → assemble K (cached per model fingerprint)
      static:  per combination: F → solve → forces/stresses → design checks
      modal:   lumped M → eigen solve
      seismic: modal period → spectrum → base shear → story forces
               along X → static solve → story drift

USAGE:
------
    >>> results = perform_analysis(model, "static")
    >>> results.status
    <AnalysisStatus.COMPLETED: 'completed'>
    >>> tables = results.to_dataframes()
"""

import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .checks import DesignCheck, count_failing, design_checks
from .config import DEFAULT_CONFIG, EngineConfig
from .errors import (
    CalculationError,
    ConvergenceError,
    Severity,
    SingularMatrixError,
    ValidationError,
    ValidationIssue,
)
from .kernel.assemble import assemble_stiffness
from .kernel.dof import DOF_3D_FRAME
from .kernel.modal import ModalResult, build_lumped_mass_matrix, modal_analysis, total_mass
from .kernel.solve import SolveReport, SolverMethod, resolve_method, solve_system
from .loads import LoadVector, build_load_vector, combination_load_vector, unit_combinations
from .model import DOF_LABELS, ElementType, LoadCombination, NodeId, StructuralModel
from .post import (
    ElementResult,
    StoryDrift,
    element_result,
    node_displacements,
    node_reactions,
    drift_limit,
    story_drifts,
    story_levels,
)
from .progress import AnalysisCancelled, CancellationToken, ProgressCallback, ProgressReporter
from .seismic import (
    DesignSpectrum,
    ImportanceClass,
    ResponseSpectrum,
    SeismicParameters,
    approximate_period,
    calculate_base_shear,
    calculate_response_spectrum,
    design_parameters,
    period_coefficients,
    period_upper_limit,
    seismic_coefficient,
    vertical_distribution,
)
from .validation import validate_model

logger = logging.getLogger(__name__)

REACTION_LABELS = ('Rx', 'Ry', 'Rz', 'Mx', 'My', 'Mz')
SEISMIC_CASE = "E_x"


class AnalysisType(str, Enum):
    STATIC = "static"
    MODAL = "modal"
    SEISMIC = "seismic"


class AnalysisStatus(str, Enum):
    COMPLETED = "completed"
    BLOCKED = "blocked"
    FAILED = "failed"
    UNCONVERGED = "unconverged"
    CANCELLED = "cancelled"


def _readonly(a) -> np.ndarray:
    arr = np.array(a, dtype=float, copy=True)
    arr.setflags(write=False)
    return arr


def _readonly_map(values: Dict[NodeId, np.ndarray]) -> Mapping[NodeId, np.ndarray]:
    return MappingProxyType({k: _readonly(v) for k, v in values.items()})


def _period_coefficients(model: StructuralModel) -> Tuple[float, float]:
    """Ct, x from the columns' most common material (all elements when there are no columns)."""
    members = [el for el in model.elements if el.type == ElementType.COLUMN] or list(model.elements)
    counts = Counter(el.material.type for el in members)
    material = max(counts, key=lambda t: (counts[t], t.value))
    braced = any(el.type == ElementType.BRACE for el in model.elements)
    return period_coefficients(material, braced)


# =============================================================================
# Cache
# =============================================================================

class ResultCache:
    """
    Assembled matrices keyed by model fingerprint.

    Pass the same instance to several perform_analysis() calls to reuse
    stiffness and mass matrices. A changed model has a different
    fingerprint, so stale entries are never returned; invalidate() and
    clear() only free memory.
    """

    def __init__(self):
        self._entries: Dict[str, Dict[str, Any]] = {}
        self.hits = 0
        self.misses = 0

    @staticmethod
    def _key(model: Union[StructuralModel, str]) -> str:
        return model if isinstance(model, str) else model.fingerprint()

    def get(self, model: Union[StructuralModel, str], name: str):
        value = self._entries.get(self._key(model), {}).get(name)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def put(self, model: Union[StructuralModel, str], name: str, value) -> None:
        self._entries.setdefault(self._key(model), {})[name] = value

    def invalidate(self, model: Union[StructuralModel, str]) -> None:
        self._entries.pop(self._key(model), None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, model) -> bool:
        return self._key(model) in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# =============================================================================
# Options and results
# =============================================================================

@dataclass
class AnalysisOptions:
    """
    Knobs for perform_analysis().

    solver : SolverMethod
        AUTO picks direct elimination for small systems, CG for large ones
    n_modes : int, optional
        Modes to extract (default config.default_modes)
    design_checks : bool
        Run code checks on every element of every combination
    detailed_results : bool
        Keep per-node and per-element results (the summary is always kept)
    seismic : SeismicParameters, optional
        Required for seismic analysis
    importance_class : ImportanceClass, optional
        Overrides seismic.importance_class
    progress : ProgressCallback, optional
        Called with (percent, message)
    cancel_token : CancellationToken, optional
    cache : ResultCache, optional
    config : EngineConfig
    """
    solver: SolverMethod = SolverMethod.AUTO
    n_modes: Optional[int] = None
    design_checks: bool = True
    detailed_results: bool = True
    seismic: Optional[SeismicParameters] = None
    importance_class: Optional[ImportanceClass] = None
    progress: Optional[ProgressCallback] = None
    cancel_token: Optional[CancellationToken] = None
    cache: Optional[ResultCache] = None
    config: EngineConfig = DEFAULT_CONFIG


@dataclass(frozen=True)
class CombinationResult:
    """Static response to one load combination."""
    name: str
    factors: Tuple[Tuple[str, float], ...]
    displacements: Mapping[NodeId, np.ndarray]
    reactions: Mapping[NodeId, np.ndarray]
    elements: Tuple[ElementResult, ...]
    checks: Tuple[DesignCheck, ...]
    solver: SolverMethod
    iterations: int
    residual: float
    converged: bool
    max_displacement: float
    max_utilization: float

    @property
    def failing_checks(self) -> int:
        return count_failing(self.checks)


@dataclass(frozen=True)
class SeismicResult:
    """
    Equivalent lateral force results.

    story_elevations, story_forces and drifts describe the levels above
    the base, bottom to top.
    """
    parameters: SeismicParameters
    design: DesignSpectrum
    spectrum: ResponseSpectrum
    modal_period: float
    approximate_period: float
    period: float
    seismic_coefficient: float
    weight: float
    base_shear: float
    story_elevations: np.ndarray
    story_forces: np.ndarray
    drifts: Tuple[StoryDrift, ...]
    drift_limit: float

    @property
    def max_drift_ratio(self) -> float:
        return max((d.ratio for d in self.drifts), default=0.0)

    @property
    def drift_ok(self) -> bool:
        return self.max_drift_ratio <= self.drift_limit


@dataclass(frozen=True)
class AnalysisSummary:
    total_weight: float
    periods: np.ndarray
    base_shear: Optional[float]
    drift_ratios: np.ndarray
    max_displacement: float
    max_utilization: float
    failing_checks: int


@dataclass(frozen=True)
class AnalysisResults:
    analysis_type: AnalysisType
    status: AnalysisStatus
    message: str
    issues: Tuple[ValidationIssue, ...]
    combinations: Tuple[CombinationResult, ...]
    modal: Optional[ModalResult]
    seismic: Optional[SeismicResult]
    summary: AnalysisSummary
    fingerprint: str = ""

    @property
    def success(self) -> bool:
        return self.status == AnalysisStatus.COMPLETED

    def combination(self, name: str) -> CombinationResult:
        for combo in self.combinations:
            if combo.name == name:
                return combo
        raise KeyError(f"No result for combination '{name}'")

    def to_dataframes(self) -> Dict[str, pd.DataFrame]:
        """
        Tabular views of the results.

        Returns:
            dict with 'nodes', 'reactions', 'elements' and 'checks' tables
            (one row per combination and item), plus 'modes' and
            'stories' when modal / seismic results exist
        """
        node_rows, reaction_rows, element_rows, check_rows = [], [], [], []
        for combo in self.combinations:
            for node_id, u in combo.displacements.items():
                node_rows.append({'combination': combo.name, 'node': node_id,
                                  **dict(zip(DOF_LABELS, u.tolist()))})
            for node_id, r in combo.reactions.items():
                reaction_rows.append({'combination': combo.name, 'node': node_id,
                                      **dict(zip(REACTION_LABELS, r.tolist()))})
            for er in combo.elements:
                f = er.forces
                element_rows.append({
                    'combination': combo.name,
                    'element': er.element_id,
                    'length': er.length,
                    'axial': f.axial,
                    'shear_y': f.shear_y,
                    'shear_z': f.shear_z,
                    'torsion': f.torsion,
                    'moment_y': f.moment_y,
                    'moment_z': f.moment_z,
                    'stress': er.stresses.combined,
                    'utilization': er.utilization,
                    'status': er.safety.status,
                })
            for c in combo.checks:
                check_rows.append({
                    'combination': combo.name,
                    'element': c.element_id,
                    'check': c.check_type.value,
                    'applicable': c.applicable,
                    'passed': c.passed,
                    'ratio': c.ratio,
                    'demand': c.demand,
                    'capacity': c.capacity,
                    'code': c.code,
                })

        tables = {
            'nodes': pd.DataFrame(node_rows, columns=['combination', 'node', *DOF_LABELS]),
            'reactions': pd.DataFrame(reaction_rows, columns=['combination', 'node', *REACTION_LABELS]),
            'elements': pd.DataFrame(element_rows, columns=[
                'combination', 'element', 'length', 'axial', 'shear_y', 'shear_z', 'torsion',
                'moment_y', 'moment_z', 'stress', 'utilization', 'status']),
            'checks': pd.DataFrame(check_rows, columns=[
                'combination', 'element', 'check', 'applicable', 'passed', 'ratio',
                'demand', 'capacity', 'code']),
        }

        if self.modal is not None:
            ratio = self.modal.mass_participation_ratio()
            tables['modes'] = pd.DataFrame({
                'mode': np.arange(1, self.modal.n_modes + 1),
                'frequency_hz': self.modal.frequencies_hz,
                'period_s': self.modal.periods,
                'mass_ratio_x': ratio[:, 0],
                'mass_ratio_y': ratio[:, 1],
                'mass_ratio_z': ratio[:, 2],
            })

        if self.seismic is not None:
            tables['stories'] = pd.DataFrame({
                'level': [d.level for d in self.seismic.drifts],
                'elevation': self.seismic.story_elevations,
                'force': self.seismic.story_forces,
                'drift': [d.drift for d in self.seismic.drifts],
                'drift_ratio': [d.ratio for d in self.seismic.drifts],
            })
        return tables


# =============================================================================
# Run
# =============================================================================

class _Run:
    """State of one perform_analysis() call; keeps whatever finished so far."""

    def __init__(self, model: StructuralModel, options: AnalysisOptions, fingerprint: str):
        self.model = model
        self.options = options
        self.config = options.config
        self.fingerprint = fingerprint
        self.reporter = ProgressReporter(options.progress, options.cancel_token)
        self.combinations: List[CombinationResult] = []
        self.modal: Optional[ModalResult] = None
        self.seismic: Optional[SeismicResult] = None
        self.last_displacements: Optional[np.ndarray] = None
        self.matrices: Dict[str, Any] = {}

    # --- matrices ---

    def _cached(self, name: str):
        if name in self.matrices:
            return self.matrices[name]
        if self.options.cache is None:
            return None
        return self.options.cache.get(self.fingerprint, name)

    def _store(self, name: str, value) -> None:
        self.matrices[name] = value
        if self.options.cache is not None:
            self.options.cache.put(self.fingerprint, name, value)

    def stiffness(self, sparse: bool, span: Tuple[float, float]):
        name = 'K_sparse' if sparse else 'K'
        K = self._cached(name)
        if K is not None:
            logger.info("Stiffness matrix from cache")
            self.reporter.report(span[1], "Stiffness matrix from cache")
            return K

        self.reporter.report(span[0], "Assembling stiffness matrix")
        K = assemble_stiffness(
            self.model,
            use_sparse=sparse,
            min_length=self.config.min_element_length,
            threshold=self.config.sparse_threshold,
            reporter=self.reporter,
            progress_span=span,
        )
        if not sparse:
            K.setflags(write=False)
        self._store(name, K)
        return K

    def mass(self) -> np.ndarray:
        M = self._cached('M')
        if M is None:
            M = build_lumped_mass_matrix(self.model)
            M.setflags(write=False)
            self._store('M', M)
        return M

    # --- static ---

    def combination_result(self, name: str, factors, lv: LoadVector, report: SolveReport) -> CombinationResult:
        model = self.model
        d = report.displacements
        detailed = self.options.detailed_results

        elements: Tuple[ElementResult, ...] = ()
        if detailed or self.options.design_checks:
            elements = tuple(
                element_result(model, el, d, lv.element_loads.get(el.id), self.config)
                for el in model.elements
            )
        checks: Tuple[DesignCheck, ...] = ()
        if self.options.design_checks:
            checks = tuple(design_checks(model, elements))

        translations = d.reshape(-1, 6)[:, :3]
        return CombinationResult(
            name=name,
            factors=tuple(factors),
            displacements=_readonly_map(node_displacements(model, d)) if detailed else MappingProxyType({}),
            reactions=_readonly_map(node_reactions(model, report.reactions)) if detailed else MappingProxyType({}),
            elements=elements if detailed else (),
            checks=checks,
            solver=report.method,
            iterations=report.iterations,
            residual=report.residual,
            converged=report.converged,
            max_displacement=float(np.max(np.linalg.norm(translations, axis=1))) if len(translations) else 0.0,
            max_utilization=max((r.utilization for r in elements), default=0.0),
        )

    def solve_combination(self, K, name: str, factors, lv: LoadVector, method: SolverMethod) -> CombinationResult:
        restrained = self.model.restrained_dofs()
        try:
            report = solve_system(K, lv.F, restrained, method, self.config, self.reporter)
        except ConvergenceError as exc:
            if exc.solution is not None:
                d = np.asarray(exc.solution, dtype=float)
                partial = SolveReport(d, K @ d - lv.F, SolverMethod.CONJUGATE_GRADIENT,
                                      iterations=exc.iterations, residual=exc.residual, converged=False)
                self.combinations.append(self.combination_result(name, factors, lv, partial))
            raise
        self.last_displacements = report.displacements
        result = self.combination_result(name, factors, lv, report)
        self.combinations.append(result)
        return result

    def static(self, combinations: Sequence[LoadCombination]) -> None:
        model = self.model
        method = resolve_method(self.options.solver, model.ndof, self.config)
        sparse = method in (SolverMethod.CONJUGATE_GRADIENT, SolverMethod.SPARSE_LU)
        K = self.stiffness(sparse, (5.0, 35.0))
        self.reporter.check("assembly")

        case_vectors: Dict[str, LoadVector] = {}
        for case in model.all_load_cases():
            case_vectors[case.name] = build_load_vector(model, case, self.config)

        n = len(combinations)
        for k, combination in enumerate(combinations):
            self.reporter.check("solve")
            self.reporter.report(35.0 + 60.0 * k / n, f"Solving combination {combination.name}")
            lv = combination_load_vector(model, combination, self.config, case_vectors)
            self.solve_combination(K, combination.name, combination.factors, lv, method)

    # --- modal ---

    def modal_phase(self) -> ModalResult:
        K = self.stiffness(False, (5.0, 35.0))
        self.reporter.check("assembly")
        self.reporter.report(40.0, "Building mass matrix")
        M = self.mass()
        self.reporter.check("mass assembly")
        self.reporter.report(50.0, "Solving eigenvalue problem")
        n_modes = self.options.n_modes or self.config.default_modes
        self.modal = modal_analysis(self.model, K, n_modes, M)
        return self.modal

    # --- seismic ---

    def seismic_phase(self) -> None:
        params = self.options.seismic
        model = self.model
        config = self.config
        modal = self.modal_phase()
        K = self.stiffness(False, (5.0, 35.0))
        M = self.mass()
        self.reporter.check("modal analysis")

        self.reporter.report(65.0, "Computing seismic demand")
        design = design_parameters(params)
        levels = story_levels(model)
        base = levels[0]
        height = levels[-1] - base
        Ta = approximate_period(height, *_period_coefficients(model))
        T_modal = modal.fundamental_period
        if np.isfinite(T_modal) and Ta > 0:
            period = min(T_modal, period_upper_limit(Ta, design.sd1))
        elif np.isfinite(T_modal):
            period = T_modal
        else:
            period = Ta

        weight = total_mass(model) * config.gravity
        importance = self.options.importance_class
        cs = seismic_coefficient(period, params, importance)
        V = calculate_base_shear(weight, period, params, importance)

        # Lumped mass per node (ux diagonal), grouped by level above the base
        node_mass = np.diag(M)[0::6]
        tol = 1e-3
        upper = levels[1:]
        members = [[i for i, n in enumerate(model.nodes) if abs(n.z - z) <= tol] for z in upper]
        level_weights = [node_mass[idx].sum() * config.gravity for idx in members]
        forces = vertical_distribution(V, level_weights, [z - base for z in upper], period) if upper else np.zeros(0)

        F = np.zeros(model.ndof)
        for force, idx in zip(forces, members):
            loaded = [i for i in idx if not model.nodes[i].restraints[0]]
            if not loaded:
                logger.warning("No free node at a loaded level, %.1f N story force skipped", force)
                continue
            m = node_mass[loaded]
            share = m / m.sum() if m.sum() > 0 else np.full(len(loaded), 1.0 / len(loaded))
            for i, s in zip(loaded, share):
                F[DOF_3D_FRAME.idx(i, 0)] += force * s

        self.reporter.check("seismic demand")
        self.reporter.report(75.0, "Solving equivalent lateral forces")
        method = resolve_method(self.options.solver, model.ndof, config)
        self.solve_combination(K, SEISMIC_CASE, ((SEISMIC_CASE, 1.0),), LoadVector(F), method)

        self.reporter.report(95.0, "Computing story drift")
        drifts = tuple(story_drifts(model, self.last_displacements))

        spectrum = calculate_response_spectrum(params)
        spectrum = ResponseSpectrum(_readonly(spectrum.periods), _readonly(spectrum.sa))
        self.seismic = SeismicResult(
            parameters=params,
            design=design,
            spectrum=spectrum,
            modal_period=float(T_modal),
            approximate_period=float(Ta),
            period=float(period),
            seismic_coefficient=float(cs),
            weight=float(weight),
            base_shear=float(V),
            story_elevations=_readonly(upper),
            story_forces=_readonly(forces),
            drifts=drifts,
            drift_limit=drift_limit(importance or params.importance_class, config),
        )
        if not self.seismic.drift_ok:
            logger.warning("Story drift %.4f exceeds limit %.4f", self.seismic.max_drift_ratio, self.seismic.drift_limit)

    # --- results ---

    def summary(self) -> AnalysisSummary:
        utilizations = [c.max_utilization for c in self.combinations]
        return AnalysisSummary(
            total_weight=total_mass(self.model) * self.config.gravity if self.model.elements else 0.0,
            periods=_readonly(self.modal.periods if self.modal is not None else []),
            base_shear=self.seismic.base_shear if self.seismic is not None else None,
            drift_ratios=_readonly([d.ratio for d in self.seismic.drifts] if self.seismic is not None else []),
            max_displacement=max((c.max_displacement for c in self.combinations), default=0.0),
            max_utilization=max(utilizations, default=0.0),
            failing_checks=sum(c.failing_checks for c in self.combinations),
        )


# =============================================================================
# Entry point
# =============================================================================

def _resolve_combinations(
    model: StructuralModel,
    requested: Optional[Sequence[Union[LoadCombination, str]]],
) -> Tuple[List[LoadCombination], List[ValidationIssue]]:
    """
    Combinations to solve: the requested ones, else the model's, else one
    unit combination per load case (or a single unloaded run).

    A string names a model combination or, failing that, a load case.
    """
    known_cases = {case.name for case in model.all_load_cases()}
    issues: List[ValidationIssue] = []

    if requested is None:
        combinations = list(model.load_combinations) or unit_combinations(model.all_load_cases())
    else:
        by_name = {c.name: c for c in model.load_combinations}
        combinations = []
        for item in requested:
            if isinstance(item, LoadCombination):
                combinations.append(item)
            elif item in by_name:
                combinations.append(by_name[item])
            else:
                combinations.append(LoadCombination(item, ((item, 1.0),)))

    for combination in combinations:
        for case_name, _ in combination.factors:
            if case_name not in known_cases:
                issues.append(ValidationIssue(
                    f"load_combinations[{combination.name}]",
                    f"Unknown load case {case_name!r}",
                    code="UNKNOWN_LOAD_CASE",
                ))

    if not combinations:
        combinations = [LoadCombination("unloaded", ())]
    return combinations, issues


def _results(run: Optional[_Run], analysis_type: AnalysisType, status: AnalysisStatus, message: str,
             issues, fingerprint: str) -> AnalysisResults:
    if run is None:
        summary = AnalysisSummary(
            total_weight=0.0,
            periods=_readonly([]),
            base_shear=None,
            drift_ratios=_readonly([]),
            max_displacement=0.0,
            max_utilization=0.0,
            failing_checks=0,
        )
        combinations, modal, seismic = (), None, None
    else:
        summary = run.summary()
        combinations, modal, seismic = tuple(run.combinations), run.modal, run.seismic

    log = logger.info if status == AnalysisStatus.COMPLETED else logger.warning
    log("Analysis %s: %s", status.value, message)
    return AnalysisResults(
        analysis_type=analysis_type,
        status=status,
        message=message,
        issues=tuple(issues),
        combinations=combinations,
        modal=modal,
        seismic=seismic,
        summary=summary,
        fingerprint=fingerprint,
    )


def perform_analysis(
    model: StructuralModel,
    analysis_type: Union[AnalysisType, str] = AnalysisType.STATIC,
    load_combinations: Optional[Sequence[Union[LoadCombination, str]]] = None,
    options: Optional[AnalysisOptions] = None,
) -> AnalysisResults:
    """
    Run a static, modal or seismic analysis.

    Args:
        model: StructuralModel
        analysis_type: 'static', 'modal' or 'seismic'
        load_combinations: Combinations for the static run (default: the
            model's combinations, else one per load case)
        options: AnalysisOptions (seismic runs need options.seismic)

    Returns:
        AnalysisResults; check `status` / `success`
    """
    options = options or AnalysisOptions()
    analysis_type = AnalysisType(analysis_type)
    config = options.config
    reporter = ProgressReporter(options.progress, options.cancel_token)

    logger.info("Starting %s analysis of '%s' (%d nodes, %d elements)",
                analysis_type.value, model.name, len(model.nodes), len(model.elements))
    reporter.report(0.0, "Validating model")

    report = validate_model(model, config)
    issues = list(report.issues)
    combinations: List[LoadCombination] = []
    if analysis_type == AnalysisType.STATIC:
        combinations, combination_issues = _resolve_combinations(model, load_combinations)
        issues.extend(combination_issues)
    if analysis_type == AnalysisType.SEISMIC and options.seismic is None:
        issues.append(ValidationIssue("options.seismic", "Seismic analysis needs SeismicParameters",
                                      code="MISSING_SEISMIC_PARAMETERS"))

    errors = [i for i in issues if i.severity == Severity.ERROR]
    if errors:
        return _results(None, analysis_type, AnalysisStatus.BLOCKED,
                        f"Model validation failed with {len(errors)} error(s)", issues, "")

    fingerprint = model.fingerprint()
    run = _Run(model, options, fingerprint)
    try:
        run.reporter.check("validation")
        if analysis_type == AnalysisType.STATIC:
            run.static(combinations)
        elif analysis_type == AnalysisType.MODAL:
            run.modal_phase()
        else:
            run.seismic_phase()
    except AnalysisCancelled as exc:
        return _results(run, analysis_type, AnalysisStatus.CANCELLED, str(exc), issues, fingerprint)
    except ConvergenceError as exc:
        return _results(run, analysis_type, AnalysisStatus.UNCONVERGED,
                        f"{exc} (best estimate kept, {exc.iterations} iterations)", issues, fingerprint)
    except SingularMatrixError as exc:
        return _results(run, analysis_type, AnalysisStatus.FAILED, str(exc), issues, fingerprint)
    except ValidationError as exc:
        return _results(run, analysis_type, AnalysisStatus.BLOCKED, str(exc),
                        issues + list(exc.issues), fingerprint)
    except CalculationError as exc:
        return _results(run, analysis_type, AnalysisStatus.FAILED, f"Calculation error: {exc}",
                        issues, fingerprint)

    run.reporter.report(100.0, "Analysis complete")
    return _results(run, analysis_type, AnalysisStatus.COMPLETED, "Analysis complete", issues, fingerprint)
