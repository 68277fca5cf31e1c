# api/main.py
"""
FastAPI backend for framecore - exposes the analysis engine as REST API.
"""

import logging
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from framecore import (
    AnalysisOptions,
    CalculationError,
    ImportanceClass,
    SeismicParameters,
    SiteClass,
    SolverMethod,
    calculate_base_shear,
    calculate_response_spectrum,
    perform_analysis,
    setup_logging,
    validate_model,
)
from framecore.seismic import design_parameters, minimum_seismic_coefficient, seismic_coefficient
from framecore.serialize import ModelSchema, results_to_dict

setup_logging(logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="framecore API",
    description="3D Frame Analysis Engine",
    version="0.1.0"
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Request/Response Models
# =============================================================================

class SeismicParams(BaseModel):
    """Site and structural system parameters."""
    ss: float = Field(..., ge=0.0, description="Mapped Ss at 0.2 s (g)")
    s1: float = Field(..., ge=0.0, description="Mapped S1 at 1.0 s (g)")
    site_class: SiteClass = Field(SiteClass.SD, description="Site class SA..SF")
    response_modification: float = Field(8.0, gt=0.0, description="R")
    long_period_transition: float = Field(8.0, gt=0.0, description="Tl (s)")
    importance_class: ImportanceClass = ImportanceClass.II

    def to_domain(self) -> SeismicParameters:
        return SeismicParameters(**self.model_dump())


class AnalyzeRequest(BaseModel):
    """Model plus analysis options."""
    model: ModelSchema
    analysis_type: Literal["static", "modal", "seismic"] = "static"
    combinations: Optional[List[str]] = Field(None, description="Combination or load case names")
    solver: SolverMethod = SolverMethod.AUTO
    n_modes: Optional[int] = Field(None, ge=1, le=100)
    design_checks: bool = True
    detailed_results: bool = True
    seismic: Optional[SeismicParams] = None


class IssueData(BaseModel):
    field: str
    message: str
    severity: str
    code: Optional[str] = None


class ValidateResult(BaseModel):
    ok: bool
    issues: List[IssueData]


class SpectrumRequest(BaseModel):
    params: SeismicParams
    periods: Optional[List[float]] = Field(None, description="Periods (s); default 0-4 s grid")


class SpectrumResult(BaseModel):
    periods: List[float]
    sa: List[float]
    sds: float
    sd1: float
    ts: float
    t0: float


class BaseShearRequest(BaseModel):
    params: SeismicParams
    weight: float = Field(..., ge=0.0, description="Seismic weight W (N)")
    period: float = Field(..., ge=0.0, description="Fundamental period T (s)")
    importance_class: Optional[ImportanceClass] = None


class BaseShearResult(BaseModel):
    base_shear: float
    seismic_coefficient: float
    minimum_coefficient: float


# =============================================================================
# API Endpoints
# =============================================================================

@app.get("/")
async def root():
    """Health check."""
    return {"status": "ok", "service": "framecore API"}


@app.post("/api/analyze")
async def analyze(request: AnalyzeRequest) -> Dict[str, Any]:
    """Run an analysis; engine failures come back as status/success, not HTTP errors."""
    if request.analysis_type == "seismic" and request.seismic is None:
        raise HTTPException(status_code=400, detail="Seismic analysis needs 'seismic' parameters")

    options = AnalysisOptions(
        solver=request.solver,
        n_modes=request.n_modes,
        design_checks=request.design_checks,
        detailed_results=request.detailed_results,
        seismic=request.seismic.to_domain() if request.seismic is not None else None,
    )
    results = perform_analysis(
        request.model.to_domain(),
        request.analysis_type,
        request.combinations,
        options,
    )
    logger.info("POST /api/analyze: %s analysis %s", request.analysis_type, results.status.value)
    return results_to_dict(results)


@app.post("/api/validate", response_model=ValidateResult)
async def validate(model: ModelSchema):
    """Report every validation issue of a model."""
    report = validate_model(model.to_domain())
    return ValidateResult(
        ok=report.ok,
        issues=[
            IssueData(field=i.field, message=i.message, severity=i.severity.value, code=i.code)
            for i in report.issues
        ],
    )


@app.post("/api/seismic/spectrum", response_model=SpectrumResult)
async def seismic_spectrum(request: SpectrumRequest):
    """Design response spectrum Sa(T)."""
    params = request.params.to_domain()
    try:
        design = design_parameters(params)
        spectrum = calculate_response_spectrum(params, request.periods)
    except CalculationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SpectrumResult(
        periods=spectrum.periods.tolist(),
        sa=spectrum.sa.tolist(),
        sds=design.sds,
        sd1=design.sd1,
        ts=design.ts,
        t0=design.t0,
    )


@app.post("/api/seismic/base-shear", response_model=BaseShearResult)
async def seismic_base_shear(request: BaseShearRequest):
    """Seismic coefficient and design base shear."""
    params = request.params.to_domain()
    try:
        V = calculate_base_shear(request.weight, request.period, params, request.importance_class)
        cs = seismic_coefficient(request.period, params, request.importance_class)
        cs_min = minimum_seismic_coefficient(params, request.importance_class)
    except CalculationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return BaseShearResult(base_shear=V, seismic_coefficient=cs, minimum_coefficient=cs_min)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
