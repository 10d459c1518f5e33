"""
TREC 20 Contract Validator — FastAPI Server
============================================

RESTful API for compliance review of TREC 20 residential resale contracts.

Endpoints:
    POST /review/file       Upload a contract PDF for review
    GET  /rules             List the active rule set
    GET  /forms             List the forms registry
    GET  /health            Health check / readiness probe

Run:
    uvicorn api:app --reload              # Dev (http://localhost:8000)
    uvicorn api:app --host 0.0.0.0        # Production

Docs:
    http://localhost:8000/docs             # Swagger UI (auto-generated)
    http://localhost:8000/redoc            # ReDoc (alternative)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, UploadFile
from pydantic import BaseModel, Field

from contract_validator import __version__
from contract_validator.config import Settings, load_settings
from contract_validator.exceptions import (
    ConfigurationError,
    ContractCheckError,
    NormalizationError,
)
from contract_validator.models import (
    ComplianceReport,
    Contract,
    ExtractionMetadata,
    Issue,
    ProvisionsAnalysis,
)
from contract_validator.ocr import Recognizer, TesseractRecognizer
from contract_validator.pipeline import ContractReviewPipeline
from contract_validator.registry import FormsRegistryEntry

logger = logging.getLogger(__name__)


# ─── Application Lifespan (pre-warm pipeline) ───────────────────────

_pipeline: ContractReviewPipeline | None = None


def _build_recognizer(settings: Settings) -> Optional[Recognizer]:
    if not settings.ocr_enabled:
        return None
    return TesseractRecognizer(language=settings.ocr_language, resolution=settings.ocr_resolution)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Pre-warm the pipeline (load forms registry, build rules) on startup."""
    global _pipeline  # noqa: PLW0603
    settings = load_settings()
    _pipeline = ContractReviewPipeline(
        recognizer=_build_recognizer(settings),
        settings=settings,
    )
    yield
    _pipeline = None


# ─── FastAPI App ─────────────────────────────────────────────────────

app = FastAPI(
    title="TREC 20 Contract Validator API",
    description=(
        "Compliance review for Texas TREC 20 resale contracts. "
        "Dual-mode extraction (PDF form fields or OCR), strict normalization, "
        "and 25 deterministic rules checked against the forms registry."
    ),
    version=__version__,
    lifespan=lifespan,
)


# ─── Response Schemas ───────────────────────────────────────────────


class ReviewResponse(BaseModel):
    """Structured compliance report returned by the API."""

    document_hash: str = Field(description="SHA-256 hash of the uploaded PDF")
    is_compliant: bool
    extraction: ExtractionMetadata
    severity_counts: dict[str, int]
    issues: list[Issue]
    contract: Contract
    provisions: Optional[ProvisionsAnalysis] = None

    model_config = {"json_schema_extra": {"example": {
        "document_hash": "a1b2c3d4...",
        "is_compliant": False,
        "extraction": {"mode": "structured", "detected_version": "20-17"},
        "severity_counts": {"critical": 0, "high": 1, "medium": 0, "low": 0, "info": 0},
        "issues": [
            {
                "id": "trec20.version.outdated",
                "message": "Outdated form version: 20-17. Expected 20-18",
                "severity": "high",
                "cite": "Form footer",
                "data": {"current_version": "20-17", "expected_version": "20-18"},
            }
        ],
        "contract": None,
        "provisions": None,
    }}}


class RuleOut(BaseModel):
    id: str
    description: str
    severity: str
    cite: Optional[str] = None


class FormOut(FormsRegistryEntry):
    form_code: str


class HealthResponse(BaseModel):
    status: str
    version: str
    rules_loaded: int
    forms_loaded: int
    ocr_enabled: bool


# ─── Helpers ─────────────────────────────────────────────────────────


def _get_pipeline() -> ContractReviewPipeline:
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialised")
    return _pipeline


def _error_detail(exc: ContractCheckError) -> dict:
    return {"code": exc.code, "message": exc.message, "details": exc.details}


def _build_response(report: ComplianceReport) -> ReviewResponse:
    """Convert the internal ComplianceReport to the API response schema."""
    return ReviewResponse(
        document_hash=report.document_hash,
        is_compliant=report.is_compliant,
        extraction=report.extraction,
        severity_counts=report.severity_counts,
        issues=report.issues,
        contract=report.contract,
        provisions=report.provisions,
    )


# ─── Endpoints ───────────────────────────────────────────────────────


@app.post(
    "/review/file",
    summary="Review a contract PDF",
    tags=["Review"],
    responses={
        400: {"description": "File is not a PDF"},
        413: {"description": "File too large"},
        422: {"description": "Extracted values failed normalization"},
        503: {"description": "Pipeline not initialised, or OCR needed but not configured"},
    },
)
async def review_contract_file(file: UploadFile, debug: bool = False) -> ReviewResponse:
    """Upload a TREC 20 contract PDF for compliance review.

    Returns a structured report with:
    - **is_compliant**: `true` if no critical or high issue was raised
    - **issues**: every fired rule, in rule order
    - **contract**: the normalized contract the rules were run against
    - **document_hash**: SHA-256 of the upload for audit trail
    """
    pipeline = _get_pipeline()
    limit = pipeline.settings.max_upload_bytes

    if file.size and file.size > limit:
        raise HTTPException(status_code=413, detail=f"File too large (max {limit} bytes)")

    content = await file.read()
    if len(content) > limit:
        raise HTTPException(status_code=413, detail=f"File too large (max {limit} bytes)")
    if not content.startswith(b"%PDF"):
        raise HTTPException(status_code=400, detail="File must be a PDF document")

    try:
        report = await asyncio.to_thread(pipeline.run, content, include_debug=debug)
    except NormalizationError as exc:
        raise HTTPException(status_code=422, detail=_error_detail(exc))
    except ConfigurationError as exc:
        raise HTTPException(status_code=503, detail=_error_detail(exc))

    logger.info("Reviewed %s: %d issue(s)", file.filename, len(report.issues))
    return _build_response(report)


@app.get("/rules", summary="List the active rule set", tags=["Rules"])
def list_rules() -> list[RuleOut]:
    """Every rule in evaluation order."""
    pipeline = _get_pipeline()
    return [
        RuleOut(
            id=rule.id,
            description=rule.description,
            severity=rule.severity.value,
            cite=rule.cite,
        )
        for rule in pipeline.rules
    ]


@app.get("/forms", summary="List the forms registry", tags=["Rules"])
def list_forms() -> list[FormOut]:
    pipeline = _get_pipeline()
    return [
        FormOut(form_code=code, **entry.model_dump())
        for code, entry in sorted(pipeline.registry.items())
    ]


@app.get(
    "/health",
    summary="Health check",
    tags=["System"],
    responses={503: {"description": "Pipeline not yet initialised"}},
)
def health_check() -> HealthResponse:
    """Returns service status and configuration info."""
    pipeline = _get_pipeline()
    return HealthResponse(
        status="healthy",
        version=__version__,
        rules_loaded=len(pipeline.rules),
        forms_loaded=len(pipeline.registry),
        ocr_enabled=pipeline.recognizer is not None,
    )
